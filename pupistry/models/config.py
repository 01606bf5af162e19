import os
from dataclasses import field

from pydantic import Field, ValidationError
from pydantic.dataclasses import dataclass

DEFAULT_APP_CACHE = "~/.pupistry/cache"


@dataclass(frozen=True)
class GeneralConfig:
    app_cache: str = DEFAULT_APP_CACHE
    gpg_signing: bool = False
    gpg_key: str | None = None
    keep_artifacts: int = Field(default=5, ge=1)

    @property
    def cache_dir(self) -> str:
        return os.path.expanduser(self.app_cache)

    @property
    def artifacts_dir(self) -> str:
        return os.path.join(self.cache_dir, "artifacts")


@dataclass(frozen=True)
class BuildConfig:
    puppetcode: str | None = None


@dataclass(frozen=True)
class AgentConfig:
    puppetcode: str | None = None


@dataclass(frozen=True)
class PupistryConfig:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)

    @classmethod
    def from_mapping(cls, data: dict | None) -> "PupistryConfig":
        try:
            return cls(**(data or {}))
        except (ValidationError, TypeError) as e:
            raise ValueError(f"Invalid configuration structure: {e}") from e


# maps environment variables onto (section, key)
ENV_SETTINGS = {
    "PUPISTRY_APP_CACHE": ("general", "app_cache"),
    "PUPISTRY_GPG_SIGNING": ("general", "gpg_signing"),
    "PUPISTRY_GPG_KEY": ("general", "gpg_key"),
    "PUPISTRY_PUPPETCODE": ("build", "puppetcode"),
    "PUPISTRY_AGENT_PUPPETCODE": ("agent", "puppetcode"),
    "PUPISTRY_KEEP_ARTIFACTS": ("general", "keep_artifacts"),
}


def load_config_from_env(environ: dict[str, str] | None = None) -> PupistryConfig:
    environ = os.environ if environ is None else environ
    data: dict[str, dict[str, str]] = {}
    for env_key, (section, key) in ENV_SETTINGS.items():
        value = environ.get(env_key)
        if value:
            data.setdefault(section, {})[key] = value
    return PupistryConfig.from_mapping(data)
