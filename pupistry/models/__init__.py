from .config import AgentConfig, BuildConfig, GeneralConfig, PupistryConfig, load_config_from_env
from .manifest import Manifest

__all__ = [
    "AgentConfig",
    "BuildConfig",
    "GeneralConfig",
    "Manifest",
    "PupistryConfig",
    "load_config_from_env",
]
