import os
from dataclasses import asdict

from ruamel.yaml import YAML
from pupistry.models import Manifest
from pupistry.utils.yaml_loader import get_yaml_instance

LATEST = "latest"
INSTALLED = "installed"


class ManifestRepository:
    def __init__(self, artifacts_dir: str):
        self.artifacts_dir: str = artifacts_dir
        self.yaml: YAML = get_yaml_instance()

    def path_for(self, name: str) -> str:
        return os.path.join(self.artifacts_dir, f"manifest.{name}.yaml")

    def find_by_version(self, version: str) -> Manifest | None:
        return self._read(self.path_for(version))

    def find_latest(self) -> Manifest | None:
        return self._read(self.path_for(LATEST))

    def find_installed(self) -> Manifest | None:
        return self._read(self.path_for(INSTALLED))

    def save(self, manifest: Manifest, latest: bool = True) -> bool:
        self._write(self.path_for(manifest.version), manifest)
        if latest:
            self._write(self.path_for(LATEST), manifest)
        return True

    def mark_installed(self, manifest: Manifest) -> bool:
        return self._write(self.path_for(INSTALLED), manifest)

    def delete(self, version: str) -> None:
        path = self.path_for(version)
        if os.path.isfile(path):
            os.remove(path)

    def _read(self, file_path: str) -> Manifest | None:
        if not os.path.isfile(file_path):
            return None
        with open(file_path, "r") as f:
            try:
                data = self.yaml.load(f)
                return Manifest(**data)
            except Exception as e:
                raise ValueError(f"Invalid manifest {file_path}: {e}") from e

    def _write(self, file_path: str, manifest: Manifest) -> bool:
        os.makedirs(self.artifacts_dir, exist_ok=True)
        try:
            with open(file_path, "w") as f:
                self.yaml.dump(asdict(manifest), f)
            return True
        except Exception as e:
            raise Exception(f"Error writing manifest {file_path}: {e}") from e
