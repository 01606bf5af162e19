import os
import re
import logging

from pupistry.repositories.manifest_repository import ManifestRepository

logger = logging.getLogger(__name__)

ARTIFACT_PATTERN = re.compile(r"^artifact\.(\d{14})\.tar\.gz$")


class ArtifactRepository:
    def __init__(self, artifacts_dir: str, manifests: ManifestRepository | None = None):
        self.artifacts_dir: str = artifacts_dir
        self.manifests: ManifestRepository = manifests or ManifestRepository(artifacts_dir)

    def path_for(self, version: str) -> str:
        return os.path.join(self.artifacts_dir, f"artifact.{version}.tar.gz")

    def find_all(self) -> list[str]:
        """Return the versions present in the cache, newest first."""
        if not os.path.isdir(self.artifacts_dir):
            return []
        versions = []
        for name in os.listdir(self.artifacts_dir):
            match = ARTIFACT_PATTERN.match(name)
            if match:
                versions.append(match.group(1))
        return sorted(versions, reverse=True)

    def exists(self, version: str) -> bool:
        return os.path.isfile(self.path_for(version))

    def prune(self, keep: int) -> list[str]:
        if keep < 1:
            raise ValueError(f"Must keep at least one artifact, got {keep}")

        protected = set()
        for manifest in (self.manifests.find_latest(), self.manifests.find_installed()):
            if manifest:
                protected.add(manifest.version)

        removed = []
        for version in self.find_all()[keep:]:
            if version in protected:
                continue
            os.remove(self.path_for(version))
            self.manifests.delete(version)
            logger.info(f"Pruned artifact {version}")
            removed.append(version)
        return removed
