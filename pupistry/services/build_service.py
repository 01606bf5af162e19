import json
import logging
import os
from dataclasses import asdict, replace
from typing import override

from pupistry.artifact import Artifact
from pupistry.clients.gpg_client import GpgClient
from pupistry.errors import MissingConfigurationError
from pupistry.models import Manifest, PupistryConfig
from pupistry.repositories import ArtifactRepository, ManifestRepository
from pupistry.services.service import Service
from pupistry.utils.logging import setup_logger


class BuildService(Service):
    def __init__(self, config: PupistryConfig, dry_run: bool = False):
        self.config: PupistryConfig = config
        self.artifact: Artifact = Artifact(config)
        self.gpg: GpgClient = GpgClient()
        self.manifests: ManifestRepository = ManifestRepository(config.general.artifacts_dir)
        self.artifacts: ArtifactRepository = ArtifactRepository(config.general.artifacts_dir, self.manifests)
        self.logger: logging.Logger = setup_logger("BuildService")
        self.dry_run: bool = dry_run

    @override
    def run(self) -> Manifest:
        signing_key = self.get_signing_key()
        self.artifact.fetch_r10k()
        try:
            manifest = self.artifact.build_artifact()
        finally:
            self.artifact.clean_staging()

        path = self.artifact.artifact_path(manifest.version)
        if signing_key:
            try:
                signature = self.gpg.sign(path, signing_key)
            except Exception:
                self.discard(path)
                raise
            manifest = replace(manifest, signature=signature)
            self.logger.info(f"Signed artifact {manifest.version} with key {signing_key}")

        if self.dry_run:
            print(json.dumps(asdict(manifest), default=str, indent=2))
            self.discard(path)
            self.logger.info(f"Dry run mode. artifact {manifest.version} has not been saved")
            return manifest

        self.manifests.save(manifest, latest=True)
        self.logger.info(f"Artifact {manifest.version} has been saved successfully.")
        removed = self.artifacts.prune(self.config.general.keep_artifacts)
        if removed:
            self.logger.info(f"Pruned {len(removed)} old artifact(s)")
        return manifest

    def get_signing_key(self) -> str | None:
        if not self.config.general.gpg_signing:
            return None
        if not self.config.general.gpg_key:
            self.logger.fatal("GPG signing is enabled but general.gpg_key is not set")
            raise MissingConfigurationError("general.gpg_key")
        return self.config.general.gpg_key

    def discard(self, path: str) -> None:
        if os.path.exists(path):
            os.remove(path)
            self.logger.info(f"Removed unsaved artifact {path}")
