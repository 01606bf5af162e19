import logging
from typing import override

from pupistry.artifact import Artifact
from pupistry.clients.gpg_client import GpgClient
from pupistry.errors import SignatureError
from pupistry.models import Manifest, PupistryConfig
from pupistry.repositories import ArtifactRepository, ManifestRepository
from pupistry.services.service import Service
from pupistry.utils.logging import setup_logger


class InstallService(Service):
    def __init__(self, config: PupistryConfig, force: bool = False):
        self.config: PupistryConfig = config
        self.artifact: Artifact = Artifact(config)
        self.gpg: GpgClient = GpgClient()
        self.manifests: ManifestRepository = ManifestRepository(config.general.artifacts_dir)
        self.artifacts: ArtifactRepository = ArtifactRepository(config.general.artifacts_dir, self.manifests)
        self.logger: logging.Logger = setup_logger("InstallService")
        self.force: bool = force

    @override
    def run(self) -> Manifest | None:
        latest = self.manifests.find_latest()
        if not latest:
            self.logger.info("No artifact available to install")
            return None

        installed = self.manifests.find_installed()
        if installed and installed.version == latest.version and not self.force:
            self.logger.info(f"Artifact {latest.version} is already installed")
            return None

        self.artifact.verify(latest)
        if self.config.general.gpg_signing:
            self.verify_signature(latest)

        environments = self.artifact.install(latest.version)
        self.manifests.mark_installed(latest)
        self.logger.info(f"Installed artifact {latest.version} with environments {', '.join(environments)}")
        self.artifacts.prune(self.config.general.keep_artifacts)
        return latest

    def verify_signature(self, manifest: Manifest) -> None:
        if not manifest.signature:
            raise SignatureError(f"Artifact {manifest.version} is not signed")
        if not self.gpg.verify(self.artifact.artifact_path(manifest.version), manifest.signature):
            raise SignatureError(f"Invalid signature for artifact {manifest.version}")
