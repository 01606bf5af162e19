import getpass
import hashlib
import logging
import os
import shutil
import socket
import tarfile
from datetime import datetime

from pupistry.errors import ArtifactError, ChecksumMismatchError, MissingConfigurationError
from pupistry.models import Manifest, PupistryConfig
from pupistry.utils.logging import setup_logger

VERSION_FORMAT = "%Y%m%d%H%M%S"
CHUNK_SIZE = 1024 * 1024


class Artifact:
    """A packaged set of Puppet environments.

    The build side stages Puppet code into the cache and archives it as
    ``artifact.<version>.tar.gz``; the agent side unpacks an archive and
    swaps its environments into place.
    """

    def __init__(self, config: PupistryConfig | None = None):
        self.config: PupistryConfig = config or PupistryConfig()
        self.logger: logging.Logger = setup_logger("Artifact")

    @property
    def staging_dir(self) -> str:
        return os.path.join(self.config.general.cache_dir, "puppetcode")

    @property
    def artifacts_dir(self) -> str:
        return self.config.general.artifacts_dir

    def artifact_path(self, version: str) -> str:
        return os.path.join(self.artifacts_dir, f"artifact.{version}.tar.gz")

    def unpack_dir(self, version: str) -> str:
        return os.path.join(self.config.general.cache_dir, f"unpack.{version}")

    def fetch_r10k(self) -> str:
        self.logger.info("Fetching Puppet code into the build cache")
        puppetcode = self.config.build.puppetcode
        if not puppetcode:
            self.logger.fatal("The build.puppetcode setting is required to fetch Puppet code")
            raise MissingConfigurationError("build.puppetcode")

        source = os.path.expanduser(puppetcode)
        if not os.path.isdir(source):
            raise ArtifactError(f"Puppet code directory {source} does not exist")

        self.check_overlap(source)
        self.check_links(source)
        self.clean_staging()
        shutil.copytree(source, self.staging_dir, symlinks=True, ignore=shutil.ignore_patterns(".git"))
        environments = sorted(os.listdir(self.staging_dir))
        self.logger.debug(f"Staged environments {environments} from {source}")
        return self.staging_dir

    def check_overlap(self, source: str) -> None:
        source = os.path.realpath(source)
        staging = os.path.realpath(self.staging_dir)
        if source == staging or _is_within(staging, source) or _is_within(source, staging):
            raise ArtifactError(f"Puppet code directory {source} overlaps the staging directory {staging}")

    def check_links(self, source: str) -> None:
        # unpacking only accepts links that resolve inside the archive
        root = os.path.realpath(source)
        for dirpath, dirnames, filenames in os.walk(source):
            dirnames[:] = [d for d in dirnames if d != ".git"]
            for name in dirnames + filenames:
                path = os.path.join(dirpath, name)
                if not os.path.islink(path):
                    continue
                link = os.readlink(path)
                resolved = os.path.normpath(os.path.join(os.path.realpath(dirpath), link))
                if os.path.isabs(link) or not _is_within(resolved, root):
                    relative = os.path.relpath(path, source)
                    raise ArtifactError(f"Symlink {relative} -> {link} points outside the Puppet code directory")

    def build_artifact(self, version: str | None = None) -> Manifest:
        if not os.path.isdir(self.staging_dir):
            raise ArtifactError("No staged Puppet code found, fetch it before building")

        now = datetime.now()
        version = version or now.strftime(VERSION_FORMAT)
        path = self.artifact_path(version)
        if os.path.exists(path):
            raise ArtifactError(f"Artifact {version} already exists")

        os.makedirs(self.artifacts_dir, exist_ok=True)
        self.logger.info(f"Building artifact {version}")
        try:
            with tarfile.open(path, "w:gz") as tar:
                for name in sorted(os.listdir(self.staging_dir)):
                    tar.add(os.path.join(self.staging_dir, name), arcname=name)
        except (OSError, tarfile.TarError) as e:
            if os.path.exists(path):
                os.remove(path)
            raise ArtifactError(f"Failed to build artifact {version}: {e}") from e

        return Manifest(
            version=version,
            date=now,
            builder=socket.gethostname(),
            user=_current_user(),
            checksum=self.checksum(path),
        )

    def checksum(self, path: str) -> str:
        digest = hashlib.sha512()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def verify(self, manifest: Manifest) -> None:
        path = self.artifact_path(manifest.version)
        if not os.path.isfile(path):
            raise ArtifactError(f"Artifact {manifest.version} not found in {self.artifacts_dir}")
        actual = self.checksum(path)
        if actual != manifest.checksum:
            raise ChecksumMismatchError(manifest.version, manifest.checksum, actual)

    def unpack(self, version: str) -> str:
        path = self.artifact_path(version)
        if not os.path.isfile(path):
            raise ArtifactError(f"Artifact {version} not found in {self.artifacts_dir}")

        target = self.unpack_dir(version)
        self.clean_unpack(version)
        os.makedirs(target)
        try:
            with tarfile.open(path, "r:gz") as tar:
                tar.extractall(target, filter="data")
        except (OSError, tarfile.TarError) as e:
            self.clean_unpack(version)
            raise ArtifactError(f"Failed to unpack artifact {version}: {e}") from e
        return target

    def install(self, version: str) -> list[str]:
        self.logger.info(f"Installing artifact {version}")
        destination = self.config.agent.puppetcode
        if not destination:
            self.logger.fatal("The agent.puppetcode setting is required to install Puppet code")
            raise MissingConfigurationError("agent.puppetcode")

        destination = os.path.expanduser(destination)
        unpacked = self.unpack(version)
        installed = []
        try:
            os.makedirs(destination, exist_ok=True)
            for environment in sorted(os.listdir(unpacked)):
                self.swap_in(os.path.join(unpacked, environment), os.path.join(destination, environment))
                installed.append(environment)
                self.logger.info(f"Installed environment {environment} from artifact {version}")
        finally:
            self.clean_unpack(version)
        return installed

    def swap_in(self, source: str, target: str) -> None:
        """Replace ``target`` with ``source``, keeping ``target`` until the new tree is in place."""
        parent, name = os.path.split(target)
        incoming = os.path.join(parent, f".{name}.new")
        outgoing = os.path.join(parent, f".{name}.old")
        for leftover in (incoming, outgoing):
            _remove(leftover)

        try:
            shutil.move(source, incoming)
        except OSError:
            _remove(incoming)
            raise

        if os.path.lexists(target):
            os.replace(target, outgoing)
        try:
            os.replace(incoming, target)
        except OSError:
            if os.path.lexists(outgoing):
                os.replace(outgoing, target)
            _remove(incoming)
            raise
        _remove(outgoing)

    def clean_staging(self) -> None:
        if os.path.isdir(self.staging_dir):
            shutil.rmtree(self.staging_dir)

    def clean_unpack(self, version: str) -> None:
        target = self.unpack_dir(version)
        if os.path.isdir(target):
            shutil.rmtree(target)


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _is_within(path: str, root: str) -> bool:
    return os.path.commonpath([path, root]) == root


def _remove(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)
