from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from pupistry.errors import ChecksumMismatchError, SignatureError
from pupistry.models import Manifest, PupistryConfig
from pupistry.services.install_service import InstallService


def make_manifest(version, signature=None):
    return Manifest(
        version=version,
        date=datetime.strptime(version, "%Y%m%d%H%M%S"),
        builder="build01.example.com",
        user="pupistry",
        checksum="deadbeef",
        signature=signature,
    )


def make_service(config, force=False):
    with patch("pupistry.services.install_service.Artifact"), \
         patch("pupistry.services.install_service.GpgClient"), \
         patch("pupistry.services.install_service.ManifestRepository"), \
         patch("pupistry.services.install_service.ArtifactRepository"):
        svc = InstallService(config, force=force)
        svc.logger = MagicMock()
        svc.artifact.install.return_value = ["production"]
        svc.artifact.artifact_path.return_value = "/cache/artifacts/artifact.20250311090000.tar.gz"
        svc.manifests.find_latest.return_value = make_manifest("20250311090000", signature="SIGNATURE")
        svc.manifests.find_installed.return_value = make_manifest("20250310103204")
        return svc


@pytest.fixture
def config():
    return PupistryConfig.from_mapping({"agent": {"puppetcode": "/etc/puppetlabs/code/environments"}})


@pytest.fixture
def service(config):
    return make_service(config)


def test_install_service_installs_latest(service):
    result = service.run()

    assert result.version == "20250311090000"
    service.artifact.verify.assert_called_once_with(result)
    service.artifact.install.assert_called_once_with("20250311090000")
    service.manifests.mark_installed.assert_called_once_with(result)
    service.artifacts.prune.assert_called_once_with(5)
    service.gpg.verify.assert_not_called()


def test_install_service_no_artifact(service):
    service.manifests.find_latest.return_value = None
    assert service.run() is None
    service.artifact.install.assert_not_called()


def test_install_service_already_installed(service):
    service.manifests.find_installed.return_value = make_manifest("20250311090000")
    assert service.run() is None
    service.artifact.install.assert_not_called()


def test_install_service_force_reinstall(config):
    service = make_service(config, force=True)
    service.manifests.find_installed.return_value = make_manifest("20250311090000")
    assert service.run().version == "20250311090000"
    service.artifact.install.assert_called_once()


def test_install_service_checksum_mismatch(service):
    service.artifact.verify.side_effect = ChecksumMismatchError("20250311090000", "deadbeef", "cafebabe")
    with pytest.raises(ChecksumMismatchError):
        service.run()
    service.artifact.install.assert_not_called()
    service.manifests.mark_installed.assert_not_called()


@pytest.fixture
def signed_service():
    config = PupistryConfig.from_mapping({
        "general": {"gpg_signing": True, "gpg_key": "ABCD1234"},
        "agent": {"puppetcode": "/etc/puppetlabs/code/environments"},
    })
    return make_service(config)


def test_install_service_valid_signature(signed_service):
    signed_service.gpg.verify.return_value = True
    signed_service.run()
    signed_service.gpg.verify.assert_called_once_with(
        "/cache/artifacts/artifact.20250311090000.tar.gz", "SIGNATURE"
    )
    signed_service.artifact.install.assert_called_once()


def test_install_service_invalid_signature(signed_service):
    signed_service.gpg.verify.return_value = False
    with pytest.raises(SignatureError, match="Invalid signature"):
        signed_service.run()
    signed_service.artifact.install.assert_not_called()


def test_install_service_unsigned_artifact(signed_service):
    signed_service.manifests.find_latest.return_value = make_manifest("20250311090000")
    with pytest.raises(SignatureError, match="not signed"):
        signed_service.run()
    signed_service.gpg.verify.assert_not_called()
