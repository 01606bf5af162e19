import os
import shutil
from datetime import datetime

import pytest
from pupistry.models import Manifest
from pupistry.repositories import ManifestRepository

ASSETS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets")


@pytest.fixture
def artifacts_dir(tmp_path):
    source_file = os.path.join(ASSETS_DIR, "manifest.20250310103204.yaml")
    shutil.copy(source_file, tmp_path / "manifest.20250310103204.yaml")
    return tmp_path


@pytest.fixture
def manifest():
    return Manifest(
        version="20250311090000",
        date=datetime(2025, 3, 11, 9, 0, 0),
        builder="build02.example.com",
        user="jenkins",
        checksum="deadbeef",
        signature="-----BEGIN PGP SIGNATURE-----\nabc\n-----END PGP SIGNATURE-----\n",
    )


def test_manifest_repository_missing_files(tmp_path):
    repo = ManifestRepository(str(tmp_path / "notexisting"))
    assert repo.find_latest() is None
    assert repo.find_installed() is None
    assert repo.find_by_version("20250310103204") is None


def test_manifest_repository_find_by_version(artifacts_dir):
    repo = ManifestRepository(str(artifacts_dir))
    manifest = repo.find_by_version("20250310103204")

    assert manifest is not None
    assert manifest.version == "20250310103204"
    assert manifest.date == datetime.fromisoformat("2025-03-10T10:32:04.642635")
    assert manifest.builder == "build01.example.com"
    assert manifest.signature is None


def test_manifest_repository_save_latest(artifacts_dir, manifest):
    repo = ManifestRepository(str(artifacts_dir))
    assert repo.save(manifest)

    assert repo.find_by_version("20250311090000") == manifest
    assert repo.find_latest() == manifest
    assert repo.find_installed() is None


def test_manifest_repository_save_without_latest(artifacts_dir, manifest):
    repo = ManifestRepository(str(artifacts_dir))
    repo.save(manifest, latest=False)
    assert repo.find_by_version("20250311090000") == manifest
    assert repo.find_latest() is None


def test_manifest_repository_save_creates_directory(tmp_path, manifest):
    repo = ManifestRepository(str(tmp_path / "artifacts"))
    repo.save(manifest)
    assert os.path.isfile(tmp_path / "artifacts" / "manifest.20250311090000.yaml")


def test_manifest_repository_mark_installed(artifacts_dir):
    repo = ManifestRepository(str(artifacts_dir))
    current = repo.find_by_version("20250310103204")
    assert repo.mark_installed(current)
    assert repo.find_installed().version == "20250310103204"


def test_manifest_repository_delete(artifacts_dir):
    repo = ManifestRepository(str(artifacts_dir))
    repo.delete("20250310103204")
    assert repo.find_by_version("20250310103204") is None
    repo.delete("20250310103204")


def test_invalid_manifest_file(tmp_path):
    bad_file = tmp_path / "manifest.latest.yaml"
    bad_file.write_text("version: '20250310103204'\n")

    repo = ManifestRepository(str(tmp_path))
    with pytest.raises(ValueError, match="Invalid manifest"):
        repo.find_latest()


def test_manifest_file_with_broken_yaml(tmp_path):
    (tmp_path / "manifest.latest.yaml").write_text("version: [unclosed\n")

    repo = ManifestRepository(str(tmp_path))
    with pytest.raises(ValueError, match="Invalid manifest"):
        repo.find_latest()
