import hashlib
import os
import shutil

import pytest
from unittest.mock import MagicMock

from tilefetch.errors import ChecksumMismatchError
from tilefetch.models import NOT_CALCULATED, ComponentLock, ComponentSpec, LocalRelease
from tilefetch.repositories import LockfileRepository
from tilefetch.services.release_service import ReleaseService

ASSETS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets")


@pytest.fixture
def files(tmp_path):
    for name in ("Kilnfile.yml", "Kilnfile.lock.yml"):
        shutil.copy(os.path.join(ASSETS_DIR, name), tmp_path / name)
    return str(tmp_path / "Kilnfile.yml"), str(tmp_path / "Kilnfile.lock.yml")


@pytest.fixture
def sources():
    return MagicMock()


@pytest.fixture
def service(files, sources):
    return ReleaseService(*files, sources=sources)


def test_sources_built_from_specification(files):
    service = ReleaseService(*files)
    assert service.sources.ids() == ["bosh.io", "compiled-releases", "cloudfoundry"]


def test_resolve_exact_version_uses_exact_match(service, sources):
    service.resolve(ComponentSpec(name="uaa", version="74.0.0"))
    sources.get_matched_release.assert_called_once()
    sources.find_release_version.assert_not_called()


def test_resolve_constraint_searches(service, sources):
    service.resolve(ComponentSpec(name="bpm", version="~1"), no_download=True)
    sources.find_release_version.assert_called_once_with(ComponentSpec(name="bpm", version="~1"), no_download=True)


def test_download_verifies_checksum(service, sources, tmp_path):
    lock = ComponentLock(name="bpm", version="1.1.0", sha1="expected", remote_source="bosh.io")
    sources.download_release.return_value = LocalRelease(lock=lock.with_sha1("actual"), local_path=str(tmp_path / "bpm.tgz"))
    with pytest.raises(ChecksumMismatchError):
        service.download(str(tmp_path), lock)


def test_download_skips_verification_without_trusted_checksum(service, sources, tmp_path):
    lock = ComponentLock(name="bpm", version="1.1.0", sha1=NOT_CALCULATED, remote_source="bosh.io")
    local = LocalRelease(lock=lock.with_sha1(hashlib.sha1(b"x").hexdigest()), local_path=str(tmp_path / "bpm.tgz"))
    sources.download_release.return_value = local
    assert service.download(str(tmp_path), lock) == local


def test_fetch_all(service, sources, tmp_path):
    sources.download_release.side_effect = lambda releases_dir, lock: LocalRelease(lock=lock, local_path=f"{releases_dir}/{lock.name}.tgz")
    fetched = service.fetch_all(str(tmp_path))
    assert [local.lock.name for local in fetched] == ["bpm", "uaa", "garden-runc"]


def test_diff(service):
    old = [ComponentLock(name="bpm", version="1.0.0"), ComponentLock(name="uaa", version="74.0.0")]
    new = [ComponentLock(name="bpm", version="1.1.0")]
    bumps = service.diff(old, new)
    assert [(b.name, b.from_version, b.to_version) for b in bumps] == [("bpm", "1.0.0", "1.1.0")]


def test_validate_fixture_files(service):
    assert service.validate() == []


def test_update_release_rewrites_lock(service, sources, files):
    sources.find_release_version.return_value = ComponentLock(
        name="bpm",
        version="1.2.0",
        sha1="new-sha",
        remote_source="bosh.io",
        remote_path="https://bosh.io/d/github.com/cloudfoundry/bpm-release?v=1.2.0",
        stemcell_os="ubuntu-jammy",
        stemcell_version="1.100",
    )

    bump = service.update_release("bpm")

    searched = sources.find_release_version.call_args.args[0]
    assert searched.stemcell_os == "ubuntu-jammy"
    assert (bump.from_version, bump.to_version) == ("1.1.0", "1.2.0")
    saved = LockfileRepository(files[1]).load().find_lock("bpm")
    assert saved.version == "1.2.0"
    assert saved.sha1 == "new-sha"
    assert saved.stemcell_os is None


def test_update_release_already_current(service, sources, files):
    current = LockfileRepository(files[1]).load().find_lock("uaa")
    sources.get_matched_release.return_value = current
    assert service.update_release("uaa") is None
