import pytest

from tilefetch.models import ComponentLock, ComponentSpec, Lockfile, ReleaseSourceConfig, Specification


def test_lock_from_spec():
    spec = ComponentSpec(name="bpm", version="1.2.3", stemcell_os="ubuntu-jammy", stemcell_version="1.100")
    lock = spec.lock().with_remote("bosh.io", "https://bosh.io/d/github.com/cloudfoundry/bpm-release?v=1.2.3")
    assert lock.name == "bpm"
    assert lock.version == "1.2.3"
    assert lock.stemcell_os == "ubuntu-jammy"
    assert lock.remote_source == "bosh.io"
    assert lock.without_stemcell().stemcell_os is None


def test_locks_are_values():
    first = ComponentLock(name="bpm", version="1.2.3", sha1="abc")
    second = ComponentLock(name="bpm", version="1.2.3", sha1="abc")
    assert first == second
    assert len({first, second}) == 1


def test_numeric_versions_are_strings():
    assert ComponentSpec(name="garden", version=1.25).version == "1.25"


def test_invalid_constraint():
    with pytest.raises(ValueError, match="expected version to be a constraint"):
        ComponentSpec(name="bpm", version=">=banana").version_constraint()


@pytest.mark.parametrize(
    "config,expected",
    [
        (ReleaseSourceConfig(type="s3", bucket="compiled-releases"), "compiled-releases"),
        (ReleaseSourceConfig(type="s3", id="mine", bucket="compiled-releases"), "mine"),
        (ReleaseSourceConfig(type="github", org="cloudfoundry"), "cloudfoundry"),
        (ReleaseSourceConfig(type="bosh.io"), "bosh.io"),
        (ReleaseSourceConfig(type="artifactory"), "artifactory"),
    ],
)
def test_effective_id(config, expected):
    assert config.effective_id == expected


def test_find_and_update_lock():
    lockfile = Lockfile(releases=[ComponentLock(name="bpm", version="1.0.0"), ComponentLock(name="uaa", version="2.0.0")])
    updated = lockfile.update_lock(ComponentLock(name="bpm", version="1.1.0"))
    assert updated.find_lock("bpm").version == "1.1.0"
    assert updated.find_lock("uaa").version == "2.0.0"
    assert lockfile.find_lock("bpm").version == "1.0.0"
    with pytest.raises(KeyError):
        lockfile.find_lock("missing")


def test_find_spec():
    specification = Specification(releases=[ComponentSpec(name="bpm")])
    assert specification.find_spec("bpm").name == "bpm"
    with pytest.raises(KeyError):
        specification.find_spec("uaa")
