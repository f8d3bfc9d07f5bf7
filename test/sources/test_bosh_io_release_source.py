import hashlib

import pytest
from unittest.mock import MagicMock

from tilefetch.errors import ReleaseNotFoundError, UnexpectedStatusError
from tilefetch.models import ComponentLock, ComponentSpec, ReleaseSourceConfig
from tilefetch.sources.bosh_io_release_source import DEFAULT_PUBLISHERS, DEFAULT_SUFFIXES, BoshIOReleaseSource


@pytest.fixture
def client():
    client = MagicMock(server_uri="https://bosh.io")
    client.get_releases.return_value = []
    return client


def make_source(client, **kwargs):
    return BoshIOReleaseSource(ReleaseSourceConfig(type="bosh.io"), client=client, **kwargs)


def test_default_lists():
    assert DEFAULT_PUBLISHERS[0] == "cloudfoundry"
    assert DEFAULT_PUBLISHERS[-1] == "frodenas"
    assert len(DEFAULT_PUBLISHERS) == 23
    assert DEFAULT_SUFFIXES == ("-release", "-boshrelease", "-bosh-release", "")


def test_get_matched_release_searches_in_order(client):
    releases = {
        "github.com/cloudfoundry-incubator/bpm-boshrelease": [{"version": "1.1.0", "sha1": "abc"}],
        "github.com/cppforlife/bpm-release": [{"version": "1.1.0", "sha1": "other"}],
    }
    client.get_releases.side_effect = lambda full_name: releases.get(full_name, [])
    source = make_source(client)

    lock = source.get_matched_release(
        ComponentSpec(name="bpm", version="1.1.0", stemcell_os="ubuntu-jammy", stemcell_version="1.1")
    )

    assert lock.remote_path == "https://bosh.io/d/github.com/cloudfoundry-incubator/bpm-boshrelease?v=1.1.0"
    assert lock.remote_source == "bosh.io"
    assert lock.sha1 == "abc"
    assert lock.stemcell_os is None
    queried = [c.args[0] for c in client.get_releases.call_args_list]
    assert queried[0] == "github.com/cloudfoundry/bpm-release"
    assert queried[-1] == "github.com/cloudfoundry-incubator/bpm-boshrelease"
    assert "github.com/cppforlife/bpm-release" not in queried


def test_get_matched_release_not_found(client):
    source = make_source(client, publishers=["cloudfoundry"], suffixes=["-release"])
    with pytest.raises(ReleaseNotFoundError):
        source.get_matched_release(ComponentSpec(name="bpm", version="1.1.0"))
    client.get_releases.assert_called_once_with("github.com/cloudfoundry/bpm-release")


def test_find_release_version_first_satisfying_entry(client):
    client.get_releases.return_value = [
        {"version": "2.0.0", "sha1": "two"},
        {"version": "1.4.0", "sha1": "one-four"},
        {"version": "1.3.0", "sha1": "one-three"},
    ]
    source = make_source(client, publishers=["cloudfoundry"], suffixes=["-release"])
    lock = source.find_release_version(ComponentSpec(name="bpm", version="~1"))
    assert lock.version == "1.4.0"
    assert lock.sha1 == "one-four"


def test_find_release_version_without_constraint_accepts_zero_major(client):
    client.get_releases.return_value = [{"version": "0.24.0", "sha1": "zero"}]
    source = make_source(client, publishers=["cloudfoundry"], suffixes=["-release"])
    lock = source.find_release_version(ComponentSpec(name="bpm"))
    assert lock.version == "0.24.0"
    assert lock.sha1 == "zero"


def test_server_errors_propagate(client):
    client.get_releases.side_effect = UnexpectedStatusError(500, "GET https://bosh.io/api")
    with pytest.raises(UnexpectedStatusError):
        make_source(client).find_release_version(ComponentSpec(name="bpm"))


def test_download_release(client, tmp_path):
    client.download.side_effect = lambda url, file: file.write(b"bosh release")
    lock = ComponentLock(
        name="bpm", version="1.4.0", remote_source="bosh.io", remote_path="https://bosh.io/d/github.com/cloudfoundry/bpm-release?v=1.4.0"
    )
    local = make_source(client).download_release(str(tmp_path), lock)
    assert local.local_path == str(tmp_path / "bpm-1.4.0.tgz")
    assert local.lock.sha1 == hashlib.sha1(b"bosh release").hexdigest()
    client.download.assert_called_once()
