import pytest
from unittest.mock import MagicMock

from tilefetch.models import Bump, ComponentLock, ComponentSpec, ReleaseSourceConfig, Specification
from tilefetch.services.bump_service import BumpList, BumpService, calculate_bumps


def locks(**versions: str) -> list[ComponentLock]:
    return [ComponentLock(name=name, version=version) for name, version in versions.items()]


def make_release(tag: str, body: str = "") -> MagicMock:
    return MagicMock(tag_name=tag, title=tag, body=body)


def test_calculate_bumps():
    bumps = calculate_bumps(current=locks(bpm="1.2.0", uaa="2.0.0", garden="3.0.0"), previous=locks(bpm="1.0.0", uaa="2.0.0"))
    assert bumps == [
        Bump(name="bpm", from_version="1.0.0", to_version="1.2.0"),
        Bump(name="garden", from_version="", to_version="3.0.0"),
    ]


def test_removals_are_not_bumps():
    assert calculate_bumps(current=locks(bpm="1.0.0"), previous=locks(bpm="1.0.0", uaa="2.0.0")) == []


def test_bump_list_for_lock():
    bump_list = BumpList([Bump(name="bpm", from_version="1.0.0", to_version="1.2.0")])
    assert bump_list.for_lock(ComponentLock(name="bpm", version="1.2.0")).from_version == "1.0.0"
    identity = bump_list.for_lock(ComponentLock(name="uaa", version="2.0.0"))
    assert identity.from_version == identity.to_version == "2.0.0"


@pytest.fixture
def specification():
    return Specification(
        release_sources=[ReleaseSourceConfig(type="github", org="cloudfoundry", github_token="org-token")],
        releases=[
            ComponentSpec(name="bpm", github_repository="https://github.com/cloudfoundry/bpm-release"),
            ComponentSpec(name="uaa"),
            ComponentSpec(name="other", github_repository="https://github.com/elsewhere/other-release"),
        ],
    )


def test_release_notes_between_versions(specification):
    client = MagicMock()
    client.list_releases.return_value = [
        make_release("v1.3.0", "too new"),
        make_release("v1.1.0", "middle"),
        make_release("v1.2.0", "target"),
        make_release("v1.1.0", "duplicate"),
        make_release("v1.0.0", "already shipped"),
        make_release("latest"),
    ]
    factory = MagicMock(return_value=client)
    service = BumpService(specification, client_factory=factory)

    result = service.release_notes([Bump(name="bpm", from_version="1.0.0", to_version="1.2.0")])

    assert [r.tag_name for r in result[0].releases] == ["v1.2.0", "v1.1.0"]
    assert result[0].release_notes_text() == "target\nmiddle"
    factory.assert_called_once_with(token="org-token")
    client.list_releases.assert_called_once_with("cloudfoundry", "bpm-release")


def test_release_notes_keep_order_and_skip_unusable_bumps(specification):
    client = MagicMock()
    client.list_releases.return_value = [make_release("2.0.0", "notes")]
    factory = MagicMock(return_value=client)
    bumps = [
        Bump(name="uaa", from_version="1.0.0", to_version="2.0.0"),
        Bump(name="other", from_version="1.0.0", to_version="2.0.0"),
        Bump(name="bpm", from_version="", to_version="2.0.0"),
    ]

    result = BumpService(specification, client_factory=factory).release_notes(bumps)

    assert [b.name for b in result] == ["uaa", "other", "bpm"]
    assert result[0].releases == []
    assert [r.tag_name for r in result[1].releases] == ["2.0.0"]
    assert result[2].releases == []
    factory.assert_called_once_with(token=None)
