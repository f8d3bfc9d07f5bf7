import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable

from semantic_version import Version

from tilefetch.clients.github_client import GitHubClient
from tilefetch.models import Bump, ComponentLock, ReleaseNote, Specification
from tilefetch.models.release_source_config import SOURCE_TYPE_GITHUB
from tilefetch.utils.github_uri import repository_owner_and_name
from tilefetch.utils.logging import setup_logger
from tilefetch.utils.versions import parse_version, try_parse_version

RELEASE_NOTES_WORKERS = 10


def calculate_bumps(current: list[ComponentLock], previous: list[ComponentLock]) -> list[Bump]:
    """Version changes from previous to current, in the order of current.

    Components only present in previous are not reported.
    """
    previous_versions = {lock.name: lock.version for lock in previous}
    bumps: list[Bump] = []
    for lock in current:
        from_version = previous_versions.get(lock.name, "")
        if lock.version == from_version:
            continue
        bumps.append(Bump(name=lock.name, from_version=from_version, to_version=lock.version))
    return bumps


class BumpList(list):
    def for_lock(self, lock: ComponentLock) -> Bump:
        for bump in self:
            if bump.name == lock.name:
                return bump
        return Bump(name=lock.name, from_version=lock.version, to_version=lock.version)


def _sort_newest_first(notes: list[ReleaseNote]) -> list[ReleaseNote]:
    # notes with unparseable tags keep their place relative to each other at the end
    parsed = [(try_parse_version(n.tag_name), i, n) for i, n in enumerate(notes)]
    versioned = sorted((p for p in parsed if p[0] is not None), key=lambda p: p[0], reverse=True)
    rest = [p for p in parsed if p[0] is None]
    return [n for _, _, n in versioned + rest]


def _dedupe_by_tag(notes: list[ReleaseNote]) -> list[ReleaseNote]:
    seen: set[str] = set()
    unique: list[ReleaseNote] = []
    for note in notes:
        if note.tag_name in seen:
            continue
        seen.add(note.tag_name)
        unique.append(note)
    return unique


class BumpService:
    def __init__(self, specification: Specification, client_factory: Callable[..., GitHubClient] = GitHubClient):
        self.specification: Specification = specification
        self.client_factory: Callable[..., GitHubClient] = client_factory
        self.logger: logging.Logger = setup_logger("BumpService")

    def _token_for(self, owner: str) -> str | None:
        for config in self.specification.release_sources:
            if config.type == SOURCE_TYPE_GITHUB and config.org == owner and config.github_token:
                return config.github_token
        return None

    def _releases_between(self, repository: str, from_version: Version, to_version: Version) -> list[ReleaseNote]:
        owner, repo = repository_owner_and_name(repository)
        client = self.client_factory(token=self._token_for(owner))
        notes: list[ReleaseNote] = []
        for release in client.list_releases(owner, repo):
            version = try_parse_version(release.tag_name)
            if version is None or version <= from_version or version > to_version:
                continue
            notes.append(ReleaseNote(tag_name=release.tag_name, name=release.title or "", body=release.body or ""))
        return notes

    def _fetch(self, bump: Bump) -> Bump:
        try:
            spec = self.specification.find_spec(bump.name)
        except KeyError:
            return bump
        if not spec.github_repository:
            return bump
        try:
            from_version, to_version = parse_version(bump.from_version), parse_version(bump.to_version)
        except ValueError:
            return bump
        try:
            notes = self._releases_between(spec.github_repository, from_version, to_version)
        except Exception as e:
            self.logger.warning(f"Failed to fetch release notes of {bump.name} from {spec.github_repository}: {e}")
            return bump
        return replace(bump, releases=_dedupe_by_tag(_sort_newest_first(list(bump.releases) + notes)))

    def release_notes(self, bumps: list[Bump]) -> BumpList:
        """Attach GitHub release notes to each bump, keeping the order of bumps."""
        with ThreadPoolExecutor(max_workers=RELEASE_NOTES_WORKERS) as executor:
            return BumpList(executor.map(self._fetch, bumps))
