import logging
from typing import Callable, TypeVar

from tilefetch.errors import (
    ConfigurationError,
    DuplicateReleaseSourceError,
    ReleaseNotFoundError,
    ReleaseSourceError,
)
from tilefetch.models import ComponentLock, ComponentSpec, LocalRelease, Specification
from tilefetch.sources import (
    DownloadThreadsSetter,
    ReleaseSource,
    ReleaseUploader,
    RemotePather,
    release_source_factory,
)
from tilefetch.utils.logging import setup_logger
from tilefetch.utils.versions import try_parse_version

T = TypeVar("T")


def check_unique_ids(sources: list[ReleaseSource]) -> None:
    seen: dict[str, int] = {}
    for index, source in enumerate(sources):
        if source.id in seen:
            raise DuplicateReleaseSourceError(
                f"release_sources must have unique IDs; "
                f"items at index {seen[source.id]} and {index} both have ID {source.id!r}"
            )
        seen[source.id] = index


class ReleaseSourceList:
    """Ordered stores consulted as one.

    Order matters: exact matches come from the first store that has the
    component, and ties in version searches go to the earlier store.
    """

    def __init__(self, sources: list[ReleaseSource]):
        check_unique_ids(sources)
        self.sources: list[ReleaseSource] = list(sources)
        self.logger: logging.Logger = setup_logger("ReleaseSourceList")

    @classmethod
    def from_specification(cls, specification: Specification) -> "ReleaseSourceList":
        return cls([release_source_factory(config) for config in specification.release_sources])

    def __iter__(self):
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)

    def ids(self) -> list[str]:
        return [source.id for source in self.sources]

    def _candidates(self, spec: ComponentSpec) -> list[ReleaseSource]:
        if spec.source_id:
            return [self.find_by_id(spec.source_id)]
        return self.sources

    def _query(self, source: ReleaseSource, call: Callable[[], T]) -> T | None:
        try:
            return call()
        except ReleaseNotFoundError:
            return None
        except Exception as e:
            raise ReleaseSourceError(source.id, e) from e

    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock:
        candidates = self._candidates(spec)
        for source in candidates:
            lock = self._query(source, lambda: source.get_matched_release(spec))
            if lock is not None:
                self.logger.info(f"found {spec.name} {spec.version} in release source {source.id}")
                return lock
        raise ReleaseNotFoundError(
            f"couldn't find {spec.name!r} {spec.version} in any release source, checked {[s.id for s in candidates]}"
        )

    def find_release_version(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        candidates = self._candidates(spec)
        best: ComponentLock | None = None
        for source in candidates:
            lock = self._query(source, lambda: source.find_release_version(spec, no_download=no_download))
            if lock is None:
                continue
            if best is None:
                best = lock
                continue
            current, challenger = try_parse_version(best.version), try_parse_version(lock.version)
            if current is not None and challenger is not None and challenger > current:
                best = lock
        if best is None:
            raise ReleaseNotFoundError(
                f"couldn't find a version of {spec.name!r} matching {spec.version or 'any version'!r} "
                f"in any release source, checked {[s.id for s in candidates]}"
            )
        self.logger.info(f"found {best.name} {best.version} in release source {best.remote_source}")
        return best

    def download_release(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        source = self.find_by_id(lock.remote_source)
        try:
            return source.download_release(releases_dir, lock)
        except Exception as e:
            raise ReleaseSourceError(source.id, e) from e

    def find_by_id(self, source_id: str) -> ReleaseSource:
        for source in self.sources:
            if source.id == source_id:
                return source
        raise ConfigurationError(
            f"couldn't find a release source with ID {source_id!r}. Available choices: {self.ids()}"
        )

    def filter(self, publishable_only: bool = False) -> "ReleaseSourceList":
        if not publishable_only:
            return ReleaseSourceList(self.sources)
        return ReleaseSourceList([s for s in self.sources if s.publishable])

    def _find_capable(self, source_id: str, capability: type, description: str):
        capable = [s for s in self.sources if isinstance(s, capability)]
        for source in capable:
            if source.id == source_id:
                return source
        raise ConfigurationError(
            f"no {description} release source with ID {source_id!r}. Available choices: {[s.id for s in capable]}"
        )

    def find_release_uploader(self, source_id: str) -> ReleaseUploader:
        return self._find_capable(source_id, ReleaseUploader, "upload capable")

    def find_remote_pather(self, source_id: str) -> RemotePather:
        return self._find_capable(source_id, RemotePather, "path generating")

    def set_download_threads(self, threads: int) -> None:
        for source in self.sources:
            if isinstance(source, DownloadThreadsSetter):
                source.set_download_threads(threads)
