from dataclasses import field, replace

from pydantic.dataclasses import dataclass

from tilefetch.models.component import ComponentLock, ComponentSpec
from tilefetch.models.release_source_config import ReleaseSourceConfig
from tilefetch.models.stemcell import Stemcell


@dataclass(frozen=True)
class Specification:
    release_sources: list[ReleaseSourceConfig] = field(default_factory=list)
    releases: list[ComponentSpec] = field(default_factory=list)
    stemcell_criteria: Stemcell = field(default_factory=Stemcell)
    slug: str | None = None

    def find_spec(self, name: str) -> ComponentSpec:
        for spec in self.releases:
            if spec.name == name:
                return spec
        raise KeyError(f"release {name!r} not found in specification")


@dataclass(frozen=True)
class Lockfile:
    releases: list[ComponentLock] = field(default_factory=list)
    stemcell_criteria: Stemcell = field(default_factory=Stemcell)

    def find_lock(self, name: str) -> ComponentLock:
        for lock in self.releases:
            if lock.name == name:
                return lock
        raise KeyError(f"release {name!r} not found in lock")

    def update_lock(self, lock: ComponentLock) -> "Lockfile":
        self.find_lock(lock.name)
        releases = [lock if r.name == lock.name else r for r in self.releases]
        return replace(self, releases=releases)
