from dataclasses import replace

from pydantic import ConfigDict
from pydantic.dataclasses import dataclass
from semantic_version import NpmSpec

from tilefetch.utils.versions import parse_constraint

NOT_CALCULATED = "not-calculated"

config = ConfigDict(coerce_numbers_to_str=True)


@dataclass(frozen=True, config=config)
class ComponentSpec:
    name: str = ""
    # version constraint; empty means any version
    version: str = ""
    stemcell_os: str | None = None
    stemcell_version: str | None = None
    source_id: str | None = None
    github_repository: str | None = None

    def version_constraint(self) -> NpmSpec:
        return parse_constraint(self.version)

    def lock(self) -> "ComponentLock":
        return ComponentLock(
            name=self.name,
            version=self.version,
            stemcell_os=self.stemcell_os,
            stemcell_version=self.stemcell_version,
        )

    def without_stemcell(self) -> "ComponentSpec":
        return replace(self, stemcell_os=None, stemcell_version=None)


@dataclass(frozen=True, config=config)
class ComponentLock:
    """An exact build of a component at one remote location.

    Compared and hashed by value, so it can be used as a dict key.
    """

    name: str = ""
    version: str = ""
    sha1: str = ""
    remote_source: str = ""
    remote_path: str = ""
    stemcell_os: str | None = None
    stemcell_version: str | None = None

    def with_sha1(self, sha1: str) -> "ComponentLock":
        return replace(self, sha1=sha1)

    def with_remote(self, source: str, path: str) -> "ComponentLock":
        return replace(self, remote_source=source, remote_path=path)

    def without_stemcell(self) -> "ComponentLock":
        return replace(self, stemcell_os=None, stemcell_version=None)


@dataclass(frozen=True)
class LocalRelease:
    lock: ComponentLock
    local_path: str
