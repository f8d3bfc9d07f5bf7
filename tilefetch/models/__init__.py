from .bump import Bump, ReleaseNote
from .component import NOT_CALCULATED, ComponentLock, ComponentSpec, LocalRelease
from .release_source_config import ReleaseSourceConfig
from .stemcell import Stemcell
from .wrappers import Lockfile, Specification

__all__ = [
    "Bump",
    "ComponentLock",
    "ComponentSpec",
    "LocalRelease",
    "Lockfile",
    "NOT_CALCULATED",
    "ReleaseNote",
    "ReleaseSourceConfig",
    "Specification",
    "Stemcell",
]
