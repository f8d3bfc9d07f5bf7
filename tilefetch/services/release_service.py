import logging
from dataclasses import replace

from tilefetch.errors import ChecksumMismatchError, ConsistencyError
from tilefetch.models import NOT_CALCULATED, Bump, ComponentLock, ComponentSpec, LocalRelease, Specification
from tilefetch.repositories import LockfileRepository, SpecificationRepository
from tilefetch.services.bump_service import calculate_bumps
from tilefetch.services.release_source_list import ReleaseSourceList
from tilefetch.services.validation_service import validate
from tilefetch.utils.logging import setup_logger
from tilefetch.utils.versions import is_exact_version


class ReleaseService:
    def __init__(
        self,
        specification_path: str,
        lockfile_path: str,
        sources: ReleaseSourceList | None = None,
        allowed_source_types: list[str] | None = None,
    ):
        self.specification_repository: SpecificationRepository = SpecificationRepository(specification_path)
        self.lockfile_repository: LockfileRepository = LockfileRepository(lockfile_path)
        self.specification: Specification = self.specification_repository.load()
        self.sources: ReleaseSourceList = sources or ReleaseSourceList.from_specification(self.specification)
        self.allowed_source_types: list[str] | None = allowed_source_types
        self.logger: logging.Logger = setup_logger("ReleaseService")

    def resolve(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        if spec.version and is_exact_version(spec.version):
            return self.sources.get_matched_release(spec)
        return self.sources.find_release_version(spec, no_download=no_download)

    def download(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        local = self.sources.download_release(releases_dir, lock)
        if lock.sha1 and lock.sha1 != NOT_CALCULATED and local.lock.sha1 != lock.sha1:
            raise ChecksumMismatchError(
                f"downloaded release {lock.name} {lock.version} from {lock.remote_source} has sha1 "
                f"{local.lock.sha1} but the lock expects {lock.sha1}"
            )
        return local

    def fetch_all(self, releases_dir: str) -> list[LocalRelease]:
        lockfile = self.lockfile_repository.load()
        self.logger.info(f"Fetching {len(lockfile.releases)} releases into {releases_dir}")
        return [self.download(releases_dir, lock) for lock in lockfile.releases]

    def diff(self, old_locks: list[ComponentLock], new_locks: list[ComponentLock]) -> list[Bump]:
        return calculate_bumps(new_locks, old_locks)

    def validate(self) -> list[ConsistencyError]:
        return validate(self.specification, self.lockfile_repository.load(), self.allowed_source_types)

    def find_release_version(self, name: str, no_download: bool = False) -> ComponentLock:
        spec = self.specification.find_spec(name)
        return self.sources.find_release_version(self._with_stemcell(spec), no_download=no_download)

    def update_release(self, name: str, version: str | None = None) -> Bump | None:
        """Re-resolve one component and rewrite the lock file.

        Returns the resulting bump, or None when the lock already matched.
        """
        lockfile = self.lockfile_repository.load()
        previous = lockfile.find_lock(name)
        spec = self._with_stemcell(self.specification.find_spec(name))
        if version is not None:
            spec = replace(spec, version=version)

        lock = self.resolve(spec)
        bumps = calculate_bumps([lock], [previous])
        if not bumps and lock.sha1 == previous.sha1 and lock.remote_path == previous.remote_path:
            self.logger.info(f"{name} is already locked at {previous.version}")
            return None

        self.lockfile_repository.save(lockfile.update_lock(lock.without_stemcell()))
        self.logger.info(f"Updated {name} from {previous.version} to {lock.version}")
        return bumps[0] if bumps else Bump(name=name, from_version=previous.version, to_version=lock.version)

    def _with_stemcell(self, spec: ComponentSpec) -> ComponentSpec:
        criteria = self.specification.stemcell_criteria
        if spec.stemcell_os or not criteria.os:
            return spec
        return replace(spec, stemcell_os=criteria.os, stemcell_version=criteria.version)
