from typing import Iterator, Sequence

from tilefetch.clients.bosh_io_client import BoshIOClient
from tilefetch.errors import ReleaseNotFoundError
from tilefetch.models import ComponentLock, ComponentSpec, LocalRelease, ReleaseSourceConfig
from tilefetch.models.release_source_config import SOURCE_TYPE_BOSH_IO
from tilefetch.sources.release_source import ReleaseSource
from tilefetch.utils.versions import try_parse_version

# searched in this order, the first publisher carrying the release wins
DEFAULT_PUBLISHERS = (
    "cloudfoundry",
    "pivotal-cf",
    "cloudfoundry-incubator",
    "pivotal-cf-experimental",
    "bosh-packages",
    "cppforlife",
    "vito",
    "flavorjones",
    "xoebus",
    "dpb587",
    "jamlo",
    "concourse",
    "cf-platform-eng",
    "starkandwayne",
    "cloudfoundry-community",
    "vmware",
    "DataDog",
    "Dynatrace",
    "SAP",
    "hybris",
    "minio",
    "rakutentech",
    "frodenas",
)

DEFAULT_SUFFIXES = ("-release", "-boshrelease", "-bosh-release", "")


class BoshIOReleaseSource(ReleaseSource):
    """Public BOSH release index. Releases are not stemcell specific here."""

    source_type = SOURCE_TYPE_BOSH_IO

    def __init__(
        self,
        config: ReleaseSourceConfig,
        client: BoshIOClient | None = None,
        publishers: Sequence[str] = DEFAULT_PUBLISHERS,
        suffixes: Sequence[str] = DEFAULT_SUFFIXES,
    ):
        super().__init__(config)
        self.client: BoshIOClient = client or BoshIOClient(server_uri=config.server_uri)
        self.publishers: tuple[str, ...] = tuple(publishers)
        self.suffixes: tuple[str, ...] = tuple(suffixes)

    def _candidates(self, name: str) -> Iterator[str]:
        for publisher in self.publishers:
            for suffix in self.suffixes:
                yield f"github.com/{publisher}/{name}{suffix}"

    def _lock(self, spec: ComponentSpec, full_name: str, version: str, sha1: str) -> ComponentLock:
        remote_path = f"{self.client.server_uri}/d/{full_name}?v={version}"
        return ComponentLock(
            name=spec.name,
            version=version,
            sha1=sha1 or "",
            remote_source=self.id,
            remote_path=remote_path,
        )

    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock:
        spec = spec.without_stemcell()
        for full_name in self._candidates(spec.name):
            for release in self.client.get_releases(full_name):
                if release.get("version") == spec.version:
                    return self._lock(spec, full_name, spec.version, release.get("sha1"))
        raise ReleaseNotFoundError(f"{spec.name} {spec.version} not found on {self.client.server_uri}")

    def find_release_version(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        spec = spec.without_stemcell()
        constraint = spec.version_constraint()
        for full_name in self._candidates(spec.name):
            for release in self.client.get_releases(full_name):
                version = str(release.get("version") or "")
                parsed = try_parse_version(version)
                if parsed is not None and constraint.match(parsed):
                    return self._lock(spec, full_name, version, release.get("sha1"))
        raise ReleaseNotFoundError(
            f"no version of {spec.name} matching {spec.version or 'any version'!r} on {self.client.server_uri}"
        )

    def download_release(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        return self._download_to(
            releases_dir,
            f"{lock.name}-{lock.version}.tgz",
            lock,
            lambda file: self.client.download(lock.remote_path, file),
        )
