from urllib.parse import urlparse

from github.GitRelease import GitRelease
from github.GitReleaseAsset import GitReleaseAsset
from semantic_version import Version

from tilefetch.clients.github_client import GitHubClient
from tilefetch.errors import ReleaseNotFoundError, TilefetchError
from tilefetch.models import NOT_CALCULATED, ComponentLock, ComponentSpec, LocalRelease, ReleaseSourceConfig
from tilefetch.models.release_source_config import SOURCE_TYPE_GITHUB
from tilefetch.sources.release_source import ReleaseSource
from tilefetch.utils.checksum import sha1_of_stream
from tilefetch.utils.github_uri import repository_owner_and_name
from tilefetch.utils.versions import is_exact_version, try_parse_version


def find_asset(release: GitRelease, name: str, version: str) -> GitReleaseAsset | None:
    version = version.removeprefix("v")
    expected = {f"{name}-{version}.tgz", f"{name}-v{version}.tgz"}
    for asset in release.get_assets():
        if asset.name in expected:
            return asset
    return None


class GitHubReleaseSource(ReleaseSource):
    """Release tarballs attached to GitHub releases of repositories owned by one org."""

    source_type = SOURCE_TYPE_GITHUB

    def __init__(self, config: ReleaseSourceConfig, client: GitHubClient | None = None):
        super().__init__(config)
        self._require("org", "github_token")
        self.client: GitHubClient = client or GitHubClient(token=config.github_token)

    def _repository(self, spec: ComponentSpec) -> tuple[str, str]:
        if not spec.github_repository:
            raise ReleaseNotFoundError(f"{spec.name} has no github_repository")
        try:
            owner, repo = repository_owner_and_name(spec.github_repository)
        except ValueError as e:
            raise ReleaseNotFoundError(f"{spec.name}: {e}") from e
        if owner != self.config.org:
            raise ReleaseNotFoundError(f"{spec.github_repository} is not owned by {self.config.org}")
        return owner, repo

    def _release_by_tag(self, owner: str, repo: str, version: str) -> GitRelease | None:
        for tag in (f"v{version}", version):
            release = self.client.get_release_by_tag(owner, repo, tag)
            if release is not None:
                return release
        return None

    def _lock_from_release(self, spec: ComponentSpec, release: GitRelease, no_download: bool = False) -> ComponentLock:
        version = release.tag_name.removeprefix("v")
        asset = find_asset(release, spec.name, version)
        if asset is None:
            raise TilefetchError(f"no matching GitHub release asset file name equal to {spec.name}-{version}.tgz")
        sha1 = NOT_CALCULATED if no_download else sha1_of_stream(self.client.iter_asset(asset.url))
        return ComponentLock(
            name=spec.name,
            version=version,
            sha1=sha1,
            remote_source=self.id,
            remote_path=asset.browser_download_url,
        )

    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock:
        owner, repo = self._repository(spec)
        if not is_exact_version(spec.version):
            raise ValueError(f"expected version to be an exact version: {spec.version!r}")
        release = self._release_by_tag(owner, repo, spec.version)
        if release is None:
            raise ReleaseNotFoundError(f"no release tagged {spec.version} in {owner}/{repo}")
        return self._lock_from_release(spec, release)

    def find_release_version(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        owner, repo = self._repository(spec)
        constraint = spec.version_constraint()

        found: GitRelease | None = None
        found_version: Version | None = None
        for release in self.client.list_releases(owner, repo):
            parsed = try_parse_version(release.tag_name)
            if parsed is None or not constraint.match(parsed):
                continue
            if found_version is None or parsed > found_version:
                found, found_version = release, parsed

        if found is None:
            raise ReleaseNotFoundError(f"no release of {owner}/{repo} matching {spec.version or 'any version'!r}")
        return self._lock_from_release(spec, found, no_download=no_download)

    def download_release(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        # remote paths look like https://github.com/<owner>/<repo>/releases/download/<tag>/<asset>
        parts = urlparse(lock.remote_path).path.strip("/").split("/")
        if len(parts) < 2:
            raise ValueError(f"failed to parse remote_path as a GitHub release asset url: {lock.remote_path!r}")
        owner, repo = parts[0], parts[1]

        release = self._release_by_tag(owner, repo, lock.version.removeprefix("v"))
        if release is None:
            raise ReleaseNotFoundError(f"cant find release tag {lock.version} in {owner}/{repo}")
        asset = find_asset(release, lock.name, lock.version)
        if asset is None:
            raise TilefetchError("failed to download file for release: expected release asset not found")

        return self._download_to(
            releases_dir,
            f"{lock.name}-{lock.version}.tgz",
            lock,
            lambda file: self.client.download_asset(asset.url, file),
        )
