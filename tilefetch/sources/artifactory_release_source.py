import os
from typing import BinaryIO

from semantic_version import Version

from tilefetch.clients.artifactory_client import ArtifactoryClient
from tilefetch.errors import ReleaseNotFoundError
from tilefetch.models import ComponentLock, ComponentSpec, LocalRelease, ReleaseSourceConfig
from tilefetch.models.release_source_config import SOURCE_TYPE_ARTIFACTORY
from tilefetch.sources.release_source import ReleaseSource
from tilefetch.utils.versions import try_parse_version


class ArtifactoryReleaseSource(ReleaseSource):
    source_type = SOURCE_TYPE_ARTIFACTORY

    def __init__(self, config: ReleaseSourceConfig, client: ArtifactoryClient | None = None):
        super().__init__(config)
        self._require("artifactory_host", "repo")
        self.path_template = self._compile_path_template()
        self.client: ArtifactoryClient = client or ArtifactoryClient(
            host=config.artifactory_host,
            repo=config.repo,
            username=config.username,
            password=config.password,
        )

    def remote_path(self, spec: ComponentSpec) -> str:
        return self.path_template.render(spec)

    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock:
        remote_path = self.remote_path(spec)
        info = self.client.file_info(remote_path)
        if info is None:
            raise ReleaseNotFoundError(
                f"{spec.name} {spec.version} not found in artifactory repo {self.config.repo} at {remote_path}"
            )
        sha1 = info.get("checksums", {}).get("sha1", "")
        return spec.lock().with_remote(self.id, remote_path).with_sha1(sha1)

    def find_release_version(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        constraint = spec.version_constraint()
        directory = self.path_template.search_directory(spec)
        pattern = self.path_template.pattern(spec)

        files = self.client.list_files(directory)
        if files is None:
            raise ReleaseNotFoundError(f"artifactory folder {directory!r} not found in repo {self.config.repo}")

        found: ComponentLock | None = None
        found_version: Version | None = None
        for entry in files:
            uri = entry.get("uri", "")
            candidate = f"{directory}/{uri.lstrip('/')}" if directory else uri.lstrip("/")
            match = pattern.fullmatch(candidate)
            if match is None:
                continue
            captured = match.groupdict()
            if "stemcell_version" in captured and captured["stemcell_version"] != (spec.stemcell_version or ""):
                continue
            version = captured.get("version") or ""
            parsed = try_parse_version(version)
            if parsed is None or not constraint.match(parsed):
                continue
            if found_version is None or parsed > found_version:
                found = ComponentLock(
                    name=spec.name,
                    version=version,
                    remote_source=self.id,
                    remote_path=candidate,
                    stemcell_os=spec.stemcell_os,
                    stemcell_version=spec.stemcell_version,
                )
                found_version = parsed

        if found is None:
            raise ReleaseNotFoundError(
                f"no version of {spec.name} matching {spec.version or 'any version'!r} "
                f"in artifactory folder {directory!r}"
            )
        self.logger.info(f"Getting {found.name} file info from artifactory")
        return found.with_sha1(self.client.file_sha1(found.remote_path))

    def download_release(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        return self._download_to(
            releases_dir,
            os.path.basename(lock.remote_path),
            lock,
            lambda file: self.client.download(lock.remote_path, file),
        )

    def upload_release(self, spec: ComponentSpec, file: BinaryIO) -> ComponentLock:
        remote_path = self.remote_path(spec)
        self.logger.info(f"uploading release {spec.name!r} to {self.id} at {remote_path!r}")
        self.client.upload(remote_path, file)
        return spec.lock().with_remote(self.id, remote_path)
