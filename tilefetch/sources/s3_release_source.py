import os
import re
import tempfile
from typing import BinaryIO

from semantic_version import Version

from tilefetch.clients.s3_client import S3Client
from tilefetch.errors import ReleaseNotFoundError
from tilefetch.models import NOT_CALCULATED, ComponentLock, ComponentSpec, LocalRelease, ReleaseSourceConfig
from tilefetch.models.release_source_config import SOURCE_TYPE_S3
from tilefetch.sources.release_source import ReleaseSource
from tilefetch.utils.versions import try_parse_version

DEFAULT_DOWNLOAD_THREADS = 5

# a path template may start with the product line, e.g. "2.13/{{.Name}}/..."
PRODUCT_VERSION_PREFIX = re.compile(r"^\d+\.\d+")
VERSION_TOKEN = re.compile(r"([-v])\d+(.\d+)*")


class S3ReleaseSource(ReleaseSource):
    source_type = SOURCE_TYPE_S3

    def __init__(self, config: ReleaseSourceConfig, client: S3Client | None = None):
        super().__init__(config)
        self._require("bucket")
        self.path_template = self._compile_path_template()
        self.download_threads: int = 0
        self.client: S3Client = client or S3Client(
            bucket=config.bucket,
            region=config.region,
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
            role_arn=config.role_arn,
            endpoint=config.endpoint,
        )

    def set_download_threads(self, threads: int) -> None:
        self.download_threads = threads

    def remote_path(self, spec: ComponentSpec) -> str:
        return self.path_template.render(spec)

    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock:
        remote_path = self.remote_path(spec)
        if not self.client.exists(remote_path):
            raise ReleaseNotFoundError(
                f"{spec.name} {spec.version} not found at s3://{self.config.bucket}/{remote_path}"
            )
        return spec.lock().with_remote(self.id, remote_path)

    def find_release_version(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        constraint = spec.version_constraint()
        product_version = PRODUCT_VERSION_PREFIX.match(self.config.path_template)
        prefix = f"{product_version.group(0)}/" if product_version else ""
        prefix += f"{spec.name}/"

        found: ComponentLock | None = None
        found_version: Version | None = None
        for key in self.client.list_keys(prefix):
            tokens = [m.group(0) for m in VERSION_TOKEN.finditer(key)]
            if not tokens:
                continue
            version = tokens[0].replace("-", "").replace("v", "")
            stemcell_version = tokens[-1].replace("-", "")
            if len(tokens) > 1 and stemcell_version != (spec.stemcell_version or ""):
                continue
            parsed = try_parse_version(version)
            if parsed is None or not constraint.match(parsed):
                continue
            if found_version is None or parsed > found_version:
                found = ComponentLock(
                    name=spec.name,
                    version=version,
                    remote_source=self.id,
                    remote_path=key,
                    stemcell_os=spec.stemcell_os,
                    stemcell_version=spec.stemcell_version,
                )
                found_version = parsed

        if found is None:
            raise ReleaseNotFoundError(
                f"no version of {spec.name} matching {spec.version or 'any version'!r} "
                f"under s3://{self.config.bucket}/{prefix}"
            )
        if no_download:
            return found.with_sha1(NOT_CALCULATED)
        with tempfile.TemporaryDirectory() as releases_dir:
            local = self.download_release(releases_dir, found)
        return found.with_sha1(local.lock.sha1)

    def download_release(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        concurrency = self.download_threads if self.download_threads > 0 else DEFAULT_DOWNLOAD_THREADS
        return self._download_to(
            releases_dir,
            os.path.basename(lock.remote_path),
            lock,
            lambda file: self.client.download(lock.remote_path, file, concurrency),
        )

    def upload_release(self, spec: ComponentSpec, file: BinaryIO) -> ComponentLock:
        remote_path = self.remote_path(spec)
        self.logger.info(f"uploading release {spec.name!r} to {self.id} at {remote_path!r}")
        self.client.upload(remote_path, file)
        return spec.lock().with_remote(self.id, remote_path)
