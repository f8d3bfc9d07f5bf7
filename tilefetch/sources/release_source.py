import logging
import os
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Protocol, runtime_checkable

from tilefetch.errors import ConfigurationError
from tilefetch.models import ComponentLock, ComponentSpec, LocalRelease, ReleaseSourceConfig
from tilefetch.utils.checksum import sha1_of_file
from tilefetch.utils.logging import setup_logger
from tilefetch.utils.path_template import PathTemplate


class ReleaseSource(ABC):
    """One store that may hold component artifacts.

    Sources are configured once and never mutated afterwards, apart from the
    download concurrency of sources that support it.
    """

    source_type: str = ""

    def __init__(self, config: ReleaseSourceConfig):
        if config.type and config.type != self.source_type:
            raise ConfigurationError(
                f"wrong constructor for release source configuration: "
                f"expected type {self.source_type!r} got {config.type!r}"
            )
        self.config: ReleaseSourceConfig = config
        self.logger: logging.Logger = setup_logger(f"{self.source_type} release source")

    def configuration(self) -> ReleaseSourceConfig:
        return self.config

    @property
    def id(self) -> str:
        return self.config.effective_id

    @property
    def publishable(self) -> bool:
        return self.config.publishable

    @abstractmethod
    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock:
        """Return the lock for exactly spec.version, or raise ReleaseNotFoundError."""

    @abstractmethod
    def find_release_version(self, spec: ComponentSpec, no_download: bool = False) -> ComponentLock:
        """Return the highest version satisfying spec.version, or raise ReleaseNotFoundError."""

    @abstractmethod
    def download_release(self, releases_dir: str, lock: ComponentLock) -> LocalRelease:
        """Write the artifact into releases_dir and report its SHA-1.

        Comparing the checksum with a trusted value is left to the caller.
        """

    def _require(self, *field_names: str) -> None:
        for field_name in field_names:
            if not getattr(self.config, field_name):
                raise ConfigurationError(
                    f'Missing required field "{field_name}" in {self.source_type} release source config '
                    f"{self.config.id or ''!r}. Is your specification file out of date?"
                )

    def _compile_path_template(self) -> PathTemplate:
        self._require("path_template")
        return PathTemplate(self.config.path_template)

    def _download_to(
        self, releases_dir: str, file_name: str, lock: ComponentLock, write: Callable[[BinaryIO], None]
    ) -> LocalRelease:
        self.logger.info(f"downloading {lock.name} from {self.source_type} release source {self.id}")
        local_path = os.path.join(releases_dir, file_name)
        with open(local_path, "w+b") as file:
            write(file)
            file.flush()
            checksum = sha1_of_file(file)
        return LocalRelease(lock=lock.with_sha1(checksum), local_path=local_path)


@runtime_checkable
class ReleaseUploader(Protocol):
    def get_matched_release(self, spec: ComponentSpec) -> ComponentLock: ...

    def upload_release(self, spec: ComponentSpec, file: BinaryIO) -> ComponentLock: ...


@runtime_checkable
class RemotePather(Protocol):
    def remote_path(self, spec: ComponentSpec) -> str: ...


@runtime_checkable
class DownloadThreadsSetter(Protocol):
    def set_download_threads(self, threads: int) -> None: ...
