from .artifactory_release_source import ArtifactoryReleaseSource
from .bosh_io_release_source import DEFAULT_PUBLISHERS, DEFAULT_SUFFIXES, BoshIOReleaseSource
from .factory import release_source_factory
from .github_release_source import GitHubReleaseSource
from .release_source import DownloadThreadsSetter, ReleaseSource, ReleaseUploader, RemotePather
from .s3_release_source import S3ReleaseSource

__all__ = [
    "ArtifactoryReleaseSource",
    "BoshIOReleaseSource",
    "DEFAULT_PUBLISHERS",
    "DEFAULT_SUFFIXES",
    "DownloadThreadsSetter",
    "GitHubReleaseSource",
    "ReleaseSource",
    "ReleaseUploader",
    "RemotePather",
    "S3ReleaseSource",
    "release_source_factory",
]
