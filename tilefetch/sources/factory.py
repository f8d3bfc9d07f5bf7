from tilefetch.errors import ConfigurationError
from tilefetch.models import ReleaseSourceConfig
from tilefetch.sources.artifactory_release_source import ArtifactoryReleaseSource
from tilefetch.sources.bosh_io_release_source import BoshIOReleaseSource
from tilefetch.sources.github_release_source import GitHubReleaseSource
from tilefetch.sources.release_source import ReleaseSource
from tilefetch.sources.s3_release_source import S3ReleaseSource

SOURCE_CLASSES: dict[str, type[ReleaseSource]] = {
    cls.source_type: cls
    for cls in (S3ReleaseSource, BoshIOReleaseSource, ArtifactoryReleaseSource, GitHubReleaseSource)
}


def release_source_factory(config: ReleaseSourceConfig) -> ReleaseSource:
    source_class = SOURCE_CLASSES.get(config.type)
    if source_class is None:
        raise ConfigurationError(
            f"unknown release source type {config.type!r}, expected one of {sorted(SOURCE_CLASSES)}"
        )
    return source_class(config)
