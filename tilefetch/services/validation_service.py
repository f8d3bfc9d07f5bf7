from tilefetch.errors import ConsistencyError, TemplateEvaluationError
from tilefetch.models import ComponentLock, ComponentSpec, Lockfile, ReleaseSourceConfig, Specification
from tilefetch.models.release_source_config import SOURCE_TYPE_ARTIFACTORY
from tilefetch.utils.path_template import PathTemplate
from tilefetch.utils.versions import parse_constraint, parse_version

ARTIFACTORY_REQUIRED_FIELDS = ("artifactory_host", "username", "password", "repo")
ARTIFACTORY_UNEXPECTED_FIELDS = (
    "bucket",
    "region",
    "access_key_id",
    "secret_access_key",
    "role_arn",
    "endpoint",
    "org",
    "github_token",
)


def validate(
    specification: Specification,
    lockfile: Lockfile,
    allowed_source_types: list[str] | None = None,
) -> list[ConsistencyError]:
    """Check the specification and lock file agree with each other.

    Every finding is collected; an empty list means the files are consistent.
    """
    errors: list[ConsistencyError] = []

    if allowed_source_types:
        for config in specification.release_sources:
            if config.type not in allowed_source_types:
                errors.append(ConsistencyError(f"release source type not allowed: {config.type}"))

    locks_by_name = {lock.name: lock for lock in lockfile.releases if lock.name}
    for index, spec in enumerate(specification.releases):
        if not spec.name:
            errors.append(ConsistencyError(f"release at index {index} missing name in spec"))
            continue
        lock = locks_by_name.get(spec.name)
        if lock is None:
            errors.append(ConsistencyError(f"release {spec.name!r} not found in lock"))
            continue
        error = _check_version_and_constraint(spec, lock, index)
        if error is not None:
            errors.append(error)

    spec_names = {spec.name for spec in specification.releases if spec.name}
    for index, lock in enumerate(lockfile.releases):
        if not lock.name:
            errors.append(ConsistencyError(f"release at index {index} missing name in lock"))
            continue
        if lock.name not in spec_names:
            errors.append(ConsistencyError(f"release {lock.name!r} not found in spec"))

    errors.extend(_check_remote_sources(specification.release_sources, lockfile.releases))
    errors.extend(_check_source_configuration(specification.release_sources))
    return errors


def _check_version_and_constraint(spec: ComponentSpec, lock: ComponentLock, index: int) -> ConsistencyError | None:
    try:
        version = parse_version(lock.version)
    except ValueError as e:
        return ConsistencyError(
            f"spec {spec.name} (index {index} in lock file) has invalid lock version {lock.version!r}: {e}"
        )
    if not spec.version:
        return None
    try:
        constraint = parse_constraint(spec.version)
    except ValueError as e:
        return ConsistencyError(
            f"spec {spec.name} (index {index} in specification) has invalid version constraint: {e}"
        )
    if not constraint.match(version):
        return ConsistencyError(
            f"spec {spec.name} version in lock {lock.version!r} does not match constraint {spec.version!r}"
        )
    return None


def _source_matches(config: ReleaseSourceConfig, remote_source: str) -> bool:
    if config.id:
        return config.id == remote_source
    return remote_source in (config.effective_id, config.type)


def _check_remote_sources(sources: list[ReleaseSourceConfig], locks: list[ComponentLock]) -> list[ConsistencyError]:
    errors: list[ConsistencyError] = []
    for lock in locks:
        if not any(_source_matches(config, lock.remote_source) for config in sources):
            errors.append(
                ConsistencyError(
                    f"release source {lock.remote_source!r} for release lock {lock.name!r} not found in specification"
                )
            )
    return errors


def _check_source_configuration(sources: list[ReleaseSourceConfig]) -> list[ConsistencyError]:
    errors: list[ConsistencyError] = []
    for config in sources:
        if config.type != SOURCE_TYPE_ARTIFACTORY:
            continue
        for field_name in ARTIFACTORY_REQUIRED_FIELDS:
            if not getattr(config, field_name):
                errors.append(ConsistencyError(f"missing required field {field_name}"))
        if not config.path_template:
            errors.append(ConsistencyError("missing required field path_template"))
        else:
            try:
                PathTemplate(config.path_template)
            except TemplateEvaluationError as e:
                errors.append(ConsistencyError(f"failed to parse path_template: {e}"))
        for field_name in ARTIFACTORY_UNEXPECTED_FIELDS:
            if getattr(config, field_name):
                errors.append(ConsistencyError(f"artifactory has unexpected field {field_name}"))
    return errors
