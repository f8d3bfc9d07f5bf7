import socket

from botocore.exceptions import EndpointConnectionError
from urllib3.exceptions import NameResolutionError

VPN_HINT = "Are you connected to the corporate VPN or behind a firewall?"


class TilefetchError(Exception):
    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint: str | None = hint

    def __str__(self) -> str:
        message = super().__str__()
        if self.hint:
            return f"{message} (hint: {self.hint})"
        return message


class ReleaseNotFoundError(TilefetchError):
    pass


class ConnectivityError(TilefetchError):
    def __init__(self, message: str, hint: str = VPN_HINT):
        super().__init__(message, hint=hint)


class UnexpectedStatusError(TilefetchError):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{message}: unexpected http status {status_code}")
        self.status_code: int = status_code


class ConfigurationError(TilefetchError, ValueError):
    pass


class DuplicateReleaseSourceError(ConfigurationError):
    pass


class TemplateEvaluationError(TilefetchError, ValueError):
    pass


class ChecksumMismatchError(TilefetchError):
    pass


class ConsistencyError(TilefetchError, ValueError):
    pass


class ReleaseSourceError(TilefetchError):
    def __init__(self, source_id: str, cause: Exception):
        super().__init__(f'error from release source "{source_id}": {cause}')
        self.source_id: str = source_id
        self.cause: Exception = cause


def is_dns_failure(err: BaseException) -> bool:
    seen: set[int] = set()
    pending: list[BaseException] = [err]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, (socket.gaierror, NameResolutionError, EndpointConnectionError)):
            return True
        for linked in (getattr(current, "reason", None), current.__cause__, current.__context__, *current.args):
            if isinstance(linked, BaseException):
                pending.append(linked)
    return False


def wrap_connectivity_error(err: Exception, message: str) -> Exception:
    """Turn DNS or endpoint resolution failures into a ConnectivityError.

    Any other error is returned untouched so the caller can re-raise it.
    """
    if is_dns_failure(err):
        wrapped = ConnectivityError(f"{message}: failed to dial: {err}")
        wrapped.__cause__ = err
        return wrapped
    return err
