from urllib.parse import urlparse


def repository_host_owner_and_name(uri: str) -> tuple[str, str, str]:
    """Split a GitHub repository reference into host, owner and repository name.

    Accepts HTTPS URLs (https://github.com/owner/repo) and SSH shorthand
    (git@github.com:owner/repo.git).
    """
    uri = (uri or "").strip()
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in uri):
        raise ValueError(f"invalid control character in URL {uri!r}")
    if "://" not in uri and "@" in uri and ":" in uri:
        host_part, _, path = uri.partition(":")
        host = host_part.rpartition("@")[2]
    else:
        parsed = urlparse(uri)
        host, path = parsed.hostname or "", parsed.path
    parts = path.strip("/").split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError(f"path missing expected parts: {uri!r}")
    owner, name = parts[0], parts[1].removesuffix(".git")
    if not owner.replace("-", "").replace("_", "").replace(".", "").isalnum() or not name:
        raise ValueError(f"path missing expected parts: {uri!r}")
    return host, owner, name


def repository_owner_and_name(uri: str) -> tuple[str, str]:
    _, owner, name = repository_host_owner_and_name(uri)
    return owner, name
