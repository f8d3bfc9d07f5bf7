import hashlib
from typing import BinaryIO

CHUNK_SIZE = 1024 * 1024


def sha1_of_file(file: BinaryIO) -> str:
    """Hash a local file from its first byte, regardless of the current cursor."""
    file.seek(0)
    digest = hashlib.sha1()
    for chunk in iter(lambda: file.read(CHUNK_SIZE), b""):
        digest.update(chunk)
    return digest.hexdigest()


def sha1_of_stream(chunks) -> str:
    digest = hashlib.sha1()
    for chunk in chunks:
        if chunk:
            digest.update(chunk)
    return digest.hexdigest()
