import json
import logging
import os
from typing import BinaryIO

import requests

from tilefetch.errors import UnexpectedStatusError, wrap_connectivity_error

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URI = "https://bosh.io"
CHUNK_SIZE = 1024 * 1024


class BoshIOClient:
    def __init__(self, server_uri: str | None = None, timeout: int = 30):
        self.server_uri: str = (server_uri or os.environ.get("BOSH_IO_URL") or DEFAULT_SERVER_URI).rstrip("/")
        self.timeout: int = timeout

    def get_releases(self, full_name: str) -> list[dict]:
        """Return the published versions of a release, newest first.

        An unknown release (404 or a literal null body) has no versions.
        """
        url = f"{self.server_uri}/api/v1/releases/{full_name}"
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"bosh.io API request for {full_name} failed")
        if response.status_code == 404:
            return []
        if response.status_code >= 300:
            raise UnexpectedStatusError(response.status_code, f"GET {url}")
        body = response.text.strip()
        if body == "null" or not body:
            return []
        try:
            releases = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValueError(f"json from {url} is malformed: {e}") from e
        return releases or []

    def download(self, url: str, file: BinaryIO) -> None:
        try:
            with requests.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise UnexpectedStatusError(response.status_code, f"GET {url}")
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    file.write(chunk)
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"download of {url} failed")
