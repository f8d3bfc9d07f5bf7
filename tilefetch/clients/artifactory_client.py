import logging
from typing import BinaryIO
from urllib.parse import urlparse

import requests

from tilefetch.errors import UnexpectedStatusError, wrap_connectivity_error

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class ArtifactoryClient:
    def __init__(
        self,
        host: str,
        repo: str,
        username: str | None = None,
        password: str | None = None,
        timeout: int = 60,
    ):
        self.host: str = host.rstrip("/")
        self.repo: str = repo
        self.timeout: int = timeout
        self.session: requests.Session = requests.Session()
        if username or password:
            self.session.auth = (username or "", password or "")

    def _api_url(self, path: str) -> str:
        api_host = self.host.removesuffix("/artifactory")
        return f"{api_host}/artifactory/api/storage/{self.repo}/{path.lstrip('/')}"

    def _download_url(self, path: str) -> str:
        base = self.host
        if urlparse(base).path.rstrip("/").split("/")[-1] != "artifactory":
            base += "/artifactory"
        return f"{base}/{self.repo}/{path.lstrip('/')}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"{method} {url} failed")

    def file_info(self, path: str) -> dict | None:
        url = self._api_url(path)
        response = self._request("GET", url)
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UnexpectedStatusError(response.status_code, f"GET {url}")
        return response.json()

    def file_sha1(self, path: str) -> str:
        info = self.file_info(path)
        if info is None:
            raise UnexpectedStatusError(404, f"file info for {path}")
        return info.get("checksums", {}).get("sha1", "")

    def list_files(self, directory: str) -> list[dict] | None:
        """List every file below directory; uris are relative to it and start with a slash."""
        url = self._api_url(directory)
        response = self._request("GET", url, params={"list": "", "deep": "1", "listFolders": "0"})
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UnexpectedStatusError(response.status_code, f"GET {url}")
        return [f for f in response.json().get("files", []) if not f.get("folder")]

    def download(self, path: str, file: BinaryIO) -> None:
        url = self._download_url(path)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise UnexpectedStatusError(response.status_code, f"GET {url}")
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    file.write(chunk)
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"GET {url} failed")

    def upload(self, path: str, file: BinaryIO) -> None:
        url = self._download_url(path)
        response = self._request("PUT", url, data=file)
        if response.status_code != 201:
            raise UnexpectedStatusError(response.status_code, f"PUT {url}")
