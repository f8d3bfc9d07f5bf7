import os
import logging
from typing import BinaryIO, Iterator

import requests
from github import Auth, Github, GithubException, UnknownObjectException
from github.GitRelease import GitRelease

from tilefetch.errors import UnexpectedStatusError, wrap_connectivity_error

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class GitHubClient:
    def __init__(self, token: str | None = None, base_url: str | None = None, timeout: int = 60):
        token = token or os.getenv("GITHUB_TOKEN")
        if not token:
            logger.error("A GitHub token is mandatory, set github_token or GITHUB_TOKEN")
            raise EnvironmentError("Missing GitHub token")
        kwargs = {"auth": Auth.Token(token), "timeout": timeout}
        if base_url:
            kwargs["base_url"] = base_url
        self.token: str = token
        self.timeout: int = timeout
        self.client: Github = Github(**kwargs)

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> GitRelease | None:
        try:
            return self.client.get_repo(f"{owner}/{repo}").get_release(tag)
        except UnknownObjectException:
            return None
        except GithubException as e:
            raise UnexpectedStatusError(e.status, f"GET release {tag} of {owner}/{repo}") from e
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"GET release {tag} of {owner}/{repo} failed")

    def list_releases(self, owner: str, repo: str) -> Iterator[GitRelease]:
        try:
            yield from self.client.get_repo(f"{owner}/{repo}").get_releases()
        except UnknownObjectException:
            return
        except GithubException as e:
            raise UnexpectedStatusError(e.status, f"GET releases of {owner}/{repo}") from e
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"GET releases of {owner}/{repo} failed")

    def iter_asset(self, asset_url: str) -> Iterator[bytes]:
        headers = {"Accept": "application/octet-stream", "Authorization": f"Bearer {self.token}"}
        try:
            with requests.get(asset_url, headers=headers, stream=True, timeout=self.timeout) as response:
                if response.status_code != 200:
                    raise UnexpectedStatusError(response.status_code, f"GET {asset_url}")
                yield from response.iter_content(chunk_size=CHUNK_SIZE)
        except requests.RequestException as e:
            raise wrap_connectivity_error(e, f"GET {asset_url} failed")

    def download_asset(self, asset_url: str, file: BinaryIO) -> None:
        for chunk in self.iter_asset(asset_url):
            file.write(chunk)
