"""
Version source abstraction for template repositories.

Provides the interfaces the pipeline fetches documents, branches and
archive snapshots through, plus a GitHub REST implementation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import asyncio
import logging
from urllib.parse import quote

import requests

from ..config import Settings
from ..errors import SourceFetchError

logger = logging.getLogger(__name__)


class VersionSource(ABC):
    """Abstract interface to a version-controlled template repository"""

    @abstractmethod
    async def list_branches(self) -> List[str]:
        """Return branch names in the source's listing order"""
        pass

    @abstractmethod
    async def list_all_files(self) -> List[str]:
        """Return every file path in the source's listing order"""
        pass

    @abstractmethod
    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        """Return raw file text at a ref; raises SourceFetchError if not found"""
        pass

    @abstractmethod
    async def get_file_web_link(self, path: str) -> str:
        """Return a browser URL for the file"""
        pass


class ArchiveSource(ABC):
    """Abstract interface to whole-tree archive snapshots"""

    @abstractmethod
    async def get_archive_bytes(self, ref: str) -> bytes:
        """Return a zip of the whole tree at a ref"""
        pass


class GitHubVersionSource(VersionSource, ArchiveSource):
    """GitHub REST v3 implementation of VersionSource and ArchiveSource"""

    RAW_MEDIA_TYPE = 'application/vnd.github.v3.raw'
    JSON_MEDIA_TYPE = 'application/vnd.github.v3+json'

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': self.JSON_MEDIA_TYPE})
        if settings.github_token:
            self.session.headers['Authorization'] = f"token {settings.github_token}"

    @property
    def repo_url(self) -> str:
        base = self.settings.github_api_url.rstrip('/')
        return f"{base}/repos/{self.settings.github_owner}/{self.settings.github_repo}"

    async def list_branches(self) -> List[str]:
        branches = []
        url = f"{self.repo_url}/branches"
        params = {'per_page': 100}

        while url:
            response = await asyncio.to_thread(self._get, url, params)
            branches.extend(branch['name'] for branch in response.json())
            url = response.links.get('next', {}).get('url')
            params = None  # the next link already carries the query

        logger.debug(f"Listed {len(branches)} branches for {self.settings.repository}")
        return branches

    async def list_all_files(self) -> List[str]:
        ref = quote(self.settings.sync_branch, safe='')
        url = f"{self.repo_url}/git/trees/{ref}"
        response = await asyncio.to_thread(self._get, url, {'recursive': 1})
        tree = response.json()

        if tree.get('truncated'):
            logger.warning(f"File listing for {self.settings.repository} was truncated")

        files = [item['path'] for item in tree.get('tree', []) if item.get('type') == 'blob']
        logger.debug(f"Listed {len(files)} files for {self.settings.repository}")
        return files

    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        params = {'ref': ref} if ref else None
        response = await asyncio.to_thread(
            self._get, self._contents_url(path), params, {'Accept': self.RAW_MEDIA_TYPE}
        )
        response.encoding = response.encoding or 'utf-8'
        return response.text

    async def get_file_web_link(self, path: str) -> str:
        response = await asyncio.to_thread(self._get, self._contents_url(path))
        return response.json()['html_url']

    async def get_archive_bytes(self, ref: str) -> bytes:
        url = f"{self.repo_url}/zipball/{quote(ref, safe='')}"
        response = await asyncio.to_thread(self._get, url)
        logger.info(f"Downloaded archive of {self.settings.repository}@{ref}: "
                    f"{len(response.content)} bytes")
        return response.content

    def _contents_url(self, path: str) -> str:
        return f"{self.repo_url}/contents/{quote(path.lstrip('/'))}"

    def _get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        """Blocking GET; runs in a worker thread."""
        try:
            response = self.session.get(
                url, params=params, headers=headers, timeout=self.settings.request_timeout
            )
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise SourceFetchError(f"Request to {url} failed: {e}")

        if not response.ok:
            logger.error(f"GET {url} returned {response.status_code}")
            raise SourceFetchError(
                f"GET {url} returned {response.status_code}", status_code=response.status_code
            )

        return response
