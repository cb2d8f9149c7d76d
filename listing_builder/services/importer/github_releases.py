"""
List the release archives of GitHub repositories.

Every release of a repository is assumed to ship the same package. The id of
the manifest in the latest release is taken as canonical, and archives from
older releases that carry a different id are ignored.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from githubkit import GitHub
from githubkit.exception import GitHubException

from listing_builder.domain.exceptions import ArchiveError, RepositoryNotFoundError
from listing_builder.domain.models import PackageManifest
from listing_builder.services.importer.archive import ArchiveManifestReader

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"


class GitHubReleaseHost:
    """Thin async wrapper around the GitHub REST API."""

    def __init__(self, github: GitHub):
        self._github = github

    async def get_repository(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        """
        Get repository information.

        Returns:
            Repository object or None if not found
        """
        try:
            response = await self._github.rest.repos.async_get(owner=owner, repo=repo)
            return response.parsed_data.model_dump()
        except GitHubException as e:
            logger.debug(f"Repository lookup for {owner}/{repo} failed: {e}")
            return None

    async def get_latest_release(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        """
        Get latest release information.

        Returns:
            Release object or None if the repository has no releases
        """
        try:
            response = await self._github.rest.repos.async_get_latest_release(owner=owner, repo=repo)
            return response.parsed_data.model_dump()
        except GitHubException as e:
            logger.debug(f"Latest release lookup for {owner}/{repo} failed: {e}")
            return None

    async def list_releases(self, owner: str, repo: str) -> Optional[List[Dict[str, Any]]]:
        """
        List all releases, following pagination.

        Returns:
            List of release objects or None on error
        """
        releases: List[Dict[str, Any]] = []
        try:
            async for release in self._github.paginate(
                self._github.rest.repos.async_list_releases, owner=owner, repo=repo
            ):
                releases.append(release.model_dump())
        except GitHubException as e:
            logger.debug(f"Listing releases for {owner}/{repo} failed: {e}")
            return None
        return releases


def archive_asset_urls(release: Mapping[str, Any]) -> List[str]:
    """Download URLs of the zip assets of a release, in asset order."""
    urls = []
    for asset in release.get("assets") or []:
        name = asset.get("name") or ""
        url = asset.get("browser_download_url")
        if name.endswith(ARCHIVE_EXTENSION) and url:
            urls.append(url)
    return urls


def split_repository_reference(owner_slash_name: str) -> Optional[tuple[str, str]]:
    parts = owner_slash_name.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


class GitHubReleaseFetcher:
    """Collects manifests from the release assets of GitHub repositories."""

    def __init__(
        self,
        host: GitHubReleaseHost,
        reader: ArchiveManifestReader,
        max_concurrent_downloads: int = 8,
    ):
        self.host = host
        self.reader = reader
        self._semaphore = asyncio.Semaphore(max_concurrent_downloads)

    async def _read(self, url: str) -> Optional[PackageManifest]:
        async with self._semaphore:
            try:
                return await self.reader.read(url)
            except ArchiveError as e:
                logger.error(f"{e}, skipping.")
                return None

    async def _canonical_manifest(
        self,
        url: str,
        published: Mapping[str, Optional[PackageManifest]],
    ) -> Optional[PackageManifest]:
        # An archive that is already published does not need to be downloaded
        # again just to learn its package id.
        manifest = published.get(url)
        if manifest is not None:
            return manifest
        return await self._read(url)

    async def fetch(
        self,
        owner_slash_name: str,
        published: Optional[Mapping[str, Optional[PackageManifest]]] = None,
    ) -> List[PackageManifest]:
        """
        Fetch the manifests of every release of one repository.

        Args:
            owner_slash_name: Repository reference in 'owner/name' format
            published: Manifests of the published listing, keyed by archive URL.
                Their archives are not downloaded again.

        Raises:
            RepositoryNotFoundError: If the repository does not exist.
        """
        published = published or {}

        parsed = split_repository_reference(owner_slash_name)
        if parsed is None:
            logger.error(f"Could not get owner and repository from included repo info {owner_slash_name}.")
            return []
        owner, name = parsed

        if await self.host.get_repository(owner, name) is None:
            raise RepositoryNotFoundError(f"Could not get remote repo {owner}/{name}.", source=owner_slash_name)

        logger.info(f"Analyzing repo {owner}/{name}")

        latest_release = await self.host.get_latest_release(owner, name)
        if latest_release is None:
            logger.info(f"Found no releases for {owner}/{name}")
            return []

        latest_urls = archive_asset_urls(latest_release)
        if not latest_urls:
            logger.info(f"Found no valid asset in latest release of {owner}/{name}")
            return []

        latest_url = latest_urls[0]
        latest_manifest = await self._canonical_manifest(latest_url, published)
        if latest_manifest is None:
            logger.info(f"Found no valid manifest in latest release of {owner}/{name}")
            return []
        latest_id = latest_manifest.name

        releases = await self.host.list_releases(owner, name)
        if not releases:
            logger.info(f"Found no releases for {owner}/{name}")
            return []

        release_urls: List[str] = []
        for release in releases:
            for url in archive_asset_urls(release):
                if url in published:
                    logger.info(f"Current listing already contains {url}, skipping")
                    continue
                if url not in release_urls:
                    release_urls.append(url)

        async def read_release(url: str) -> Optional[PackageManifest]:
            if url == latest_url:
                return latest_manifest
            return await self._read(url)

        manifests = await asyncio.gather(*(read_release(url) for url in release_urls))

        result: List[PackageManifest] = []
        for url, manifest in zip(release_urls, manifests):
            if manifest is None:
                logger.info(f"Release package has no manifest. Ignoring. {url}")
                continue
            if manifest.name != latest_id:
                logger.info(
                    f"Release ({manifest.name} - {manifest.version}) package id different "
                    f"from latest package id {latest_id}. Ignoring."
                )
                continue
            logger.info(f"Found {manifest.name} ({manifest.display_name}) {manifest.version}, adding to listing.")
            result.append(manifest)

        return result
