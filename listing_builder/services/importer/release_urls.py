"""
Collect manifests from release archive URLs listed directly in the listing source.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Set

from listing_builder.domain.exceptions import ArchiveError
from listing_builder.domain.models import PackageManifest
from listing_builder.services.importer.archive import ArchiveManifestReader

logger = logging.getLogger(__name__)


class ReleaseUrlCollector:
    """
    Turns release archive URLs into manifests.

    URLs already present in the published listing are skipped without being
    downloaded, so re-running a build against an unchanged source fetches
    nothing new.
    """

    def __init__(self, reader: ArchiveManifestReader, max_concurrent_downloads: int = 8):
        self.reader = reader
        self._semaphore = asyncio.Semaphore(max_concurrent_downloads)

    async def _read_one(self, url: str) -> Optional[PackageManifest]:
        async with self._semaphore:
            try:
                manifest = await self.reader.read(url)
            except ArchiveError as e:
                logger.error(f"{e}, skipping.")
                return None

        if manifest is None:
            logger.info(f"Could not find manifest in zip file {url}, skipping.")
            return None

        logger.info(f"Found {manifest.name} ({manifest.display_name}) {manifest.version}, adding to listing.")
        return manifest

    async def collect(
        self,
        urls: Iterable[str],
        published_urls: Set[str],
    ) -> List[PackageManifest]:
        """
        Download every URL that is not yet published.

        Returns:
            The manifests found, in the order their URLs were given.
        """
        to_fetch: List[str] = []
        for url in urls:
            logger.info(f"Looking at {url}")
            if url in published_urls:
                logger.info(f"Current listing already contains {url}, skipping")
                continue
            if url in to_fetch:
                logger.debug(f"{url} is listed more than once, fetching it once")
                continue
            to_fetch.append(url)

        results = await asyncio.gather(*(self._read_one(url) for url in to_fetch))
        return [manifest for manifest in results if manifest is not None]
