"""
Build the set of package ids that dependencies may refer to without a warning.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping, Set

import httpx

from listing_builder.domain.models import PackageManifest, VpmPackageInfo

logger = logging.getLogger(__name__)


async def fetch_listing_package_ids(http: httpx.AsyncClient, url: str) -> Set[str]:
    """
    Return the package ids published by the listing at ``url``.

    A listing that cannot be fetched contributes nothing; the set is only used
    for advisory warnings.
    """
    try:
        response = await http.get(url)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Could not load known packages from {url}: {e}")
        return set()

    packages = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(packages, dict):
        logger.warning(f"Listing at {url} has no packages")
        return set()
    return set(packages.keys())


async def fetch_official_package_ids(http: httpx.AsyncClient, urls: Iterable[str]) -> Set[str]:
    results = await asyncio.gather(*(fetch_listing_package_ids(http, url) for url in urls))
    ids: Set[str] = set()
    for listing_ids in results:
        ids.update(listing_ids)
    return ids


def collect_known_packages(
    official_ids: Iterable[str],
    vpm_packages: Mapping[str, VpmPackageInfo],
    collected: Iterable[PackageManifest],
) -> Set[str]:
    """
    Union of the official/curated ids, the ids requested from other
    repositories and the ids already collected in this run.
    """
    package_ids: Set[str] = set(official_ids)
    package_ids.update(vpm_packages.keys())
    package_ids.update(manifest.name for manifest in collected)
    return package_ids
