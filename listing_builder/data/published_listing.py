"""
Read the listing published by the previous run.

Its entries are carried over unchanged and its archive URLs are never
downloaded again.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from listing_builder.domain.models import (
    PackageManifest,
    PackageVersions,
    RepositoryListing,
    entry_manifest,
    entry_url,
)

logger = logging.getLogger(__name__)


def parse_listing(raw: Dict[str, Any], origin: str = "listing") -> RepositoryListing:
    """
    Parse a listing document without rejecting the whole of it.

    Every version entry is kept exactly as it was published, including
    entries that are not valid manifests; they are only ever read back for
    their archive URL. Packages or versions that are not JSON objects cannot
    be carried over and are skipped with a warning.
    """
    raw_packages = raw.get("packages") or {}
    if not isinstance(raw_packages, dict):
        logger.warning(f"Packages in {origin} are not an object, ignoring them.")
        raw_packages = {}

    packages: Dict[str, PackageVersions] = {}
    for package_id, entry in raw_packages.items():
        raw_versions = entry.get("versions") if isinstance(entry, dict) else None
        if not isinstance(raw_versions, dict):
            logger.warning(f"Ignoring {package_id} in {origin}: its versions are not an object.")
            continue

        versions: Dict[str, Dict[str, Any]] = {}
        for version, raw_manifest in raw_versions.items():
            if not isinstance(raw_manifest, dict):
                logger.warning(f"Ignoring entry {package_id} {version} in {origin}: it is not an object.")
                continue
            if entry_manifest(raw_manifest) is None:
                logger.warning(
                    f"Entry {package_id} {version} in {origin} is not a valid manifest, keeping it as published."
                )
            versions[version] = raw_manifest
        packages[package_id] = PackageVersions(versions=versions)

    return RepositoryListing(
        name=raw.get("name"),
        id=raw.get("id"),
        author=raw.get("author") if isinstance(raw.get("author"), str) else None,
        url=raw.get("url"),
        packages=packages,
    )


async def fetch_published_listing(
    http: httpx.AsyncClient,
    url: str,
    token: Optional[str] = None,
) -> Optional[RepositoryListing]:
    """
    Download the currently published listing.

    Returns:
        The listing, or None if it could not be downloaded (e.g. first run).
    """
    headers = {"Accept": "application/octet-stream"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = await http.get(url, headers=headers)
        response.raise_for_status()
        raw = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Could not download manifest from {url}: {e}")
        return None

    if not isinstance(raw, dict):
        logger.error(f"Published listing at {url} is not a JSON object")
        return None

    listing = parse_listing(raw, origin=url)
    logger.info(f"Loaded published listing from {url} with {len(listing.urls())} archive URLs")
    return listing


def published_manifests_by_url(listing: Optional[RepositoryListing]) -> Dict[str, Optional[PackageManifest]]:
    """
    Map every published archive URL to its manifest.

    Entries that are not valid manifests map to None; their URLs still count
    as published.
    """
    if listing is None:
        return {}
    result: Dict[str, Optional[PackageManifest]] = {}
    for _, _, entry in listing.iter_entries():
        url = entry_url(entry)
        if url is not None:
            result[url] = entry_manifest(entry)
    return result
