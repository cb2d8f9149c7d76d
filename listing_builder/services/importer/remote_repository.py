"""
Copy package manifests from other package repositories.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Set, Tuple

import httpx
from pydantic import ValidationError

from listing_builder.domain.listing_utils import is_prerelease, package_display_name, parse_version
from listing_builder.domain.models import PackageManifest, VpmPackageInfo

logger = logging.getLogger(__name__)

RequestedPackage = Tuple[str, VpmPackageInfo]


def group_by_source(
    vpm_packages: Mapping[str, VpmPackageInfo],
) -> Dict[str, List[RequestedPackage]]:
    """
    Group requested packages by the repository that publishes them, so each
    repository is downloaded only once.

    Entries without a source cannot be fetched and are reported and dropped.
    """
    by_source: Dict[str, List[RequestedPackage]] = {}
    for package_id, info in vpm_packages.items():
        if not info.source:
            logger.error(f"Source repositories for {package_id} is not defined! This package will be ignored.")
            continue
        by_source.setdefault(info.source, []).append((package_id, info))
    return by_source


def missing_dependencies(manifest: PackageManifest, known_packages: Set[str]) -> List[str]:
    return [dep for dep in manifest.dependencies if dep not in known_packages]


class RemoteRepositoryFetcher:
    """Fetches requested packages from remote repository listings."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def fetch_listing(self, url: str) -> Dict[str, Any]:
        logger.info(f"Downloading from vpm repository {url}")
        response = await self.http.get(url)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Repository listing at {url} is not a JSON object")
        return data

    def select_manifests(
        self,
        url: str,
        listing: Dict[str, Any],
        requested: List[RequestedPackage],
        known_packages: Set[str],
    ) -> List[PackageManifest]:
        """
        Pick the requested packages out of a decoded repository listing.

        Invalid versions and prereleases (unless requested) are skipped.
        Manifests that depend on unknown packages are kept but reported.
        """
        packages = listing.get("packages")
        if not isinstance(packages, dict):
            packages = {}
        result: List[PackageManifest] = []

        for package_id, info in requested:
            entry = packages.get(package_id)
            if not isinstance(entry, dict):
                logger.warning(f"{package_id} is not defined in {url}!")
                continue

            versions = entry.get("versions") or {}
            if not isinstance(versions, dict):
                logger.warning(f"Versions of {package_id} in {url} are not an object, skipping.")
                continue

            for version_string, raw_manifest in versions.items():
                version = parse_version(version_string)
                if version is None:
                    logger.warning(f"We found invalid version of {package_id} in {url}: {version_string}")
                    continue

                if not info.include_prerelease and is_prerelease(version):
                    logger.debug(f"Skipping prerelease {package_id} {version_string}")
                    continue

                try:
                    manifest = PackageManifest.model_validate(raw_manifest)
                except ValidationError as e:
                    logger.warning(f"Invalid manifest for {package_id} {version_string} in {url}: {e}")
                    continue

                logger.info(f"Found {package_display_name(manifest)} {manifest.version}, adding to listing.")
                result.append(manifest)

                missing = missing_dependencies(manifest, known_packages)
                if missing:
                    logger.warning(
                        f"We found some missing dependency packages in {package_id} version {version}: "
                        + ", ".join(missing)
                    )

        return result

    async def fetch_source(
        self,
        url: str,
        requested: List[RequestedPackage],
        known_packages: Set[str],
    ) -> List[PackageManifest]:
        try:
            listing = await self.fetch_listing(url)
        except (httpx.HTTPError, ValueError) as e:
            # Only the packages of this repository are lost.
            logger.error(f"Could not download repository listing from {url}: {e}")
            return []

        try:
            return self.select_manifests(url, listing, requested, known_packages)
        except (TypeError, AttributeError) as e:
            logger.error(f"Repository listing from {url} is malformed: {e}")
            return []

    async def fetch_all(
        self,
        vpm_packages: Mapping[str, VpmPackageInfo],
        known_packages: Set[str],
    ) -> List[PackageManifest]:
        """
        Fetch every requested package, downloading each distinct repository once.
        """
        by_source = group_by_source(vpm_packages)
        if not by_source:
            return []

        per_source = await asyncio.gather(
            *(self.fetch_source(url, requested, known_packages) for url, requested in by_source.items())
        )

        manifests: List[PackageManifest] = []
        for source_manifests in per_source:
            manifests.extend(source_manifests)
        return manifests
