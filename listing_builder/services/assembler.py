"""
Merge collected manifests into one listing.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from listing_builder.domain.listing_utils import parse_version, version_sort_key
from listing_builder.domain.models import (
    ListingEntry,
    ListingSource,
    PackageManifest,
    PackageVersions,
    RepositoryListing,
)

logger = logging.getLogger(__name__)


def latest_packages(manifests: Iterable[PackageManifest]) -> List[PackageManifest]:
    """
    Select the highest semantic version of each package.

    When two manifests have equal precedence the one seen first is kept.
    Manifests with unparseable versions never win over valid ones.
    The result is ordered by package id.
    """
    latest: Dict[str, PackageManifest] = {}
    for manifest in manifests:
        current = latest.get(manifest.name)
        if current is None:
            latest[manifest.name] = manifest
            continue

        candidate_version = parse_version(manifest.version)
        current_version = parse_version(current.version)
        if candidate_version is None:
            continue
        if current_version is None or candidate_version > current_version:
            latest[manifest.name] = manifest

    return [latest[package_id] for package_id in sorted(latest)]


class ListingAssembler:
    """
    Builds the published listing from the previous one plus new manifests.

    Previously published entries are kept as they are; a new manifest whose
    (id, version) is already present is rejected, so the first one seen wins.
    """

    def __init__(self, source: ListingSource, previous: Optional[RepositoryListing] = None):
        self.source = source
        self.previous = previous
        self._entries: Dict[str, Dict[str, ListingEntry]] = {}

    def _add(self, manifest: PackageManifest, origin: str) -> bool:
        versions = self._entries.setdefault(manifest.name, {})
        if manifest.version in versions:
            logger.info(
                f"{manifest.name} {manifest.version} from {origin} is already in the listing, skipping."
            )
            return False
        versions[manifest.version] = manifest
        return True

    def _validate(self, manifest: PackageManifest) -> bool:
        if not manifest.name or not manifest.name.strip():
            logger.error(f"Manifest from {manifest.url} has no package id, skipping.")
            return False
        if parse_version(manifest.version) is None:
            logger.error(
                f"{manifest.name} has invalid version '{manifest.version}' ({manifest.url}), skipping."
            )
            return False
        return True

    def assemble(self, manifests: Iterable[PackageManifest]) -> RepositoryListing:
        self._entries = {}

        # Published entries are carried over exactly as they were read.
        if self.previous is not None:
            for package_id, version, entry in self.previous.iter_entries():
                self._entries.setdefault(package_id, {}).setdefault(version, entry)

        added = 0
        for manifest in manifests:
            if not self._validate(manifest):
                continue
            if self._add(manifest, manifest.url or "remote repository"):
                added += 1

        logger.info(f"Added {added} new package versions to the listing.")

        # Sorted so the same inputs always serialize to the same bytes.
        packages: Dict[str, PackageVersions] = {}
        for package_id in sorted(self._entries):
            versions = self._entries[package_id]
            if not versions:
                continue
            packages[package_id] = PackageVersions(
                versions={v: versions[v] for v in sorted(versions, key=version_sort_key)}
            )

        return RepositoryListing(
            name=self.source.name,
            id=self.source.id,
            author=self.source.author.name,
            url=self.source.url,
            packages=packages,
        )
