"""
Build the package listing: collect manifests from every source declared in
the listing source, merge them with the published listing and write the
result.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, List, Mapping, Optional

import httpx

from listing_builder.core.dependencies import create_http_client, create_release_host
from listing_builder.core.settings import BuildSettings
from listing_builder.data.known_packages import collect_known_packages, fetch_official_package_ids
from listing_builder.data.listing_source import load_listing_source
from listing_builder.data.published_listing import fetch_published_listing, published_manifests_by_url
from listing_builder.domain.models import ListingSource, PackageManifest, RepositoryListing
from listing_builder.services.assembler import ListingAssembler, latest_packages
from listing_builder.services.importer.archive import ArchiveManifestReader
from listing_builder.services.importer.github_releases import GitHubReleaseFetcher, GitHubReleaseHost
from listing_builder.services.importer.release_urls import ReleaseUrlCollector
from listing_builder.services.importer.remote_repository import RemoteRepositoryFetcher
from listing_builder.services.website import render_website
from listing_builder.storage.listing_writer import ensure_clean_directory, save_listing

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of one listing build."""

    listing: RepositoryListing
    listing_path: Path
    new_manifests: List[PackageManifest] = field(default_factory=list)
    website_files: List[Path] = field(default_factory=list)


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently like ``asyncio.gather``.

    If one of them fails, the others are cancelled and awaited before the
    error propagates, so none of them outlives the shared HTTP client.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def collect_manifests(
    source: ListingSource,
    published: Mapping[str, Optional[PackageManifest]],
    http: httpx.AsyncClient,
    release_host: GitHubReleaseHost,
    settings: BuildSettings,
) -> List[PackageManifest]:
    """
    Collect manifests from release URLs, GitHub repositories and other
    package repositories.

    Raises:
        RepositoryNotFoundError: If a declared GitHub repository does not exist.
    """
    reader = ArchiveManifestReader(http)
    url_collector = ReleaseUrlCollector(reader, settings.max_concurrent_downloads)
    github_fetcher = GitHubReleaseFetcher(release_host, reader, settings.max_concurrent_downloads)

    async def from_github() -> List[PackageManifest]:
        per_repo = await gather_or_cancel(
            *(github_fetcher.fetch(repo, published) for repo in source.github_repos)
        )
        return [manifest for manifests in per_repo for manifest in manifests]

    async def official_ids() -> set:
        if not source.vpm_packages:
            return set()
        return await fetch_official_package_ids(http, settings.known_listing_urls)

    from_urls, from_repos, known_official = await gather_or_cancel(
        url_collector.collect(source.release_urls(), set(published)),
        from_github(),
        official_ids(),
    )

    manifests: List[PackageManifest] = [*from_urls, *from_repos]

    if source.vpm_packages:
        # Everything collected so far counts as resolvable for dependency warnings.
        known_packages = collect_known_packages(known_official, source.vpm_packages, manifests)
        remote_fetcher = RemoteRepositoryFetcher(http)
        manifests.extend(await remote_fetcher.fetch_all(source.vpm_packages, known_packages))

    return manifests


async def build_listing(
    settings: BuildSettings,
    http: Optional[httpx.AsyncClient] = None,
    release_host: Optional[GitHubReleaseHost] = None,
) -> BuildResult:
    """
    Run a complete build and write the listing to the output directory.

    Clients that are not passed in are created for this run and closed at
    the end of it.

    Raises:
        FatalBuildError: If the run cannot produce a listing.
    """
    source = load_listing_source(settings)

    owns_http = http is None
    if http is None:
        http = create_http_client(settings)
    if release_host is None:
        release_host = create_release_host(settings)

    try:
        previous: Optional[RepositoryListing] = None
        if settings.should_fetch_published_listing:
            previous = await fetch_published_listing(http, settings.listing_url, settings.github_token)
        published = published_manifests_by_url(previous)

        manifests = await collect_manifests(source, published, http, release_host, settings)
    finally:
        if owns_http:
            await http.aclose()

    logger.info("All packages prepared, generating Listing.")
    listing = ListingAssembler(source, previous).assemble(manifests)

    # Server builds write into the checked-out listing repository itself,
    # so only local builds start from an empty directory.
    if not settings.is_server_build:
        ensure_clean_directory(settings.output_directory)

    listing_path = await save_listing(listing, settings.output_directory)
    website_files = render_website(
        source,
        latest_packages(listing.iter_manifests()),
        settings.website_source_path,
        settings.output_directory,
        copy_assets=not settings.is_server_build,
    )

    return BuildResult(
        listing=listing,
        listing_path=listing_path,
        new_manifests=manifests,
        website_files=website_files,
    )
