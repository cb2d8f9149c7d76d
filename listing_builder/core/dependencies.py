"""
Construction of the long-lived clients used during one build.

Clients are created once at run start and passed explicitly to every
component; nothing here is cached at module level.
"""
from __future__ import annotations

import httpx
from githubkit import GitHub

from listing_builder.core.settings import BuildSettings
from listing_builder.services.importer.github_releases import GitHubReleaseHost

GITHUB_USER_AGENT = "VRChat-Package-Manager-Automation"


def create_http_client(settings: BuildSettings) -> httpx.AsyncClient:
    # Release assets are served through redirects, so they must be followed.
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=settings.http_timeout_seconds,
        headers={"User-Agent": settings.user_agent},
    )


def create_release_host(settings: BuildSettings) -> GitHubReleaseHost:
    # Anonymous access works locally; CI builds authenticate with the
    # workflow token to get the higher rate limit.
    token = settings.github_token if settings.is_server_build else None
    github = GitHub(
        token,
        user_agent=GITHUB_USER_AGENT,
        timeout=settings.http_timeout_seconds,
    )
    return GitHubReleaseHost(github)
