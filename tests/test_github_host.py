"""Tests for GitHubReleaseHost against a mocked GitHub REST API."""

import asyncio

from githubkit import GitHub

from listing_builder.core.dependencies import create_release_host
from listing_builder.services.importer.github_releases import GitHubReleaseHost

API = "https://api.github.com/repos/owner/repo"


def call(host, method, *args):
    return asyncio.run(getattr(host, method)(*args))


def test_missing_repository_is_none(httpx_mock):
    httpx_mock.add_response(url=API, status_code=404, json={"message": "Not Found"})

    assert call(GitHubReleaseHost(GitHub()), "get_repository", "owner", "repo") is None


def test_repository_without_latest_release_is_none(httpx_mock):
    httpx_mock.add_response(url=f"{API}/releases/latest", status_code=404, json={"message": "Not Found"})

    assert call(GitHubReleaseHost(GitHub()), "get_latest_release", "owner", "repo") is None


def test_list_releases_follows_pagination(httpx_mock):
    httpx_mock.add_response(url=f"{API}/releases?page=1&per_page=100", json=[])

    assert call(GitHubReleaseHost(GitHub()), "list_releases", "owner", "repo") == []


def test_list_releases_of_missing_repository_is_none(httpx_mock):
    httpx_mock.add_response(
        url=f"{API}/releases?page=1&per_page=100",
        status_code=404,
        json={"message": "Not Found"},
    )

    assert call(GitHubReleaseHost(GitHub()), "list_releases", "owner", "repo") is None


def test_server_build_authenticates_with_token(settings, httpx_mock):
    server_settings = settings.model_copy(update={"is_server_build": True, "github_token": "secret-token"})
    httpx_mock.add_response(url=API, status_code=404, json={"message": "Not Found"})

    call(create_release_host(server_settings), "get_repository", "owner", "repo")

    request = httpx_mock.get_requests()[0]
    assert "secret-token" in request.headers["Authorization"]
    assert request.headers["User-Agent"] == "VRChat-Package-Manager-Automation"


def test_local_build_is_anonymous(settings, httpx_mock):
    local_settings = settings.model_copy(update={"github_token": "secret-token"})
    httpx_mock.add_response(url=API, status_code=404, json={"message": "Not Found"})

    call(create_release_host(local_settings), "get_repository", "owner", "repo")

    assert "Authorization" not in httpx_mock.get_requests()[0].headers
