"""Shared fixtures for listing builder tests."""

import io
import json
import zipfile
from pathlib import Path

import pytest

from listing_builder.core.settings import BuildSettings


def make_zip(files: dict) -> bytes:
    """Build an in-memory zip archive from {name: str | bytes | dict}."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            if isinstance(content, dict):
                content = json.dumps(content)
            zf.writestr(name, content)
    return buffer.getvalue()


def manifest_dict(name="com.example.a", version="1.0.0", **extra) -> dict:
    data = {"name": name, "version": version, "displayName": name.split(".")[-1].title()}
    data.update(extra)
    return data


def package_zip(name="com.example.a", version="1.0.0", **extra) -> bytes:
    return make_zip({"package.json": manifest_dict(name, version, **extra), "Runtime/a.cs": "// code"})


def make_release(tag: str, *urls: str) -> dict:
    return {
        "tag_name": tag,
        "assets": [{"name": url.rsplit("/", 1)[-1], "browser_download_url": url} for url in urls],
    }


class FakeReleaseHost:
    """In-memory stand-in for GitHubReleaseHost.

    ``repos`` maps 'owner/name' to its releases, newest first.
    """

    def __init__(self, repos: dict):
        self.repos = repos
        self.calls = []

    async def get_repository(self, owner, repo):
        self.calls.append(("get_repository", owner, repo))
        key = f"{owner}/{repo}"
        return {"full_name": key} if key in self.repos else None

    async def get_latest_release(self, owner, repo):
        self.calls.append(("get_latest_release", owner, repo))
        releases = self.repos.get(f"{owner}/{repo}")
        return releases[0] if releases else None

    async def list_releases(self, owner, repo):
        self.calls.append(("list_releases", owner, repo))
        return list(self.repos.get(f"{owner}/{repo}", []))


@pytest.fixture
def settings(tmp_path: Path) -> BuildSettings:
    """Local-build settings rooted in a temporary directory."""
    root = tmp_path / "builder"
    root.mkdir()
    source_dir = tmp_path / "listing"
    source_dir.mkdir()
    return BuildSettings(
        root_directory=root,
        listing_source_folder=source_dir,
        output_directory=tmp_path / "docs",
        known_listing_urls=[],
    )


@pytest.fixture
def write_source(settings):
    """Write a source.json for the settings fixture."""

    def _write(data: dict) -> Path:
        path = settings.listing_source_path
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
