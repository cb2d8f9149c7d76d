"""Tests for core/settings.py."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from listing_builder.core.settings import DEFAULT_KNOWN_LISTING_URLS, BuildSettings


def test_local_defaults(tmp_path):
    settings = BuildSettings.load(root_directory=tmp_path / "builder", environ={})

    root = (tmp_path / "builder").resolve()
    assert settings.root_directory == root
    assert settings.listing_source_folder == root.parent / "template-package-listing"
    assert settings.output_directory == root / "docs"
    assert settings.is_server_build is False
    assert settings.should_fetch_published_listing is False
    assert settings.known_listing_urls == DEFAULT_KNOWN_LISTING_URLS
    assert settings.listing_url == "https://LocalTestOwner.github.io/com.vrchat.demo-template/index.json"


def test_github_actions_environment(tmp_path):
    settings = BuildSettings.load(
        root_directory=tmp_path / "builder",
        environ={
            "GITHUB_ACTIONS": "true",
            "GITHUB_TOKEN": "secret",
            "GITHUB_REPOSITORY": "someone/my-listing",
            "GITHUB_REPOSITORY_OWNER": "someone",
        },
    )

    assert settings.is_server_build is True
    assert settings.github_token == "secret"
    assert settings.listing_source_folder == (tmp_path / "builder").resolve().parent
    assert settings.listing_url == "https://someone.github.io/my-listing/index.json"
    assert settings.should_fetch_published_listing is True


def test_environment_paths_and_overrides(tmp_path):
    settings = BuildSettings.load(
        root_directory=tmp_path,
        output_directory=Path(tmp_path / "out"),
        http_timeout_override=5,
        concurrency_override=2,
        environ={
            "LISTING_SOURCE_DIR": str(tmp_path / "src"),
            "LISTING_OUTPUT_DIR": str(tmp_path / "ignored"),
            "LISTING_PACKAGE_NAME": "com.example.pkg",
        },
    )

    assert settings.listing_source_folder == tmp_path / "src"
    assert settings.output_directory == tmp_path / "out"
    assert settings.package_name == "com.example.pkg"
    assert settings.http_timeout_seconds == 5
    assert settings.max_concurrent_downloads == 2


def test_current_listing_url_enables_fetch(tmp_path):
    settings = BuildSettings.load(
        root_directory=tmp_path,
        current_listing_url="https://example.com/index.json",
        environ={},
    )

    assert settings.listing_url == "https://example.com/index.json"
    assert settings.should_fetch_published_listing is True


def test_paths_derived_from_source_folder(settings):
    assert settings.listing_source_path == settings.listing_source_folder / "source.json"
    assert settings.website_source_path == settings.listing_source_folder / "Website"


def test_invalid_concurrency_rejected(tmp_path):
    with pytest.raises(ValidationError):
        BuildSettings.load(root_directory=tmp_path, concurrency_override=0, environ={})
