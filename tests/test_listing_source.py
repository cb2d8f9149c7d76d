"""Tests for data/listing_source.py."""

import json

import pytest

from conftest import manifest_dict
from listing_builder.domain.exceptions import ListingSourceNotFoundError
from listing_builder.data.listing_source import load_listing_source

SOURCE = {
    "name": "Example Listing",
    "id": "com.example.listing",
    "author": {"name": "Example Author", "url": "https://example.com", "email": "me@example.com"},
    "url": "https://example.github.io/listing/index.json",
    "bannerUrl": "banner.png",
    "infoLink": {"text": "Docs", "url": "https://example.com/docs"},
    "packages": [{"name": "com.example.a", "releases": ["https://example.com/a-1.0.0.zip"]}],
    "vpmPackages": {"com.example.b": {"source": "https://repo.example.com/index.json"}},
    "githubRepos": ["owner/repo"],
}


def test_loads_json_source(settings, write_source):
    write_source(SOURCE)

    source = load_listing_source(settings)

    assert source.name == "Example Listing"
    assert source.author.email == "me@example.com"
    assert source.info_link.text == "Docs"
    assert source.release_urls() == ["https://example.com/a-1.0.0.zip"]
    assert source.vpm_packages["com.example.b"].source == "https://repo.example.com/index.json"
    assert source.vpm_packages["com.example.b"].include_prerelease is False
    assert source.github_repos == ["owner/repo"]


def test_null_collections_become_empty(settings, write_source):
    write_source({"name": "Empty", "id": "com.example.empty", "packages": None, "githubRepos": None})

    source = load_listing_source(settings)

    assert source.packages == []
    assert source.github_repos == []
    assert source.vpm_packages == {}


def test_loads_yaml_source(settings):
    settings.listing_source_path.with_suffix(".yml").write_text(
        "name: Yaml Listing\n"
        "id: com.example.yaml\n"
        "author:\n"
        "  name: Someone\n"
        "githubRepos:\n"
        "  - owner/repo\n",
        encoding="utf-8",
    )

    source = load_listing_source(settings)

    assert source.name == "Yaml Listing"
    assert source.author.name == "Someone"
    assert source.github_repos == ["owner/repo"]


def test_blank_id_is_generated(settings, write_source, caplog):
    write_source({**SOURCE, "id": ""})

    source = load_listing_source(settings)

    assert source.id == f"io.github.LocalTestOwner.{settings.package_name}"
    assert "Your listing needs an id" in caplog.text


def test_falls_back_to_package_manifest(settings):
    manifest_path = settings.fallback_manifest_path
    manifest_path.parent.mkdir(parents=True)
    manifest_path.write_text(
        json.dumps(manifest_dict(
            settings.package_name,
            "1.0.0",
            displayName="Demo Template",
            author={"name": "Dev", "url": "https://dev.example.com"},
        )),
        encoding="utf-8",
    )

    source = load_listing_source(settings)

    assert source.name == "Demo Template Listing"
    assert source.id == f"{settings.package_name}.listing"
    assert source.author.name == "Dev"
    assert source.banner_url == "banner.png"
    assert source.url == settings.listing_url


def test_fallback_lists_the_current_repository(settings):
    ci_settings = settings.model_copy(update={
        "is_server_build": True,
        "github_repository": "someone/my-package",
        "github_repository_owner": "someone",
    })
    manifest_path = ci_settings.fallback_manifest_path
    manifest_path.parent.mkdir(parents=True)
    manifest_path.write_text(json.dumps(manifest_dict(settings.package_name)), encoding="utf-8")

    source = load_listing_source(ci_settings)

    assert source.github_repos == ["someone/my-package"]
    assert source.url == "https://someone.github.io/my-package/index.json"


def test_missing_source_and_manifest_raises(settings):
    with pytest.raises(ListingSourceNotFoundError, match="you need at least one of them"):
        load_listing_source(settings)


def test_unreadable_source_raises(settings):
    settings.listing_source_path.write_text("{broken", encoding="utf-8")

    with pytest.raises(ListingSourceNotFoundError, match="Could not read listing source"):
        load_listing_source(settings)
