"""Tests for storage/listing_writer.py."""

import asyncio
import json

from listing_builder.domain.models import PackageManifest, PackageVersions, RepositoryListing
from listing_builder.storage.listing_writer import ensure_clean_directory, save_listing


def make_listing():
    manifest = PackageManifest(
        name="com.example.a",
        version="1.0.0",
        url="https://example.com/a.zip",
        zipSHA256="ab" * 32,
    )
    return RepositoryListing(
        name="Example Listing",
        id="com.example.listing",
        author="Example Author",
        url="https://example.github.io/listing/index.json",
        packages={"com.example.a": PackageVersions(versions={"1.0.0": manifest})},
    )


def test_save_listing_writes_index(tmp_path):
    path = asyncio.run(save_listing(make_listing(), tmp_path / "docs"))

    assert path == tmp_path / "docs" / "index.json"
    assert not (tmp_path / "docs" / "index.json.tmp").exists()
    document = json.loads(path.read_text(encoding="utf-8"))
    entry = document["packages"]["com.example.a"]["versions"]["1.0.0"]
    assert entry == {
        "name": "com.example.a",
        "version": "1.0.0",
        "url": "https://example.com/a.zip",
        "zipSHA256": "ab" * 32,
    }


def test_save_listing_replaces_existing_file(tmp_path):
    (tmp_path / "index.json").write_text("old", encoding="utf-8")

    path = asyncio.run(save_listing(make_listing(), tmp_path))

    assert json.loads(path.read_text(encoding="utf-8"))["id"] == "com.example.listing"


def test_ensure_clean_directory(tmp_path):
    target = tmp_path / "docs"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("x", encoding="utf-8")

    ensure_clean_directory(target)

    assert target.is_dir()
    assert list(target.iterdir()) == []
