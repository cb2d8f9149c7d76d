"""
Pydantic models for the package listing builder.

This module defines all data models used throughout the application, including:
- Package manifests extracted from release archives or remote listings
- The listing-source configuration describing what to aggregate
- The published listing document (also the format of remote repositories)

Field names are snake_case in Python and keep the camelCase spelling of the
listing format through aliases, so documents round-trip unchanged.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


# ---------------------------------------------------------------------------
# Package Manifest Models
# ---------------------------------------------------------------------------


class Author(BaseModel):
    """
    Author or publisher contact information.

    Used both by package manifests and by the listing source.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(
        default=None,
        description="Author display name.",
    )
    url: Optional[str] = Field(
        default=None,
        description="Author homepage.",
    )
    email: Optional[str] = Field(
        default=None,
        description="Author contact address.",
    )


class PackageManifest(BaseModel):
    """
    Metadata for one package at one version.

    Built from the ``package.json`` found inside a release archive, or taken
    from a remote repository listing. Instances are frozen; the archive URL
    and content hash are attached by copying (see ``with_archive``).

    Unknown fields are kept as-is so that the published listing carries
    everything the package author wrote.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    # Identity
    name: str = Field(
        description="Package identifier, e.g. 'com.vrchat.demo-template'.",
    )
    version: str = Field(
        description="Semantic version string, e.g. '1.2.0'.",
    )

    # Descriptive information
    display_name: Optional[str] = Field(
        default=None,
        alias="displayName",
        description="Human-friendly package name.",
    )
    description: Optional[str] = Field(
        default=None,
        description="Free-text description.",
    )
    author: Optional[Author] = Field(
        default=None,
        description="Package author.",
    )
    license: Optional[str] = Field(
        default=None,
        description="License name (e.g. 'MIT').",
    )
    licenses_url: Optional[str] = Field(
        default=None,
        alias="licensesUrl",
        description="URL of the license text.",
    )
    keywords: Optional[List[str]] = Field(
        default=None,
        description="Search keywords.",
    )
    vpm_dependencies: Optional[Dict[str, str]] = Field(
        default=None,
        alias="vpmDependencies",
        description="Dependency package id -> version constraint.",
    )

    # Distribution
    url: Optional[str] = Field(
        default=None,
        description="URL of the zip archive this manifest was read from.",
    )
    zip_sha256: Optional[str] = Field(
        default=None,
        alias="zipSHA256",
        description="Hex SHA-256 digest of the entire zip archive.",
    )

    @field_validator("author", mode="before")
    @classmethod
    def _author_from_string(cls, value: Any) -> Any:
        # npm-style manifests sometimes use a plain "Name <email>" string.
        if isinstance(value, str):
            return {"name": value}
        return value

    @property
    def dependencies(self) -> Dict[str, str]:
        return dict(self.vpm_dependencies or {})

    def with_archive(self, url: str, zip_sha256: str) -> PackageManifest:
        """Return a copy pointing at the archive it was extracted from."""
        return self.model_copy(update={"url": url, "zip_sha256": zip_sha256})

    def to_listing_dict(self) -> Dict[str, Any]:
        """Serialize using the listing field names, omitting nulls."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Listing Models
# ---------------------------------------------------------------------------


# A listing entry is either a manifest built in this run or a document carried
# over from the previously published listing exactly as it was read.
ListingEntry = Union[Dict[str, Any], PackageManifest]


def entry_manifest(entry: ListingEntry) -> Optional[PackageManifest]:
    """Typed view of a listing entry, or None if it is not a valid manifest."""
    if isinstance(entry, PackageManifest):
        return entry
    try:
        return PackageManifest.model_validate(entry)
    except ValidationError:
        return None


def entry_url(entry: ListingEntry) -> Optional[str]:
    url = entry.url if isinstance(entry, PackageManifest) else entry.get("url")
    return url if isinstance(url, str) and url else None


class PackageVersions(BaseModel):
    """All known versions of a single package, keyed by version string."""

    versions: Dict[str, ListingEntry] = Field(
        default_factory=dict,
        description="Version string -> manifest, or the published document for carried-over entries.",
    )


class RepositoryListing(BaseModel):
    """
    A published package listing.

    This is the output artifact (``index.json``) and also the format served
    by remote package repositories.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(
        default=None,
        description="Listing display name.",
    )
    id: Optional[str] = Field(
        default=None,
        description="Reverse-DNS listing identifier.",
    )
    author: Optional[str] = Field(
        default=None,
        description="Listing author name.",
    )
    url: Optional[str] = Field(
        default=None,
        description="URL where this listing is published.",
    )
    packages: Dict[str, PackageVersions] = Field(
        default_factory=dict,
        description="Package id -> versions.",
    )

    def iter_entries(self):
        for package_id, package_versions in self.packages.items():
            for version, entry in package_versions.versions.items():
                yield package_id, version, entry

    def iter_manifests(self):
        """Entries as manifests; carried-over documents that do not validate are left out."""
        for _, _, entry in self.iter_entries():
            manifest = entry_manifest(entry)
            if manifest is not None:
                yield manifest

    def urls(self) -> set[str]:
        return {url for _, _, entry in self.iter_entries() if (url := entry_url(entry))}

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Listing Source Models
# ---------------------------------------------------------------------------


class InfoLink(BaseModel):
    """Optional link shown on the listing website."""

    text: Optional[str] = None
    url: Optional[str] = None


class PackageReleaseEntry(BaseModel):
    """A named group of direct release archive URLs."""

    name: Optional[str] = Field(
        default=None,
        description="Package name this group of releases belongs to (informational).",
    )
    releases: List[str] = Field(
        default_factory=list,
        description="Direct URLs of release zip archives.",
    )

    @field_validator("releases", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class VpmPackageInfo(BaseModel):
    """
    A package to copy from another package repository.

    ``source`` is required for the entry to be used; entries without one are
    reported and ignored by the remote repository fetcher.
    """

    model_config = ConfigDict(populate_by_name=True)

    source: Optional[str] = Field(
        default=None,
        description="URL of the remote repository listing that publishes this package.",
    )
    include_prerelease: bool = Field(
        default=False,
        alias="includePrerelease",
        description="If True, prerelease versions are copied as well.",
    )


class ListingSource(BaseModel):
    """
    Input configuration describing which upstream sources to aggregate.

    Read from ``source.json`` in the listing-source folder, or synthesized
    from a local package manifest when that file does not exist.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(
        default=None,
        description="Listing display name.",
    )
    id: Optional[str] = Field(
        default=None,
        description="Listing identifier. Generated from the repository when blank.",
    )
    author: Author = Field(
        default_factory=Author,
        description="Listing author.",
    )
    url: Optional[str] = Field(
        default=None,
        description="URL where the listing will be published.",
    )
    description: Optional[str] = Field(
        default=None,
        description="Description shown on the listing website.",
    )
    banner_url: Optional[str] = Field(
        default=None,
        alias="bannerUrl",
        description="Banner image shown on the listing website.",
    )
    info_link: Optional[InfoLink] = Field(
        default=None,
        alias="infoLink",
        description="Extra link shown on the listing website.",
    )
    packages: List[PackageReleaseEntry] = Field(
        default_factory=list,
        description="Direct release URLs grouped by package.",
    )
    vpm_packages: Dict[str, VpmPackageInfo] = Field(
        default_factory=dict,
        alias="vpmPackages",
        description="Packages copied from other repositories, keyed by package id.",
    )
    github_repos: List[str] = Field(
        default_factory=list,
        alias="githubRepos",
        description="GitHub repositories ('owner/name') whose releases are listed.",
    )

    @field_validator("packages", "github_repos", mode="before")
    @classmethod
    def _none_as_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("vpm_packages", mode="before")
    @classmethod
    def _none_as_empty_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("author", mode="before")
    @classmethod
    def _author_default(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, str):
            return {"name": value}
        return value

    def release_urls(self) -> List[str]:
        return [url for entry in self.packages for url in entry.releases]
