from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

PACKAGE_MANIFEST_FILENAME = "package.json"
LISTING_PUBLISH_FILENAME = "index.json"
DEFAULT_PACKAGE_NAME = "com.vrchat.demo-template"
LOCAL_TEST_OWNER = "LocalTestOwner"

# Packages published here are resolvable by every client, so dependencies on
# them never count as missing.
DEFAULT_KNOWN_LISTING_URLS = [
    "https://packages.vrchat.com/official?download",
    "https://packages.vrchat.com/curated?download",
]

ROOT_DIR_ENV_VAR = "LISTING_ROOT_DIR"
SOURCE_DIR_ENV_VAR = "LISTING_SOURCE_DIR"
OUTPUT_DIR_ENV_VAR = "LISTING_OUTPUT_DIR"
PACKAGE_NAME_ENV_VAR = "LISTING_PACKAGE_NAME"
CURRENT_LISTING_URL_ENV_VAR = "LISTING_CURRENT_URL"


class BuildSettings(BaseModel):
    """
    Configuration for one listing build.

    Values come from (lowest to highest priority) built-in defaults, the
    environment (including the variables GitHub Actions provides) and
    command-line overrides passed to ``load``.
    """

    root_directory: Path = Field(
        description="Directory of the builder checkout; other paths default relative to it.",
    )
    listing_source_folder: Path = Field(
        description="Folder containing the listing source and the Website templates.",
    )
    listing_source_filename: str = Field(
        default="source.json",
        description="Filename of the listing source inside listing_source_folder.",
    )
    output_directory: Path = Field(
        description="Directory the listing (and website) is written into.",
    )
    package_name: str = Field(
        default=DEFAULT_PACKAGE_NAME,
        description="Package used to synthesize a listing source when none exists.",
    )
    current_listing_url: Optional[str] = Field(
        default=None,
        description="URL of the previously published listing. Defaults to the GitHub Pages URL.",
    )
    github_token: Optional[str] = Field(
        default=None,
        description="Token used for GitHub API calls and to fetch the published listing.",
    )
    github_repository: Optional[str] = Field(
        default=None,
        description="'owner/name' of the repository running the build.",
    )
    github_repository_owner: Optional[str] = Field(
        default=None,
        description="Owner of the repository running the build.",
    )
    is_server_build: bool = Field(
        default=False,
        description="True when running inside GitHub Actions.",
    )
    http_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout applied to every HTTP request.",
    )
    max_concurrent_downloads: int = Field(
        default=8,
        ge=1,
        description="Maximum number of archives downloaded at the same time.",
    )
    known_listing_urls: List[str] = Field(
        default_factory=lambda: list(DEFAULT_KNOWN_LISTING_URLS),
        description="Listings whose packages count as known dependencies.",
    )
    user_agent: str = Field(
        default="VCCBootstrap/1.0",
        description="User-Agent sent with every plain HTTP request.",
    )

    @property
    def repo_owner(self) -> str:
        if self.is_server_build and self.github_repository_owner:
            return self.github_repository_owner
        return LOCAL_TEST_OWNER

    @property
    def repo_name(self) -> str:
        if self.is_server_build and self.github_repository:
            return self.github_repository.split("/")[-1]
        return self.package_name

    @property
    def listing_source_path(self) -> Path:
        return self.listing_source_folder / self.listing_source_filename

    @property
    def website_source_path(self) -> Path:
        return self.listing_source_folder / "Website"

    @property
    def fallback_manifest_path(self) -> Path:
        return self.root_directory.parent / "Packages" / self.package_name / PACKAGE_MANIFEST_FILENAME

    @property
    def listing_url(self) -> str:
        """
        Where the listing is (or will be) published.

        Typically https://{owner}.github.io/{repo}/index.json
        """
        if self.current_listing_url:
            return self.current_listing_url
        return f"https://{self.repo_owner}.github.io/{self.repo_name}/{LISTING_PUBLISH_FILENAME}"

    @property
    def should_fetch_published_listing(self) -> bool:
        return self.is_server_build or self.current_listing_url is not None

    @classmethod
    def load(
        cls,
        root_directory: Optional[Path] = None,
        listing_source_folder: Optional[Path] = None,
        output_directory: Optional[Path] = None,
        package_name: Optional[str] = None,
        current_listing_url: Optional[str] = None,
        http_timeout_override: Optional[float] = None,
        concurrency_override: Optional[int] = None,
        environ: Optional[dict] = None,
    ) -> BuildSettings:
        """Load settings from the environment, applying explicit overrides."""
        env = os.environ if environ is None else environ
        is_server_build = env.get("GITHUB_ACTIONS", "").lower() == "true"

        root = root_directory or Path(env.get(ROOT_DIR_ENV_VAR) or Path.cwd())
        root = Path(root).expanduser().resolve()

        # Locally the listing repository is expected to be checked out next to
        # this one; in CI the builder runs inside it.
        source_folder = listing_source_folder or env.get(SOURCE_DIR_ENV_VAR)
        if source_folder is None:
            source_folder = root.parent if is_server_build else root.parent / "template-package-listing"

        output = output_directory or env.get(OUTPUT_DIR_ENV_VAR) or root / "docs"

        data = {
            "root_directory": root,
            "listing_source_folder": Path(source_folder).expanduser(),
            "output_directory": Path(output).expanduser(),
            "package_name": package_name or env.get(PACKAGE_NAME_ENV_VAR) or DEFAULT_PACKAGE_NAME,
            "current_listing_url": current_listing_url or env.get(CURRENT_LISTING_URL_ENV_VAR),
            "github_token": env.get("GITHUB_TOKEN") or None,
            "github_repository": env.get("GITHUB_REPOSITORY") or None,
            "github_repository_owner": env.get("GITHUB_REPOSITORY_OWNER") or None,
            "is_server_build": is_server_build,
        }
        if http_timeout_override is not None:
            data["http_timeout_seconds"] = http_timeout_override
        if concurrency_override is not None:
            data["max_concurrent_downloads"] = concurrency_override

        return cls(**data)
