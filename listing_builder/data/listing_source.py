from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from listing_builder.core.settings import BuildSettings
from listing_builder.domain.exceptions import ListingSourceNotFoundError
from listing_builder.domain.models import Author, ListingSource, PackageManifest

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yml", ".yaml")


def _read_document(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8-sig")
    if path.suffix.lower() in YAML_SUFFIXES:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError(f"{path} does not contain an object")
    return raw


def _find_listing_source(settings: BuildSettings) -> Path | None:
    """
    Locate the listing source.

    The configured filename wins; a YAML file with the same stem is accepted
    as an alternative.
    """
    path = settings.listing_source_path
    if path.is_file():
        return path
    for suffix in YAML_SUFFIXES:
        candidate = path.with_suffix(suffix)
        if candidate.is_file():
            return candidate
    return None


def make_listing_source_from_manifest(manifest: PackageManifest, settings: BuildSettings) -> ListingSource:
    """
    Build a listing source for a repository that only ships one package.
    """
    author = manifest.author or Author()
    display_name = manifest.display_name or manifest.name
    repositories = [settings.github_repository] if settings.github_repository else []
    return ListingSource(
        name=f"{display_name} Listing",
        id=f"{manifest.name}.listing",
        author=Author(
            name=author.name or "",
            url=author.url or "",
            email=author.email or "",
        ),
        url=settings.listing_url,
        description=f"Listing for {display_name}",
        banner_url="banner.png",
        github_repos=repositories,
    )


def ensure_listing_id(source: ListingSource, settings: BuildSettings) -> ListingSource:
    """Return ``source`` with an id, generating one from the repository if blank."""
    if source.id and source.id.strip():
        return source

    generated = f"io.github.{settings.repo_owner}.{settings.repo_name}"
    logger.warning(
        f"Your listing needs an id. We've autogenerated one for you: {generated}. "
        f"If you want to change it, edit {settings.listing_source_path}."
    )
    return source.model_copy(update={"id": generated})


def load_listing_source(settings: BuildSettings) -> ListingSource:
    """
    Load the listing source, falling back to the local package manifest.

    Raises:
        ListingSourceNotFoundError: If neither file exists or can be read.
    """
    source_path = _find_listing_source(settings)
    if source_path is not None:
        logger.info(f"Loading listing source from {source_path}")
        try:
            source = ListingSource.model_validate(_read_document(source_path))
        except (ValueError, yaml.YAMLError, ValidationError) as e:
            raise ListingSourceNotFoundError(f"Could not read listing source {source_path}: {e}") from e
        return ensure_listing_id(source, settings)

    manifest_path = settings.fallback_manifest_path
    if not manifest_path.is_file():
        raise ListingSourceNotFoundError(
            f"Could not find Listing Source at {settings.listing_source_path} or Package Manifest "
            f"at {manifest_path}, you need at least one of them."
        )

    logger.info(f"No listing source found, creating one from {manifest_path}")
    try:
        manifest = PackageManifest.model_validate(_read_document(manifest_path))
    except (ValueError, ValidationError) as e:
        raise ListingSourceNotFoundError(f"Could not create listing source from manifest {manifest_path}: {e}") from e

    return ensure_listing_id(make_listing_source_from_manifest(manifest, settings), settings)
