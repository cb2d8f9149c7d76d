from typing import Any, Optional, Tuple

from pydantic_extra_types.semantic_version import SemanticVersion

from listing_builder.domain.models import PackageManifest

AVATARS_PACKAGE_ID = "com.vrchat.avatars"
WORLDS_PACKAGE_ID = "com.vrchat.worlds"


def strip_nulls(value: Any) -> Any:
    """
    Recursively remove keys with value None from dictionaries.

    Lists are preserved, but their elements are also cleaned.
    """
    if isinstance(value, dict):
        return {k: strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_nulls(v) for v in value]
    return value


def parse_version(value: Any) -> Optional[SemanticVersion]:
    """
    Parse a semantic version string, returning None when it is not valid.
    """
    if not isinstance(value, str):
        return None
    try:
        return SemanticVersion.parse(value)
    except ValueError:
        return None


def is_prerelease(version: SemanticVersion) -> bool:
    return version.prerelease is not None


def version_sort_key(value: str) -> Tuple:
    """
    Sort key ordering valid semantic versions by precedence.

    Unparseable versions sort after every valid one, by plain string order.
    The raw string breaks ties between versions that differ only in build
    metadata.
    """
    parsed = parse_version(value)
    if parsed is None:
        return (1, value)
    return (0, parsed, value)


def package_display_name(manifest: PackageManifest) -> str:
    if not manifest.display_name:
        return manifest.name
    return f"{manifest.name} ({manifest.display_name})"


def package_type(manifest: PackageManifest) -> str:
    """
    Classify a package for the website by the SDK it depends on.
    """
    dependencies = manifest.dependencies
    if AVATARS_PACKAGE_ID in dependencies:
        return "Avatar"
    if WORLDS_PACKAGE_ID in dependencies:
        return "World"
    return "Any"
