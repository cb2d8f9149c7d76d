"""
Download release archives and read the package manifest inside them.
"""
from __future__ import annotations

import hashlib
import io
import json
import logging
import zipfile
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from listing_builder.core.settings import PACKAGE_MANIFEST_FILENAME
from listing_builder.domain.exceptions import ArchiveError
from listing_builder.domain.models import PackageManifest

logger = logging.getLogger(__name__)


def hash_archive(archive_bytes: bytes) -> str:
    """Hex SHA-256 digest of the complete archive."""
    return hashlib.sha256(archive_bytes).hexdigest()


def extract_manifest(
    archive_bytes: bytes,
    file_name: str = PACKAGE_MANIFEST_FILENAME,
) -> Optional[Dict[str, Any]]:
    """
    Read a manifest file out of a zip archive.

    Only an entry whose name matches ``file_name`` exactly is considered, so a
    manifest nested in a subfolder does not count.

    Returns:
        The decoded JSON document, or None when the archive has no such entry.

    Raises:
        ArchiveError: If the archive is corrupt or the manifest is not JSON.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(archive_bytes), "r") as zip_ref:
            if file_name not in zip_ref.namelist():
                return None
            raw = zip_ref.read(file_name)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError) as e:
        raise ArchiveError(f"Corrupt archive: {e}") from e

    try:
        return json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArchiveError(f"{file_name} is not valid JSON: {e}") from e


def manifest_from_archive(
    archive_bytes: bytes,
    url: str,
    file_name: str = PACKAGE_MANIFEST_FILENAME,
) -> Optional[PackageManifest]:
    """
    Build a manifest from archive bytes, pointing it at ``url`` and
    recording the hash of the whole archive.
    """
    raw = extract_manifest(archive_bytes, file_name)
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ArchiveError(f"{file_name} in {url} is not a JSON object")

    try:
        manifest = PackageManifest.model_validate(raw)
    except ValidationError as e:
        raise ArchiveError(f"Invalid {file_name} in {url}: {e}") from e

    return manifest.with_archive(url, hash_archive(archive_bytes))


class ArchiveManifestReader:
    """Downloads release archives and returns the manifest they contain."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        file_name: str = PACKAGE_MANIFEST_FILENAME,
    ):
        self.http = http
        self.file_name = file_name

    async def download(self, url: str) -> bytes:
        logger.debug(f"Downloading archive from {url}")
        try:
            response = await self.http.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ArchiveError(
                f"Could not find valid zip file at {url} (HTTP {e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise ArchiveError(f"Could not download {url}: {e}") from e
        return response.content

    async def read(self, url: str) -> Optional[PackageManifest]:
        """
        Download ``url`` and return its manifest, or None if it has none.

        Raises:
            ArchiveError: If the archive cannot be downloaded or read.
        """
        archive_bytes = await self.download(url)
        return manifest_from_archive(archive_bytes, url, self.file_name)
