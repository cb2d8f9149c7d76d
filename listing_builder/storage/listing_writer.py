from __future__ import annotations

import logging
import shutil
from pathlib import Path

import aiofiles

from listing_builder.core.settings import LISTING_PUBLISH_FILENAME
from listing_builder.domain.models import RepositoryListing

logger = logging.getLogger(__name__)


def ensure_clean_directory(directory: Path) -> None:
    """Delete and recreate ``directory``."""
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True, exist_ok=True)


async def save_listing(listing: RepositoryListing, output_directory: Path) -> Path:
    """
    Write the listing as indented JSON, omitting null fields.

    The document is written to a temporary file first and then moved into
    place, so an interrupted run never leaves a truncated index behind.
    """
    output_directory.mkdir(parents=True, exist_ok=True)
    save_path = output_directory / LISTING_PUBLISH_FILENAME
    tmp_path = output_directory / f"{LISTING_PUBLISH_FILENAME}.tmp"

    async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
        await f.write(listing.to_json() + "\n")
    tmp_path.replace(save_path)

    logger.info(f"Saved Listing to {save_path}.")
    return save_path
