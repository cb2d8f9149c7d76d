"""
Render the listing website from Jinja2 templates.

The templates receive two variables:
* ``listingInfo`` - listing name, url, description, info link, author and banner.
* ``packages`` - the latest version of every package, projected for display.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from listing_builder.domain.listing_utils import package_type, strip_nulls
from listing_builder.domain.models import ListingSource, PackageManifest

logger = logging.getLogger(__name__)

RENDERED_TEMPLATES = ("index.html", "app.js")


def listing_info(source: ListingSource) -> Dict[str, Any]:
    info_link = source.info_link
    return {
        "Name": source.name,
        "Url": source.url,
        "Description": source.description,
        "InfoLink": {
            "Text": info_link.text if info_link else None,
            "Url": info_link.url if info_link else None,
        },
        "Author": {
            "Name": source.author.name,
            "Url": source.author.url,
            "Email": source.author.email,
        },
        "BannerImage": bool(source.banner_url),
        "BannerImageUrl": source.banner_url,
    }


def package_view(manifest: PackageManifest) -> Dict[str, Any]:
    author = manifest.author
    return {
        "Name": manifest.name,
        "Author": {
            "Name": author.name if author else None,
            "Url": author.url if author else None,
        },
        "ZipUrl": manifest.url,
        "License": manifest.license,
        "LicenseUrl": manifest.licenses_url,
        "Keywords": manifest.keywords,
        "Type": package_type(manifest),
        "Description": manifest.description,
        "DisplayName": manifest.display_name,
        "Version": manifest.version,
        "Dependencies": [
            {"Name": name, "Version": version} for name, version in manifest.dependencies.items()
        ],
    }


def website_context(source: ListingSource, latest: Iterable[PackageManifest]) -> Dict[str, Any]:
    return {
        "listingInfo": listing_info(source),
        "packages": [package_view(m) for m in latest],
    }


def render_website(
    source: ListingSource,
    latest: Iterable[PackageManifest],
    website_source: Path,
    output_directory: Path,
    copy_assets: bool = True,
) -> List[Path]:
    """
    Render the website templates into ``output_directory``.

    When ``copy_assets`` is set, the other files of the website folder are
    copied over too, but never replace a file that already exists in the
    output.

    Returns:
        Paths of the rendered files. Empty if there is no website folder.
    """
    if not website_source.is_dir():
        logger.info(f"No website templates at {website_source}, skipping website.")
        return []

    context = website_context(source, list(latest))
    logger.debug(f"Made listingInfo {strip_nulls(context['listingInfo'])}")

    env = Environment(
        loader=FileSystemLoader(str(website_source)),
        autoescape=select_autoescape(["html"]),
        keep_trailing_newline=True,
    )

    output_directory.mkdir(parents=True, exist_ok=True)
    rendered: List[Path] = []
    for template_name in RENDERED_TEMPLATES:
        if not (website_source / template_name).is_file():
            logger.warning(f"Website template {template_name} not found in {website_source}")
            continue
        target = output_directory / template_name
        target.write_text(env.get_template(template_name).render(**context), encoding="utf-8")
        rendered.append(target)

    if not copy_assets:
        return rendered

    for path in website_source.rglob("*"):
        if not path.is_file():
            continue
        target = output_directory / path.relative_to(website_source)
        if target.exists():
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)

    return rendered
