"""Build a package listing from the sources declared in the listing source."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from listing_builder.core.settings import BuildSettings
from listing_builder.domain.exceptions import FatalBuildError
from listing_builder.services.builder import build_listing

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Aggregate package manifests into a single package listing",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Root directory of the builder checkout (default: current directory)",
    )
    parser.add_argument(
        "-s", "--source-dir",
        type=Path,
        default=None,
        help="Folder containing source.json and the Website templates",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=None,
        help="Directory to save index.json into (default: <root>/docs)",
    )
    parser.add_argument(
        "-p", "--package-name",
        type=str,
        default=None,
        help="Package used to create a listing source when source.json is missing",
    )
    parser.add_argument(
        "-u", "--current-listing-url",
        type=str,
        default=None,
        help="URL of the published index.json, typically https://{owner}.github.io/{repo}/index.json",
    )
    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds",
    )
    parser.add_argument(
        "-j", "--concurrency",
        type=int,
        default=None,
        help="Number of concurrent archive downloads",
    )

    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only warnings and errors)",
    )

    return parser.parse_args(argv)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else (logging.WARNING if quiet else logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    # Request logging from the HTTP stack is only interesting when debugging.
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    settings = BuildSettings.load(
        root_directory=args.root,
        listing_source_folder=args.source_dir,
        output_directory=args.output_dir,
        package_name=args.package_name,
        current_listing_url=args.current_listing_url,
        http_timeout_override=args.timeout,
        concurrency_override=args.concurrency,
    )
    logger.debug(f"Settings: {settings.model_dump(exclude={'github_token'})}")

    try:
        result = asyncio.run(build_listing(settings))
    except FatalBuildError as e:
        logger.critical(e.message)
        return 1

    package_count = len(result.listing.packages)
    version_count = sum(len(p.versions) for p in result.listing.packages.values())
    logger.info(f"Listing {result.listing.id} has {package_count} packages and {version_count} versions.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
