"""Command-line interface entry point for the featuresync pipeline."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable

from dotenv import load_dotenv

from featuresync.config import Settings, load_config, settings_from_config
from featuresync.errors import BlockedByProtectionError, FeatureSyncError
from featuresync.extractors.region import extract_script_text, locate_region
from featuresync.fetch import acquire_source
from featuresync.logging_config import get_logger
from featuresync.materializer import materialize
from featuresync.storage.writer import write_document
from featuresync.transform import TransformResult, transform

LOGGER = get_logger(__name__)

BLOCKED_GUIDANCE = (
    "The website is protected against automated requests and cannot be fetched directly.\n"
    "  Workaround:\n"
    "  1. Visit {url} in your browser\n"
    "  2. Right-click and \"Save As\" to save the HTML file\n"
    "  3. Run again with the saved file: featuresync path/to/saved.html"
)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the application."""

    parser = argparse.ArgumentParser(
        description="Convert the vendor buttons & functions page into features.json."
    )
    parser.add_argument(
        "local_html",
        nargs="?",
        default=None,
        help="Read a locally saved copy of the page instead of fetching it.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="YAML settings file (default: featuresync.yml when present).",
    )
    parser.add_argument(
        "--output",
        dest="output_path",
        default=None,
        help="Write the snapshot here instead of the configured path.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def _resolve_settings(args: argparse.Namespace) -> Settings:
    settings = settings_from_config(load_config(args.config_path))
    if args.output_path:
        settings = replace(settings, output_path=Path(args.output_path))
    return settings


def run(args: argparse.Namespace, session: Any | None = None) -> TransformResult:
    """Run the pipeline once and return the transformed result."""

    settings = _resolve_settings(args)
    markup = acquire_source(args.local_html, settings, session=session)

    LOGGER.info("Extracting script content")
    region = locate_region(markup)
    script_text = extract_script_text(region)

    LOGGER.info("Processing embedded data")
    data = materialize(script_text)
    result = transform(data)

    write_document(result.document, settings.output_path)
    _log_summary(result, settings.output_path)
    return result


def _log_summary(result: TransformResult, output_path: Path) -> None:
    LOGGER.info(
        "Statistics: %s categories, %s total features, %s car model/year combinations",
        result.category_count,
        result.feature_count,
        result.year_model_count,
    )
    if result.partial:
        LOGGER.info("Created %s with yearModels only; conversion complete (partial data)", output_path)
    else:
        LOGGER.info("Successfully converted web data to %s", output_path)


def main(argv: Iterable[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    try:
        run(args)
    except BlockedByProtectionError as exc:
        LOGGER.error("Error fetching web content: %s", exc)
        LOGGER.error(BLOCKED_GUIDANCE.format(url=exc.source or "the page"))
        raise SystemExit(1) from exc
    except FeatureSyncError as exc:
        LOGGER.error("Error fetching or parsing web content: %s", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:  # pragma: no cover - interactive safety
        LOGGER.info("Interrupted by user")
        raise SystemExit(1)
    return 0


if __name__ == "__main__":
    main()
