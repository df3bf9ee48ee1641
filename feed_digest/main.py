"""Command-line entrypoint for the feed digest engine.

Builds one digest and prints it as JSON:
1) load .env and configure logging
2) wire the registry, shared cache and engine settings
3) build (or fetch from cache) the digest for the requested variant
"""

from __future__ import annotations

import argparse
import json
import os
import sys

from dotenv import load_dotenv

from .cache import CacheError
from .service import DEFAULT_LANG, VALID_VARIANTS, create_digest_service
from .utils.config_loader import ConfigError
from .utils.logging import configure_logging, get_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aggregate RSS/Atom feeds into a ranked, classified digest")
    parser.add_argument(
        "--variant",
        default="full",
        help=f"Audience variant ({', '.join(VALID_VARIANTS)}); unknown values fall back to 'full'",
    )
    parser.add_argument("--lang", default=DEFAULT_LANG, help="Language filter for feeds with a declared language")
    parser.add_argument(
        "--registry",
        default=None,
        help="Path to an alternative feed registry file (YAML)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore the shared cache service and fetch every feed live",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation (0 for compact output)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    # stdout carries the digest JSON
    configure_logging(level=args.log_level, output=os.environ.get("LOG_OUTPUT") or "stderr")
    logger = get_logger("fd.cli")

    try:
        service = create_digest_service(registry_path=args.registry, use_cache=not args.no_cache)
    except ConfigError as exc:
        logger.error("Invalid feed registry: %s", exc)
        return 1
    except CacheError as exc:
        logger.error("Shared cache misconfigured: %s; use --no-cache to run without it", exc)
        return 1

    digest = service.get_digest(args.variant, args.lang)
    json.dump(digest.to_dict(), sys.stdout, ensure_ascii=False, indent=args.indent or None)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
