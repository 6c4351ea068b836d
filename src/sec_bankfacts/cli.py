"""Command-line entry point: ``sec-bankfacts`` / ``python -m sec_bankfacts``.

Exit codes:
    0  run completed and at least one record was written (possibly partial)
    1  SEC_USER_AGENT missing, no identities loaded, no records produced,
       bulk data missing with --skip-download, or an unhandled error
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from sec_bankfacts.config import Settings, get_config
from sec_bankfacts.datasets import load_identity_list, write_audit, write_records
from sec_bankfacts.errors import BulkArchiveError, ConfigurationError
from sec_bankfacts.fact_store import RemoteFactStore, prepare_bulk_store
from sec_bankfacts.identity import resolve_identities
from sec_bankfacts.pipeline import run_pipeline
from sec_bankfacts.sec_client import BULK_COMPANY_FACTS_URL, COMPANY_FACTS_URL, SECClient
from sec_bankfacts.venues import VenueDirectory

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sec-bankfacts",
        description=(
            "Build bank fundamentals (balances, TTM flows, ratios) from SEC EDGAR "
            "XBRL companyfacts. Requires SEC_USER_AGENT, e.g. "
            '"Company Name admin@example.com".'
        ),
    )
    parser.add_argument(
        "--bulk",
        action="store_true",
        help="Download the companyfacts.zip bulk archive instead of one API call per bank.",
    )
    parser.add_argument(
        "--skip-download",
        action="store_true",
        help="Use an already downloaded bulk archive from the cache directory (implies --bulk).",
    )
    parser.add_argument(
        "--identities",
        type=Path,
        default=None,
        help="Identity list JSON (default: IDENTITY_LIST setting, public/data/bank-list.json).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for banks.json and sec-raw-data.json (default: OUTPUT_DIR setting).",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Concurrent entity workers (default: MAX_WORKERS setting, 4).",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Stop waiting after SECONDS, keeping completed entities.",
    )
    parser.add_argument(
        "--no-venue-lookup",
        action="store_true",
        help="Do not fill missing exchanges from SEC company_tickers_exchange.json.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    updates = {}
    if args.identities is not None:
        updates["identity_list"] = args.identities
    if args.output_dir is not None:
        updates["output_dir"] = args.output_dir
    if args.max_workers is not None:
        updates["max_workers"] = args.max_workers
    if args.deadline is not None:
        updates["deadline_seconds"] = args.deadline
    return settings.model_copy(update=updates) if updates else settings


def run(args: argparse.Namespace, settings: Settings) -> int:
    try:
        user_agent = settings.require_user_agent()
    except ConfigurationError as exc:
        log.error("%s", exc)
        return 1

    try:
        rows = load_identity_list(settings.identity_list)
    except (OSError, ValueError) as exc:
        log.error("Cannot load identity list %s: %s", settings.identity_list, exc)
        return 1
    if not rows:
        log.error("No identities in %s", settings.identity_list)
        return 1

    client = SECClient(
        user_agent,
        min_interval=settings.request_interval,
        timeout=settings.request_timeout,
        retries=settings.request_retries,
    )

    venues = None if args.no_venue_lookup else VenueDirectory.load(client)
    identities = resolve_identities(rows, venues)

    if args.bulk or args.skip_download:
        try:
            source = prepare_bulk_store(settings.cache_dir, client=client, skip_download=args.skip_download)
        except BulkArchiveError as exc:
            log.error("%s", exc)
            return 1
        url = BULK_COMPANY_FACTS_URL
    else:
        source = RemoteFactStore(client)
        url = COMPANY_FACTS_URL

    now = datetime.now(timezone.utc)
    result = run_pipeline(identities, source, now=now, settings=settings)
    result.summary.identities_loaded = len(rows)

    if not result.summary.ok:
        log.error("No records produced; leaving existing datasets untouched")
        return 1

    write_records(result.records, settings.output_dir)
    write_audit(result.audits, settings.output_dir, method=source.method, url=url, generated_at=now)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entrypoint used by console_scripts."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    settings = _apply_overrides(get_config(), args)
    try:
        return run(args, settings)
    except Exception:
        log.exception("Run failed")
        return 1
