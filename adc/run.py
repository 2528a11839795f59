"""
Address Discoverer - CLI Runner

Usage:
  python -m adc.run \
    --input staff.html \
    --surnames data/surnames.txt \
    --out ./out/records.jsonl

  python -m adc.run --input https://example.edu/staff/ --follow-weblinks

Dry run (validate only):
  python -m adc.run --input staff.html --config config/example.yaml --dry-run

Exit codes:
  0 - success
  1 - config error (file missing or invalid YAML)
  2 - input error (input file missing or not fetchable)
  3 - processing error (traversal failure, encoding, output)
"""
from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

import httpx

from discoverer.config import ExtractionSettings, load_settings
from discoverer.dictionary import NameDictionary
from discoverer.errors import ConfigError, TraversalFailure
from discoverer.ops_logger import OpsLogger
from discoverer.pipeline.contact_links import WebLinkFollower
from discoverer.pipeline.extractor import IndividualExtractor
from discoverer.pipeline.fetchers.static import StaticFetcher
from discoverer.progress import OpsProgressConsumer, StatusReporter, print_consumer
from discoverer.schemas import CandidateRecord, ExtractionResult


def is_url(s: str) -> bool:
    return s.startswith("http://") or s.startswith("https://")


def load_dictionary(path: Optional[Path], label: str) -> Optional[NameDictionary]:
    if path is None:
        return None
    if not path.exists() or not path.is_file():
        print(f"Config error: {label} file not found: {path}", file=sys.stderr)
        sys.exit(1)
    return NameDictionary.from_file(path)


def read_input(source: str, fetcher: Optional[StaticFetcher]) -> bytes | str:
    """Markup from a local file (raw bytes) or a URL (decoded by httpx)."""
    if is_url(source) and fetcher is not None:
        try:
            result = fetcher.fetch(source)
        except httpx.HTTPError as e:
            print(f"Input error: cannot fetch {source}: {e}", file=sys.stderr)
            sys.exit(2)
        if result.blocked_by_robots:
            print(f"Input error: robots.txt disallows {source}", file=sys.stderr)
            sys.exit(2)
        if not result.ok:
            print(f"Input error: {source} returned status={result.status_code} mime={result.mime}", file=sys.stderr)
            sys.exit(2)
        return result.html or ""
    path = Path(source)
    if not path.exists() or not path.is_file():
        print(f"Input error: file not found: {path}", file=sys.stderr)
        sys.exit(2)
    return path.read_bytes()


def write_results(results: List[ExtractionResult], out_path: Optional[Path]) -> None:
    lines = [json.dumps(r.to_export_dict(), ensure_ascii=False) for r in results]
    if out_path is None:
        for line in lines:
            print(line)
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="adc.run", description="Extract personal contact records from an HTML page")
    parser.add_argument("--input", "-i", required=True, help="HTML file or http(s) URL")
    parser.add_argument("--config", "-c", default=None, help="Path to YAML config file")
    parser.add_argument("--out", "-o", default=None, help="Write JSONL records here (default: stdout)")
    parser.add_argument("--surnames", default=None, help="Surname dictionary file (one word per line)")
    parser.add_argument("--first-names", default=None, help="First-name dictionary file (one word per line)")
    parser.add_argument("--encoding", default=None, help="Encoding of the input file (default: utf-8)")
    parser.add_argument("--base-url", default=None, help="Base URL for resolving relative links")
    parser.add_argument("--mode", choices=["auto", "structured", "unstructured"], default=None, help="Extraction mode (default: auto)")
    parser.add_argument("--follow-weblinks", action="store_true", help="Fetch linked detail pages to find emails")
    parser.add_argument("--include-unparsable", action="store_true", help="Also output placeholders for unparsable regions")
    parser.add_argument("--ops-log", default=None, help="Path to ops JSONL log file")
    parser.add_argument("--ops-stdout", action="store_true", help="Also mirror ops JSON to stdout")
    parser.add_argument("--dry-run", action="store_true", help="Validate inputs/config and exit")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1
    overrides = {}
    if args.encoding:
        overrides["encoding"] = args.encoding
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.mode:
        overrides["mode"] = args.mode
    if args.follow_weblinks:
        overrides["follow_weblinks"] = True
    if args.surnames:
        overrides["surnames_path"] = Path(args.surnames)
    if args.first_names:
        overrides["first_names_path"] = Path(args.first_names)
    try:
        settings = ExtractionSettings(**{**settings.model_dump(), **overrides})
    except ValueError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    surnames = load_dictionary(settings.surnames_path, "surnames")
    first_names = load_dictionary(settings.first_names_path, "first names")
    if not is_url(args.input) and not Path(args.input).is_file():
        print(f"Input error: file not found: {args.input}", file=sys.stderr)
        return 2

    if args.dry_run:
        print("✅ Dry-run validation passed")
        print(f" - Input: {args.input}")
        print(f" - Config: {args.config or '(defaults)'}")
        print(f" - Mode: {settings.mode.value}, encoding: {settings.encoding}")
        print(f" - Surnames: {len(surnames) if surnames else 0}, first names: {len(first_names) if first_names else 0}")
        return 0

    diag = sys.stderr if args.out is None else sys.stdout
    consumers = [print_consumer]
    ops_logger = None
    if args.ops_log or settings.ops_json or args.ops_stdout:
        ops_log_path = Path(args.ops_log) if args.ops_log else Path("ops.log")
        ops_logger = OpsLogger(ops_log_path, also_stdout=bool(args.ops_stdout))
        consumers.append(OpsProgressConsumer(ops_logger, source=args.input))
    reporter = StatusReporter(consumers)

    needs_fetcher = is_url(args.input) or settings.follow_weblinks
    fetcher = (
        StaticFetcher(timeout_s=settings.fetch_timeout_s, respect_robots=settings.respect_robots)
        if needs_fetcher
        else None
    )
    base_url = settings.base_url or (args.input if is_url(args.input) else None)
    started = time.perf_counter()
    try:
        print(f"➡️  Processing: {args.input}", file=diag)
        markup = read_input(args.input, fetcher)
        extractor = IndividualExtractor(
            surnames=surnames,
            first_names=first_names,
            encoding=settings.encoding,
            progress=reporter,
            mode=settings.mode.value,
            base_url=base_url,
            weblink_follower=WebLinkFollower(fetcher) if (settings.follow_weblinks and fetcher) else None,
        )
        try:
            results = extractor.extract_html(markup)
        except TraversalFailure as e:
            print(f"Processing error: {e}", file=sys.stderr)
            return 3
    finally:
        if fetcher is not None:
            fetcher.close()

    records = [r for r in results if isinstance(r, CandidateRecord)]
    output = results if args.include_unparsable else records
    try:
        write_results(output, Path(args.out) if args.out else None)
    except OSError as e:
        print(f"Output error: cannot write {args.out}: {e}", file=sys.stderr)
        return 3

    wall_s = time.perf_counter() - started
    if ops_logger:
        ops_logger.emit({
            "event": "summary",
            "source": args.input,
            "layout": extractor.last_layout.value if extractor.last_layout else None,
            "records": len(records),
            "unparsable": len(results) - len(records),
            "durations": {"wall_s": round(wall_s, 2)},
        })
    print(f"  ✅ Extracted {len(records)} records ({len(results) - len(records)} unparsable)", file=diag)
    if args.out:
        print(f"💾 JSONL: {args.out}", file=diag)
    print("🏁 Done.", file=diag)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
