from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from factura_extractor.batch import process_batch
from factura_extractor.config import Settings, load_dotenv
from factura_extractor.extraction_service import extract_pages, split_pages
from factura_extractor.logger import configure_logging
from factura_extractor.metrics import JsonlMetricsSink, MetricsCollector
from factura_extractor.review_queue import decide_review_status
from schemas.invoice_schema import ProcessingResult


def _extract_file(path: Path) -> ProcessingResult:
    # Reading is the caller's job; the engine only ever sees text.
    raw = path.read_text(encoding="utf-8", errors="replace")
    return extract_pages(split_pages(raw), document_id=path.name)


def run_extract(paths: list[Path], settings: Settings, *, workers: int | None = None, metrics_path: str | None = None) -> int:
    logger = logging.getLogger(__name__)
    metrics = MetricsCollector()
    max_workers = workers or settings.batch_max_workers
    missing = [p for p in paths if not p.is_file()]
    for path in missing:
        logger.error("Input file not found: %s", path)
    readable = [p for p in paths if p.is_file()]

    results = process_batch(
        readable,
        extract=_extract_file,
        max_workers=max_workers,
        metrics=metrics,
        low_confidence_threshold=settings.ocr_fallback_threshold,
    )

    for path, result in zip(readable, results):
        decision = decide_review_status(
            result,
            excellent_threshold=settings.review_excellent_threshold,
            good_threshold=settings.review_good_threshold,
            ocr_threshold=settings.ocr_fallback_threshold,
        )
        payload = {"file": str(path), **result.to_payload(), "band": decision.band, "review_status": decision.status}
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, allow_nan=False) + "\n")

    snapshot = metrics.snapshot()
    sink = JsonlMetricsSink(metrics_path or settings.metrics_path)
    for key, value in snapshot.items():
        sink.emit({"metric": key, "value": value, "stage": "extract"})
    logger.info("Extraction summary: %s", snapshot)
    return 1 if missing else 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Factura Extractor")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract invoice fields from text files")
    extract.add_argument("paths", nargs="+", type=Path)
    extract.add_argument("--workers", type=int, default=None)
    extract.add_argument("--metrics-path", default=None)

    subparsers.add_parser("serve", help="Run the HTTP API")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if args.command == "extract":
        if args.workers is not None and args.workers < 1:
            parser.error("--workers must be >= 1")
        return run_extract(args.paths, settings, workers=args.workers, metrics_path=args.metrics_path)
    if args.command == "serve":
        from factura_extractor.api_main import main as serve

        serve()
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
