from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _parse_int(name: str, default: int, *, minimum: int | None = None, maximum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{name} must be <= {maximum}")
    return value


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    batch_max_workers: int = 4
    ocr_fallback_threshold: int = 50
    review_excellent_threshold: int = 80
    review_good_threshold: int = 60
    metrics_path: str = "logs/metrics.jsonl"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
        if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")

        excellent = _parse_int("REVIEW_EXCELLENT_THRESHOLD", 80, minimum=0, maximum=100)
        good = _parse_int("REVIEW_GOOD_THRESHOLD", 60, minimum=0, maximum=100)
        if good > excellent:
            raise ValueError("REVIEW_GOOD_THRESHOLD must not exceed REVIEW_EXCELLENT_THRESHOLD")

        return cls(
            log_level=log_level,
            batch_max_workers=_parse_int("BATCH_MAX_WORKERS", 4, minimum=1),
            ocr_fallback_threshold=_parse_int("OCR_FALLBACK_THRESHOLD", 50, minimum=0, maximum=100),
            review_excellent_threshold=excellent,
            review_good_threshold=good,
            metrics_path=os.getenv("METRICS_PATH", "logs/metrics.jsonl"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=_parse_int("API_PORT", 8000, minimum=1, maximum=65535),
        )


def load_dotenv(path: str | Path = ".env") -> None:
    env_path = Path(path)
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)
