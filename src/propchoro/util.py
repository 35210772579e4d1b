"""Run-level helpers: logging, output directories, the layer summary file."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Mapping

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
_QUIET_LOGGERS = ("matplotlib", "PIL", "pyogrio", "fiona")
_DIGEST_CHUNK = 1 << 20


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Send `propchoro.*` records to the console and, when given, a run log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # font discovery, PNG encoding and GDAL drivers log below WARNING constantly
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def ensure_output_dirs(*files: Path | None) -> None:
    """Create the parent directory of every configured output file."""
    for path in files:
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)


def _jsonable(value: Any) -> Any:
    # numpy scalars and paths can reach the summary through the break methods
    if hasattr(value, "item"):
        return value.item()
    if isinstance(value, Path):
        return value.as_posix()
    raise TypeError(f"Cannot serialize {type(value).__name__} in the layer summary")


def write_summary(path: Path, summary: Mapping[str, Any]) -> None:
    """Write the layer summary as stable, sorted JSON."""
    text = json.dumps(summary, indent=2, sort_keys=True, ensure_ascii=False, default=_jsonable)
    path.write_text(text + "\n", encoding="utf-8")


def file_digest(path: Path, algorithm: str = "sha256") -> str:
    """Hex digest of a rendered file, so reruns can be compared."""
    digest = hashlib.new(algorithm)
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_DIGEST_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()
