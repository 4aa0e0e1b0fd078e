"""
Structured logging configuration using structlog.
Pretty console output for interactive use, JSON lines on disk for audits.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def setup_logging(
    log_dir: Optional[Path] = None,
    json_logs: bool = True,
    verbose: bool = False,
) -> None:
    """
    Configure structlog on top of stdlib logging.

    Parameters
    ----------
    log_dir : Path, optional
        When given and ``json_logs`` is set, events are also appended to
        ``log_dir/callgaps.jsonl``.
    json_logs : bool
        Write the JSON-lines file in addition to console output.
    verbose : bool
        Lower the console threshold from WARNING to DEBUG.
    """
    root = logging.getLogger()
    # setup may run more than once per process (CLI commands, tests)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG)

    # ── Console (stderr, so command output on stdout stays clean) ──
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(),
            ],
        )
    )
    root.addHandler(console)

    # ── JSON lines on disk ──────────────────────────────────────
    if json_logs and log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "callgaps.jsonl", encoding="utf-8")
        fh.setLevel(logging.INFO)
        fh.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_SHARED_PROCESSORS,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root.addHandler(fh)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
