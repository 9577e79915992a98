"""structlog setup for revtree diagnostics.

Library code logs through get_logger(), which is always backed by a stdlib
logger under the "revtree" namespace. Nothing is printed unless the host
application configures logging; the CLI does so with configure_logging():
- Human (default): colored console output to stderr
- JSON (--log-json): structured JSON lines to stderr
- TUI: records go to Textual's log instead of the terminal it is drawing on
"""

from __future__ import annotations

import logging
import sys

import structlog

LOGGER_NAMESPACE = "revtree"


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger that emits through logging.getLogger(name)."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def _make_handler(*, tui: bool) -> logging.Handler:
    if tui:
        from textual.logging import TextualHandler

        return TextualHandler()
    return logging.StreamHandler(sys.stderr)


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    tui: bool = False,
) -> None:
    """Configure structlog processors and route revtree diagnostics.

    Args:
        verbose: Enable DEBUG-level output (trace events). When False, only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
        tui: Send records to Textual's log (devtools console) instead of stderr.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=not tui and sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = _make_handler(tui=tui)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAMESPACE).setLevel(level)
