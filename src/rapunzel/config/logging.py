"""structlog configuration for the helper.

All output goes to stderr: stdout carries native messaging frames and a
single stray byte there desynchronizes the browser.

Records emitted while a request is being handled carry its ``action`` and,
when present, its ``path``. The dispatcher binds them with
:func:`request_context`; ``merge_contextvars`` copies them into every
record, including those from plain ``logging`` loggers.

Output modes:
- Human (default): console lines, colored only when stderr is a terminal
- JSON (--log-json): one object per line, tracebacks as structured dicts
"""

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator

import structlog

APP_LOGGER = "rapunzel"


@contextlib.contextmanager
def request_context(action: str, path: str | None = None) -> Iterator[None]:
    """Bind request fields to every log record emitted inside the block.

    Fields bound by an earlier request never leak into the next one.
    """
    fields: dict[str, str] = {"action": action}
    if path is not None:
        fields["path"] = path
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _render_chain(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    # Browsers spawn the helper without a terminal.
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib records to one stderr handler.

    Args:
        verbose: DEBUG for the helper's own loggers. Otherwise WARNING+.
        log_json: JSON lines instead of console lines.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_render_chain(log_json),
            ],
        )
    )

    # Third-party loggers stay at WARNING even in verbose mode.
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
