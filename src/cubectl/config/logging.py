"""structlog configuration for cubectl.

Everything goes to stderr so stdout stays parseable:
- Human (default): structlog console renderer, colored on a TTY
- JSON (--log-json): one JSON object per line, tracebacks as dicts

The executor binds ``operation`` and ``pov`` as context variables around
each engine call, so records that backends emit through stdlib
``logging`` carry the POV they were produced for.  POVs, members and
calculation status values are rendered as text before either renderer
sees them.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from cubectl.domain.members import Member
from cubectl.domain.pov import POV
from cubectl.domain.types import CalcStatus

# Libraries that log chatter at DEBUG/INFO; kept at WARNING even with --verbose.
QUIET_LOGGERS = ("sqlalchemy", "pluggy")


def render_cube_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace POV, member and status values with their text forms."""
    for key, value in event_dict.items():
        if isinstance(value, POV | Member):
            event_dict[key] = str(value)
        elif isinstance(value, CalcStatus):
            event_dict[key] = value.labels()
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and route stdlib logging through them.

    Args:
        verbose: DEBUG for the ``cubectl`` logger, which turns on the
            per-POV ``pov.execute``/``pov.skip`` events and the
            ``subcube.complete`` summary; WARNING otherwise.
        log_json: Use the JSON renderer instead of the console renderer.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        render_cube_values,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.UnicodeDecoder(),
    ]

    final: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        final += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        final.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared_processors, processors=final)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("cubectl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
