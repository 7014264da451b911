"""Logging for the process-email function.

The Lambda runtime ships every stdout line to CloudWatch, so events are
rendered by structlog as one JSON document per line.  Each invocation
starts a fresh context (:func:`bind_invocation`) so that the request id
of the invocation is attached to every event the pipeline logs.
"""

from __future__ import annotations

import logging
import sys

import structlog

# (log key, attribute of the Lambda context object)
_INVOCATION_FIELDS = (
    ("aws_request_id", "aws_request_id"),
    ("function_name", "function_name"),
    ("function_version", "function_version"),
)


def bind_invocation(context: object | None) -> None:
    """Reset the log context and bind the fields of one invocation.

    *context* is the Lambda context object; local replays pass ``None``
    and log without invocation fields.
    """
    structlog.contextvars.clear_contextvars()
    fields = {}
    for key, attribute in _INVOCATION_FIELDS:
        value = getattr(context, attribute, None)
        if isinstance(value, str) and value:
            fields[key] = value
    if fields:
        structlog.contextvars.bind_contextvars(**fields)


def setup_logging(*, json: bool = True, level: str = "INFO") -> None:
    """Route structlog and stdlib records through one stdout handler.

    JSON output (the default) renders tracebacks as structured data so a
    failed invocation stays a single CloudWatch event; ``json=False``
    gives the console renderer for local replays.
    """
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json:
        chain.append(structlog.processors.dict_tracebacks)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    # Replaces the handler the Lambda runtime installs on the root logger.
    root = logging.getLogger()
    root.handlers[:] = [stdout]
    root.setLevel(level.upper())

    # botocore and urllib3 log request internals at DEBUG.
    for noisy in ("botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.INFO))
