"""
Sovereign — entry point.

Hands off to the click command tree in sovereign.cli.app, which configures
logging once before any subcommand runs.
"""

from __future__ import annotations

import logging

import structlog

_logging_configured = False


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure structlog and standard-library logging for entry points.

    Safe to call more than once; subsequent calls are no-ops.
    """
    global _logging_configured  # noqa: PLW0603
    if _logging_configured:
        return
    _logging_configured = True

    logging.basicConfig(format="%(message)s", level=level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def main() -> None:
    """Entry point for the sovereign command."""
    from sovereign.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
