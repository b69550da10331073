from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for this repo.

    Notes:
    - stdlib logging only; uvicorn already installs handlers.
    - This mainly sets the level for the `assethub.*` logger tree.
    - Set `ASSETHUB_LOG_LEVEL=DEBUG` (or INFO/WARNING/ERROR) to control verbosity.
    """

    normalized = level.upper()
    logging.getLogger("assethub").setLevel(normalized)
    # Child loggers under assethub.* inherit this level.
    logging.getLogger("assethub").propagate = True
