from __future__ import annotations

import logging


def setup_logging(level: int | str = "INFO") -> None:
    """Root logging for the CLIs and the service, one format everywhere."""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        # Already configured (the service lifespan and the CLIs both land here); only adjust the level.
        root_logger.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
