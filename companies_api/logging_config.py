import logging
from typing import Optional


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """
    Configure the root logger with a console handler.

    Does nothing if the root logger already has handlers, so repeated calls
    (application factory invoked by tests, reloaders) do not duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt=fmt or "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
