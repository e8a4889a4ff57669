from __future__ import annotations
import logging

# Third-party loggers that are too chatty at DEBUG
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "multipart")


def setup_console_logging(level: int = logging.INFO) -> None:
    """
    Call once at process start (app or CLI). Logs go to stderr.
    """
    root = logging.getLogger()
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        # already configured (uvicorn, pytest)
        root.setLevel(level)
        return

    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
