"""Logging setup for the web app and CLI."""

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_HANDLER_ATTR = "_is_authvault_handler"


def configure_logging(level="INFO") -> logging.Logger:
    """Attach one stream handler to the root logger, once, and set *level*."""
    root = logging.getLogger()
    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            break
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_ATTR, True)
        root.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    return root


def mask_secret(secret: str) -> str:
    """Show only the first 4 characters of a secret in log output."""
    if not secret:
        return ""
    return secret[:4] + "..."
