"""
# Logging Manager

Provides `get_logger()`, the single entry point used by every module for logging.

Each caller gets a logger that prepends a short component prefix (`[DATABASE]`,
`[ComponentService]`, ...) to its messages, so a single stream can be grepped per subsystem.
Handlers are attached once to the root `content_cms` logger; child loggers propagate to it.

Usage:

```python
from content_cms.managers.logging_manager import get_logger

logger = get_logger(prefix="[PageService]")
logger.info("Created page %s", page_id)
```
"""

import logging
import sys
import threading
from typing import Any, Dict, MutableMapping, Tuple

from content_cms.config import settings

ROOT_LOGGER_NAME = "content_cms"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False
_configure_lock = threading.Lock()
_adapters: Dict[Tuple[str, str], "PrefixedLoggerAdapter"] = {}


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def __init__(self, logger: logging.Logger, prefix: str = ""):
        super().__init__(logger, {})
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        if self.prefix:
            return f"{self.prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logger() -> None:
    global _configured
    with _configure_lock:
        if _configured:
            return

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(getattr(logging, settings.DEFAULT_LOG_LEVEL, logging.INFO))

        if not root.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)

        _configured = True


def get_logger(name: str = ROOT_LOGGER_NAME, prefix: str = "") -> PrefixedLoggerAdapter:
    """
    Return a cached, prefixed logger.

    Args:
        name (str): Logger name. Names outside the `content_cms` hierarchy are nested under it.
        prefix (str): Text prepended to each message, e.g. `"[DATABASE]"`.

    Returns:
        PrefixedLoggerAdapter: A logger adapter supporting the standard logging API.
    """
    _configure_root_logger()

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    key = (name, prefix)
    adapter = _adapters.get(key)
    if adapter is None:
        adapter = PrefixedLoggerAdapter(logging.getLogger(name), prefix)
        _adapters[key] = adapter
    return adapter
