from __future__ import annotations

from .logging import configure_logging
from .storage import get_http_cache_path, get_output_dir

__all__ = [
    "configure_logging",
    "get_http_cache_path",
    "get_output_dir",
]
