"""
Observability helpers: logging configuration, correlation ids, structured log helpers.
"""

from retrieval_core.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from retrieval_core.observability.logger import configure_logging
from retrieval_core.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)

__all__ = [
    "configure_logging",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "log_with_context",
    "log_exception_with_context",
    "safe_log_value",
]
