"""Error taxonomy, classification and structured error logging."""

from .classifier import classify, is_retryable
from .internal import ClassifiedError, ErrorKind, InternalError, TransportError

__all__ = [
    "ClassifiedError",
    "ErrorKind",
    "InternalError",
    "TransportError",
    "classify",
    "is_retryable",
]
