from .structured import JSONFormatter, setup_structured_logging

__all__ = [
    "JSONFormatter",
    "setup_structured_logging",
]
