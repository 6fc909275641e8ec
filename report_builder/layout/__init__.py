"""Column layout of a report grid."""

from .manager import ColumnLayout, DEFAULT_MIN_SLOTS

__all__ = [
    "ColumnLayout",
    "DEFAULT_MIN_SLOTS",
]
