"""
Commit message building.

Example:
    >>> from landfall.core.message import Label, build_change_message
    >>> msg = build_change_message("Import", [Label(name="Origin-RevId", value="abc")])
    >>> str(msg)
    'Import\\n\\nOrigin-RevId: abc\\n'
"""

from landfall.core.message.builder import (
    ORIGIN_LABEL_SEPARATOR,
    build_change_message,
    build_change_message_for,
)
from landfall.core.message.models import ChangeMessage, Label

__all__ = [
    "ChangeMessage",
    "Label",
    "ORIGIN_LABEL_SEPARATOR",
    "build_change_message",
    "build_change_message_for",
]
