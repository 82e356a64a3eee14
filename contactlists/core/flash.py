"""
Transient user-facing notifications.
One outcome message at a time: "message" for success, "error" for failure.
"""
from typing import Optional, Tuple

MESSAGE = "message"
ERROR = "error"


class FlashBag:
    """Holds the latest outcome message until it is read."""

    def __init__(self):
        self._kind: Optional[str] = None
        self._text: Optional[str] = None

    def success(self, text: str) -> None:
        self._kind, self._text = MESSAGE, text

    def error(self, text: str) -> None:
        self._kind, self._text = ERROR, text

    def peek(self) -> Optional[Tuple[str, str]]:
        if self._kind is None:
            return None
        return self._kind, self._text

    def pop(self) -> Optional[Tuple[str, str]]:
        """Return (kind, text) and clear the bag."""
        current = self.peek()
        self._kind = self._text = None
        return current
