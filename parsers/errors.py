from typing import Any

from models import OsvError


class DecodeError(OsvError):
    """Raised when wire data does not have the shape a field expects"""

    def __init__(self, path: str, reason: str, value: Any = None):
        self.path = path
        self.reason = reason
        self.value = value

        msg = reason if not path else f"{path}: {reason}"
        super().__init__(msg)
