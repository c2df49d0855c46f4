"""Exceptions raised inside a tool call before it is rendered as a result."""

from enum import Enum
from typing import Optional


class AuthErrorKind(str, Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    LOGIN_REJECTED = "login_rejected"
    TOKENS_UNAVAILABLE = "tokens_unavailable"


class AuthError(Exception):
    """Raised when a catalogue session cannot be established."""

    def __init__(self, kind: AuthErrorKind, message: str, http_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.http_code = http_code


class DispatchErrorKind(str, Enum):
    UNKNOWN_TOOL = "unknown_tool"


class DispatchError(Exception):
    """Raised when a tool call cannot be routed to a handler."""

    def __init__(self, kind: DispatchErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
