"""Application-level exception types for voxintent."""

from __future__ import annotations


class VoxIntentError(Exception):
    """Base exception for voxintent."""


class ConfigurationError(VoxIntentError):
    """Raised when settings fail validation at startup."""


class ProtocolError(VoxIntentError):
    """Raised when an inbound message cannot be understood.

    The message is client-facing and is echoed back in an ``error`` envelope.
    """


class EmptyInputError(ProtocolError):
    """Raised when a final STT event carries no text."""


class ExternalServiceError(VoxIntentError):
    """Raised when the completion service times out or answers badly."""


class ParseError(VoxIntentError):
    """Raised when a completion reply is not a usable tool call."""


class InvalidToolCallError(VoxIntentError):
    """Raised when a known tool call fails parameter checks."""


class DispatchError(VoxIntentError):
    """Raised by tool handlers that cannot produce a result."""
