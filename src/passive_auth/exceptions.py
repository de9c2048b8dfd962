"""
Custom exceptions and reason codes for passive authentication.

Every exception carries the ``ReasonCode`` it is reported under, so the
orchestrator can turn a terminal component failure into an itemized reason
without inspecting exception types one by one.
"""

from __future__ import annotations

from enum import Enum


class ReasonCode(str, Enum):
    """Reason codes reported on a rejected document."""

    MALFORMED_MRZ = "MALFORMED_MRZ"
    MRZ_CHECK_DIGIT_MISMATCH = "MRZ_CHECK_DIGIT_MISMATCH"
    TRUNCATED_CONTENT = "TRUNCATED_CONTENT"
    UNEXPECTED_TAG = "UNEXPECTED_TAG"
    LENGTH_OVERFLOW = "LENGTH_OVERFLOW"
    HASH_ALGORITHM_MISMATCH = "HASH_ALGORITHM_MISMATCH"
    TAMPERED = "TAMPERED"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    KEY_SHAPE_MISMATCH = "KEY_SHAPE_MISMATCH"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    INVALID_INPUT = "INVALID_INPUT"
    CONFIGURATION = "CONFIGURATION"


class PassiveAuthException(Exception):
    """Base exception class for passive authentication."""

    def __init__(self, message: str, reason_code: ReasonCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason_code = reason_code if reason_code is not None else ReasonCode.INVALID_INPUT


class InvalidInputError(PassiveAuthException):
    """Raised when a caller hands over a record of the wrong shape."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ReasonCode.INVALID_INPUT)


class ConfigurationError(PassiveAuthException):
    """Raised for configuration-related errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ReasonCode.CONFIGURATION)


class MalformedMRZError(PassiveAuthException):
    """Raised when the MRZ line count, line length or alphabet is wrong."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ReasonCode.MALFORMED_MRZ)


class ContentDecodeError(PassiveAuthException):
    """Base class for signed content decoding failures."""

    def __init__(self, message: str, reason_code: ReasonCode, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (offset {offset})"
        super().__init__(message, reason_code)
        self.offset = offset


class TruncatedContentError(ContentDecodeError):
    """The buffer ends before a header or a declared value is complete."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message, ReasonCode.TRUNCATED_CONTENT, offset)


class UnexpectedTagError(ContentDecodeError):
    """A tag other than the one the grammar requires was found."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message, ReasonCode.UNEXPECTED_TAG, offset)


class LengthOverflowError(ContentDecodeError):
    """A declared length overruns its enclosing field or is badly encoded."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message, ReasonCode.LENGTH_OVERFLOW, offset)


class SignatureVerificationError(PassiveAuthException):
    """Base class for signature verification set-up failures."""


class UnsupportedAlgorithmError(SignatureVerificationError):
    """Raised when an algorithm identifier is not recognized."""

    def __init__(self, algorithm: str) -> None:
        super().__init__(f"Unsupported algorithm: {algorithm}", ReasonCode.UNSUPPORTED_ALGORITHM)
        self.algorithm = algorithm


class KeyShapeMismatchError(SignatureVerificationError):
    """Raised when the key variant does not fit the algorithm family."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ReasonCode.KEY_SHAPE_MISMATCH)


class SignatureInvalidError(SignatureVerificationError):
    """Raised when well-formed inputs fail the cryptographic check."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ReasonCode.SIGNATURE_INVALID)
