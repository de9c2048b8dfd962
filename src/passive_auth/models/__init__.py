"""Input and result models for passive authentication."""

from .mrz_validation import MRZDocumentType, MRZFields, MRZValidationResult
from .record import DataGroupHash, DocumentRecord, ECPublicKey, PublicKey, RSAPublicKey
from .verification import (
    CheckStatus,
    ContentDecodeCheck,
    DataGroupCheck,
    DataGroupStatus,
    MRZCheck,
    Reason,
    SignatureCheck,
    Verdict,
    VerificationComponent,
    VerificationResult,
)

__all__ = [
    "CheckStatus",
    "ContentDecodeCheck",
    "DataGroupCheck",
    "DataGroupHash",
    "DataGroupStatus",
    "DocumentRecord",
    "ECPublicKey",
    "MRZCheck",
    "MRZDocumentType",
    "MRZFields",
    "MRZValidationResult",
    "PublicKey",
    "RSAPublicKey",
    "Reason",
    "SignatureCheck",
    "Verdict",
    "VerificationComponent",
    "VerificationResult",
]
