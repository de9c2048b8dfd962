"""
Passive Authentication package - verification of ICAO 9303 document records.

Checks the MRZ, decodes the signed LDS Security Object, verifies the document
signature and cross-checks the data group hashes.
"""

__version__ = "0.1.0"

from .config import PassiveAuthConfig, load_config
from .exceptions import (
    ConfigurationError,
    InvalidInputError,
    PassiveAuthException,
    ReasonCode,
)
from .logging_config import setup_logging, setup_logging_from_config
from .models.record import DataGroupHash, DocumentRecord, ECPublicKey, RSAPublicKey
from .models.verification import CheckStatus, Verdict, VerificationResult
from .verification.passive_authentication import PassiveAuthenticator, verify_document

__all__ = [
    "CheckStatus",
    "ConfigurationError",
    "DataGroupHash",
    "DocumentRecord",
    "ECPublicKey",
    "InvalidInputError",
    "PassiveAuthConfig",
    "PassiveAuthException",
    "PassiveAuthenticator",
    "RSAPublicKey",
    "ReasonCode",
    "Verdict",
    "VerificationResult",
    "load_config",
    "setup_logging",
    "setup_logging_from_config",
    "verify_document",
]
