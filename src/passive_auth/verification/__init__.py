"""MRZ validation and the passive authentication orchestrator."""

from .mrz_validation import MRZValidator, validate_mrz
from .passive_authentication import PassiveAuthenticator, verify_document

__all__ = ["MRZValidator", "PassiveAuthenticator", "validate_mrz", "verify_document"]
