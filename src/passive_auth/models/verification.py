"""
Verification result models.

A ``VerificationResult`` holds one outcome per pipeline step (MRZ, signed
content decoding, signature, data group cross-check), the overall verdict
and every reason collected while verifying. All records are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from passive_auth.exceptions import ReasonCode
from passive_auth.models.mrz_validation import MRZValidationResult


class CheckStatus(str, Enum):
    """Status of one verification step."""

    PASSED = "passed"
    FAILED = "failed"
    NOT_RUN = "not_run"


class Verdict(str, Enum):
    """Overall outcome of passive authentication."""

    AUTHENTIC = "authentic"
    NOT_AUTHENTIC = "not_authentic"


class VerificationComponent(str, Enum):
    """Pipeline component a reason originates from."""

    MRZ = "mrz"
    CONTENT_DECODER = "content_decoder"
    SIGNATURE = "signature"
    DATA_GROUPS = "data_groups"


class DataGroupStatus(str, Enum):
    """Cross-check outcome for a single data group."""

    MATCH = "match"
    TAMPERED = "tampered"
    HASH_ALGORITHM_MISMATCH = "hash_algorithm_mismatch"

    @property
    def reason_code(self) -> Optional[ReasonCode]:
        return {
            DataGroupStatus.TAMPERED: ReasonCode.TAMPERED,
            DataGroupStatus.HASH_ALGORITHM_MISMATCH: ReasonCode.HASH_ALGORITHM_MISMATCH,
        }.get(self)


def _hex(value: Optional[bytes]) -> Optional[str]:
    return value.hex() if value is not None else None


@dataclass(frozen=True)
class Reason:
    """One itemized reason a document was rejected."""

    code: ReasonCode
    component: VerificationComponent
    message: str
    data_group: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "code": self.code.value,
            "component": self.component.value,
            "message": self.message,
        }
        if self.data_group is not None:
            result["data_group"] = self.data_group
        return result


@dataclass(frozen=True)
class DataGroupCheck:
    """Declared versus attested hash of one data group."""

    group_number: int
    status: DataGroupStatus
    declared_hash: Optional[bytes] = None
    attested_hash: Optional[bytes] = None
    message: str = ""

    @property
    def matched(self) -> bool:
        return self.status == DataGroupStatus.MATCH

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_number": self.group_number,
            "status": self.status.value,
            "declared_hash": _hex(self.declared_hash),
            "attested_hash": _hex(self.attested_hash),
            "message": self.message,
        }


@dataclass(frozen=True)
class MRZCheck:
    """Outcome of the MRZ branch."""

    status: CheckStatus
    validation: Optional[MRZValidationResult] = None
    reason_code: Optional[ReasonCode] = None
    message: str = ""

    @property
    def failed_fields(self) -> list[str]:
        return self.validation.failed_checks if self.validation is not None else []

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status.value,
            "reason_code": self.reason_code.value if self.reason_code else None,
            "message": self.message,
        }
        if self.validation is not None:
            result["document_type"] = self.validation.document_type.value
            result["fields"] = self.validation.parsed_fields.model_dump()
            result["check_digits"] = {
                check.field_name: check.is_valid for check in self.validation.check_digits
            }
        return result


@dataclass(frozen=True)
class ContentDecodeCheck:
    """Outcome of decoding the signed content."""

    status: CheckStatus
    lds_version: Optional[int] = None
    digest_algorithm: Optional[str] = None
    digest_algorithm_oid: Optional[str] = None
    attested_groups: tuple[int, ...] = ()
    reason_code: Optional[ReasonCode] = None
    message: str = ""
    offset: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "lds_version": self.lds_version,
            "digest_algorithm": self.digest_algorithm,
            "digest_algorithm_oid": self.digest_algorithm_oid,
            "attested_groups": list(self.attested_groups),
            "reason_code": self.reason_code.value if self.reason_code else None,
            "message": self.message,
            "offset": self.offset,
        }


@dataclass(frozen=True)
class SignatureCheck:
    """Outcome of verifying the encrypted digest."""

    status: CheckStatus
    algorithm: Optional[str] = None
    digest: Optional[str] = None
    key_type: Optional[str] = None
    reason_code: Optional[ReasonCode] = None
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status == CheckStatus.PASSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "algorithm": self.algorithm,
            "digest": self.digest,
            "key_type": self.key_type,
            "reason_code": self.reason_code.value if self.reason_code else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class VerificationResult:
    """Complete passive authentication outcome for one document record."""

    verdict: Verdict
    mrz: MRZCheck
    content: ContentDecodeCheck
    signature: SignatureCheck
    data_groups_status: CheckStatus
    data_groups: tuple[DataGroupCheck, ...] = ()
    reasons: tuple[Reason, ...] = field(default_factory=tuple)

    @property
    def is_authentic(self) -> bool:
        return self.verdict == Verdict.AUTHENTIC

    @property
    def reason_codes(self) -> list[ReasonCode]:
        """Reason codes in the order they were collected, without duplicates."""
        seen: list[ReasonCode] = []
        for reason in self.reasons:
            if reason.code not in seen:
                seen.append(reason.code)
        return seen

    def get_data_group(self, group_number: int) -> Optional[DataGroupCheck]:
        for check in self.data_groups:
            if check.group_number == group_number:
                return check
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready rendering; byte values are hex encoded."""
        return {
            "verdict": self.verdict.value,
            "mrz": self.mrz.to_dict(),
            "content": self.content.to_dict(),
            "signature": self.signature.to_dict(),
            "data_groups_status": self.data_groups_status.value,
            "data_groups": [check.to_dict() for check in self.data_groups],
            "reasons": [reason.to_dict() for reason in self.reasons],
        }
