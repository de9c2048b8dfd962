"""
Passive Authentication Orchestrator

Runs the MRZ check and the signed content branch (decode, signature, data
group cross-check) over a document record and aggregates every outcome into
a single verdict with itemized reasons. Component failures are recorded as
failed checks; only a record of the wrong shape raises.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Union

from passive_auth.config import PassiveAuthConfig
from passive_auth.crypto.content_decoder import ContentDecoder
from passive_auth.crypto.data_group_hasher import DataGroupHasher
from passive_auth.crypto.signature_verifier import SignatureVerifier
from passive_auth.exceptions import (
    ContentDecodeError,
    InvalidInputError,
    MalformedMRZError,
    ReasonCode,
    UnsupportedAlgorithmError,
)
from passive_auth.logging_config import get_logger
from passive_auth.models.record import DocumentRecord
from passive_auth.models.verification import (
    CheckStatus,
    ContentDecodeCheck,
    DataGroupCheck,
    MRZCheck,
    Reason,
    SignatureCheck,
    Verdict,
    VerificationComponent,
    VerificationResult,
)
from passive_auth.verification.mrz_validation import MRZValidator

logger = get_logger(__name__)

RecordInput = Union[DocumentRecord, dict[str, Any]]


class PassiveAuthenticator:
    """Verifies document records end to end."""

    def __init__(self, config: Optional[PassiveAuthConfig] = None) -> None:
        self.config = config or PassiveAuthConfig()
        self.mrz_validator = MRZValidator()
        self.decoder = ContentDecoder(self.config)
        self.signature_verifier = SignatureVerifier(self.config)
        self.hasher = DataGroupHasher()

    def verify(self, record: RecordInput) -> VerificationResult:
        """
        Verify one document record.

        Args:
            record: A ``DocumentRecord`` or its wire dictionary

        Returns:
            The complete verification result

        Raises:
            InvalidInputError: If the record does not have the expected shape
        """
        record = self._coerce(record)

        if self.config.parallel_branches:
            with ThreadPoolExecutor(max_workers=1) as executor:
                mrz_future = executor.submit(self.check_mrz, record.mrz)
                content, signature, data_groups_status, data_groups = self.check_content(record)
                mrz = mrz_future.result()
        else:
            mrz = self.check_mrz(record.mrz)
            content, signature, data_groups_status, data_groups = self.check_content(record)

        reasons = self._collect_reasons(mrz, content, signature, data_groups)
        passed = all(
            status == CheckStatus.PASSED
            for status in (mrz.status, content.status, signature.status, data_groups_status)
        )
        verdict = Verdict.AUTHENTIC if passed and not reasons else Verdict.NOT_AUTHENTIC

        result = VerificationResult(
            verdict=verdict,
            mrz=mrz,
            content=content,
            signature=signature,
            data_groups_status=data_groups_status,
            data_groups=data_groups,
            reasons=tuple(reasons),
        )
        self._log_result(result)
        return result

    def verify_many(self, records: Iterable[RecordInput]) -> list[VerificationResult]:
        """Verify records on a thread pool; results keep the input order."""
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            return list(executor.map(self.verify, records))

    def check_mrz(self, mrz: str) -> MRZCheck:
        """Run the MRZ branch."""
        try:
            validation = self.mrz_validator.validate(mrz)
        except MalformedMRZError as e:
            return MRZCheck(
                status=CheckStatus.FAILED, reason_code=e.reason_code, message=e.message
            )

        if self.config.require_all_mrz_check_digits:
            passed = validation.is_valid
        else:
            passed = validation.composite_valid

        if passed:
            return MRZCheck(
                status=CheckStatus.PASSED,
                validation=validation,
                message=f"{validation.document_type.value} check digits valid",
            )
        return MRZCheck(
            status=CheckStatus.FAILED,
            validation=validation,
            reason_code=ReasonCode.MRZ_CHECK_DIGIT_MISMATCH,
            message=f"Check digit mismatch in {', '.join(validation.failed_checks)}",
        )

    def check_content(
        self, record: DocumentRecord
    ) -> tuple[ContentDecodeCheck, SignatureCheck, CheckStatus, tuple[DataGroupCheck, ...]]:
        """Run decode, then signature, then the data group cross-check."""
        try:
            decoded = self.decoder.decode(record.e_content)
        except (ContentDecodeError, UnsupportedAlgorithmError) as e:
            content = ContentDecodeCheck(
                status=CheckStatus.FAILED,
                reason_code=e.reason_code,
                message=e.message,
                offset=getattr(e, "offset", None),
            )
            signature = SignatureCheck(
                status=CheckStatus.NOT_RUN,
                algorithm=record.signature_algorithm,
                key_type=record.public_key.kind,
                message="Not run: signed content could not be decoded",
            )
            return content, signature, CheckStatus.NOT_RUN, ()

        content = ContentDecodeCheck(
            status=CheckStatus.PASSED,
            lds_version=decoded.version,
            digest_algorithm=decoded.digest_algorithm,
            digest_algorithm_oid=decoded.digest_algorithm_oid,
            attested_groups=decoded.group_numbers,
        )
        signature = self.signature_verifier.check(
            record.e_content,
            record.encrypted_digest,
            record.public_key,
            record.signature_algorithm,
        )
        data_groups = self.hasher.compare(record.data_group_hashes, decoded)
        all_matched = all(check.matched for check in data_groups)
        data_groups_status = CheckStatus.PASSED if all_matched else CheckStatus.FAILED
        return content, signature, data_groups_status, data_groups

    def _coerce(self, record: RecordInput) -> DocumentRecord:
        if isinstance(record, DocumentRecord):
            return record
        if isinstance(record, dict):
            return DocumentRecord.from_dict(record)
        msg = f"Expected a DocumentRecord or a dict, got {type(record).__name__}"
        raise InvalidInputError(msg)

    def _collect_reasons(
        self,
        mrz: MRZCheck,
        content: ContentDecodeCheck,
        signature: SignatureCheck,
        data_groups: tuple[DataGroupCheck, ...],
    ) -> list[Reason]:
        reasons: list[Reason] = []

        if mrz.status == CheckStatus.FAILED:
            if mrz.validation is None:
                reasons.append(
                    Reason(ReasonCode.MALFORMED_MRZ, VerificationComponent.MRZ, mrz.message)
                )
            else:
                for check in mrz.validation.check_digits:
                    if check.is_valid:
                        continue
                    composite_only = not self.config.require_all_mrz_check_digits
                    if composite_only and check.field_name != "composite":
                        continue
                    reasons.append(
                        Reason(
                            ReasonCode.MRZ_CHECK_DIGIT_MISMATCH,
                            VerificationComponent.MRZ,
                            f"{check.field_name} check digit is {check.expected_digit!r}, "
                            f"computed {check.computed_digit!r}",
                        )
                    )

        if content.status == CheckStatus.FAILED and content.reason_code is not None:
            reasons.append(
                Reason(content.reason_code, VerificationComponent.CONTENT_DECODER, content.message)
            )

        if signature.status == CheckStatus.FAILED and signature.reason_code is not None:
            reasons.append(
                Reason(signature.reason_code, VerificationComponent.SIGNATURE, signature.message)
            )

        for check in data_groups:
            code = check.status.reason_code
            if code is not None:
                reasons.append(
                    Reason(
                        code, VerificationComponent.DATA_GROUPS, check.message, check.group_number
                    )
                )

        return reasons

    def _log_result(self, result: VerificationResult) -> None:
        for reason in result.reasons:
            logger.warning(
                "Passive authentication %s from %s: %s",
                reason.code.value,
                reason.component.value,
                reason.message,
                extra={
                    "component": reason.component,
                    "reason_code": reason.code,
                    "data_group": reason.data_group,
                },
            )
        document_type = None
        if result.mrz.validation is not None:
            document_type = result.mrz.validation.document_type
        logger.info(
            "Passive authentication verdict: %s (%d reasons, %d data groups)",
            result.verdict.value,
            len(result.reasons),
            len(result.data_groups),
            extra={"verdict": result.verdict, "document_type": document_type},
        )


def verify_document(
    record: RecordInput, config: Optional[PassiveAuthConfig] = None
) -> VerificationResult:
    """Verify one record with a default authenticator."""
    return PassiveAuthenticator(config).verify(record)
