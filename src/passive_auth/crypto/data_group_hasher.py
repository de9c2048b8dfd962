"""
Data group hash cross-check.

Compares the data group hashes carried with a document record against the
hashes the document signer attested in the signed content. Every group that
appears in either source gets exactly one outcome.
"""

from __future__ import annotations

import hmac
from collections.abc import Iterable
from typing import Optional

from cryptography.hazmat.primitives import hashes

from passive_auth.crypto.algorithms import DIGEST_SIZES, hash_for_name
from passive_auth.crypto.content_decoder import DecodedContent
from passive_auth.logging_config import get_logger
from passive_auth.models.record import DataGroupHash
from passive_auth.models.verification import DataGroupCheck, DataGroupStatus

logger = get_logger(__name__)


def compute_hash(data: bytes, digest: str) -> bytes:
    """
    Hash raw data group content with the named digest.

    Args:
        data: Data group bytes as read from the chip
        digest: Digest name, e.g. 'sha256'

    Returns:
        Digest bytes
    """
    hasher = hashes.Hash(hash_for_name(digest))
    hasher.update(data)
    return hasher.finalize()


class DataGroupHasher:
    """Cross-checks declared data group hashes against attested ones."""

    def compare(
        self, declared: Iterable[DataGroupHash], decoded: DecodedContent
    ) -> tuple[DataGroupCheck, ...]:
        """
        Compare both hash lists group by group.

        Declared groups come first in their declared order, followed by groups
        only the signed content attests to.

        Args:
            declared: Hashes carried alongside the record
            decoded: Decoded signed content

        Returns:
            One check per data group present in either source
        """
        declared_hashes = {entry.group_number: entry.hash_value for entry in declared}

        attested: dict[int, list[bytes]] = {}
        for number, value in decoded.data_group_hashes:
            attested.setdefault(number, []).append(value)

        order = list(declared_hashes)
        order.extend(number for number in attested if number not in declared_hashes)

        expected_size = DIGEST_SIZES.get(decoded.digest_algorithm)
        checks = tuple(
            self._compare_group(
                number,
                declared_hashes.get(number),
                attested.get(number, []),
                decoded.digest_algorithm,
                expected_size,
            )
            for number in order
        )

        mismatched = [check.group_number for check in checks if not check.matched]
        if mismatched:
            logger.debug("Data group cross-check failed for groups %s", mismatched)
        else:
            logger.debug("All %d data group hashes match", len(checks))
        return checks

    def _compare_group(
        self,
        number: int,
        declared: Optional[bytes],
        attested: list[bytes],
        digest_algorithm: str,
        expected_size: Optional[int],
    ) -> DataGroupCheck:
        if declared is None:
            return DataGroupCheck(
                group_number=number,
                status=DataGroupStatus.TAMPERED,
                attested_hash=attested[0],
                message=f"DG{number} is attested by the signed content but not declared",
            )
        if not attested:
            return DataGroupCheck(
                group_number=number,
                status=DataGroupStatus.TAMPERED,
                declared_hash=declared,
                message=f"DG{number} is declared but not attested by the signed content",
            )
        if len(attested) > 1:
            return DataGroupCheck(
                group_number=number,
                status=DataGroupStatus.TAMPERED,
                declared_hash=declared,
                attested_hash=attested[0],
                message=f"DG{number} is attested {len(attested)} times",
            )

        value = attested[0]
        if len(value) != len(declared):
            return DataGroupCheck(
                group_number=number,
                status=DataGroupStatus.HASH_ALGORITHM_MISMATCH,
                declared_hash=declared,
                attested_hash=value,
                message=(
                    f"DG{number} declared hash is {len(declared)} bytes, "
                    f"attested hash is {len(value)} bytes"
                ),
            )
        if expected_size is not None and len(value) != expected_size:
            return DataGroupCheck(
                group_number=number,
                status=DataGroupStatus.HASH_ALGORITHM_MISMATCH,
                declared_hash=declared,
                attested_hash=value,
                message=(
                    f"DG{number} hash is {len(value)} bytes, "
                    f"{digest_algorithm} digests are {expected_size} bytes"
                ),
            )

        if hmac.compare_digest(declared, value):
            return DataGroupCheck(
                group_number=number,
                status=DataGroupStatus.MATCH,
                declared_hash=declared,
                attested_hash=value,
            )
        return DataGroupCheck(
            group_number=number,
            status=DataGroupStatus.TAMPERED,
            declared_hash=declared,
            attested_hash=value,
            message=f"DG{number} declared hash differs from the attested hash",
        )
