import hashlib

import pytest

from passive_auth.crypto.content_decoder import DecodedContent
from passive_auth.crypto.data_group_hasher import DataGroupHasher, compute_hash
from passive_auth.exceptions import ReasonCode, UnsupportedAlgorithmError
from passive_auth.models.record import DataGroupHash
from passive_auth.models.verification import DataGroupStatus
from tests.fixtures.passport_factory import DATA_GROUPS, flip_bit, hash_data_groups

SHA256_OID = "2.16.840.1.101.3.4.2.1"


def _decoded(pairs, digest="sha256"):
    return DecodedContent(
        version=0,
        digest_algorithm_oid=SHA256_OID,
        digest_algorithm=digest,
        data_group_hashes=tuple(pairs),
    )


def _declared(hashes):
    return [DataGroupHash(group_number=n, hash_value=v) for n, v in hashes.items()]


@pytest.fixture
def hasher():
    return DataGroupHasher()


@pytest.fixture
def dg_hashes():
    return hash_data_groups()


def test_all_groups_match(hasher, dg_hashes):
    checks = hasher.compare(_declared(dg_hashes), _decoded(dg_hashes.items()))

    assert [check.group_number for check in checks] == [1, 2]
    assert all(check.matched for check in checks)
    assert checks[0].declared_hash == checks[0].attested_hash == dg_hashes[1]


def test_altered_declared_hash_is_tampered(hasher, dg_hashes):
    declared = dict(dg_hashes)
    declared[2] = flip_bit(declared[2], index=0)

    checks = hasher.compare(_declared(declared), _decoded(dg_hashes.items()))

    assert checks[0].status == DataGroupStatus.MATCH
    assert checks[1].status == DataGroupStatus.TAMPERED
    assert checks[1].status.reason_code == ReasonCode.TAMPERED


def test_declared_but_not_attested(hasher, dg_hashes):
    checks = hasher.compare(_declared(dg_hashes), _decoded([(1, dg_hashes[1])]))

    assert checks[1].group_number == 2
    assert checks[1].status == DataGroupStatus.TAMPERED
    assert checks[1].attested_hash is None
    assert "not attested" in checks[1].message


def test_attested_but_not_declared_comes_last(hasher, dg_hashes):
    extra = compute_hash(b"DG11", "sha256")
    attested = [(11, extra), (1, dg_hashes[1]), (2, dg_hashes[2])]

    checks = hasher.compare(_declared(dg_hashes), _decoded(attested))

    assert [check.group_number for check in checks] == [1, 2, 11]
    assert checks[2].status == DataGroupStatus.TAMPERED
    assert checks[2].declared_hash is None
    assert checks[2].attested_hash == extra


def test_group_attested_twice_is_tampered(hasher, dg_hashes):
    attested = [(1, dg_hashes[1]), (1, dg_hashes[1]), (2, dg_hashes[2])]
    checks = hasher.compare(_declared(dg_hashes), _decoded(attested))

    assert checks[0].status == DataGroupStatus.TAMPERED
    assert "2 times" in checks[0].message
    assert checks[1].matched


def test_length_mismatch_is_hash_algorithm_mismatch(hasher, dg_hashes):
    declared = dict(dg_hashes)
    declared[1] = compute_hash(DATA_GROUPS[1], "sha1")

    checks = hasher.compare(_declared(declared), _decoded(dg_hashes.items()))

    assert checks[0].status == DataGroupStatus.HASH_ALGORITHM_MISMATCH
    assert checks[0].status.reason_code == ReasonCode.HASH_ALGORITHM_MISMATCH
    assert checks[1].matched


def test_digest_size_mismatch_is_hash_algorithm_mismatch(hasher):
    # SHA-256 sized hashes under a SHA-384 declaration
    sha256_hashes = hash_data_groups()
    checks = hasher.compare(
        _declared(sha256_hashes), _decoded(sha256_hashes.items(), digest="sha384")
    )

    assert [check.status for check in checks] == [DataGroupStatus.HASH_ALGORITHM_MISMATCH] * 2
    assert "sha384" in checks[0].message


def test_no_groups_yields_no_checks(hasher):
    assert hasher.compare([], _decoded([])) == ()


def test_to_dict_hex_encodes_hashes(hasher, dg_hashes):
    check = hasher.compare(_declared(dg_hashes), _decoded(dg_hashes.items()))[0]
    rendered = check.to_dict()

    assert rendered["status"] == "match"
    assert rendered["declared_hash"] == dg_hashes[1].hex()


@pytest.mark.parametrize("digest", ["sha1", "sha224", "sha256", "sha384", "sha512"])
def test_compute_hash_matches_hashlib(digest):
    assert compute_hash(b"data group", digest) == hashlib.new(digest, b"data group").digest()


def test_compute_hash_rejects_unknown_digest():
    with pytest.raises(UnsupportedAlgorithmError):
        compute_hash(b"data group", "md5")
