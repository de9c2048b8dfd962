import pytest
from cryptography.hazmat.primitives import hashes

from passive_auth.config import PassiveAuthConfig
from passive_auth.crypto.algorithms import (
    AlgorithmRegistry,
    hash_for_name,
    normalize_identifier,
    resolve_digest_name,
)
from passive_auth.exceptions import ReasonCode, UnsupportedAlgorithmError


@pytest.fixture
def registry():
    return AlgorithmRegistry()


@pytest.mark.parametrize(
    ("identifier", "family", "scheme", "digest"),
    [
        ("sha256WithRSAEncryption", "rsa", "pkcs1v15", "sha256"),
        ("SHA384withRSA", "rsa", "pkcs1v15", "sha384"),
        ("sha1_rsa", "rsa", "pkcs1v15", "sha1"),
        ("1.2.840.113549.1.1.11", "rsa", "pkcs1v15", "sha256"),
        ("1.2.840.113549.1.1.13", "rsa", "pkcs1v15", "sha512"),
        ("RS256", "rsa", "pkcs1v15", "sha256"),
        ("PS384", "rsa", "pss", "sha384"),
        ("SHA256withRSAandMGF1", "rsa", "pss", "sha256"),
        ("ecdsa-with-SHA256", "ec", "ecdsa", "sha256"),
        ("ecdsa-with-SHA512", "ec", "ecdsa", "sha512"),
        ("SHA224withECDSA", "ec", "ecdsa", "sha224"),
        ("sha384_ecdsa", "ec", "ecdsa", "sha384"),
        ("1.2.840.10045.4.3.2", "ec", "ecdsa", "sha256"),
        ("ES512", "ec", "ecdsa", "sha512"),
    ],
)
def test_identifiers_resolve(registry, identifier, family, scheme, digest):
    algorithm = registry.resolve(identifier)
    assert (algorithm.family, algorithm.scheme, algorithm.digest) == (family, scheme, digest)
    assert algorithm.identifier == identifier


@pytest.mark.parametrize(
    ("identifier", "family", "scheme"),
    [
        ("RSA", "rsa", "pkcs1v15"),
        ("rsaEncryption", "rsa", "pkcs1v15"),
        ("1.2.840.113549.1.1.1", "rsa", "pkcs1v15"),
        ("RSASSA-PSS", "rsa", "pss"),
        ("1.2.840.113549.1.1.10", "rsa", "pss"),
        ("ECDSA", "ec", "ecdsa"),
        ("1.2.840.10045.2.1", "ec", "ecdsa"),
    ],
)
def test_bare_family_names_use_configured_default_digest(identifier, family, scheme):
    registry = AlgorithmRegistry(PassiveAuthConfig(default_digest="SHA-384"))
    algorithm = registry.resolve(identifier)
    assert (algorithm.family, algorithm.scheme, algorithm.digest) == (family, scheme, "sha384")


def test_digest_overrides_take_precedence():
    config = PassiveAuthConfig(digest_overrides={"ECDSA": "sha512", "RS256": "sha384"})
    registry = AlgorithmRegistry(config)

    assert registry.resolve("ecdsa").digest == "sha512"
    assert registry.resolve("rs256").digest == "sha384"
    assert registry.resolve("ES256").digest == "sha256"


@pytest.mark.parametrize(
    "identifier",
    ["md5WithRSAEncryption", "1.2.840.113549.1.1.4", "ed25519", "1.2.3.4", "DSA", "", "   "],
)
def test_unknown_identifiers_are_unsupported(registry, identifier):
    with pytest.raises(UnsupportedAlgorithmError) as exc_info:
        registry.resolve(identifier)
    assert exc_info.value.reason_code == ReasonCode.UNSUPPORTED_ALGORITHM


def test_non_string_identifier_is_unsupported(registry):
    with pytest.raises(UnsupportedAlgorithmError):
        registry.resolve(None)


def test_digest_oid_resolution():
    assert resolve_digest_name("2.16.840.1.101.3.4.2.1") == "sha256"
    assert resolve_digest_name("1.3.14.3.2.26") == "sha1"
    assert resolve_digest_name("1.2.840.113549.2.5") is None  # md5
    assert resolve_digest_name("1.2.3.4") is None


def test_hash_for_name():
    assert isinstance(hash_for_name("SHA-256"), hashes.SHA256)
    assert isinstance(hash_for_name("sha512"), hashes.SHA512)
    with pytest.raises(UnsupportedAlgorithmError):
        hash_for_name("md5")


def test_normalize_identifier():
    assert normalize_identifier(" ecdsa-with-SHA256 ") == "ecdsawithsha256"
    assert normalize_identifier("sha256_rsa") == "sha256rsa"
