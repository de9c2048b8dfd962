import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from passive_auth.config import PassiveAuthConfig
from passive_auth.crypto.signature_verifier import SignatureVerifier
from passive_auth.exceptions import (
    KeyShapeMismatchError,
    ReasonCode,
    SignatureInvalidError,
    UnsupportedAlgorithmError,
)
from passive_auth.models.record import ECPublicKey, RSAPublicKey
from passive_auth.models.verification import CheckStatus
from tests.fixtures.passport_factory import flip_bit, generate_ec_key, public_key_model, sign

MESSAGE = b"LDS security object bytes"


@pytest.fixture
def verifier():
    return SignatureVerifier()


@pytest.mark.parametrize(
    "algorithm",
    ["sha256WithRSAEncryption", "sha1WithRSAEncryption", "sha512WithRSAEncryption", "RS384"],
)
def test_rsa_pkcs1v15(verifier, rsa_private_key, algorithm):
    signature = sign(rsa_private_key, MESSAGE, algorithm)
    resolved = verifier.verify(MESSAGE, signature, public_key_model(rsa_private_key), algorithm)
    assert resolved.scheme == "pkcs1v15"


@pytest.mark.parametrize("algorithm", ["rsassaPss", "PS256", "SHA512withRSAandMGF1"])
def test_rsa_pss(verifier, rsa_private_key, algorithm):
    signature = sign(rsa_private_key, MESSAGE, algorithm)
    resolved = verifier.verify(MESSAGE, signature, public_key_model(rsa_private_key), algorithm)
    assert resolved.scheme == "pss"


def test_rsa_pss_with_digest_length_salt(rsa_private_key):
    verifier = SignatureVerifier(PassiveAuthConfig(pss_salt_length="digest"))
    signature = sign(rsa_private_key, MESSAGE, "PS256")
    verifier.verify(MESSAGE, signature, public_key_model(rsa_private_key), "PS256")


def test_rsa_default_exponent_is_applied(verifier, rsa_private_key):
    modulus_only = RSAPublicKey(modulus=rsa_private_key.public_key().public_numbers().n)
    signature = sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption")
    verifier.verify(MESSAGE, signature, modulus_only, "sha256WithRSAEncryption")


def test_rsa_flipped_bit_is_invalid(verifier, rsa_private_key):
    signature = flip_bit(sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption"))
    with pytest.raises(SignatureInvalidError) as exc_info:
        verifier.verify(
            MESSAGE, signature, public_key_model(rsa_private_key), "sha256WithRSAEncryption"
        )
    assert exc_info.value.reason_code == ReasonCode.SIGNATURE_INVALID


def test_rsa_signature_over_other_content_is_invalid(verifier, rsa_private_key):
    signature = sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption")
    with pytest.raises(SignatureInvalidError):
        verifier.verify(
            MESSAGE + b"!", signature, public_key_model(rsa_private_key), "sha256WithRSAEncryption"
        )


def test_rsa_digest_mismatch_is_invalid(verifier, rsa_private_key):
    signature = sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption")
    with pytest.raises(SignatureInvalidError):
        verifier.verify(
            MESSAGE, signature, public_key_model(rsa_private_key), "sha384WithRSAEncryption"
        )


def test_rsa_other_modulus_is_invalid(verifier, rsa_private_key):
    signature = sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption")
    wrong_modulus = RSAPublicKey(
        modulus=rsa_private_key.public_key().public_numbers().n + 2, exponent=65537
    )
    with pytest.raises(SignatureInvalidError):
        verifier.verify(MESSAGE, signature, wrong_modulus, "sha256WithRSAEncryption")


def test_ecdsa_der_signature(verifier, ec_private_key):
    signature = sign(ec_private_key, MESSAGE, "ecdsa-with-SHA256")
    resolved = verifier.verify(
        MESSAGE, signature, public_key_model(ec_private_key), "ecdsa-with-SHA256"
    )
    assert resolved.family == "ec"


def test_ecdsa_plain_signature(verifier, ec_private_key):
    signature = sign(ec_private_key, MESSAGE, "ecdsa-with-SHA256", plain_ecdsa=True)
    assert len(signature) == 64
    verifier.verify(MESSAGE, signature, public_key_model(ec_private_key), "ecdsa-with-SHA256")


def test_ecdsa_plain_signature_rejected_when_der_required(ec_private_key):
    verifier = SignatureVerifier(PassiveAuthConfig(ecdsa_signature_format="der"))
    signature = sign(ec_private_key, MESSAGE, "ecdsa-with-SHA256", plain_ecdsa=True)
    with pytest.raises(SignatureInvalidError):
        verifier.verify(MESSAGE, signature, public_key_model(ec_private_key), "ecdsa-with-SHA256")


def test_ecdsa_flipped_bit_is_invalid(verifier, ec_private_key):
    signature = sign(ec_private_key, MESSAGE, "ecdsa-with-SHA256", plain_ecdsa=True)
    with pytest.raises(SignatureInvalidError):
        verifier.verify(
            MESSAGE, flip_bit(signature), public_key_model(ec_private_key), "ecdsa-with-SHA256"
        )


def test_ecdsa_brainpool(verifier, brainpool_private_key):
    signature = sign(brainpool_private_key, MESSAGE, "ecdsa-with-SHA256")
    public_key = public_key_model(brainpool_private_key, curve_name="brainpoolP256r1")
    verifier.verify(MESSAGE, signature, public_key, "ecdsa-with-SHA256")


def test_ecdsa_curve_given_as_oid(verifier, ec_private_key):
    signature = sign(ec_private_key, MESSAGE, "ES256")
    public_key = public_key_model(ec_private_key, curve_name="1.2.840.10045.3.1.7")
    verifier.verify(MESSAGE, signature, public_key, "ES256")


def test_p384_key(verifier):
    private_key = generate_ec_key(ec.SECP384R1())
    signature = sign(private_key, MESSAGE, "ecdsa-with-SHA384", plain_ecdsa=True)
    verifier.verify(MESSAGE, signature, public_key_model(private_key, "P-384"), "ES384")


def test_rsa_key_with_ec_algorithm_is_key_shape_mismatch(verifier, rsa_private_key):
    signature = sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption")
    with pytest.raises(KeyShapeMismatchError) as exc_info:
        verifier.verify(MESSAGE, signature, public_key_model(rsa_private_key), "ecdsa-with-SHA256")
    assert exc_info.value.reason_code == ReasonCode.KEY_SHAPE_MISMATCH


def test_ec_key_with_rsa_algorithm_is_key_shape_mismatch(verifier, ec_private_key):
    signature = sign(ec_private_key, MESSAGE, "ecdsa-with-SHA256")
    with pytest.raises(KeyShapeMismatchError):
        verifier.verify(
            MESSAGE, signature, public_key_model(ec_private_key), "sha256WithRSAEncryption"
        )


def test_point_not_on_curve_is_key_shape_mismatch(verifier):
    bogus = ECPublicKey(curve_name="secp256r1", public_key_q=b"\x04" + b"\x01" * 64)
    with pytest.raises(KeyShapeMismatchError):
        verifier.verify(MESSAGE, b"\x00" * 64, bogus, "ecdsa-with-SHA256")


def test_unknown_curve_is_unsupported(verifier):
    key = ECPublicKey(curve_name="sect283k1", public_key_q=b"\x04" + b"\x01" * 72)
    with pytest.raises(UnsupportedAlgorithmError, match="sect283k1"):
        verifier.verify(MESSAGE, b"\x00" * 72, key, "ecdsa-with-SHA256")


def test_unknown_algorithm_is_unsupported(verifier, rsa_private_key):
    with pytest.raises(UnsupportedAlgorithmError):
        verifier.verify(MESSAGE, b"\x00", public_key_model(rsa_private_key), "md5WithRSAEncryption")


def test_check_reports_instead_of_raising(verifier, rsa_private_key):
    public_key = public_key_model(rsa_private_key)
    signature = sign(rsa_private_key, MESSAGE, "sha256WithRSAEncryption")

    passed = verifier.check(MESSAGE, signature, public_key, "sha256WithRSAEncryption")
    assert passed.status == CheckStatus.PASSED
    assert passed.is_valid
    assert passed.digest == "sha256"
    assert passed.key_type == "rsa"

    failed = verifier.check(MESSAGE, flip_bit(signature), public_key, "sha256WithRSAEncryption")
    assert failed.status == CheckStatus.FAILED
    assert failed.reason_code == ReasonCode.SIGNATURE_INVALID

    mismatch = verifier.check(MESSAGE, signature, public_key, "ES256")
    assert mismatch.reason_code == ReasonCode.KEY_SHAPE_MISMATCH


@pytest.mark.parametrize("algorithm", ["sha512WithRSAandMGF1", "PS512"])
def test_key_too_small_for_digest_is_key_shape_mismatch(verifier, algorithm):
    small_key = RSAPublicKey(modulus=2**511 + 1)
    with pytest.raises(KeyShapeMismatchError, match="512-bit"):
        verifier.verify(MESSAGE, b"\x01" * 64, small_key, algorithm)

    check = verifier.check(MESSAGE, b"\x01" * 64, small_key, algorithm)
    assert check.status == CheckStatus.FAILED
    assert check.reason_code == ReasonCode.KEY_SHAPE_MISMATCH
