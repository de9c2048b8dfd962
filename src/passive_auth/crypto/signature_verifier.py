"""
Document signature verification.

Verifies the encrypted digest over the exact signed content bytes with the
document signer's public key. RSA keys support PKCS#1 v1.5 and RSASSA-PSS;
EC keys support ECDSA with DER or plain ``r||s`` signatures.
"""

from __future__ import annotations

from typing import ClassVar, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.exceptions import UnsupportedAlgorithm as CryptoUnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from passive_auth.config import PassiveAuthConfig
from passive_auth.crypto.algorithms import (
    AlgorithmRegistry,
    SignatureAlgorithm,
    normalize_identifier,
)
from passive_auth.exceptions import (
    KeyShapeMismatchError,
    PassiveAuthException,
    SignatureInvalidError,
    UnsupportedAlgorithmError,
)
from passive_auth.logging_config import get_logger
from passive_auth.models.record import ECPublicKey, PublicKey, RSAPublicKey
from passive_auth.models.verification import CheckStatus, SignatureCheck

logger = get_logger(__name__)

CryptoPublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey]


class SignatureVerifier:
    """Verifies document signatures against a supplied public key."""

    # Curve names and OIDs accepted in ECPublicKey.curve_name (normalized)
    CURVES: ClassVar[dict[str, type[ec.EllipticCurve]]] = {
        "secp192r1": ec.SECP192R1,
        "prime192v1": ec.SECP192R1,
        "p192": ec.SECP192R1,
        "1.2.840.10045.3.1.1": ec.SECP192R1,
        "secp224r1": ec.SECP224R1,
        "p224": ec.SECP224R1,
        "1.3.132.0.33": ec.SECP224R1,
        "secp256r1": ec.SECP256R1,
        "prime256v1": ec.SECP256R1,
        "p256": ec.SECP256R1,
        "1.2.840.10045.3.1.7": ec.SECP256R1,
        "secp384r1": ec.SECP384R1,
        "p384": ec.SECP384R1,
        "1.3.132.0.34": ec.SECP384R1,
        "secp521r1": ec.SECP521R1,
        "p521": ec.SECP521R1,
        "1.3.132.0.35": ec.SECP521R1,
        "brainpoolp256r1": ec.BrainpoolP256R1,
        "1.3.36.3.3.2.8.1.1.7": ec.BrainpoolP256R1,
        "brainpoolp384r1": ec.BrainpoolP384R1,
        "1.3.36.3.3.2.8.1.1.11": ec.BrainpoolP384R1,
        "brainpoolp512r1": ec.BrainpoolP512R1,
        "1.3.36.3.3.2.8.1.1.13": ec.BrainpoolP512R1,
    }

    def __init__(self, config: Optional[PassiveAuthConfig] = None) -> None:
        self.config = config or PassiveAuthConfig()
        self.registry = AlgorithmRegistry(self.config)

    def verify(
        self,
        e_content: bytes,
        encrypted_digest: bytes,
        public_key: PublicKey,
        signature_algorithm: str,
    ) -> SignatureAlgorithm:
        """
        Verify ``encrypted_digest`` over ``e_content``.

        Args:
            e_content: The exact bytes that were signed
            encrypted_digest: Raw signature value
            public_key: RSA or EC public key variant
            signature_algorithm: Declared signature algorithm identifier

        Returns:
            The resolved algorithm the signature verified under

        Raises:
            UnsupportedAlgorithmError: If the algorithm or curve is not recognized
            KeyShapeMismatchError: If the key does not fit the algorithm family,
                or is too small for its digest and padding
            SignatureInvalidError: If the cryptographic check fails
        """
        algorithm = self.registry.resolve(signature_algorithm)
        key = self.load_public_key(public_key, algorithm)
        hash_algorithm = algorithm.hash_algorithm()

        try:
            if isinstance(key, rsa.RSAPublicKey):
                rsa_padding = self._rsa_padding(algorithm)
                key.verify(encrypted_digest, e_content, rsa_padding, hash_algorithm)
            else:
                key.verify(
                    self._ecdsa_der_signature(encrypted_digest, key),
                    e_content,
                    ec.ECDSA(hash_algorithm),
                )
        except InvalidSignature as e:
            msg = f"Signature does not verify under {algorithm.identifier} ({algorithm.digest})"
            raise SignatureInvalidError(msg) from e
        except ValueError as e:
            # Raised when the modulus is too small for the digest and padding
            msg = f"{key.key_size}-bit key cannot carry {algorithm.identifier}: {e}"
            raise KeyShapeMismatchError(msg) from e

        logger.debug("Signature verified with %s/%s", algorithm.scheme, algorithm.digest)
        return algorithm

    def check(
        self,
        e_content: bytes,
        encrypted_digest: bytes,
        public_key: PublicKey,
        signature_algorithm: str,
    ) -> SignatureCheck:
        """Verify and report the outcome as a ``SignatureCheck`` instead of raising."""
        try:
            algorithm = self.verify(e_content, encrypted_digest, public_key, signature_algorithm)
        except PassiveAuthException as e:
            return SignatureCheck(
                status=CheckStatus.FAILED,
                algorithm=signature_algorithm,
                key_type=public_key.kind,
                reason_code=e.reason_code,
                message=e.message,
            )

        return SignatureCheck(
            status=CheckStatus.PASSED,
            algorithm=signature_algorithm,
            digest=algorithm.digest,
            key_type=public_key.kind,
            message=f"Signature valid ({algorithm.scheme}, {algorithm.digest})",
        )

    def load_public_key(
        self, public_key: PublicKey, algorithm: SignatureAlgorithm
    ) -> CryptoPublicKey:
        """
        Build a ``cryptography`` public key for the algorithm's family.

        Raises:
            KeyShapeMismatchError: If the key variant does not match, or the
                key material is not a valid key of that variant
            UnsupportedAlgorithmError: If the curve is not supported
        """
        if algorithm.family == "rsa":
            if not isinstance(public_key, RSAPublicKey):
                msg = f"{algorithm.identifier} needs an RSA key, got an EC key"
                raise KeyShapeMismatchError(msg)
            return self._load_rsa_key(public_key)

        if not isinstance(public_key, ECPublicKey):
            msg = f"{algorithm.identifier} needs an EC key, got an RSA key"
            raise KeyShapeMismatchError(msg)
        return self._load_ec_key(public_key)

    def _load_rsa_key(self, public_key: RSAPublicKey) -> rsa.RSAPublicKey:
        exponent = public_key.exponent or self.config.rsa_default_exponent
        try:
            return rsa.RSAPublicNumbers(exponent, public_key.modulus).public_key()
        except ValueError as e:
            msg = f"RSA key material is invalid: {e}"
            raise KeyShapeMismatchError(msg) from e

    def _load_ec_key(self, public_key: ECPublicKey) -> ec.EllipticCurvePublicKey:
        curve_cls = self.CURVES.get(normalize_identifier(public_key.curve_name))
        if curve_cls is None:
            raise UnsupportedAlgorithmError(f"curve {public_key.curve_name}")

        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(
                curve_cls(), public_key.public_key_q
            )
        except CryptoUnsupportedAlgorithm as e:
            raise UnsupportedAlgorithmError(f"curve {public_key.curve_name}") from e
        except ValueError as e:
            msg = f"EC point is not a valid {public_key.curve_name} public key: {e}"
            raise KeyShapeMismatchError(msg) from e

    def _rsa_padding(self, algorithm: SignatureAlgorithm) -> padding.AsymmetricPadding:
        if algorithm.scheme == "pkcs1v15":
            return padding.PKCS1v15()

        salt_length = self.config.pss_salt_length
        if salt_length == "auto":
            salt_length = padding.PSS.AUTO
        elif salt_length == "digest":
            salt_length = padding.PSS.DIGEST_LENGTH
        return padding.PSS(mgf=padding.MGF1(algorithm.hash_algorithm()), salt_length=salt_length)

    def _ecdsa_der_signature(self, signature: bytes, key: ec.EllipticCurvePublicKey) -> bytes:
        """Return the signature as a DER (r, s) sequence."""
        signature_format = self.config.ecdsa_signature_format

        if signature_format in ("auto", "der"):
            try:
                decode_dss_signature(signature)
            except ValueError:
                if signature_format == "der":
                    return signature
            else:
                return signature

        coordinate_size = (key.curve.key_size + 7) // 8
        if len(signature) != 2 * coordinate_size:
            # Not a plain signature for this curve; verification will reject it
            return signature

        r = int.from_bytes(signature[:coordinate_size], "big")
        s = int.from_bytes(signature[coordinate_size:], "big")
        return encode_dss_signature(r, s)
