"""
Digest and signature algorithm registry.

Resolves the identifiers found in document records (ASN.1 names, dotted OIDs,
JOSE-style short names and bare family names) to a concrete verification
recipe: key family, padding scheme and digest.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Literal, Optional

from asn1crypto import algos as asn1_algos
from cryptography.hazmat.primitives import hashes

from passive_auth.config import SUPPORTED_DIGESTS, PassiveAuthConfig
from passive_auth.exceptions import UnsupportedAlgorithmError

KeyFamily = Literal["rsa", "ec"]
SignatureScheme = Literal["pkcs1v15", "pss", "ecdsa"]

_DOTTED_OID = re.compile(r"^\d+(\.\d+)+$")

_HASH_CLASSES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

DIGEST_SIZES: dict[str, int] = {name: cls.digest_size for name, cls in _HASH_CLASSES.items()}


@dataclass(frozen=True)
class SignatureAlgorithm:
    """Resolved verification recipe for a signature algorithm identifier."""

    identifier: str
    family: KeyFamily
    scheme: SignatureScheme
    digest: str

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        return hash_for_name(self.digest)


def normalize_identifier(identifier: str) -> str:
    """Lower-case an identifier and drop separators: 'ecdsa-with-SHA256' -> 'ecdsawithsha256'."""
    return re.sub(r"[\s\-_]", "", identifier.strip().lower())


def hash_for_name(name: str) -> hashes.HashAlgorithm:
    """
    Return a ``cryptography`` hash instance for a digest name.

    Raises:
        UnsupportedAlgorithmError: If the digest is not supported
    """
    hash_cls = _HASH_CLASSES.get(name.lower().replace("-", ""))
    if hash_cls is None:
        raise UnsupportedAlgorithmError(name)
    return hash_cls()


def resolve_digest_name(oid: str) -> Optional[str]:
    """Map a digest algorithm OID to its short name, or None if unsupported."""
    name = asn1_algos.DigestAlgorithmId.map(oid)
    return name if name in SUPPORTED_DIGESTS else None


def _build_aliases() -> dict[str, tuple[KeyFamily, SignatureScheme, Optional[str]]]:
    aliases: dict[str, tuple[KeyFamily, SignatureScheme, Optional[str]]] = {}

    for digest in SUPPORTED_DIGESTS:
        for name in (f"{digest}withrsaencryption", f"{digest}withrsa", f"{digest}rsa"):
            aliases[name] = ("rsa", "pkcs1v15", digest)
        for name in (f"{digest}withrsaandmgf1", f"{digest}withrsa/pss", f"{digest}rsapss"):
            aliases[name] = ("rsa", "pss", digest)
        for name in (f"ecdsawith{digest}", f"{digest}withecdsa", f"{digest}ecdsa"):
            aliases[name] = ("ec", "ecdsa", digest)

    for bits in ("256", "384", "512"):
        aliases[f"rs{bits}"] = ("rsa", "pkcs1v15", f"sha{bits}")
        aliases[f"ps{bits}"] = ("rsa", "pss", f"sha{bits}")
        aliases[f"es{bits}"] = ("ec", "ecdsa", f"sha{bits}")

    # Bare family names take the configured default digest
    for name in ("rsa", "rsaencryption", "rsassapkcs1v15", "rsapkcs1v15", "1.2.840.113549.1.1.1"):
        aliases[name] = ("rsa", "pkcs1v15", None)
    for name in ("rsassapss", "rsapss", "pss"):
        aliases[name] = ("rsa", "pss", None)
    for name in ("ecdsa", "ec", "ecpublickey", "1.2.840.10045.2.1"):
        aliases[name] = ("ec", "ecdsa", None)

    return aliases


class AlgorithmRegistry:
    """Resolves signature algorithm identifiers against the configuration."""

    ALIASES: ClassVar[dict[str, tuple[KeyFamily, SignatureScheme, Optional[str]]]] = (
        _build_aliases()
    )

    def __init__(self, config: Optional[PassiveAuthConfig] = None) -> None:
        self.config = config or PassiveAuthConfig()
        self._overrides = {
            normalize_identifier(algorithm): digest
            for algorithm, digest in self.config.digest_overrides.items()
        }

    def resolve(self, identifier: str) -> SignatureAlgorithm:
        """
        Resolve an identifier to a verification recipe.

        Args:
            identifier: Algorithm name or dotted OID as declared on the record

        Returns:
            The resolved algorithm

        Raises:
            UnsupportedAlgorithmError: If the identifier is not recognized
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise UnsupportedAlgorithmError(repr(identifier))

        normalized = normalize_identifier(identifier)
        lookup = normalized
        if _DOTTED_OID.match(normalized) and normalized not in self.ALIASES:
            lookup = normalize_identifier(asn1_algos.SignedDigestAlgorithmId.map(normalized))

        entry = self.ALIASES.get(lookup)
        if entry is None:
            raise UnsupportedAlgorithmError(identifier)

        family, scheme, digest = entry
        digest = self._overrides.get(normalized) or digest or self.config.default_digest
        return SignatureAlgorithm(
            identifier=identifier, family=family, scheme=scheme, digest=digest
        )
