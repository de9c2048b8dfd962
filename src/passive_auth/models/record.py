"""
Input record for passive authentication.

A ``DocumentRecord`` is what the document reading subsystem hands over once
it has read the chip: the MRZ text, the declared data group hashes, the
signed content blob, the signature and the signer's public key.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from passive_auth.exceptions import InvalidInputError


def _bytes_from_wire(value: Any, field_name: str) -> bytes:
    """Accept bytes, a list of byte values, or a hex string."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        cleaned = value.strip().replace(" ", "").replace(":", "")
        if cleaned.lower().startswith("0x"):
            cleaned = cleaned[2:]
        try:
            return bytes.fromhex(cleaned)
        except ValueError as e:
            msg = f"{field_name} is not a valid hex string"
            raise ValueError(msg) from e
    if isinstance(value, (list, tuple)):
        if not all(isinstance(b, int) and not isinstance(b, bool) for b in value):
            msg = f"{field_name} must contain integers only"
            raise ValueError(msg)
        out_of_range = [b for b in value if not -128 <= b <= 255]
        if out_of_range:
            msg = f"{field_name} has values outside -128..255: {out_of_range[:5]}"
            raise ValueError(msg)
        # Signed byte values (-128..-1) are folded into 128..255
        return bytes(b & 0xFF for b in value)
    msg = f"{field_name} must be bytes, a hex string or a list of byte values"
    raise ValueError(msg)


def _int_from_wire(value: Any, field_name: str) -> int:
    """Accept an int, big-endian bytes, or a decimal / 0x-prefixed hex string."""
    if isinstance(value, bool):
        msg = f"{field_name} must be an integer"
        raise ValueError(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return int(text, 16)
            if text.isdigit():
                return int(text)
            return int(text, 16)
        except ValueError as e:
            msg = f"{field_name} is not a decimal or hex integer"
            raise ValueError(msg) from e
    msg = f"{field_name} must be an integer, bytes or a numeric string"
    raise ValueError(msg)


class RSAPublicKey(BaseModel):
    """RSA public key given by its modulus and public exponent."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rsa"] = "rsa"
    modulus: int = Field(..., description="RSA modulus n")
    exponent: Optional[int] = Field(
        default=None, description="RSA public exponent e; the configured default when unset"
    )

    @field_validator("modulus", "exponent", mode="before")
    @classmethod
    def parse_integer(cls, v: Any, info: Any) -> Optional[int]:
        if v is None:
            return None
        return _int_from_wire(v, info.field_name)

    @field_validator("modulus")
    @classmethod
    def validate_modulus(cls, v: int) -> int:
        if v <= 0:
            msg = "modulus must be a positive integer"
            raise ValueError(msg)
        return v

    @property
    def key_size(self) -> int:
        return self.modulus.bit_length()


class ECPublicKey(BaseModel):
    """Elliptic curve public key given by curve name and encoded point Q."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ec"] = "ec"
    curve_name: str = Field(..., min_length=1, description="Named curve, e.g. secp256r1")
    public_key_q: bytes = Field(..., description="SEC1 encoded public point")

    @field_validator("public_key_q", mode="before")
    @classmethod
    def parse_point(cls, v: Any) -> bytes:
        point = _bytes_from_wire(v, "public_key_q")
        if not point:
            msg = "public_key_q must not be empty"
            raise ValueError(msg)
        return point


PublicKey = Annotated[Union[RSAPublicKey, ECPublicKey], Field(discriminator="kind")]


class DataGroupHash(BaseModel):
    """Declared hash of one data group."""

    model_config = ConfigDict(frozen=True)

    group_number: int = Field(..., ge=0, description="Data group number (1-16 for ICAO LDS)")
    hash_value: bytes = Field(..., description="Digest of the data group content")

    @field_validator("hash_value", mode="before")
    @classmethod
    def parse_hash(cls, v: Any) -> bytes:
        return _bytes_from_wire(v, "hash_value")


class DocumentRecord(BaseModel):
    """Fully formed record to verify. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    mrz: str = Field(..., description="MRZ text")
    signature_algorithm: str = Field(..., min_length=1, description="Signature scheme identifier")
    public_key: PublicKey
    data_group_hashes: tuple[DataGroupHash, ...] = Field(default_factory=tuple)
    e_content: bytes = Field(..., description="Signed content (LDS Security Object)")
    encrypted_digest: bytes = Field(..., description="Signature over e_content")

    @field_validator("e_content", "encrypted_digest", mode="before")
    @classmethod
    def parse_bytes(cls, v: Any, info: Any) -> bytes:
        return _bytes_from_wire(v, info.field_name)

    @model_validator(mode="after")
    def check_unique_groups(self) -> DocumentRecord:
        seen: set[int] = set()
        for dg_hash in self.data_group_hashes:
            if dg_hash.group_number in seen:
                msg = f"Duplicate data group number {dg_hash.group_number}"
                raise ValueError(msg)
            seen.add(dg_hash.group_number)
        return self

    @classmethod
    def create(cls, **kwargs: Any) -> DocumentRecord:
        """Construct a record, raising ``InvalidInputError`` on a bad shape."""
        try:
            return cls(**kwargs)
        except ValidationError as e:
            msg = f"Invalid document record: {e}"
            raise InvalidInputError(msg) from e

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentRecord:
        """
        Build a record from the document reader's wire shape.

        The reader sends ``pubKey`` with optional ``modulus``, ``curveName``
        and ``publicKeyQ`` fields; the key variant is selected by which of
        them are non-empty. Exactly one variant must be populated.

        Raises:
            InvalidInputError: If the dictionary does not describe a record
        """
        if not isinstance(data, dict):
            msg = f"Document record must be a mapping, not {type(data).__name__}"
            raise InvalidInputError(msg)

        missing = [
            key
            for key in ("mrz", "signatureAlgorithm", "pubKey", "eContent", "encryptedDigest")
            if key not in data
        ]
        if missing:
            msg = f"Document record is missing fields: {', '.join(missing)}"
            raise InvalidInputError(msg)

        public_key = _public_key_from_wire(data["pubKey"])

        raw_hashes = data.get("dataGroupHashes") or []
        try:
            dg_hashes = tuple(
                DataGroupHash(group_number=int(entry[0]), hash_value=entry[1])
                for entry in raw_hashes
            )
        except (TypeError, IndexError, ValueError) as e:
            msg = f"Invalid dataGroupHashes entry: {e}"
            raise InvalidInputError(msg) from e

        return cls.create(
            mrz=data["mrz"],
            signature_algorithm=data["signatureAlgorithm"],
            public_key=public_key,
            data_group_hashes=dg_hashes,
            e_content=data["eContent"],
            encrypted_digest=data["encryptedDigest"],
        )


def _public_key_from_wire(pub_key: Any) -> RSAPublicKey | ECPublicKey:
    if not isinstance(pub_key, dict):
        msg = "pubKey must be a mapping"
        raise InvalidInputError(msg)

    modulus = pub_key.get("modulus")
    curve_name = pub_key.get("curveName")
    public_key_q = pub_key.get("publicKeyQ")

    has_rsa = bool(modulus)
    has_ec = bool(curve_name) or bool(public_key_q)

    if has_rsa and has_ec:
        msg = "pubKey populates both the RSA and the EC variant"
        raise InvalidInputError(msg)
    if not has_rsa and not has_ec:
        msg = "pubKey populates neither the RSA nor the EC variant"
        raise InvalidInputError(msg)

    try:
        if has_rsa:
            exponent = pub_key.get("exponent")
            if exponent:
                return RSAPublicKey(modulus=modulus, exponent=exponent)
            return RSAPublicKey(modulus=modulus)
        if not curve_name or not public_key_q:
            msg = "EC pubKey needs both curveName and publicKeyQ"
            raise InvalidInputError(msg)
        return ECPublicKey(curve_name=curve_name, public_key_q=public_key_q)
    except ValidationError as e:
        msg = f"Invalid pubKey: {e}"
        raise InvalidInputError(msg) from e
