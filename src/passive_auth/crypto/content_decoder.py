"""
Signed content decoder.

Decodes the DER encoded LDS Security Object that a document signer signs
(ICAO Doc 9303 Part 10, section 4.6.2):

    LDSSecurityObject ::= SEQUENCE {
        version                LDSSecurityObjectVersion,
        hashAlgorithm          DigestAlgorithmIdentifier,
        dataGroupHashValues    SEQUENCE SIZE (2..ub-DataGroups) OF DataGroupHash,
        ldsVersionInfo         LDSVersionInfo OPTIONAL }

    DataGroupHash ::= SEQUENCE {
        dataGroupNumber        DataGroupNumber,
        dataGroupHashValue     OCTET STRING }

The decoder is a recursive-descent reader over an explicit cursor. Every read
is bounded by the end of the enclosing field, so no declared length can make
it look past the data it was given. Running past the end of the buffer is
reported as truncation; running past the end of an enclosing field, or using
a length encoding DER does not allow, is reported as a length overflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn, Optional

from passive_auth.config import PassiveAuthConfig
from passive_auth.crypto.algorithms import resolve_digest_name
from passive_auth.exceptions import (
    InvalidInputError,
    LengthOverflowError,
    TruncatedContentError,
    UnexpectedTagError,
    UnsupportedAlgorithmError,
)
from passive_auth.logging_config import get_logger

logger = get_logger(__name__)

# Universal tags used by the LDS Security Object
TAG_INTEGER = 0x02
TAG_OCTET_STRING = 0x04
TAG_OBJECT_IDENTIFIER = 0x06
TAG_PRINTABLE_STRING = 0x13
TAG_SEQUENCE = 0x30

# Lengths above 2**32 - 1 are never legitimate for a security object
MAX_LENGTH_OCTETS = 4


@dataclass(frozen=True)
class DecodedContent:
    """Logical fields of a decoded LDS Security Object."""

    version: int
    digest_algorithm_oid: str
    digest_algorithm: str
    data_group_hashes: tuple[tuple[int, bytes], ...]
    lds_version: Optional[str] = None
    unicode_version: Optional[str] = None

    @property
    def group_numbers(self) -> tuple[int, ...]:
        return tuple(number for number, _ in self.data_group_hashes)

    def hash_for(self, group_number: int) -> Optional[bytes]:
        """First attested hash for a data group, if any."""
        for number, value in self.data_group_hashes:
            if number == group_number:
                return value
        return None


class _Cursor:
    """Read position inside ``buffer[offset:end]``."""

    __slots__ = ("buffer", "end", "offset", "top_level")

    def __init__(self, buffer: bytes, offset: int, end: int, top_level: bool = False) -> None:
        self.buffer = buffer
        self.offset = offset
        self.end = end
        self.top_level = top_level

    def at_end(self) -> bool:
        return self.offset >= self.end

    def remaining(self) -> bytes:
        return self.buffer[self.offset : self.end]

    def _overrun(self, message: str, offset: int) -> NoReturn:
        if self.top_level:
            raise TruncatedContentError(message, offset)
        raise LengthOverflowError(message, offset)

    def _read_tag(self) -> int:
        start = self.offset
        if start >= self.end:
            self._overrun("expected a tag, found the end of the data", start)

        tag = self.buffer[start]
        pos = start + 1
        if tag & 0x1F == 0x1F:
            # High tag number form: base-128 continuation bytes
            while True:
                if pos >= self.end:
                    self._overrun("tag ends before its final byte", start)
                byte = self.buffer[pos]
                pos += 1
                tag = (tag << 8) | byte
                if not byte & 0x80:
                    break
                if pos - start > MAX_LENGTH_OCTETS:
                    msg = "tag number is too large"
                    raise UnexpectedTagError(msg, start)

        self.offset = pos
        return tag

    def _read_length(self) -> int:
        pos = self.offset
        if pos >= self.end:
            self._overrun("header ends before its length octet", pos)

        first = self.buffer[pos]
        pos += 1
        if first < 0x80:
            length = first
        elif first == 0x80:
            msg = "indefinite length form is not allowed in DER"
            raise LengthOverflowError(msg, pos - 1)
        else:
            count = first & 0x7F
            if count > MAX_LENGTH_OCTETS:
                msg = f"length encoded in {count} octets"
                raise LengthOverflowError(msg, pos - 1)
            if pos + count > self.end:
                self._overrun("header ends inside its length octets", pos)
            length = int.from_bytes(self.buffer[pos : pos + count], "big")
            pos += count

        self.offset = pos
        return length

    def expect(self, tag: int, name: str) -> _Cursor:
        """
        Read one TLV with the given tag and return a cursor over its value.

        Raises:
            UnexpectedTagError: If the next tag is not ``tag``
            TruncatedContentError: If the buffer ends inside the TLV
            LengthOverflowError: If the value overruns the enclosing field
        """
        start = self.offset
        found = self._read_tag()
        if found != tag:
            msg = f"expected {name} (tag 0x{tag:02X}), found tag 0x{found:02X}"
            raise UnexpectedTagError(msg, start)
        return self._value_cursor(start, name)

    def skip(self, name: str) -> None:
        """Step over one TLV of any tag."""
        start = self.offset
        self._read_tag()
        self._value_cursor(start, name)

    def _value_cursor(self, start: int, name: str) -> _Cursor:
        length = self._read_length()
        value_start = self.offset
        value_end = value_start + length
        if value_end > self.end:
            available = self.end - value_start
            self._overrun(f"{name} declares {length} bytes but only {available} remain", start)

        self.offset = value_end
        return _Cursor(self.buffer, value_start, value_end)


def _decode_integer(cursor: _Cursor, name: str) -> int:
    value = cursor.expect(TAG_INTEGER, name)
    if value.at_end():
        msg = f"{name} has a zero-length INTEGER value"
        raise LengthOverflowError(msg, value.offset)
    return int.from_bytes(value.remaining(), "big", signed=True)


def _decode_oid(cursor: _Cursor, name: str) -> str:
    value = cursor.expect(TAG_OBJECT_IDENTIFIER, name)
    content = value.remaining()
    if not content:
        msg = f"{name} has a zero-length OBJECT IDENTIFIER value"
        raise LengthOverflowError(msg, value.offset)

    arcs: list[int] = []
    current = 0
    for byte in content:
        current = (current << 7) | (byte & 0x7F)
        if not byte & 0x80:
            arcs.append(current)
            current = 0
    if content[-1] & 0x80:
        msg = f"{name} ends inside a subidentifier"
        raise TruncatedContentError(msg, value.end - 1)

    first = arcs[0]
    if first < 40:
        head = [0, first]
    elif first < 80:
        head = [1, first - 40]
    else:
        head = [2, first - 80]
    return ".".join(str(arc) for arc in head + arcs[1:])


def _decode_printable(cursor: _Cursor, name: str) -> str:
    value = cursor.expect(TAG_PRINTABLE_STRING, name)
    return value.remaining().decode("latin-1")


class ContentDecoder:
    """Decoder for the signed LDS Security Object."""

    def __init__(self, config: Optional[PassiveAuthConfig] = None) -> None:
        self.config = config or PassiveAuthConfig()

    def decode(self, e_content: bytes) -> DecodedContent:
        """
        Decode the signed content.

        Args:
            e_content: DER encoded LDSSecurityObject

        Returns:
            The decoded content

        Raises:
            InvalidInputError: If ``e_content`` is not a byte sequence
            TruncatedContentError: If the data ends before a value is complete
            UnexpectedTagError: If an element has the wrong tag or value
            LengthOverflowError: If a length is inconsistent with its container
            UnsupportedAlgorithmError: If the digest algorithm is unknown
        """
        if not isinstance(e_content, (bytes, bytearray, memoryview)):
            msg = f"Signed content must be bytes, not {type(e_content).__name__}"
            raise InvalidInputError(msg)

        data = bytes(e_content)
        if len(data) > self.config.max_content_size:
            msg = (
                f"signed content is {len(data)} bytes, above the "
                f"{self.config.max_content_size} byte limit"
            )
            raise LengthOverflowError(msg, 0)

        cursor = _Cursor(data, 0, len(data), top_level=True)
        lds = cursor.expect(TAG_SEQUENCE, "LDSSecurityObject")
        decoded = self._decode_security_object(lds)

        if not cursor.at_end():
            msg = f"{cursor.end - cursor.offset} trailing bytes after LDSSecurityObject"
            raise LengthOverflowError(msg, cursor.offset)

        logger.debug(
            "Decoded LDS Security Object v%d: %s, data groups %s",
            decoded.version,
            decoded.digest_algorithm,
            list(decoded.group_numbers),
        )
        return decoded

    def _decode_security_object(self, lds: _Cursor) -> DecodedContent:
        version_offset = lds.offset
        version = _decode_integer(lds, "version")
        if version not in self.config.allowed_lds_versions:
            msg = f"LDSSecurityObject version {version} is not accepted"
            raise UnexpectedTagError(msg, version_offset)

        digest_oid = self._decode_algorithm_identifier(lds)
        digest_name = resolve_digest_name(digest_oid)
        if digest_name is None:
            raise UnsupportedAlgorithmError(f"digest algorithm {digest_oid}")

        hash_values = self._decode_hash_values(lds)

        lds_version = unicode_version = None
        if not lds.at_end():
            info = lds.expect(TAG_SEQUENCE, "ldsVersionInfo")
            lds_version = _decode_printable(info, "ldsVersion")
            unicode_version = _decode_printable(info, "unicodeVersion")
            if not info.at_end():
                msg = "unexpected element after unicodeVersion"
                raise UnexpectedTagError(msg, info.offset)

        if not lds.at_end():
            msg = "unexpected element after ldsVersionInfo"
            raise UnexpectedTagError(msg, lds.offset)

        return DecodedContent(
            version=version,
            digest_algorithm_oid=digest_oid,
            digest_algorithm=digest_name,
            data_group_hashes=hash_values,
            lds_version=lds_version,
            unicode_version=unicode_version,
        )

    def _decode_algorithm_identifier(self, lds: _Cursor) -> str:
        algorithm = lds.expect(TAG_SEQUENCE, "hashAlgorithm")
        oid = _decode_oid(algorithm, "hashAlgorithm.algorithm")
        if not algorithm.at_end():
            # Parameters are absent or NULL for SHA-2 digests; any single value is tolerated
            algorithm.skip("hashAlgorithm.parameters")
        if not algorithm.at_end():
            msg = "unexpected element after hashAlgorithm.parameters"
            raise UnexpectedTagError(msg, algorithm.offset)
        return oid

    def _decode_hash_values(self, lds: _Cursor) -> tuple[tuple[int, bytes], ...]:
        values = lds.expect(TAG_SEQUENCE, "dataGroupHashValues")
        pairs: list[tuple[int, bytes]] = []
        while not values.at_end():
            entry = values.expect(TAG_SEQUENCE, "DataGroupHash")
            number = _decode_integer(entry, "dataGroupNumber")
            digest = entry.expect(TAG_OCTET_STRING, "dataGroupHashValue").remaining()
            if not entry.at_end():
                msg = f"unexpected element after the hash of data group {number}"
                raise UnexpectedTagError(msg, entry.offset)
            pairs.append((number, digest))
        return tuple(pairs)


def decode_signed_content(
    e_content: bytes, config: Optional[PassiveAuthConfig] = None
) -> DecodedContent:
    """Decode signed content with a default decoder."""
    return ContentDecoder(config).decode(e_content)
