"""
MRZ Validation Layer

Parses the fixed-width fields of a TD1, TD2 or TD3 machine readable zone and
recomputes every check digit. Structural problems (line count, line length,
characters outside the MRZ alphabet) raise ``MalformedMRZError``. Check digit
mismatches never raise: they are reported per field so that a document with a
typo still surfaces its decoded fields for diagnostics.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from passive_auth.exceptions import MalformedMRZError
from passive_auth.logging_config import get_logger
from passive_auth.models.mrz_validation import (
    MRZCheckDigitResult,
    MRZDocumentType,
    MRZFields,
    MRZPosition,
    MRZValidationResult,
)
from passive_auth.utils.mrz_utils import (
    MRZ_ALPHABET,
    MRZ_FILLER,
    calculate_check_digit,
    split_lines,
    split_name_field,
    strip_filler,
)

logger = get_logger(__name__)


class _Span(NamedTuple):
    line: int
    start: int
    end: int


class _CheckedField(NamedTuple):
    name: str
    span: _Span
    check: _Span
    # Optional fields that are entirely filler may print '<' as their check digit
    optional: bool = False


# Document number, dates and optional data with their check digit positions.
_CHECKED_FIELDS: dict[MRZDocumentType, tuple[_CheckedField, ...]] = {
    MRZDocumentType.TD1: (
        _CheckedField("document_number", _Span(0, 5, 14), _Span(0, 14, 15)),
        _CheckedField("date_of_birth", _Span(1, 0, 6), _Span(1, 6, 7)),
        _CheckedField("date_of_expiry", _Span(1, 8, 14), _Span(1, 14, 15)),
    ),
    MRZDocumentType.TD2: (
        _CheckedField("document_number", _Span(1, 0, 9), _Span(1, 9, 10)),
        _CheckedField("date_of_birth", _Span(1, 13, 19), _Span(1, 19, 20)),
        _CheckedField("date_of_expiry", _Span(1, 21, 27), _Span(1, 27, 28)),
    ),
    MRZDocumentType.TD3: (
        _CheckedField("document_number", _Span(1, 0, 9), _Span(1, 9, 10)),
        _CheckedField("date_of_birth", _Span(1, 13, 19), _Span(1, 19, 20)),
        _CheckedField("date_of_expiry", _Span(1, 21, 27), _Span(1, 27, 28)),
        _CheckedField("optional_data", _Span(1, 28, 42), _Span(1, 42, 43), optional=True),
    ),
}

# Spans concatenated for the composite check digit, and the digit itself.
_COMPOSITE: dict[MRZDocumentType, tuple[tuple[_Span, ...], _Span]] = {
    MRZDocumentType.TD1: (
        (_Span(0, 5, 30), _Span(1, 0, 7), _Span(1, 8, 15), _Span(1, 18, 29)),
        _Span(1, 29, 30),
    ),
    MRZDocumentType.TD2: (
        (_Span(1, 0, 10), _Span(1, 13, 20), _Span(1, 21, 35)),
        _Span(1, 35, 36),
    ),
    MRZDocumentType.TD3: (
        (_Span(1, 0, 10), _Span(1, 13, 20), _Span(1, 21, 43)),
        _Span(1, 43, 44),
    ),
}


def _read(lines: list[str], span: _Span) -> str:
    return lines[span.line][span.start : span.end]


class MRZValidator:
    """Structural and check digit validation of an MRZ string."""

    def detect_document_type(self, lines: list[str]) -> MRZDocumentType:
        """Infer the format from the line geometry."""
        lengths = {len(line) for line in lines}
        if len(lengths) != 1:
            msg = f"MRZ lines have differing lengths: {[len(line) for line in lines]}"
            raise MalformedMRZError(msg)

        document_type = MRZDocumentType.from_lines(len(lines), lengths.pop())
        if document_type is None:
            msg = (
                f"MRZ with {len(lines)} line(s) of {len(lines[0])} characters "
                "matches no TD1, TD2 or TD3 layout"
            )
            raise MalformedMRZError(msg)
        return document_type

    def split(
        self, mrz: str, document_type: Optional[MRZDocumentType] = None
    ) -> tuple[MRZDocumentType, list[str]]:
        """
        Split and structurally validate an MRZ string.

        Raises:
            MalformedMRZError: If the layout or alphabet does not match
        """
        if not isinstance(mrz, str):
            msg = f"MRZ must be a string, not {type(mrz).__name__}"
            raise MalformedMRZError(msg)

        lines = split_lines(mrz)
        if not lines:
            msg = "No MRZ lines found"
            raise MalformedMRZError(msg)

        if document_type is None:
            document_type = self.detect_document_type(lines)
        else:
            if len(lines) != document_type.line_count:
                msg = (
                    f"{document_type.value} MRZ must have exactly "
                    f"{document_type.line_count} lines, got {len(lines)}"
                )
                raise MalformedMRZError(msg)
            for index, line in enumerate(lines):
                if len(line) != document_type.line_length:
                    msg = (
                        f"{document_type.value} MRZ line {index + 1} must be "
                        f"{document_type.line_length} characters long, got {len(line)}"
                    )
                    raise MalformedMRZError(msg)

        for index, line in enumerate(lines):
            if not MRZ_ALPHABET.match(line):
                bad = sorted({char for char in line if not MRZ_ALPHABET.match(char)})
                msg = f"MRZ line {index + 1} contains characters outside A-Z, 0-9 and '<': {bad}"
                raise MalformedMRZError(msg)

        return document_type, lines

    def validate(
        self, mrz: str, document_type: Optional[MRZDocumentType] = None
    ) -> MRZValidationResult:
        """
        Parse the MRZ and recompute its check digits.

        Args:
            mrz: MRZ text, newline separated or concatenated
            document_type: Declared format; inferred from the shape when None

        Returns:
            Parsed fields and one check digit result per checked field

        Raises:
            MalformedMRZError: If the layout or alphabet does not match
        """
        document_type, lines = self.split(mrz, document_type)

        checks = [self._check_field(lines, field) for field in _CHECKED_FIELDS[document_type]]
        checks.append(self._check_composite(lines, document_type))

        result = MRZValidationResult(
            document_type=document_type,
            parsed_fields=self._parse_fields(lines, document_type),
            check_digits=tuple(checks),
            raw_mrz=mrz,
            normalized_lines=tuple(lines),
        )

        if result.is_valid:
            logger.debug("MRZ %s check digits valid", document_type.value)
        else:
            logger.debug(
                "MRZ %s check digit mismatch in %s", document_type.value, result.failed_checks
            )
        return result

    def _check_field(self, lines: list[str], field: _CheckedField) -> MRZCheckDigitResult:
        value = _read(lines, field.span)
        expected = _read(lines, field.check)
        computed = calculate_check_digit(value)
        is_valid = expected == computed
        if not is_valid and field.optional:
            is_valid = expected == MRZ_FILLER and set(value) == {MRZ_FILLER}

        return MRZCheckDigitResult(
            field_name=field.name,
            value=value,
            position=MRZPosition(line=field.check.line, column=field.check.start),
            expected_digit=expected,
            computed_digit=computed,
            is_valid=is_valid,
        )

    def _check_composite(
        self, lines: list[str], document_type: MRZDocumentType
    ) -> MRZCheckDigitResult:
        spans, check = _COMPOSITE[document_type]
        value = "".join(_read(lines, span) for span in spans)
        expected = _read(lines, check)
        computed = calculate_check_digit(value)

        return MRZCheckDigitResult(
            field_name="composite",
            value=value,
            position=MRZPosition(line=check.line, column=check.start),
            expected_digit=expected,
            computed_digit=computed,
            is_valid=expected == computed,
        )

    def _parse_fields(self, lines: list[str], document_type: MRZDocumentType) -> MRZFields:
        line1 = lines[0]
        line2 = lines[1]

        if document_type == MRZDocumentType.TD1:
            surname, given_names = split_name_field(lines[2])
            return MRZFields(
                document_type=strip_filler(line1[0:2]),
                issuing_state=strip_filler(line1[2:5]),
                surname=surname,
                given_names=given_names,
                document_number=strip_filler(line1[5:14]),
                nationality=strip_filler(line2[15:18]),
                date_of_birth=line2[0:6],
                sex=_sex(line2[7]),
                date_of_expiry=line2[8:14],
                optional_data=strip_filler(line1[15:30]) or None,
                optional_data_2=strip_filler(line2[18:29]) or None,
            )

        surname, given_names = split_name_field(line1[5:])
        optional_end = 42 if document_type == MRZDocumentType.TD3 else 35
        return MRZFields(
            document_type=strip_filler(line1[0:2]),
            issuing_state=strip_filler(line1[2:5]),
            surname=surname,
            given_names=given_names,
            document_number=strip_filler(line2[0:9]),
            nationality=strip_filler(line2[10:13]),
            date_of_birth=line2[13:19],
            sex=_sex(line2[20]),
            date_of_expiry=line2[21:27],
            optional_data=strip_filler(line2[28:optional_end]) or None,
        )


def _sex(code: str) -> str:
    return "X" if code == MRZ_FILLER else code


def validate_mrz(mrz: str, document_type: Optional[MRZDocumentType] = None) -> MRZValidationResult:
    """Validate an MRZ string using a default validator."""
    return MRZValidator().validate(mrz, document_type)
