"""
MRZ validation models.

This module provides the data models returned by the MRZ validator:
- Document formats with their line geometry
- Per-field check digit outcomes with positions
- Parsed holder and document fields
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MRZDocumentType(str, Enum):
    """MRZ document formats and their line layouts."""

    TD1 = "TD1"  # 3 lines, 30 chars each (ID cards)
    TD2 = "TD2"  # 2 lines, 36 chars each (ID cards, visas)
    TD3 = "TD3"  # 2 lines, 44 chars each (passports)

    @property
    def line_count(self) -> int:
        """Number of lines in this document type."""
        return {"TD1": 3, "TD2": 2, "TD3": 2}[self.value]

    @property
    def line_length(self) -> int:
        """Number of characters per line in this document type."""
        return {"TD1": 30, "TD2": 36, "TD3": 44}[self.value]

    @classmethod
    def from_lines(cls, line_count: int, line_length: int) -> Optional[MRZDocumentType]:
        for doc_type in cls:
            if doc_type.line_count == line_count and doc_type.line_length == line_length:
                return doc_type
        return None


class MRZPosition(BaseModel):
    """Position information for MRZ fields."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(..., description="Line number (0-based)")
    column: int = Field(..., description="Column number (0-based)")
    length: int = Field(default=1, description="Length of the field")

    def __str__(self) -> str:
        return f"Line {self.line + 1}, Column {self.column + 1}"


class MRZCheckDigitResult(BaseModel):
    """Outcome of one check digit comparison."""

    model_config = ConfigDict(frozen=True)

    field_name: str = Field(..., description="Checked field, e.g. document_number")
    value: str = Field(..., description="Raw field characters the digit covers")
    position: Optional[MRZPosition] = Field(default=None, description="Position of the digit")
    expected_digit: str = Field(..., description="Check digit printed on the document")
    computed_digit: str = Field(..., description="Check digit recomputed from the value")
    is_valid: bool = Field(..., description="Whether the digits agree")


class MRZFields(BaseModel):
    """Fields parsed from the MRZ. Names use spaces instead of fillers."""

    model_config = ConfigDict(frozen=True)

    document_type: str
    issuing_state: str
    surname: str
    given_names: str
    document_number: str
    nationality: str
    date_of_birth: str = Field(..., description="YYMMDD")
    sex: str
    date_of_expiry: str = Field(..., description="YYMMDD")
    optional_data: Optional[str] = Field(
        default=None, description="Personal number / optional data"
    )
    optional_data_2: Optional[str] = Field(default=None, description="Second optional field (TD1)")


class MRZValidationResult(BaseModel):
    """Validation result for an MRZ string."""

    model_config = ConfigDict(frozen=True)

    document_type: MRZDocumentType
    parsed_fields: MRZFields
    check_digits: tuple[MRZCheckDigitResult, ...] = Field(default_factory=tuple)
    raw_mrz: str = Field(..., description="Original MRZ input")
    normalized_lines: tuple[str, ...] = Field(default_factory=tuple)

    def get_check(self, field_name: str) -> Optional[MRZCheckDigitResult]:
        for check in self.check_digits:
            if check.field_name == field_name:
                return check
        return None

    @property
    def composite_valid(self) -> bool:
        check = self.get_check("composite")
        return check is not None and check.is_valid

    @property
    def is_valid(self) -> bool:
        """Whether every check digit on the document agrees."""
        return all(check.is_valid for check in self.check_digits)

    @property
    def failed_checks(self) -> list[str]:
        return [check.field_name for check in self.check_digits if not check.is_valid]
