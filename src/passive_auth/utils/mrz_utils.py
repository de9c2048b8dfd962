"""
Machine Readable Zone (MRZ) character and check digit utilities.

Implements the check digit arithmetic of ICAO Doc 9303 Part 3, section 4.9.
"""

from __future__ import annotations

import re

MRZ_FILLER = "<"
MRZ_ALPHABET = re.compile(r"^[A-Z0-9<]*$")
CHECK_DIGIT_WEIGHTS = (7, 3, 1)
# (line length, line count) of TD1, TD2 and TD3
_LINE_GEOMETRY = ((30, 3), (36, 2), (44, 2))


def character_value(char: str) -> int:
    """
    Numeric value of an MRZ character.

    Digits map to their value, A-Z to 10-35 and the filler to 0.

    Raises:
        ValueError: If ``char`` is not part of the MRZ alphabet
    """
    if char == MRZ_FILLER:
        return 0
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    msg = f"Character {char!r} is not part of the MRZ alphabet"
    raise ValueError(msg)


def calculate_check_digit(input_string: str) -> str:
    """
    Calculate the check digit as defined in ICAO Doc 9303 Part 3.

    Args:
        input_string: Field characters, fillers included

    Returns:
        Single character check digit
    """
    total = sum(
        character_value(char) * CHECK_DIGIT_WEIGHTS[i % 3] for i, char in enumerate(input_string)
    )
    return str(total % 10)


def validate_check_digit(input_string: str, check_digit: str) -> bool:
    """Validate a printed check digit against its field."""
    return calculate_check_digit(input_string) == check_digit


def split_lines(mrz: str) -> list[str]:
    """
    Split an MRZ payload into its lines.

    Newline separated input is split on line breaks. A single run of
    characters is cut into equal lines when its length matches one of the
    known formats (TD1 90, TD2 72, TD3 88).
    """
    raw = mrz.strip()

    if "\n" in raw or "\r" in raw:
        return [line.strip() for line in raw.splitlines() if line.strip()]

    for line_length, line_count in _LINE_GEOMETRY:
        if len(raw) == line_length * line_count:
            return [raw[i : i + line_length] for i in range(0, len(raw), line_length)]

    return [raw] if raw else []


def normalize_name(value: str) -> str:
    """Turn filler-separated name components into space-separated text."""
    parts = [segment for segment in value.replace(MRZ_FILLER, " ").split() if segment]
    return " ".join(parts)


def split_name_field(value: str) -> tuple[str, str]:
    """Split the MRZ name field into (surname, given names)."""
    name_parts = value.split("<<", 1)
    surname = normalize_name(name_parts[0])
    given_names = normalize_name(name_parts[1]) if len(name_parts) > 1 else ""
    return surname, given_names


def strip_filler(value: str) -> str:
    return value.replace(MRZ_FILLER, "")
