"""CNPJ extraction and validation for registry export rows."""

from typing import Sequence

CNPJ_LENGTH = 14
_TRIM_CHARS = '" '


def clean_field(raw: str) -> str:
    """Strip surrounding quote and space characters left over by lazy quoting."""
    return raw.strip(_TRIM_CHARS)


def extract_cnpj(row: Sequence[str]) -> str:
    # Root, order and check digits are exported as three separate columns.
    return clean_field(row[0]) + clean_field(row[1]) + clean_field(row[2])


def validate_cnpj(cnpj: str) -> bool:
    """Return True when ``cnpj`` has exactly 14 characters.

    Check digits are not verified: any 14-character string is accepted.
    """
    return len(cnpj) == CNPJ_LENGTH
