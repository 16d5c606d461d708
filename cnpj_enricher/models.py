"""Core data models shared by the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List


@dataclass(frozen=True, slots=True)
class EnrichedCompany:
    """Registry data returned by the enrichment service for one CNPJ."""

    cnpj: str
    razao_social: str = ""
    nome_fantasia: str = ""
    capital_social: Decimal = Decimal("0")
    logradouro: str = ""
    municipio: str = ""
    uf: str = ""
    cep: str = ""


@dataclass(frozen=True, slots=True)
class OutputRecord:
    """One output CSV line: lookup fields plus contact fields from the input row."""

    cnpj: str
    razao_social: str
    nome_fantasia: str
    capital_social: str
    logradouro: str
    municipio: str
    uf: str
    cep: str
    ddd: str
    telefone: str
    email: str

    def as_row(self) -> List[str]:
        return [
            self.cnpj,
            self.razao_social,
            self.nome_fantasia,
            self.capital_social,
            self.logradouro,
            self.municipio,
            self.uf,
            self.cep,
            self.ddd,
            self.telefone,
            self.email,
        ]


@dataclass(slots=True)
class RunSummary:
    """Row counts for one pipeline pass."""

    total: int = 0
    written: int = 0
    skipped_short_row: int = 0
    skipped_invalid: int = 0
    skipped_cached: int = 0
    lookup_failed: int = 0
    below_threshold: int = 0
    write_failed: int = 0
