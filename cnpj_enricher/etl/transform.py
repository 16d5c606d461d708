"""Utilities for turning lookup results and input rows into output records."""

import logging
from decimal import Decimal
from typing import Sequence

from cnpj_enricher.core.validator import clean_field
from cnpj_enricher.models import EnrichedCompany, OutputRecord

logger = logging.getLogger(__name__)

CAPITAL_THRESHOLD = Decimal("50000")
MIN_ROW_FIELDS = 28

DDD_INDEX = 21
PHONE_INDEX = 22
EMAIL_INDEX = 27


def exceeds_threshold(company: EnrichedCompany) -> bool:
    return company.capital_social > CAPITAL_THRESHOLD


def format_capital(value: Decimal) -> str:
    return f"{value:.2f}"


def to_output_record(cnpj: str, company: EnrichedCompany, row: Sequence[str]) -> OutputRecord:
    """Merge lookup fields with the contact columns of the source row.

    The lookup response carries no phone or email, so DDD, phone and email
    always come from the uploaded file. ``cnpj`` is the identifier extracted
    from the row, not the one echoed back by the service.
    """
    return OutputRecord(
        cnpj=cnpj,
        razao_social=company.razao_social,
        nome_fantasia=company.nome_fantasia,
        capital_social=format_capital(company.capital_social),
        logradouro=company.logradouro,
        municipio=company.municipio,
        uf=company.uf,
        cep=company.cep,
        ddd=clean_field(row[DDD_INDEX]),
        telefone=clean_field(row[PHONE_INDEX]),
        email=clean_field(row[EMAIL_INDEX]),
    )
