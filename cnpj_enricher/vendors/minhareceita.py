"""Client for the CNPJ registry lookup service (minhareceita.org compatible)."""

import logging
from decimal import Decimal
from typing import Any, Dict

import requests

from cnpj_enricher.models import EnrichedCompany

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
DEFAULT_BASE_URL = "https://minhareceita.org"
REQUEST_TIMEOUT = 30

_STRING_FIELDS = ("razao_social", "nome_fantasia", "logradouro", "municipio", "uf", "cep")


class CompanyLookupError(RuntimeError):
    """Base class for failures looking up a single CNPJ."""


class LookupTransportError(CompanyLookupError):
    """Raised when the request never completed (connection error, timeout)."""


class LookupStatusError(CompanyLookupError):
    """Raised when the service answers with a non-200 status code."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"unexpected status code: {status_code}")
        self.status_code = status_code


class LookupDecodeError(CompanyLookupError):
    """Raised when the response body does not match the expected JSON shape."""


def lookup_company(cnpj: str, base_url: str = DEFAULT_BASE_URL, timeout: float = REQUEST_TIMEOUT) -> EnrichedCompany:
    url = f"{base_url.rstrip('/')}/{cnpj}"
    try:
        response = _SESSION.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise LookupTransportError(f"request to {url} failed: {exc}") from exc

    if response.status_code != 200:
        logger.debug("lookup_company failed: cnpj=%s status=%s", cnpj, response.status_code)
        raise LookupStatusError(response.status_code)

    try:
        payload = response.json(parse_float=Decimal)
    except ValueError as exc:
        raise LookupDecodeError(f"response is not valid JSON: {exc}") from exc

    return parse_company(payload, fallback_cnpj=cnpj)


def parse_company(payload: Any, fallback_cnpj: str = "") -> EnrichedCompany:
    """Build an EnrichedCompany from a decoded response body."""
    if not isinstance(payload, dict):
        raise LookupDecodeError(f"expected a JSON object, got {type(payload).__name__}")

    fields: Dict[str, str] = {name: _as_str(payload, name) for name in _STRING_FIELDS}
    return EnrichedCompany(
        cnpj=_as_str(payload, "cnpj") or fallback_cnpj,
        capital_social=_as_decimal(payload.get("capital_social")),
        **fields,
    )


def _as_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise LookupDecodeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _as_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    # bool is an int subclass but never a valid capital.
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise LookupDecodeError(f"field 'capital_social' must be numeric, got {type(value).__name__}")
    amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not amount.is_finite():
        raise LookupDecodeError("field 'capital_social' must be a finite number")
    return amount
