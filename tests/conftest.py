import sys
from pathlib import Path

import pytest

# Ensure the `cnpj_enricher` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cnpj_enricher.core import config, dedup  # noqa: E402


@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    for name in ("ENRICHMENT_API_URL", "LOOKUP_TIMEOUT_SECONDS", "ROW_DELAY_SECONDS", "OUTPUT_DIR",
                 "MAX_UPLOAD_BYTES", "INPUT_ENCODING", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    config.get_settings.cache_clear()
    dedup._cache = None
    yield
    config.get_settings.cache_clear()
    dedup._cache = None


def make_row(root="11222333", order="0001", check="81", ddd="11", phone="55551234", email="contato@acme.com.br"):
    """Build a 28-field registry export row with quoted identifier parts."""
    row = [""] * 28
    row[0] = f'"{root}"'
    row[1] = f'"{order}"'
    row[2] = f'"{check}"'
    row[21] = f'"{ddd}"'
    row[22] = f'"{phone}"'
    row[27] = f' "{email}" '
    return row
