"""Output CSV writer shared by a pipeline run."""

import csv
import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

from cnpj_enricher.models import OutputRecord

logger = logging.getLogger(__name__)

OUTPUT_HEADER = [
    "CNPJ",
    "RazaoSocial",
    "NomeFantasia",
    "CapitalSocial",
    "Logradouro",
    "Municipio",
    "UF",
    "CEP",
    "DDD",
    "Telefone",
    "Email",
]
OUTPUT_PREFIX = "empresas_capital_maior_50000_"


class FileAccessError(OSError):
    """Raised when an input or output file cannot be opened."""


class OutputExistsError(FileAccessError):
    """Raised when the output file already belongs to another run."""


class OutputWriteError(RuntimeError):
    """Raised when a row cannot be written to the output file."""


MAX_NAME_ATTEMPTS = 60


def build_output_filename(started_at: Optional[datetime] = None) -> str:
    started_at = started_at or datetime.now()
    return f"{OUTPUT_PREFIX}{started_at:%Y%m%d%H%M%S}.csv"


class OutputSink:
    """Ordered CSV writer that flushes after every row.

    The file is created exclusively, so no two runs ever share it. Writes go
    through a lock so concurrent callers never interleave partial lines.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        try:
            self._fh = self.path.open("x", encoding="utf-8", newline="")
        except FileExistsError as exc:
            raise OutputExistsError(f"output file {self.path} already exists") from exc
        except OSError as exc:
            raise FileAccessError(f"could not create output file {self.path}: {exc}") from exc
        self._writer = csv.writer(self._fh, lineterminator="\n")
        self._lock = threading.Lock()

    @classmethod
    def create(cls, output_dir: Union[str, Path], started_at: Optional[datetime] = None) -> "OutputSink":
        """Open a new sink named after ``started_at``.

        When another run already took that second's name, the next second's
        name is tried instead.
        """
        started_at = started_at or datetime.now()
        for offset in range(MAX_NAME_ATTEMPTS):
            path = Path(output_dir) / build_output_filename(started_at + timedelta(seconds=offset))
            try:
                return cls(path)
            except OutputExistsError:
                logger.info("Output file %s is taken, trying the next name", path.name)
        raise FileAccessError(f"no free output filename in {output_dir} after {MAX_NAME_ATTEMPTS} attempts")

    def write_header(self) -> None:
        self._write(OUTPUT_HEADER)

    def append(self, record: OutputRecord) -> None:
        self._write(record.as_row())

    def _write(self, row) -> None:
        with self._lock:
            try:
                self._writer.writerow(row)
                self._fh.flush()
            except (OSError, ValueError, csv.Error) as exc:
                raise OutputWriteError(f"could not write to {self.path}: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.close()

    def __enter__(self) -> "OutputSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
