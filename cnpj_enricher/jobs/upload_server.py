"""HTTP entrypoint: upload a registry export and get the filtered CSV written to disk."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from cnpj_enricher.core.config import ConfigError, get_settings
from cnpj_enricher.core.dedup import init_cache
from cnpj_enricher.core.output import FileAccessError, OutputSink, OutputWriteError
from cnpj_enricher.etl.reader import CSVDecodeError, read_rows
from cnpj_enricher.jobs.process_file import process_records

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 10 << 20

INDEX_HTML = """<html>
    <head><title>Busca de Empresas</title></head>
    <body>
        <h1>Upload de Arquivo CSV</h1>
        <form action="/upload" method="post" enctype="multipart/form-data">
            <input type="file" name="file" accept=".csv" required>
            <button type="submit">Enviar</button>
        </form>
    </body>
</html>
"""


class FormParseError(ValueError):
    """Raised when the multipart form does not carry a usable file."""


def _text(message: str, status: int) -> Response:
    return Response(message, status=status, mimetype="text/plain")


# ---------- Routes ----------


@app.get("/")
def index() -> Any:
    return Response(INDEX_HTML, mimetype="text/html")


@app.get("/healthz")
def healthcheck() -> Any:
    return jsonify({"status": "ok", "cache_entries": len(init_cache())}), 200


@app.post("/upload")
def upload() -> Any:
    """
    Process an uploaded CSV synchronously.
    Multipart field: file (semicolon-delimited registry export)
    """
    settings = get_settings()
    started_at = datetime.now()

    try:
        filename, data = _read_upload()
    except FormParseError as exc:
        return _text(f"Error reading form: {exc}", 400)

    try:
        records = read_rows(data, encoding=settings.input_encoding)
    except CSVDecodeError as exc:
        return _text(f"Error reading CSV file: {exc}", 400)

    try:
        sink = OutputSink.create(settings.output_dir, started_at)
    except FileAccessError as exc:
        logger.error("Could not create output file: %s", exc)
        return _text(f"Error creating output file: {exc}", 500)

    with sink:
        try:
            sink.write_header()
        except OutputWriteError as exc:
            logger.error("Could not write header: %s", exc)
            return _text(f"Error writing header: {exc}", 500)

        logger.info("Processing upload %s (%d rows)", filename, len(records))
        process_records(records, sink)
        logger.info("Processing finished. Results saved in %s", sink.path)

    return _text(f"File {filename} processed successfully. Results saved to: {sink.path.name}", 200)


@app.errorhandler(RequestEntityTooLarge)
def upload_too_large(exc: RequestEntityTooLarge) -> Any:
    limit = app.config.get("MAX_CONTENT_LENGTH")
    return _text(f"Error reading form: upload exceeds {limit} bytes", 413)


# ---------- Internals ----------


def _read_upload() -> tuple[str, bytes]:
    upload_file = request.files.get("file")
    if upload_file is None:
        raise FormParseError("missing multipart field 'file'")
    if not upload_file.filename:
        raise FormParseError("no file was selected")
    return upload_file.filename, upload_file.read()


def main() -> None:
    try:
        settings = get_settings()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    logging.getLogger().setLevel(settings.log_level)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes

    logger.info("[BOOT] Binding on 0.0.0.0:%d", settings.port)
    app.run(host="0.0.0.0", port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
