from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import pdfplumber

logger = logging.getLogger(__name__)


def extract_text(pdf_path: Union[str, Path]) -> str:
    """Texto plano del PDF, página por página, en orden de lectura."""
    with pdfplumber.open(str(pdf_path)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    logger.debug("extracted %d page(s) from %s", len(pages), pdf_path)
    return "\n".join(pages)


def read_statement_text(path: Union[str, Path]) -> str:
    """
    .pdf -> pdfplumber; cualquier otro archivo se asume que ya es el texto
    extraído (UTF-8), útil para reproducir un import fallido.
    """
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        return extract_text(path)
    return path.read_text(encoding="utf-8")
