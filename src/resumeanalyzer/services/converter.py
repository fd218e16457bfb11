from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import fitz  # PyMuPDF

from resumeanalyzer.core.contracts import ConversionResult, Document

log = logging.getLogger("converter")


class PdfImageConverter:
    """
    Description: Render the first page of a PDF resume to a PNG preview.
    Layer: L2
    Input: PDF Document
    Output: ConversionResult with a PNG Document, or an error message
    """

    def __init__(self, dpi: int = 150) -> None:
        self.dpi = int(dpi)

    def _render(self, document: Document) -> ConversionResult:
        if not document.content:
            return ConversionResult(error="Failed to convert PDF to image: file is empty")
        if not document.content.startswith(b"%PDF"):
            return ConversionResult(error="Failed to convert PDF to image: file is not a PDF")

        try:
            pdf = fitz.open(stream=document.content, filetype="pdf")
        except Exception as e:  # corrupt or encrypted stream
            return ConversionResult(error=f"Failed to convert PDF to image: {e}")

        with pdf:
            if pdf.page_count == 0:
                return ConversionResult(error="Failed to convert PDF to image: document has no pages")
            # Default PDF resolution is 72 DPI
            zoom = self.dpi / 72.0
            pix = pdf[0].get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            png = pix.tobytes("png")

        name = f"{Path(document.filename or 'resume').stem}.png"
        return ConversionResult(image=Document(filename=name, content=png, content_type="image/png"))

    async def convert(self, document: Document) -> ConversionResult:
        result = await asyncio.to_thread(self._render, document)
        if result.error:
            log.warning("conversion of %s failed: %s", document.filename, result.error)
        return result
