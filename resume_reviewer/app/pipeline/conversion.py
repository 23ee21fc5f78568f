import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import fitz  # PyMuPDF

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertedImage:
    """A rendered preview image ready for upload."""

    filename: str
    content: bytes
    content_type: str = "image/png"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a conversion: either `file` or `error` is set."""

    file: ConvertedImage | None = None
    error: str | None = None


class DocumentConverter(Protocol):
    """The document-to-image collaborator."""

    async def convert(self, document: bytes, filename: str) -> ConversionResult: ...


class PdfImageConverter:
    """Renders the first page of a PDF to a PNG preview with PyMuPDF."""

    def __init__(self, scale: float = 4.0):
        self.scale = scale

    async def convert(self, document: bytes, filename: str) -> ConversionResult:
        """Render the preview image off the event loop.

        Args:
            document (bytes): The PDF content.
            filename (str): The uploaded filename; the image reuses its stem.

        Returns:
            ConversionResult: The image, or an error description. Never raises for bad input.

        """
        return await asyncio.to_thread(self._render, document, filename)

    def _render(self, document: bytes, filename: str) -> ConversionResult:
        _msg = f"Rendering preview for {filename} at scale {self.scale}"
        log.debug(_msg)
        try:
            with fitz.open(stream=document, filetype="pdf") as pdf:
                if pdf.page_count == 0:
                    return ConversionResult(error="Document has no pages")
                matrix = fitz.Matrix(self.scale, self.scale)
                pixmap = pdf[0].get_pixmap(matrix=matrix)
                png = pixmap.tobytes("png")
        except Exception as e:
            _msg = f"Failed to convert {filename} to an image: {e!s}"
            log.warning(_msg)
            return ConversionResult(error=str(e) or type(e).__name__)

        stem = Path(filename or "").stem or "resume"
        return ConversionResult(file=ConvertedImage(filename=f"{stem}.png", content=png))


def extract_document_text(document: bytes) -> str:
    """Extract the plain text of every page of a PDF.

    Args:
        document (bytes): The PDF content.

    Returns:
        str: The page texts joined by newlines.

    Raises:
        ValueError: If the content cannot be opened as a PDF.

    """
    try:
        with fitz.open(stream=document, filetype="pdf") as pdf:
            return "\n".join(page.get_text("text") for page in pdf)
    except (fitz.FileDataError, RuntimeError) as e:
        raise ValueError(f"Unable to read document: {e!s}") from e
