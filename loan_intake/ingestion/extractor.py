"""Text extraction from uploaded PDF and image files."""

import asyncio
import io
import logging
from pathlib import PurePath

from loan_intake.config import ExtractionConfig
from loan_intake.exceptions import ExtractionError, UnsupportedFileType
from loan_intake.timeouts import call_with_timeout

logger = logging.getLogger(__name__)

PDF_EXTENSION = ".pdf"


class TextExtractor:
    """Converts an uploaded file's bytes into plain text.

    PDFs are parsed with pymupdf; images (png, jpg, jpeg, bmp) go through
    Tesseract OCR. The format is chosen from the declared file name.

    Args:
        config: ExtractionConfig with OCR language, image extensions and
                the per-call timeout.
    """

    def __init__(self, config: ExtractionConfig) -> None:
        self._config = config

    def detect_format(self, file_name: str) -> str:
        """Determine the extraction route from the file extension.

        Args:
            file_name: Declared name of the uploaded file.

        Returns:
            "pdf" or "image".

        Raises:
            UnsupportedFileType: If the extension is neither PDF nor image.
        """
        ext = PurePath(file_name).suffix.lower()
        if ext == PDF_EXTENSION:
            return "pdf"
        if ext in {e.lower() for e in self._config.image_extensions}:
            return "image"
        raise UnsupportedFileType(
            file_name,
            {"supported": [PDF_EXTENSION, *self._config.image_extensions]},
        )

    async def extract(self, data: bytes, file_name: str) -> str:
        """Extract plain text from a file.

        Args:
            data: Raw file contents. Never modified.
            file_name: Declared file name, used to pick PDF or OCR.

        Returns:
            The extracted text.

        Raises:
            UnsupportedFileType: If the extension is not supported.
            ExtractionError: If parsing, OCR, or the timeout fails.
        """
        file_format = self.detect_format(file_name)
        payload = bytes(data)
        parse = self._parse_pdf if file_format == "pdf" else self._ocr_image

        text = await call_with_timeout(
            asyncio.to_thread(parse, payload, file_name),
            self._config.timeout_seconds,
            lambda: ExtractionError(
                f"Extraction timed out after {self._config.timeout_seconds}s",
                file_name,
            ),
        )
        logger.info("Extracted %d characters from %s", len(text), file_name)
        return text

    def _parse_pdf(self, data: bytes, file_name: str) -> str:
        """Extract text from a PDF buffer using pymupdf (fitz).

        Args:
            data: PDF bytes.
            file_name: Used for error context only.

        Returns:
            Page texts in page order, separated by newlines.
        """
        import fitz  # type: ignore[import-untyped]

        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = []
                for page in doc:
                    text = page.get_text("text")
                    if text.strip():
                        pages.append(text)
                return "\n".join(pages)
        except Exception as exc:
            logger.exception("Failed to parse PDF: %s", file_name)
            raise ExtractionError("Failed to parse PDF", file_name) from exc

    def _ocr_image(self, data: bytes, file_name: str) -> str:
        """Recognize text in an image buffer with Tesseract.

        Args:
            data: Image bytes.
            file_name: Used for error context only.

        Returns:
            Best-effort recognized text.
        """
        import pytesseract
        from PIL import Image

        try:
            with Image.open(io.BytesIO(data)) as image:
                return pytesseract.image_to_string(image, lang=self._config.ocr_language)
        except Exception as exc:
            logger.exception("Failed to process image: %s", file_name)
            raise ExtractionError("Failed to process image", file_name) from exc
