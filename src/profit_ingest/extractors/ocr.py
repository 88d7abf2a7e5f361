"""
OCR engine for scanned images (Tesseract via pytesseract).

The engine is a scoped resource: entering the ``with`` block verifies the
Tesseract binary, leaving it closes every image opened inside the block,
whether recognition succeeded or not.

    with TesseractEngine(language="eng") as engine:
        text = engine.recognize(image_bytes)
"""

import io
import logging
from collections.abc import Callable
from typing import Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from ..errors import DecodeError, EmptyInputError, ExtractionError, OCRUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "eng"

# Fully automatic page segmentation, no orientation/script detection
DEFAULT_PAGE_SEGMENTATION = 3


def configure_tesseract_binary(tesseract_cmd: Optional[str]) -> None:
    """
    Point pytesseract at a Tesseract binary.

    pytesseract keeps the binary path in a module global, so this is
    process-wide. It is applied once at pipeline construction; engines never
    change it. None keeps the current setting (PATH lookup by default).
    """
    if not tesseract_cmd:
        return
    current = pytesseract.pytesseract.tesseract_cmd
    if current != tesseract_cmd:
        logger.info("Using Tesseract binary %s (was %s)", tesseract_cmd, current)
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


class TesseractEngine:
    """Tesseract OCR engine with guaranteed release of opened images."""

    def __init__(
        self,
        language: str = DEFAULT_LANGUAGE,
        page_segmentation: int = DEFAULT_PAGE_SEGMENTATION,
    ):
        self.language = language
        self.page_segmentation = page_segmentation
        self._images: list[Image.Image] = []
        self._active = False

    @property
    def config(self) -> str:
        return f"--psm {self.page_segmentation}"

    def __enter__(self) -> "TesseractEngine":
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError as e:
            logger.error("Tesseract OCR binary not found")
            raise OCRUnavailableError("Tesseract OCR is not installed or not on PATH") from e

        logger.debug("Tesseract %s ready (lang=%s, %s)", version, self.language, self.config)
        self._active = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close every image opened by this engine."""
        while self._images:
            self._images.pop().close()
        self._active = False

    def recognize(self, data: bytes) -> str:
        """
        Run OCR on image bytes.

        Raises:
            EmptyInputError: Empty file
            DecodeError: Bytes are not a readable image
            OCRUnavailableError: Engine used outside its ``with`` block
        """
        if not self._active:
            raise OCRUnavailableError("OCR engine used outside of its context")
        if not data:
            raise EmptyInputError("No data found in image file")

        try:
            image = Image.open(io.BytesIO(data))
        except (UnidentifiedImageError, OSError) as e:
            raise DecodeError(f"Unreadable image: {e}") from e
        self._images.append(image)

        try:
            text = pytesseract.image_to_string(image, lang=self.language, config=self.config)
        except pytesseract.TesseractError as e:
            logger.error("Tesseract OCR failed: %s", e)
            raise ExtractionError(f"OCR processing failed: {e}") from e
        logger.debug("Recognized %d characters", len(text))
        return text


EngineFactory = Callable[[], TesseractEngine]


def read_image_text(data: bytes, engine_factory: Optional[EngineFactory] = None) -> str:
    """Acquire an engine, recognize ``data`` and release the engine."""
    factory = engine_factory or TesseractEngine
    with factory() as engine:
        return engine.recognize(data)
