"""
Pipeline coordinator.

bytes + extension -> route -> decode -> extract -> normalize -> categorize

Stages run strictly in sequence. A failure in any stage aborts the file:
the error is re-raised with a stage prefix ("Failed to parse CSV file: ...")
and no partial results are returned.
"""

import logging
from collections.abc import Iterable
from datetime import date
from functools import partial
from pathlib import Path
from typing import Any, Optional

from .categorizer import Categorizer
from .config import Config
from .errors import ExtractionError, ProfitIngestError
from .extractors.freetext import TextLayout
from .extractors.ocr import EngineFactory, TesseractEngine, configure_tesseract_binary
from .extractors.router import ExtractorRouter, FormatRoute
from .normalizer import normalize
from .schemas.transaction import Transaction

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "File processed successfully"


class TransactionPipeline:
    """
    Turns raw file bytes into categorized canonical transactions.

    Args:
        config: Application config (defaults when None)
        ocr_engine_factory: Callable returning an OCR engine context manager;
            defaults to a TesseractEngine built from the extraction config.
            A configured Tesseract binary path applies to the whole process.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        ocr_engine_factory: Optional[EngineFactory] = None,
    ):
        self.config = config or Config()
        extraction = self.config.extraction

        if ocr_engine_factory is None:
            configure_tesseract_binary(extraction.tesseract_cmd)
            ocr_engine_factory = partial(
                TesseractEngine,
                language=extraction.ocr_language,
                page_segmentation=extraction.ocr_page_segmentation,
            )

        layout = TextLayout(
            lookahead_lines=extraction.lookahead_lines,
            min_line_length=extraction.min_line_length,
            min_amount_line_length=extraction.min_amount_line_length,
        )
        self.router = ExtractorRouter(layout=layout, ocr_engine_factory=ocr_engine_factory)
        self.categorizer = Categorizer(self.config.categorization.taxonomy)

    def process(
        self,
        data: bytes,
        extension: str,
        reference_date: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Process one file.

        Args:
            data: Raw file bytes
            extension: Declared extension ("csv", ".PDF", ...)
            reference_date: Fallback date for undated records (default: today)

        Returns:
            Normalized, categorized transactions in source order

        Raises:
            UnsupportedFormatError: Extension not routable (nothing is decoded)
            ProfitIngestError: Any stage failure, prefixed with the stage label
        """
        route = self.router.route(extension)
        logger.info("Processing %s (%d bytes)", route.label, len(data))

        payload = self._run_stage(route, "decode", route.decode, data)
        raw_records = self._run_stage(route, "extract", route.extractor.extract, payload)
        transactions = self._run_stage(
            route,
            "normalize",
            lambda records: normalize(
                records,
                reference_date=reference_date,
                dayfirst=self.config.extraction.dayfirst,
            ),
            raw_records,
        )
        transactions = self._run_stage(
            route, "categorize", self.categorizer.categorize, transactions
        )

        logger.info("Processed %d transactions from %s", len(transactions), route.label)
        return transactions

    def _run_stage(self, route: FormatRoute, stage: str, func, payload: Any) -> Any:
        prefix = f"Failed to parse {route.label}"
        try:
            return func(payload)
        except ProfitIngestError as e:
            logger.error("%s (%s stage): %s", prefix, stage, e.message)
            raise e.with_stage(prefix, stage=stage) from e
        except Exception as e:
            logger.exception("Unexpected error in %s stage", stage)
            raise ExtractionError(f"{prefix}: {e}", stage=stage) from e

    def process_file(self, path: Path, extension: Optional[str] = None) -> list[Transaction]:
        """Read a file and process it; the extension defaults to the file suffix."""
        path = Path(path)
        return self.process(path.read_bytes(), extension or path.suffix)

    def process_to_response(
        self,
        data: bytes,
        extension: str,
        reference_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """
        Process a file into an API-style response body.

        Returns:
            {"message", "transactions", "summary": {"total", "revenue", "expenses"}}
            on success, {"message": <error>} on failure
        """
        try:
            transactions = self.process(data, extension, reference_date=reference_date)
        except ProfitIngestError as e:
            return {"message": e.message}

        return {
            "message": SUCCESS_MESSAGE,
            "transactions": [tx.to_dict() for tx in transactions],
            "summary": count_summary(transactions),
        }


def count_summary(transactions: Iterable[Transaction]) -> dict[str, int]:
    """Transaction counts: total, revenue, expenses."""
    transactions = list(transactions)
    revenue = sum(1 for tx in transactions if tx.is_revenue)
    return {
        "total": len(transactions),
        "revenue": revenue,
        "expenses": len(transactions) - revenue,
    }
