"""
Pipeline error taxonomy.

Every failure that aborts the processing of a file is a ProfitIngestError.
Per-field anomalies are never raised; the normalizer absorbs them.
"""

from typing import Optional


class ProfitIngestError(Exception):
    """Base exception for pipeline errors."""

    def __init__(self, message: str, stage: Optional[str] = None):
        self.message = message
        self.stage = stage
        super().__init__(message)

    def with_stage(self, prefix: str, stage: Optional[str] = None) -> "ProfitIngestError":
        """Return a copy of this error (same class) with a stage prefix.

        Args:
            prefix: Human-readable stage label, e.g. "Failed to parse CSV file"
            stage: Machine-readable stage name, e.g. "extract"

        Returns:
            New error of the same type; the caller raises it ``from`` self
        """
        error = self.__class__.__new__(self.__class__)
        error.__dict__.update(self.__dict__)
        ProfitIngestError.__init__(error, f"{prefix}: {self.message}", stage or self.stage)
        return error


class UnsupportedFormatError(ProfitIngestError):
    """File extension is not in the dispatch table."""

    def __init__(self, extension: str, stage: Optional[str] = None):
        self.extension = extension
        super().__init__(f"Unsupported file format: {extension or '(none)'}", stage)


class EmptyInputError(ProfitIngestError):
    """Source decoded to zero rows, zero text or zero elements."""

    pass


class NoTransactionsFoundError(ProfitIngestError):
    """Decoding succeeded but no heuristic matched anything."""

    pass


class DecodeError(ProfitIngestError):
    """Raw bytes could not be decoded into rows, a tree or text."""

    pass


class ExtractionError(ProfitIngestError):
    """Unexpected failure inside a stage."""

    pass


class OCRUnavailableError(ExtractionError):
    """Tesseract binary or language data is not available."""

    pass
