"""
Transaction extractors.

Provides:
- ExtractorRouter: Chooses decoder and extractor per file extension
- Tabular extractor (CSV, XLSX, XLS)
- Structured-document extractor (JSON, XML)
- Free-text extractor (PDF text layer, OCR output)
- Base class for custom extractors
"""

from .base import BaseExtractor
from .freetext import FreeTextExtractor, TextLayout
from .ocr import TesseractEngine
from .router import ExtractorRouter, FormatRoute, normalize_extension
from .sniffer import ColumnMapping, sniff
from .structured import StructuredExtractor, load_json_tree, load_xml_tree
from .tabular import TabularExtractor, read_delimited_rows, read_spreadsheet_rows

__all__ = [
    "ExtractorRouter",
    "FormatRoute",
    "normalize_extension",
    "BaseExtractor",
    # Tabular
    "TabularExtractor",
    "read_delimited_rows",
    "read_spreadsheet_rows",
    "ColumnMapping",
    "sniff",
    # Structured
    "StructuredExtractor",
    "load_json_tree",
    "load_xml_tree",
    # Free text
    "FreeTextExtractor",
    "TextLayout",
    "TesseractEngine",
]
