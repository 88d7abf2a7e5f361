"""
Extractor router - maps file extensions to a decoder and an extractor.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from ..errors import UnsupportedFormatError
from .base import BaseExtractor
from .document import read_pdf_text
from .freetext import FreeTextExtractor, TextLayout
from .ocr import EngineFactory, read_image_text
from .structured import StructuredExtractor, load_json_tree, load_xml_tree
from .tabular import TabularExtractor, read_delimited_rows, read_spreadsheet_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatRoute:
    """Decoder + extractor pair for one file format."""

    format_tag: str
    label: str  # Used in error prefixes: "Failed to parse {label}"
    decode: Callable[[bytes], Any]
    extractor: BaseExtractor


def normalize_extension(extension: Optional[str]) -> str:
    """".CSV" -> "csv"; None -> ""."""
    return (extension or "").strip().lower().lstrip(".")


class ExtractorRouter:
    """
    Routes a declared extension to its format handling.

    Dispatch table:
    - xlsx, xls  -> spreadsheet rows -> tabular
    - csv        -> delimited rows   -> tabular
    - json, xml  -> document tree    -> structured
    - pdf        -> text layer       -> free text (document variant)
    - jpg, jpeg  -> OCR text         -> free text (image variant)
    """

    def __init__(
        self,
        layout: Optional[TextLayout] = None,
        ocr_engine_factory: Optional[EngineFactory] = None,
    ):
        layout = layout or TextLayout()

        excel = TabularExtractor("excel")
        image = FormatRoute(
            "image",
            "image file",
            partial(read_image_text, engine_factory=ocr_engine_factory),
            FreeTextExtractor("image", layout=layout),
        )

        self.routes: dict[str, FormatRoute] = {
            "xlsx": FormatRoute(
                "excel", "Excel file", partial(read_spreadsheet_rows, extension="xlsx"), excel
            ),
            "xls": FormatRoute(
                "excel", "Excel file", partial(read_spreadsheet_rows, extension="xls"), excel
            ),
            "csv": FormatRoute("csv", "CSV file", read_delimited_rows, TabularExtractor("csv")),
            "json": FormatRoute("json", "JSON file", load_json_tree, StructuredExtractor("json")),
            "xml": FormatRoute("xml", "XML file", load_xml_tree, StructuredExtractor("xml")),
            "pdf": FormatRoute(
                "pdf",
                "PDF file",
                read_pdf_text,
                FreeTextExtractor("pdf", table_aware=True, skip_report_lines=True, layout=layout),
            ),
            "jpg": image,
            "jpeg": image,
        }

    @property
    def supported_extensions(self) -> list[str]:
        return sorted(self.routes)

    def route(self, extension: Optional[str]) -> FormatRoute:
        """
        Select the route for a declared extension.

        Raises:
            UnsupportedFormatError: Extension not in the dispatch table
        """
        key = normalize_extension(extension)
        route = self.routes.get(key)
        if route is None:
            logger.error("No route for extension %r", key)
            raise UnsupportedFormatError(key, stage="route")
        logger.debug("Routing .%s to %s", key, route.extractor.name)
        return route
