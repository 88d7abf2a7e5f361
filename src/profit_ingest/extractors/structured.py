"""
Structured-document extractor for JSON and XML.

Both formats are decoded into the same tree shape (mappings, lists and
scalars) and share one location strategy:

1. top-level list
2. well-known containers: ``transactions`` / ``data`` lists, then the
   nestings transactions.transaction, data.transaction and
   financialData.entries.entry
3. first nested list whose first element looks like a transaction
4. the root itself if it looks like a transaction
5. first nested mapping that looks like a transaction
"""

import json
import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional
from xml.etree import ElementTree as ET

from ..errors import DecodeError, EmptyInputError, NoTransactionsFoundError
from ..schemas.transaction import RawRecord
from .base import BaseExtractor, resolve_type, type_from_sign
from .patterns import parse_signed_amount

logger = logging.getLogger(__name__)

# Keys whose presence marks a mapping as a transaction
TRANSACTION_KEYS = ("amount", "description", "date")

# Container keys holding a transaction list directly
LIST_CONTAINERS = ("transactions", "data")

# Alternate nestings (XML exports)
NESTED_PATHS = (
    ("transactions", "transaction"),
    ("data", "transaction"),
    ("financialData", "entries", "entry"),
)

DESCRIPTION_KEYS = ("description", "name", "title")

# Key under which element text is kept when the element also has attributes
TEXT_KEY = "_text"


# =============================================================================
# Decoders
# =============================================================================


def load_json_tree(data: bytes) -> Any:
    """
    Decode JSON bytes. Floats are parsed as Decimal.

    Raises:
        EmptyInputError: Blank document or a JSON null
        DecodeError: Malformed JSON or undecodable bytes
    """
    if not data or not data.strip():
        raise EmptyInputError("No data found in JSON file")

    try:
        tree = json.loads(data.decode("utf-8-sig"), parse_float=Decimal)
    except UnicodeDecodeError as e:
        raise DecodeError(f"JSON file is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"Malformed JSON: {e}") from e

    if tree is None:
        raise EmptyInputError("No data found in JSON file")
    return tree


def _local_name(tag: str) -> str:
    """Strip an XML namespace: {urn:x}entry -> entry."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _add_child(mapping: dict[str, Any], key: str, value: Any) -> None:
    if key not in mapping:
        mapping[key] = value
    elif isinstance(mapping[key], list):
        mapping[key].append(value)
    else:
        mapping[key] = [mapping[key], value]


def _element_to_tree(element: ET.Element) -> Any:
    """
    Convert an element into mappings/lists/scalars.

    - attributes are merged into the element mapping
    - repeated child tags are collected into lists
    - a leaf without attributes becomes its stripped text (None if empty)
    """
    text = (element.text or "").strip()
    children = list(element)

    if not children and not element.attrib:
        return text or None

    node: dict[str, Any] = {}
    for key, value in element.attrib.items():
        node[_local_name(key)] = value
    for child in children:
        _add_child(node, _local_name(child.tag), _element_to_tree(child))
    if text and not children:
        node[TEXT_KEY] = text
    return node


def load_xml_tree(data: bytes) -> dict[str, Any]:
    """
    Decode XML bytes into ``{root_tag: tree}``.

    Raises:
        EmptyInputError: Blank document
        DecodeError: Malformed XML
    """
    if not data or not data.strip():
        raise EmptyInputError("No data found in XML file")

    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise DecodeError(f"Failed to parse XML: {e}") from e

    return {_local_name(root.tag): _element_to_tree(root)}


# =============================================================================
# Location
# =============================================================================


def get_key(node: Any, key: str) -> Any:
    """Case-insensitive mapping lookup; None when absent or not a mapping."""
    if not isinstance(node, Mapping):
        return None
    if key in node:
        return node[key]
    lowered = key.lower()
    for candidate, value in node.items():
        if str(candidate).lower() == lowered:
            return value
    return None


def looks_like_transaction(node: Any) -> bool:
    return isinstance(node, Mapping) and any(
        get_key(node, key) is not None for key in TRANSACTION_KEYS
    )


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else [value]


def _search_list(node: Any) -> Optional[list[Any]]:
    """Depth-first search for a list whose first element looks like a transaction."""
    if isinstance(node, Mapping):
        children = list(node.values())
    elif isinstance(node, list):
        children = node
    else:
        return None

    for child in children:
        if isinstance(child, list) and child and looks_like_transaction(child[0]):
            return child
        found = _search_list(child)
        if found:
            return found
    return None


def _search_mapping(node: Any) -> Optional[Mapping]:
    """Depth-first search for a nested mapping that looks like a transaction."""
    if isinstance(node, Mapping):
        children = list(node.values())
    elif isinstance(node, list):
        children = node
    else:
        return None

    for child in children:
        if looks_like_transaction(child):
            return child
        found = _search_mapping(child)
        if found is not None:
            return found
    return None


def locate_transactions(tree: Any) -> list[Any]:
    """
    Find the transaction collection in a decoded document.

    Raises:
        NoTransactionsFoundError: Nothing transaction-like anywhere
    """
    if isinstance(tree, list):
        return tree

    for key in LIST_CONTAINERS:
        value = get_key(tree, key)
        if isinstance(value, list):
            return value

    for path in NESTED_PATHS:
        node = tree
        for key in path:
            node = get_key(node, key)
        if node is not None:
            logger.debug("Found transactions at %s", ".".join(path))
            return _as_list(node)

    found_list = _search_list(tree)
    if found_list:
        logger.debug("Found transaction list by search (%d items)", len(found_list))
        return found_list

    if looks_like_transaction(tree):
        return [tree]

    found_mapping = _search_mapping(tree)
    if found_mapping is not None:
        logger.debug("Found single nested transaction")
        return [found_mapping]

    raise NoTransactionsFoundError("No transaction data found")


# =============================================================================
# Extractor
# =============================================================================


def _scalar(value: Any) -> Any:
    """Unwrap ``{"_text": ...}`` nodes produced for elements with attributes."""
    if isinstance(value, Mapping):
        return value.get(TEXT_KEY)
    return value


class StructuredExtractor(BaseExtractor):
    """Extractor for decoded JSON/XML trees."""

    @property
    def name(self) -> str:
        return f"structured:{self.format_tag}"

    def extract(self, tree: Any) -> list[RawRecord]:
        """
        Locate the transaction collection and map each element.

        Args:
            tree: Output of load_json_tree / load_xml_tree

        Returns:
            One raw record per located element

        Raises:
            NoTransactionsFoundError: Nothing transaction-like, or an empty collection
        """
        items = locate_transactions(tree)
        if not items:
            raise NoTransactionsFoundError("No transaction data found")

        ids = self.new_id_generator()
        records = [self._map_item(item, ids.next_id()) for item in items]

        logger.info("Extracted %d %s records", len(records), self.format_tag)
        return records

    def _map_item(self, item: Any, generated_id: str) -> RawRecord:
        if not isinstance(item, Mapping):
            item = {}

        amount = parse_signed_amount(_scalar(get_key(item, "amount")))
        raw_type = _scalar(get_key(item, "type"))
        tx_type = resolve_type(raw_type, amount)

        implied = type_from_sign(amount)
        if implied is not None and implied != tx_type:
            # Explicit type wins; the mismatch is left for the source to fix
            logger.debug("Type %r disagrees with amount sign %s", raw_type, amount)

        description = None
        for key in DESCRIPTION_KEYS:
            description = _scalar(get_key(item, key))
            if description not in (None, ""):
                break

        return {
            "id": _scalar(get_key(item, "id")) or generated_id,
            "date": _scalar(get_key(item, "date")),
            "description": description,
            "amount": amount,
            "type": tx_type,
            "category": _scalar(get_key(item, "category")),
        }
