"""Content-type detection and JSON/XML payload codecs.

Shared by the request logging middleware (decoding captured bodies) and the
outbound HTTP client (encoding requests, decoding responses). XML documents
map onto JSON-shaped trees:

- the document becomes ``{root_tag: value}``
- attributes become ``"@name"`` keys
- repeated child tags collapse into a list
- a text-only element becomes its stripped text, an empty one ``None``
- text next to children or attributes is kept under ``"#text"``
"""

import json
import xml.etree.ElementTree as ET
from enum import StrEnum
from typing import Any


JSON_CONTENT_TYPE = "application/json"
XML_CONTENT_TYPE = "text/xml"

ATTRIBUTE_PREFIX = "@"
TEXT_KEY = "#text"


class BodyFormat(StrEnum):
    """Body encodings the service knows how to capture."""

    JSON = "json"
    XML = "xml"


def detect_format(content_type: str | None) -> BodyFormat | None:
    """Return the body format for a Content-Type header, or None if unsupported.

    Matching is by prefix so parameters such as ``; charset=utf-8`` are allowed.
    """
    if not content_type:
        return None
    normalized = content_type.strip().lower()
    if normalized.startswith(JSON_CONTENT_TYPE):
        return BodyFormat.JSON
    if normalized.startswith(XML_CONTENT_TYPE):
        return BodyFormat.XML
    return None


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    text = (element.text or "").strip()

    if not children and not element.attrib:
        return text or None

    result: dict[str, Any] = {
        f"{ATTRIBUTE_PREFIX}{name}": value for name, value in element.attrib.items()
    }
    for child in children:
        value = _element_to_value(child)
        if child.tag not in result:
            result[child.tag] = value
        elif isinstance(result[child.tag], list):
            result[child.tag].append(value)
        else:
            result[child.tag] = [result[child.tag], value]
    if text:
        result[TEXT_KEY] = text
    return result


def decode_xml(data: bytes | str) -> dict[str, Any]:
    """Parse an XML document into a JSON-shaped tree.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is malformed
    """
    root = ET.fromstring(data)
    return {root.tag: _element_to_value(root)}


def _append_value(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _append_value(parent, tag, item)
        return
    _fill_element(ET.SubElement(parent, tag), value)


def _fill_element(element: ET.Element, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, dict):
        element.text = str(value)
        return
    for key, child in value.items():
        if key == TEXT_KEY:
            element.text = str(child)
        elif key.startswith(ATTRIBUTE_PREFIX):
            element.set(key[len(ATTRIBUTE_PREFIX) :], str(child))
        else:
            _append_value(element, key, child)


def encode_xml(payload: dict[str, Any]) -> bytes:
    """Serialize a single-rooted JSON-shaped tree back into an XML document.

    Raises:
        ValueError: If ``payload`` does not have exactly one root key
    """
    if not isinstance(payload, dict) or len(payload) != 1:
        raise ValueError("XML payload must be a mapping with exactly one root element")
    ((tag, value),) = payload.items()
    root = ET.Element(tag)
    _fill_element(root, value)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def decode_body(data: bytes, body_format: BodyFormat) -> Any:
    """Decode raw body bytes in the given format.

    Raises:
        ValueError: On malformed JSON or undecodable bytes
        xml.etree.ElementTree.ParseError: On malformed XML
    """
    if body_format is BodyFormat.JSON:
        return json.loads(data)
    return decode_xml(data)


def try_decode_body(data: bytes, body_format: BodyFormat) -> Any | None:
    """Best-effort variant of :func:`decode_body` returning None on failure.

    Documents nested deeper than the interpreter stack allows count as failures.
    """
    try:
        return decode_body(data, body_format)
    except (ValueError, ET.ParseError, RecursionError):
        return None


def encode_body(payload: Any, body_format: BodyFormat) -> bytes:
    """Encode a payload for sending with the given format."""
    if body_format is BodyFormat.JSON:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return encode_xml(payload)
