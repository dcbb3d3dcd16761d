"""Conversion of raw tool output into message content parts."""

import json
import re
from typing import Any

from langchain_core.messages import ToolMessage

from askagent.models.messages import ImagePart, TextPart

DATA_URL = re.compile(r"^data:(?P<mime>[^;]+);base64,(?P<data>.*)$", re.DOTALL)

ContentParts = list[TextPart | ImagePart]


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def _block_to_part(block: Any) -> TextPart | ImagePart:
    if isinstance(block, str):
        return TextPart(text=block)

    if not isinstance(block, dict):
        return TextPart(text=_to_text(block))

    block_type = block.get("type")
    if block_type == "text":
        return TextPart(text=str(block.get("text", "")))

    if block_type == "image_url":
        image_url = block.get("image_url")
        url = image_url.get("url") if isinstance(image_url, dict) else image_url
        match = DATA_URL.match(url or "")
        if match:
            return ImagePart(mime_type=match.group("mime"), data=match.group("data"))

    if block_type == "image":
        data = block.get("data") or block.get("base64")
        mime_type = block.get("mime_type") or block.get("mimeType")
        source = block.get("source")
        if isinstance(source, dict) and source.get("type") == "base64":
            data, mime_type = source.get("data"), source.get("media_type")
        if data and mime_type:
            return ImagePart(mime_type=mime_type, data=data)

    return TextPart(text=_to_text(block))


def to_content_parts(result: Any) -> ContentParts:
    """Convert whatever a tool returned into text and image parts.

    Strings become a single text part; content-block lists keep their order
    with inline images recognised; anything else is rendered as JSON text.
    """
    if isinstance(result, ToolMessage):
        result = result.content

    if result is None:
        return [TextPart(text="")]

    if isinstance(result, str):
        return [TextPart(text=result)]

    if isinstance(result, list):
        return [_block_to_part(block) for block in result]

    return [_block_to_part(result)]


def count_images(parts: ContentParts) -> int:
    return sum(1 for part in parts if isinstance(part, ImagePart))
