"""Image saving tool."""

import base64
import binascii
import re

from langchain_core.tools import BaseTool, tool
from pydantic import BaseModel, Field

from askagent.tools.paths import ToolContext

DATA_URL_PREFIX = re.compile(r"^data:image/[^;]+;base64,")
BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]+=*$")


class SaveImageInput(BaseModel):
    """Input schema for saving an image."""

    imageName: str = Field(..., min_length=1, description="File name for the image, e.g. chart.png")  # noqa: N815
    content: str = Field(..., description="Base64 image data or a data URL (data:image/...;base64,...)")


def decode_image_content(content: str) -> bytes:
    """Decode base64 image data, accepting an optional data URL prefix.

    Raises:
        ValueError: If the content is neither a data URL nor plain base64
    """
    if not content.startswith("data:image/") and not BASE64_PATTERN.match(content):
        raise ValueError(
            "Invalid image content format. Expected base64 data or data URL (data:image/...), "
            f"but received: {content[:100]}..."
        )

    try:
        return base64.b64decode(DATA_URL_PREFIX.sub("", content), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e


def create_save_image_tool(context: ToolContext) -> BaseTool:
    @tool("saveImage", args_schema=SaveImageInput)
    async def save_image(imageName: str, content: str) -> str:  # noqa: N803
        """Save base64-encoded image data to a file inside the working directory.

        Accepts raw base64 or a data URL. New files are remembered so they can
        later be removed with removeFiles.
        """
        path = context.resolve(imageName)
        if not context.can_write(path):
            return "Access denied"

        try:
            data = decode_image_content(content)
        except ValueError as e:
            return str(e)

        existed = path.exists()
        try:
            path.write_bytes(data)
        except FileNotFoundError:
            return "Directory not found"
        except PermissionError:
            return "Access denied"

        if not existed:
            context.created_paths.add(path)

        return f"Image saved to {imageName}"

    return save_image
