"""
Content classifier.

Decides, from the content-type of a gateway response, whether to read and
parse the body or to hand back the resolved URL.

The gateway serves payloads uploaded without a Content-Type tag as
application/octet-stream; those are the structured values this package
writes, so their body is parsed as JSON. Anything else is treated as
large or binary content the caller should fetch directly.
"""

import json
import logging
from typing import Any

import httpx

from irys_mcp.errors import ClassificationError
from irys_mcp.result import Result

logger = logging.getLogger(__name__)

STRUCTURED_CONTENT_TYPE = "application/octet-stream"


def media_type(response: httpx.Response) -> str:
    """The content-type without parameters, lowercased."""
    content_type = response.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower()


def parse_payload(text: str) -> Any:
    """Parse text as JSON, falling back to the text itself."""
    try:
        return json.loads(text)
    except ValueError:
        return text


async def classify(response: httpx.Response, transaction_id: str = "") -> Result[Any]:
    """
    Classify one gateway response.

    The response body is single-use: it is read (or discarded) and the
    response is closed before returning.

    Args:
        response: An open, successful gateway response
        transaction_id: The id being processed, for error attribution

    Returns:
        Result with the parsed value, raw text, or the response URL
    """
    try:
        if media_type(response) != STRUCTURED_CONTENT_TYPE:
            return Result.ok(str(response.url))

        try:
            await response.aread()
            text = response.text
        except (httpx.HTTPError, UnicodeDecodeError) as e:
            logger.warning("Reading body of %s failed: %s", transaction_id, e)
            return Result.fail(ClassificationError(
                transaction_id=transaction_id,
                underlying_error=f"{type(e).__name__}: {e}",
            ))

        return Result.ok(parse_payload(text))
    finally:
        await response.aclose()
