"""Raw request body collection.

Signature verification is byte-sensitive, so the body is accumulated exactly
as received and never decoded or re-serialized here.
"""

import logging
from collections.abc import AsyncIterator

from paygate.models.errors import IncompleteBodyError, PayloadTooLargeError

logger = logging.getLogger(__name__)


async def collect_body(
    stream: AsyncIterator[bytes] | None,
    *,
    max_bytes: int | None = None,
) -> bytes:
    """Drain a request body stream into a single bytes value.

    Reads until end-of-stream without trusting any Content-Length header.
    The stream is consumed exactly once.

    Args:
        stream: Async iterator of body chunks (e.g. ``request.stream()``)
        max_bytes: Optional upper bound on the accumulated body size

    Returns:
        The body, bit-identical to what was transmitted.

    Raises:
        IncompleteBodyError: No body, an empty body, or the stream failed
            before completion.
        PayloadTooLargeError: The body exceeded ``max_bytes``.
    """
    if stream is None:
        raise IncompleteBodyError("request has no body stream")

    buffer = bytearray()
    try:
        async for chunk in stream:
            buffer.extend(chunk)
            if max_bytes is not None and len(buffer) > max_bytes:
                raise PayloadTooLargeError(f"body exceeds {max_bytes} bytes")
    except PayloadTooLargeError:
        raise
    except Exception as e:
        # Client disconnects surface here; never hand back a partial body.
        logger.warning("Request body stream ended abnormally after %d bytes: %s", len(buffer), e)
        raise IncompleteBodyError(f"body stream failed: {type(e).__name__}") from e

    if not buffer:
        raise IncompleteBodyError("request body is empty")

    return bytes(buffer)
