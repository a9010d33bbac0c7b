"""Turn a raw Azure Monitor HTTP response into a MonitorResponse."""

import json

import httpx
from pydantic import ValidationError

from ..models.monitor_response import MonitorResponse
from ..utils.errors import DecodeError, ProviderError, TransportError


async def parse_response(response: httpx.Response) -> MonitorResponse:
    """
    Read, check and decode a metrics response.

    The body is read in full and the response closed exactly once, whatever
    the outcome. A non-2xx status is reported before any decoding is tried.

    Args:
        response: Response returned by the transport, possibly still streaming

    Returns:
        MonitorResponse: Decoded payload

    Raises:
        TransportError: If reading the body fails
        ProviderError: If the status is outside 200-299
        DecodeError: If the body is not JSON or does not match the payload shape
    """
    try:
        body = await response.aread()
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to read Azure monitor response: {e}") from e
    finally:
        await response.aclose()

    if response.status_code < 200 or response.status_code > 299:
        raise ProviderError(response.status_code, response.text)

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"Azure monitor response is not valid JSON: {e}") from e

    try:
        return MonitorResponse.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(f"Unexpected Azure monitor response shape: {e}") from e
