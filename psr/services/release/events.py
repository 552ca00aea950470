from __future__ import annotations

import httpx

from psr.core.result import Err, Ok, Result
from psr.services.plugin.descriptor import PluginDescriptor
from psr.services.release_errors import StoreError

EVENT_TIMEOUT_SECONDS = 10.0


def release_event_payload(descriptor: PluginDescriptor) -> dict[str, object]:
    return {
        "plugin": descriptor.name,
        "version": descriptor.version,
        "label": dict(descriptor.label),
        "changelogs": dict(descriptor.changelogs),
    }


async def publish_release_event(
    webhook_url: str,
    descriptor: PluginDescriptor,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Result[None, StoreError]:
    """POST a JSON release event to the configured webhook."""
    try:
        async with httpx.AsyncClient(
            timeout=EVENT_TIMEOUT_SECONDS, transport=transport
        ) as client:
            response = await client.post(webhook_url, json=release_event_payload(descriptor))
    except httpx.HTTPError as e:
        return Err(StoreError(message=str(e) or type(e).__name__, url=webhook_url))

    if response.status_code >= 400:
        return Err(
            StoreError(
                message=response.reason_phrase or "webhook rejected the event",
                status=response.status_code,
                url=webhook_url,
            )
        )
    return Ok(None)
