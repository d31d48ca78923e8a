"""Webhook fan-out of tracker events."""

import asyncio

import httpx
from dagster import AssetExecutionContext, OpExecutionContext

from hls_tracker.config.constants import SIGNING_SECRET_HEADER
from hls_tracker.models.models import DeliveryOutcome, TrackerEvent


async def deliver_webhook(
    http_client: httpx.AsyncClient,
    target: str,
    event: TrackerEvent,
    signing_secret: str,
) -> DeliveryOutcome:
    """POST one event to one webhook target.

    :param http_client: Async HTTP client
    :param target: Webhook URI
    :param event: Tracker event
    :param signing_secret: Tracker signing secret
    :returns: DeliveryOutcome, never raises for delivery failures
    """
    try:
        response = await http_client.post(
            target,
            json=event.webhook_payload(),
            headers={SIGNING_SECRET_HEADER: signing_secret},
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return DeliveryOutcome(target=target, success=False, error_kind=type(e).__name__)

    if response.is_success:
        return DeliveryOutcome(target=target, success=True)
    return DeliveryOutcome(target=target, success=False, error_kind=f"HTTP {response.status_code}")


async def notify_webhooks(
    context: OpExecutionContext | AssetExecutionContext,
    http_client: httpx.AsyncClient,
    event: TrackerEvent,
    targets: list[str],
    signing_secret: str,
) -> list[DeliveryOutcome]:
    """Deliver an event to every webhook target concurrently.

    One target failing does not stop the others. Nothing is retried.

    :param context: Dagster context
    :param http_client: Async HTTP client
    :param event: Tracker event
    :param targets: Webhook URIs
    :param signing_secret: Tracker signing secret
    :returns: DeliveryOutcome per target, in target order
    """
    if not targets:
        context.log.info("No webhook targets configured")
        return []

    context.log.info(f"Firing {len(targets)} webhook(s)")
    outcomes = await asyncio.gather(
        *(deliver_webhook(http_client, target, event, signing_secret) for target in targets)
    )

    for outcome in outcomes:
        if outcome.success:
            context.log.debug(f"Webhook delivered to {outcome.target}")
        else:
            context.log.warning(f"Webhook delivery to {outcome.target} failed: {outcome.error_kind}")
    return list(outcomes)
