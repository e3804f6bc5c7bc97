from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from .client import FoxbitClient, Subscription
from .di import AppContainer
from .exceptions import FoxbitConnectionError, FoxbitError

logger = logging.getLogger(__name__)

SubscribeFn = Callable[[], Awaitable[Subscription[Any]]]


def _describe(item: Any) -> str:
    if isinstance(item, list):
        return f"{len(item)} row(s)"
    if hasattr(item, "model_dump"):
        return str(item.model_dump(exclude_none=True))
    return repr(item)


async def _consume(container: AppContainer, label: str, subscribe: SubscribeFn) -> None:
    """Log every update of one feed, subscribing again after a reconnect."""
    client = container.client
    while not container.shutdown.is_set():
        try:
            subscription = await subscribe()
            async with subscription:
                async for item in subscription:
                    logger.info("%s: %s", label, _describe(item))
                    if container.shutdown.is_set():
                        return
        except FoxbitConnectionError as exc:
            logger.warning("%s interrupted: %s", label, exc)
        except FoxbitError as exc:
            logger.error("%s failed: %s", label, exc)
            return

        if container.shutdown.is_set():
            return
        logger.info("%s: waiting for the connection to come back", label)
        # Private feeds need the resumed session before they resubscribe
        await client.wait_until_ready()


def build_feeds(container: AppContainer) -> dict[str, SubscribeFn]:
    settings = container.settings
    streams = settings.streams
    client: FoxbitClient = container.client
    oms_id = settings.oms_id
    feeds: dict[str, SubscribeFn] = {}

    for instrument in streams.level1:
        feeds[f"level1[{instrument}]"] = lambda i=instrument: client.subscribe_level1(oms_id, i)
    for instrument in streams.level2:
        feeds[f"level2[{instrument}]"] = lambda i=instrument: client.subscribe_level2(oms_id, i, streams.level2_depth)
    for instrument in streams.ticker:
        feeds[f"ticker[{instrument}]"] = lambda i=instrument: client.subscribe_ticker(oms_id, i, streams.ticker_interval)
    for instrument in streams.trades:
        feeds[f"trades[{instrument}]"] = lambda i=instrument: client.subscribe_trades(oms_id, i)

    if streams.account_events:
        if settings.account_id is None:
            logger.error("account_events is enabled but account_id is not configured")
        elif not settings.credentials.configured:
            logger.error("account_events is enabled but no credentials are configured")
        else:
            account_id = settings.account_id
            feeds[f"account[{account_id}]"] = lambda: client.subscribe_account_events(account_id, oms_id)

    return feeds


async def run(container: AppContainer) -> None:
    logger.info("runtime starting")
    logger.debug("settings=%s", container.settings.redacted())

    feeds = build_feeds(container)
    if not feeds:
        logger.error("no streams configured")
        logger.info("runtime stopped")
        return

    client = container.client
    creds = container.settings.credentials
    await client.connect()
    try:
        if creds.configured:
            await client.login(
                creds.username,
                creds.password.get_secret_value(),
                creds.two_fa_code.get_secret_value() if creds.two_fa_code else None,
            )

        async with asyncio.TaskGroup() as tg:
            for label, subscribe in feeds.items():
                tg.create_task(_consume(container, label, subscribe), name=label)
            tg.create_task(_wait_shutdown(container, client))
    finally:
        await client.disconnect()

    logger.info("runtime stopped")


async def _wait_shutdown(container: AppContainer, client: FoxbitClient) -> None:
    await container.shutdown.wait()
    # Closing normally ends every open subscription
    await client.disconnect()
