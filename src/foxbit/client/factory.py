"""Client construction from settings."""

from __future__ import annotations

import logging

from ..settings import Settings
from .connection import ReconnectPolicy
from .foxbit import FoxbitClient

logger = logging.getLogger(__name__)


def create_reconnect_policy(settings: Settings) -> ReconnectPolicy:
    reconnect = settings.connection.reconnect
    return ReconnectPolicy(
        enabled=reconnect.enabled,
        initial_delay=reconnect.initial_delay,
        backoff_base=reconnect.backoff_base,
        max_delay=reconnect.max_delay,
        max_attempts=reconnect.max_attempts,
    )


def create_client_from_settings(settings: Settings) -> FoxbitClient:
    """Create an unconnected client configured from the ``connection`` section."""
    conn = settings.connection
    client = FoxbitClient(
        conn.url,
        request_timeout=conn.request_timeout,
        heartbeat=conn.heartbeat,
        reconnect=create_reconnect_policy(settings),
        resume_session=conn.resume_session,
    )
    logger.debug("Created client for %s (timeout=%ss)", conn.url, conn.request_timeout)
    return client
