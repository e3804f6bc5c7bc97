from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .client import FoxbitClient, create_client_from_settings

if TYPE_CHECKING:
    from .settings import Settings


@dataclass(slots=True)
class AppContainer:
    settings: "Settings"
    client: FoxbitClient
    shutdown: asyncio.Event = field(default_factory=asyncio.Event)


def build_container(settings: "Settings", client: FoxbitClient | None = None) -> AppContainer:
    """Build the application container, creating the client from settings if none is given."""
    return AppContainer(
        settings=settings,
        client=client or create_client_from_settings(settings),
    )
