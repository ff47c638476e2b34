from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from tellbot.agent.commands.registry import CommandRegistry, build_registry
from tellbot.agent.router import EventRouter
from tellbot.agent.services import Services
from tellbot.bus.events import InboundMessage, OutboundMessage
from tellbot.bus.queue import MessageBus
from tellbot.config.schema import BotConfig, Config, StorageConfig

BOT_NICK = "tellbot"


def make_config(tmp_path: Path, **bot_overrides) -> Config:
    return Config(
        bot=BotConfig(**bot_overrides),
        storage=StorageConfig(db_path=str(tmp_path / "tellbot.db")),
    )


def make_services(config: Config) -> Services:
    services = Services.from_config(config)
    asyncio.run(services.db.init())
    return services


def drain(bus: MessageBus) -> list[OutboundMessage]:
    out = []
    while not bus.outbound.empty():
        out.append(bus.outbound.get_nowait())
    return out


class RouterHarness:
    """Routes events through a fresh bus and collects everything sent back."""

    def __init__(self, services: Services, registry: CommandRegistry, bot_nick: str = BOT_NICK) -> None:
        self.services = services
        self.registry = registry
        self.bot_nick = bot_nick

    async def say(self, bus: MessageBus, sender: str, target: str, text: str) -> list[OutboundMessage]:
        router = EventRouter(bus, self.services, self.registry, bot_nick=lambda: self.bot_nick)
        await router.handle(InboundMessage(sender_nick=sender, target=target, content=text))
        return drain(bus)

    def send(self, sender: str, target: str, text: str) -> list[str]:
        async def _go() -> list[OutboundMessage]:
            return await self.say(MessageBus(), sender, target, text)

        return [m.content for m in asyncio.run(_go())]


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return make_config(tmp_path)


@pytest.fixture
def services(config: Config) -> Services:
    return make_services(config)


@pytest.fixture
def registry(services: Services) -> CommandRegistry:
    return build_registry(services)


@pytest.fixture
def harness(services: Services, registry: CommandRegistry) -> RouterHarness:
    return RouterHarness(services, registry)
