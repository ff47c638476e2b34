from __future__ import annotations

import asyncio
import re
import sqlite3

import pytest

from conftest import BOT_NICK, RouterHarness, make_config, make_services
from tellbot.agent.commands.registry import build_registry
from tellbot.agent.router import EventRouter, parse_command
from tellbot.agent.services import Services
from tellbot.bus.events import InboundMessage
from tellbot.bus.queue import MessageBus

DELIVERY = re.compile(r'^Bob: "(?P<message>.*)" ~ Alice \[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} UTC\]$')


@pytest.mark.parametrize(
    "text, expected",
    [
        (".echo foo bar", ("echo", ["foo", "bar"])),
        ("  .SEEN   Bob  ", ("seen", ["Bob"])),
        (".tell bob hi there", ("tell", ["bob", "hi", "there"])),
        (".", None),
        (".   ", None),
        ("hello .echo", None),
        ("!echo hi", None),
    ],
)
def test_parse_command(text: str, expected) -> None:
    assert parse_command(text, ".") == expected


def test_scenario_a_sixth_tell_hits_quota(harness: RouterHarness, services: Services) -> None:
    for i in range(1, 6):
        assert harness.send("Alice", "#test", f".tell Bob hello {i}") == [
            "Alice: I'll pass that on when Bob is around."
        ]

    assert harness.send("Alice", "#test", ".tell Bob hello 6") == [
        "Sorry, you already have 5 pending messages for Bob."
    ]
    assert asyncio.run(services.mailbox.pending_count("Alice", "bob", "#test")) == 5


def test_scenario_b_recipient_speaking_delivers_in_order(harness: RouterHarness, services: Services) -> None:
    for i in range(1, 6):
        harness.send("Alice", "#test", f".tell Bob hello {i}")

    replies = harness.send("Bob", "#test", "morning all")

    assert len(replies) == 5
    messages = [DELIVERY.match(r).group("message") for r in replies]
    assert messages == [f"hello {i}" for i in range(1, 6)]
    assert asyncio.run(services.mailbox.counts()) == {"pending": 0, "delivered": 5}


def test_delivered_messages_are_not_delivered_again(harness: RouterHarness) -> None:
    harness.send("Alice", "#test", ".tell bob see you")

    assert len(harness.send("BOB", "#test", "hi")) == 1
    assert harness.send("bob", "#test", "hi again") == []


def test_delivery_waits_for_the_same_channel(harness: RouterHarness) -> None:
    harness.send("Alice", "#test", ".tell Bob hello")

    assert harness.send("Bob", "#elsewhere", "hi") == []
    assert len(harness.send("Bob", "#test", "hi")) == 1


def test_scenario_c_seen_unknown_nick(harness: RouterHarness) -> None:
    assert harness.send("Alice", "#test", ".seen charlie") == ["I haven't seen charlie around."]


def test_seen_after_activity(harness: RouterHarness) -> None:
    harness.send("Charlie", "#test", "brb")

    [reply] = harness.send("Alice", "#test", ".seen charlie")

    assert reply.startswith("charlie was last seen on ")
    assert reply.endswith('saying: "brb"')


def test_scenario_d_echo(harness: RouterHarness) -> None:
    assert harness.send("Alice", "#test", ".echo foo bar") == ["Alice said: foo bar"]
    assert harness.send("Alice", "#test", ".echo") == ["Usage: .echo <message>"]


def test_private_messages_are_discarded(harness: RouterHarness, services: Services) -> None:
    assert harness.send("Alice", BOT_NICK, ".echo hi") == []
    assert asyncio.run(services.activity.count()) == 0


def test_bot_ignores_its_own_messages(harness: RouterHarness, services: Services) -> None:
    assert harness.send(BOT_NICK.upper(), "#test", ".echo loop") == []
    assert asyncio.run(services.activity.count()) == 0


def test_unknown_command_is_silent(harness: RouterHarness, services: Services) -> None:
    assert harness.send("Alice", "#test", ".dance") == []
    assert asyncio.run(services.activity.last_seen("alice", "#test")).last_message == ".dance"


def test_mention_reply_is_off_by_default(harness: RouterHarness) -> None:
    assert harness.send("Alice", "#test", f"hey {BOT_NICK.upper()}") == []


def test_mention_reply_when_enabled(tmp_path) -> None:
    services = make_services(make_config(tmp_path, mention_reply=True))
    harness = RouterHarness(services, build_registry(services))

    assert harness.send("Alice", "#test", "hey TellBot, you there?") == [BOT_NICK]


def test_activity_failure_does_not_block_commands(
    harness: RouterHarness, services: Services, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def broken(*args, **kwargs):
        raise sqlite3.OperationalError("disk full")

    monkeypatch.setattr(services.activity, "record", broken)

    assert harness.send("Alice", "#test", ".echo still here") == ["Alice said: still here"]


def test_one_failed_delivery_does_not_block_the_rest(
    harness: RouterHarness, services: Services, monkeypatch: pytest.MonkeyPatch
) -> None:
    for i in range(1, 4):
        harness.send("Alice", "#test", f".tell Bob hello {i}")

    real_mark = services.mailbox.mark_delivered
    entries = asyncio.run(services.mailbox.pending_for("bob", "#test"))
    failing_id = entries[0].id

    async def flaky(entry_id: int) -> bool:
        if entry_id == failing_id:
            raise sqlite3.OperationalError("database is locked")
        return await real_mark(entry_id)

    monkeypatch.setattr(services.mailbox, "mark_delivered", flaky)

    assert len(harness.send("Bob", "#test", "hi")) == 3
    assert asyncio.run(services.mailbox.counts()) == {"pending": 1, "delivered": 2}


def test_failing_command_does_not_break_routing(
    harness: RouterHarness, registry, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(registry.get("echo"), "execute", explode)

    assert harness.send("Alice", "#test", ".echo hi") == []
    assert harness.send("Alice", "#test", ".help") == ["Available commands: .echo, .help, .seen, .tell"]


def test_run_loop_consumes_inbound_queue(services: Services, registry) -> None:
    async def scenario():
        bus = MessageBus()
        router = EventRouter(bus, services, registry, bot_nick=lambda: BOT_NICK)
        task = asyncio.create_task(router.run())

        await bus.publish_inbound(InboundMessage(sender_nick="Alice", target="#test", content=".echo one"))
        await bus.publish_inbound(InboundMessage(sender_nick="Alice", target="#test", content=".echo two"))

        replies = [await asyncio.wait_for(bus.consume_outbound(), timeout=5) for _ in range(2)]
        router.stop()
        await asyncio.wait_for(task, timeout=5)
        return [r.content for r in replies]

    assert asyncio.run(scenario()) == ["Alice said: one", "Alice said: two"]


def test_process_direct_collects_replies(services: Services, registry) -> None:
    router_replies = asyncio.run(
        EventRouter(MessageBus(), services, registry, bot_nick=lambda: BOT_NICK).process_direct(
            "Alice", "#test", ".echo direct"
        )
    )

    assert router_replies == ["Alice said: direct"]
