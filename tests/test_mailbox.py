from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from tellbot.agent.services import Services
from tellbot.errors import QuotaExceededError, SchemaVersionError
from tellbot.storage.database import Database


def test_sixth_pending_message_is_rejected_without_writing(services: Services) -> None:
    mailbox = services.mailbox

    async def scenario():
        for i in range(5):
            await mailbox.queue("Alice", "Bob", "#test", f"hello {i}")
        with pytest.raises(QuotaExceededError):
            await mailbox.queue("Alice", "Bob", "#test", "one too many")
        return await mailbox.pending_count("Alice", "bob", "#test"), await mailbox.counts()

    pending, counts = asyncio.run(scenario())

    assert pending == 5
    assert counts == {"pending": 5, "delivered": 0}


def test_quota_is_scoped_to_sender_recipient_and_channel(services: Services) -> None:
    mailbox = services.mailbox

    async def scenario():
        for i in range(5):
            await mailbox.queue("Alice", "Bob", "#test", f"hello {i}")
        await mailbox.queue("Alice", "Bob", "#other", "other channel")
        await mailbox.queue("Alice", "Carol", "#test", "other recipient")
        await mailbox.queue("Dave", "Bob", "#test", "other sender")
        return await mailbox.counts()

    assert asyncio.run(scenario()) == {"pending": 8, "delivered": 0}


def test_quota_ignores_sender_and_recipient_case(services: Services) -> None:
    mailbox = services.mailbox

    async def scenario():
        for i in range(5):
            await mailbox.queue("Alice", "Bob", "#test", f"hello {i}")
        await mailbox.queue("ALICE", "BOB", "#test", "shouting")

    with pytest.raises(QuotaExceededError):
        asyncio.run(scenario())


def test_concurrent_tells_never_exceed_quota(services: Services) -> None:
    mailbox = services.mailbox

    async def scenario():
        results = await asyncio.gather(
            *(mailbox.queue("Alice", "Bob", "#test", f"msg {i}") for i in range(12)),
            return_exceptions=True,
        )
        return results, await mailbox.pending_count("Alice", "Bob", "#test")

    results, pending = asyncio.run(scenario())

    rejected = [r for r in results if isinstance(r, QuotaExceededError)]
    accepted = [r for r in results if not isinstance(r, BaseException)]
    assert len(accepted) == 5
    assert len(rejected) == 7
    assert pending == 5


def test_mark_delivered_transitions_only_once(services: Services) -> None:
    mailbox = services.mailbox

    async def scenario():
        entry = await mailbox.queue("Alice", "Bob", "#test", "hello")
        first = await mailbox.mark_delivered(entry.id)
        second = await mailbox.mark_delivered(entry.id)
        return first, second, await mailbox.get(entry.id)

    first, second, stored = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert stored.delivered is True


def test_delivered_messages_free_a_quota_slot(services: Services) -> None:
    mailbox = services.mailbox

    async def scenario():
        entries = [await mailbox.queue("Alice", "Bob", "#test", f"hello {i}") for i in range(5)]
        await mailbox.mark_delivered(entries[0].id)
        await mailbox.queue("Alice", "Bob", "#test", "room again")
        return await mailbox.counts()

    assert asyncio.run(scenario()) == {"pending": 5, "delivered": 1}


def test_pending_for_is_ordered_by_creation_time(services: Services) -> None:
    mailbox = services.mailbox
    base = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    async def scenario():
        await mailbox.queue("Carol", "bob", "#test", "third", base + timedelta(minutes=2))
        await mailbox.queue("Alice", "Bob", "#test", "first", base)
        await mailbox.queue("Dave", "BOB", "#test", "second", base + timedelta(minutes=1))
        await mailbox.queue("Alice", "Bob", "#elsewhere", "not here", base)
        return await mailbox.pending_for("Bob", "#test")

    entries = asyncio.run(scenario())

    assert [e.message for e in entries] == ["first", "second", "third"]
    assert {e.recipient for e in entries} == {"bob"}
    assert entries[0].created_at == base


def test_newer_schema_version_is_refused(tmp_path) -> None:
    db_path = tmp_path / "tellbot.db"
    asyncio.run(Database(db_path).init())
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA user_version = 99")
        conn.commit()

    with pytest.raises(SchemaVersionError, match="schema version mismatch"):
        asyncio.run(Database(db_path).init())


def test_init_is_idempotent(tmp_path) -> None:
    db = Database(tmp_path / "nested" / "tellbot.db")
    asyncio.run(db.init())
    asyncio.run(db.init())
    asyncio.run(db.ping())

    assert db.db_path.exists()
