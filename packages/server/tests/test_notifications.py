"""
Tests for notification fan-out and the recipient-side procedures.
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from app.core.exceptions import NotFound
from app.models.notification import Notification
from app.services.notifications import (
    clear_notifications,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
    notify_company_role,
)
from signdir_shared.schemas.common import NotificationType, Role


@pytest.fixture
async def acme_team(make_company, add_member):
    acme = await make_company("alice", "acme-signs")
    await add_member("alice", "adam", Role.ADMIN)
    await add_member("alice", "ivan", Role.INSTALLER)
    await add_member("alice", "pete", Role.PENDING)
    return acme


@pytest.mark.asyncio
class TestFanOut:

    async def test_role_threshold_and_exclusion(self, call, acme_team, query):
        sent = await call(
            notify_company_role,
            acme_team.id,
            Role.INSTALLER,
            "alice",
            NotificationType.PROJECT_CHAT,
            "Title",
            "Body",
        )
        assert sent == 2
        rows = await query(select(Notification).where(Notification.title == "Title"))
        assert {n.recipient for n in rows} == {"adam", "ivan"}
        assert all(n.company_id == acme_team.id and not n.read for n in rows)

    async def test_empty_audience(self, call, make_company):
        acme = await make_company("alice", "acme-signs")
        sent = await call(
            notify_company_role, acme.id, Role.ADMIN, "alice",
            NotificationType.MEMBER_JOINED, "t", "b",
        )
        assert sent == 0


@pytest.mark.asyncio
class TestRecipientProcedures:

    async def _seed(self, call, company_id, count=3):
        for i in range(count):
            await call(
                notify_company_role, company_id, Role.ADMIN, None,
                NotificationType.CONNECTION_REQUEST, f"n{i}", "",
            )

    async def test_mark_one_read(self, call, acme_team):
        await self._seed(call, acme_team.id, 1)
        [note] = await call(list_notifications, "alice")

        updated = await call(mark_notification_read, "alice", note.id)
        assert updated.read is True

    async def test_cannot_touch_other_recipients_rows(self, call, acme_team):
        await self._seed(call, acme_team.id, 1)
        [note] = await call(list_notifications, "alice")
        with pytest.raises(NotFound):
            await call(mark_notification_read, "adam", note.id)
        with pytest.raises(NotFound):
            await call(mark_notification_read, "alice", uuid.uuid4())

    async def test_mark_all_then_clear(self, call, acme_team, make_company):
        other = await make_company("bob", "bolt-install")
        await self._seed(call, acme_team.id, 3)
        await call(
            notify_company_role, other.id, Role.ADMIN, None,
            NotificationType.CONNECTION_REQUEST, "elsewhere", "",
        )

        assert await call(mark_all_notifications_read, "alice", acme_team.id) == 3
        assert await call(mark_all_notifications_read, "alice", acme_team.id) == 0
        assert await call(clear_notifications, "alice", acme_team.id) == 3

        remaining = await call(list_notifications, "alice")
        assert remaining == []
        # Other recipients are untouched
        requests = [
            n for n in await call(list_notifications, "adam", company_id=acme_team.id)
            if n.type == NotificationType.CONNECTION_REQUEST.value
        ]
        assert len(requests) == 3 and not any(n.read for n in requests)

    async def test_clear_keeps_unread(self, call, acme_team):
        await self._seed(call, acme_team.id, 2)
        [first, _] = await call(list_notifications, "alice")
        await call(mark_notification_read, "alice", first.id)

        assert await call(clear_notifications, "alice", acme_team.id) == 1
        [left] = await call(list_notifications, "alice")
        assert left.read is False
