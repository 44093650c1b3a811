import logging
import uuid

import pytest
import sqlalchemy as sa

from linkup.core.constants import Role
from linkup.notifications import fanout
from linkup.notifications import service as notification_service
from linkup.notifications.constants import NotificationType, ReadStatus
from linkup.notifications.models import Notification
from linkup.exceptions import NotificationForbidden, NotificationNotFound


async def _count(db_session, user_id, type_=None) -> int:
    query = sa.select(sa.func.count()).select_from(Notification).where(Notification.user_id == user_id)
    if type_ is not None:
        query = query.where(Notification.type == type_)
    return (await db_session.execute(query)).scalar_one()


@pytest.mark.asyncio
async def test_notify_persists_row(db_session, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")

    notification = await fanout.notify(
        db_session,
        recipient_id=bob.id,
        type_=NotificationType.LIKE,
        content="alice liked your post",
        actor_id=alice.id,
        metadata={"post_id": "p1"},
    )

    assert notification is not None
    assert notification.is_read is False
    assert notification.payload == {"post_id": "p1"}
    assert await _count(db_session, bob.id) == 1


@pytest.mark.asyncio
async def test_self_notification_is_skipped(db_session, make_user) -> None:
    alice = await make_user("alice")
    result = await fanout.notify(
        db_session,
        recipient_id=alice.id,
        type_=NotificationType.COMMENT,
        content="alice commented on your post",
        actor_id=alice.id,
    )
    assert result is None
    assert await _count(db_session, alice.id) == 0


@pytest.mark.asyncio
async def test_missing_recipient_is_skipped(db_session, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="linkup.notifications.fanout"):
        result = await fanout.notify(
            db_session,
            recipient_id=uuid.uuid4(),
            type_=NotificationType.LIKE,
            content="someone liked your post",
        )
    assert result is None
    assert "does not exist" in caplog.text


@pytest.mark.asyncio
async def test_preferences_filter_types(db_session, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob", notification_types=[NotificationType.COMMENT.value])

    skipped = await fanout.notify_follow(db_session, target_id=bob.id, follower=alice)
    kept = await fanout.notify(
        db_session,
        recipient_id=bob.id,
        type_=NotificationType.COMMENT,
        content="alice commented on your post",
        actor_id=alice.id,
    )

    assert skipped is None
    assert kept is not None
    assert await _count(db_session, bob.id) == 1


@pytest.mark.asyncio
async def test_throttle_drops_excess_per_recipient_and_type(
    db_session, make_user, throttle, clock, caplog
) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")

    with caplog.at_level(logging.WARNING, logger="linkup.notifications.fanout"):
        for i in range(7):
            await fanout.notify(
                db_session,
                recipient_id=bob.id,
                type_=NotificationType.LIKE,
                content=f"like #{i}",
                actor_id=alice.id,
                throttle=throttle,
            )
    # a different type has its own window
    await fanout.notify(
        db_session,
        recipient_id=bob.id,
        type_=NotificationType.COMMENT,
        content="comment",
        actor_id=alice.id,
        throttle=throttle,
    )

    assert await _count(db_session, bob.id, NotificationType.LIKE) == 5
    assert await _count(db_session, bob.id, NotificationType.COMMENT) == 1
    assert "Rate limit exceeded" in caplog.text

    clock.advance(61)
    again = await fanout.notify(
        db_session,
        recipient_id=bob.id,
        type_=NotificationType.LIKE,
        content="like after window",
        actor_id=alice.id,
        throttle=throttle,
    )
    assert again is not None


@pytest.mark.asyncio
async def test_insert_failure_is_logged_and_swallowed(
    db_session, make_user, monkeypatch, caplog
) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")

    async def _boom(**kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(notification_service, "create_notification", _boom)

    with caplog.at_level(logging.ERROR, logger="linkup.notifications.fanout"):
        result = await fanout.notify_follow(db_session, target_id=bob.id, follower=alice)

    assert result is None
    assert "Failed to create FOLLOW notification" in caplog.text
    # the session is still usable afterwards
    assert await _count(db_session, bob.id) == 0


@pytest.mark.asyncio
async def test_report_fans_out_to_every_admin(db_session, make_user) -> None:
    reporter = await make_user("reporter")
    admin_one = await make_user("admin1", role=Role.ADMIN)
    admin_two = await make_user("admin2", role=Role.ADMIN)
    bystander = await make_user("bystander")
    post_id = uuid.uuid4()

    delivered = await fanout.notify_admins_of_report(
        db_session, reporter_id=reporter.id, post_id=post_id, reason="spam"
    )

    assert delivered == 2
    for admin in (admin_one, admin_two):
        assert await _count(db_session, admin.id, NotificationType.REPORT) == 1
    assert await _count(db_session, bystander.id) == 0
    row = (
        await db_session.execute(sa.select(Notification).where(Notification.user_id == admin_one.id))
    ).scalar_one()
    assert row.content == "A post was reported: spam"
    assert row.payload["post_id"] == str(post_id)


@pytest.mark.asyncio
async def test_report_without_admins_delivers_nothing(db_session, make_user) -> None:
    reporter = await make_user("reporter")
    delivered = await fanout.notify_admins_of_report(
        db_session, reporter_id=reporter.id, post_id=uuid.uuid4(), reason="spam"
    )
    assert delivered == 0


@pytest.mark.asyncio
async def test_banned_users_receive_nothing(db_session, make_user) -> None:
    alice = await make_user("alice")
    banned = await make_user("banned", is_banned=True)
    banned_admin = await make_user("banned_admin", role=Role.ADMIN, is_banned=True)
    admin = await make_user("admin", role=Role.ADMIN)

    skipped = await fanout.notify_follow(db_session, target_id=banned.id, follower=alice)
    delivered = await fanout.notify_admins_of_report(
        db_session, reporter_id=alice.id, post_id=uuid.uuid4(), reason="spam"
    )

    assert skipped is None
    assert delivered == 1
    assert await _count(db_session, banned.id) == 0
    assert await _count(db_session, banned_admin.id) == 0
    assert await _count(db_session, admin.id, NotificationType.REPORT) == 1


# ── Inbox service) ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_filters_by_read_status(db_session, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")
    rows = [
        await notification_service.create_notification(
            bob.id, alice.id, NotificationType.LIKE, f"like {i}", None, db_session
        )
        for i in range(3)
    ]
    await notification_service.mark_read(bob.id, rows[0].notification_id, db_session)

    _, total_all = await notification_service.list_notifications(
        bob.id, db_session, limit=20, offset=0, read_status=ReadStatus.ALL
    )
    unread, total_unread = await notification_service.list_notifications(
        bob.id, db_session, limit=20, offset=0, read_status=ReadStatus.UNREAD
    )
    read, total_read = await notification_service.list_notifications(
        bob.id, db_session, limit=20, offset=0, read_status=ReadStatus.READ
    )

    assert (total_all, total_unread, total_read) == (3, 2, 1)
    assert [n.notification_id for n in read] == [rows[0].notification_id]
    assert all(not n.is_read for n in unread)


@pytest.mark.asyncio
async def test_only_owner_can_modify(db_session, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")
    row = await notification_service.create_notification(
        bob.id, alice.id, NotificationType.LIKE, "like", None, db_session
    )

    with pytest.raises(NotificationForbidden):
        await notification_service.mark_read(alice.id, row.notification_id, db_session)
    with pytest.raises(NotificationForbidden):
        await notification_service.delete_notification(alice.id, row.notification_id, db_session)
    with pytest.raises(NotificationNotFound):
        await notification_service.mark_read(bob.id, uuid.uuid4(), db_session)


@pytest.mark.asyncio
async def test_mark_all_read_counts_only_unread(db_session, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")
    for i in range(2):
        await notification_service.create_notification(
            bob.id, alice.id, NotificationType.LIKE, f"like {i}", None, db_session
        )
    await notification_service.create_notification(
        alice.id, bob.id, NotificationType.LIKE, "like", None, db_session
    )

    assert await notification_service.mark_all_read(bob.id, db_session) == 2
    assert await notification_service.mark_all_read(bob.id, db_session) == 0
    _, unread_for_alice = await notification_service.list_notifications(
        alice.id, db_session, limit=20, offset=0, read_status=ReadStatus.UNREAD
    )
    assert unread_for_alice == 1
