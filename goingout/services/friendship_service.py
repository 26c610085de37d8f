"""Friend requests and the per-user friend arrays they maintain.

Each user owns their ``friends`` array and is the only party that writes to
it, with one exception: :func:`add_friend`, which updates both rows in one
transaction. The request flow is asymmetric:

1. ``send_friend_request`` stores a ``pending`` row.
2. ``accept_friend_request`` adds the sender to the *receiver's* array and
   marks the row ``accepted``.
3. ``sync_accepted_requests``, run on the sender's behalf, adds the receiver
   to the sender's array and deletes the row.

Until step 3 runs the friendship is one-sided, and ``get_friends`` hides
one-sided entries.
"""
from __future__ import annotations

import logging
from typing import Any, cast
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import (
    FRIEND_REQUEST_ACCEPTED,
    FRIEND_REQUEST_LIMIT,
    FRIEND_REQUEST_PENDING,
)
from ..models import FriendRequest, User
from ..utils import utcnow
from .notification_service import NotificationType, notify_safely
from .streams import friend_stream_manager, schedule_broadcast
from .user_service import (
    array_remove,
    array_union,
    get_user_by_username,
    get_users_by_keys,
    lock_user,
    normalize_username,
    reload_user,
    user_key,
)

logger = logging.getLogger(__name__)


def _request_between(db: Session, from_id: UUID, to_id: UUID) -> FriendRequest | None:
    stmt = select(FriendRequest).where(
        and_(FriendRequest.from_user_id == from_id, FriendRequest.to_user_id == to_id)
    )
    return db.scalars(stmt).first()


def _get_request_or_404(db: Session, request_id: UUID) -> FriendRequest:
    request = db.get(FriendRequest, request_id)
    if request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    return request


def _resolve_target(db: Session, actor: User, username: str) -> User:
    candidate = normalize_username(username)
    if not candidate:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username required")
    if candidate == user_key(actor):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot send a friend request to yourself",
        )
    target = get_user_by_username(db, candidate)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return target


def _ensure_not_blocked(actor: User, other: User) -> None:
    if user_key(other) in (actor.blocked or []):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You have blocked this user")
    if user_key(actor) in (other.blocked or []):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot interact with this user")


def serialize_request(request: FriendRequest) -> dict[str, Any]:
    return {
        "id": str(request.id),
        "from_user_id": str(request.from_user_id),
        "to_user_id": str(request.to_user_id),
        "from_username": request.from_user.username if request.from_user is not None else None,
        "to_username": request.to_user.username if request.to_user is not None else None,
        "status": request.status,
        "created_at": request.created_at,
    }


def send_friend_request(db: Session, *, sender: User, recipient_username: str) -> FriendRequest:
    me = reload_user(db, sender)
    recipient = _resolve_target(db, me, recipient_username)
    _ensure_not_blocked(me, recipient)

    if user_key(recipient) in (me.friends or []) and user_key(me) in (recipient.friends or []):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already friends")

    sender_id = cast(UUID, me.id)
    recipient_id = cast(UUID, recipient.id)

    existing = _request_between(db, sender_id, recipient_id)
    if existing is not None:
        if existing.status == FRIEND_REQUEST_PENDING:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Request already sent")
        if existing.status == FRIEND_REQUEST_ACCEPTED:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A previous request exists. Please wait for it to be processed.",
            )

    reverse = _request_between(db, recipient_id, sender_id)
    if reverse is not None and reverse.status == FRIEND_REQUEST_PENDING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This user already sent you a request")

    if existing is not None:
        # A terminal row that was never cleaned up; reuse it for the new request.
        request = existing
        request.status = FRIEND_REQUEST_PENDING
        request.created_at = utcnow()
        request.responded_at = None
    else:
        request = FriendRequest(
            from_user_id=sender_id,
            to_user_id=recipient_id,
            status=FRIEND_REQUEST_PENDING,
            created_at=utcnow(),
        )
        db.add(request)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send request") from exc
    db.refresh(request)

    notify_safely(
        db,
        recipient_id=recipient_id,
        sender=me,
        type_=NotificationType.FRIEND_REQUEST,
        message="sent you a friend request",
    )
    schedule_broadcast(
        friend_stream_manager,
        str(recipient_id),
        {"type": "friend_request.created", "request": serialize_request(request)},
    )
    return request


def list_friend_requests(db: Session, *, user: User) -> tuple[list[FriendRequest], list[FriendRequest]]:
    """Return ``(incoming, outgoing)`` pending requests, newest first.

    Incoming requests from users the caller has blocked are hidden.
    """

    me = reload_user(db, user)
    user_id = cast(UUID, me.id)
    incoming_stmt = (
        select(FriendRequest)
        .where(FriendRequest.to_user_id == user_id, FriendRequest.status == FRIEND_REQUEST_PENDING)
        .order_by(FriendRequest.created_at.desc())
        .limit(FRIEND_REQUEST_LIMIT)
    )
    outgoing_stmt = (
        select(FriendRequest)
        .where(FriendRequest.from_user_id == user_id, FriendRequest.status == FRIEND_REQUEST_PENDING)
        .order_by(FriendRequest.created_at.desc())
        .limit(FRIEND_REQUEST_LIMIT)
    )
    blocked = set(me.blocked or [])
    incoming = [request for request in db.scalars(incoming_stmt) if user_key(request.from_user) not in blocked]
    outgoing = list(db.scalars(outgoing_stmt))
    return incoming, outgoing


def accept_friend_request(db: Session, *, request_id: UUID, recipient: User) -> FriendRequest:
    """Add the sender to the recipient's own friends and mark the request accepted.

    The sender's array is only written by :func:`sync_accepted_requests`,
    which runs here straight away when the sender has a live friends stream.
    """

    request = _get_request_or_404(db, request_id)
    recipient_id = cast(UUID, recipient.id)
    if cast(UUID, request.to_user_id) != recipient_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    if request.status != FRIEND_REQUEST_PENDING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Request already processed")

    me = lock_user(db, recipient)
    sender = db.get(User, cast(UUID, request.from_user_id))
    if sender is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    _ensure_not_blocked(me, sender)

    me.friends = array_union(me.friends, user_key(sender))
    request.status = FRIEND_REQUEST_ACCEPTED
    request.responded_at = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to accept request") from exc
    db.refresh(request)

    logger.info("Friend request %s accepted", request.id)
    schedule_broadcast(
        friend_stream_manager,
        str(sender.id),
        {"type": "friend_request.accepted", "request": serialize_request(request)},
    )
    schedule_broadcast(friend_stream_manager, str(me.id), {"type": "friends.updated", "friends": list(me.friends)})
    notify_safely(
        db,
        recipient_id=cast(UUID, sender.id),
        sender=me,
        type_=NotificationType.FRIEND_ACCEPTED,
        message="accepted your friend request",
    )
    if friend_stream_manager.connection_count(str(sender.id)):
        # The sender is subscribed, so its side of the friendship is applied now.
        try:
            sync_accepted_requests(db, user=sender)
        except HTTPException:
            logger.warning("Deferred friend sync for %s after accepting %s", sender.id, request.id)
    return request


def sync_accepted_requests(db: Session, *, user: User) -> list[str]:
    """Apply every accepted request ``user`` sent to ``user``'s own friends array.

    Consumed request rows are deleted. Returns the usernames that were added.
    Receivers the user has since blocked are not added, but their rows are
    still removed.
    """

    stmt = select(FriendRequest).where(
        FriendRequest.from_user_id == cast(UUID, user.id),
        FriendRequest.status == FRIEND_REQUEST_ACCEPTED,
    )
    accepted = list(db.scalars(stmt))
    if not accepted:
        return []

    me = lock_user(db, user)
    friends = list(me.friends or [])
    blocked = set(me.blocked or [])
    added: list[str] = []
    for request in accepted:
        receiver = request.to_user
        if receiver is not None:
            key = user_key(receiver)
            if key not in blocked and key not in friends:
                friends.append(key)
                added.append(key)
        db.delete(request)
    me.friends = friends

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to sync friends") from exc

    if added:
        logger.info("Synced %d accepted friend requests for %s", len(added), me.id)
        schedule_broadcast(friend_stream_manager, str(me.id), {"type": "friends.updated", "friends": list(friends)})
    return added


def decline_friend_request(db: Session, *, request_id: UUID, recipient: User) -> None:
    request = _get_request_or_404(db, request_id)
    if cast(UUID, request.to_user_id) != cast(UUID, recipient.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    _delete_pending(db, request)
    schedule_broadcast(
        friend_stream_manager,
        str(request.from_user_id),
        {"type": "friend_request.removed", "request_id": str(request_id), "reason": "declined"},
    )


def cancel_friend_request(db: Session, *, request_id: UUID, sender: User) -> None:
    request = _get_request_or_404(db, request_id)
    if cast(UUID, request.from_user_id) != cast(UUID, sender.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Request not found")
    _delete_pending(db, request)
    schedule_broadcast(
        friend_stream_manager,
        str(request.to_user_id),
        {"type": "friend_request.removed", "request_id": str(request_id), "reason": "cancelled"},
    )


def _delete_pending(db: Session, request: FriendRequest) -> None:
    if request.status != FRIEND_REQUEST_PENDING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Request already processed")
    try:
        db.execute(delete(FriendRequest).where(FriendRequest.id == request.id))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove request") from exc


def add_friend(db: Session, *, user: User, username: str) -> User:
    """Make two users friends immediately, writing both arrays in one transaction."""

    me = reload_user(db, user)
    other = _resolve_target(db, me, username)

    # Lock in a stable order so concurrent mutual adds cannot deadlock.
    first, second = sorted((me, other), key=lambda record: str(record.id))
    lock_user(db, first)
    lock_user(db, second)

    _ensure_not_blocked(me, other)
    my_key, other_key = user_key(me), user_key(other)
    if other_key in (me.friends or []) and my_key in (other.friends or []):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already friends")

    me.friends = array_union(me.friends, other_key)
    other.friends = array_union(other.friends, my_key)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add friend") from exc
    db.refresh(me)

    schedule_broadcast(friend_stream_manager, str(me.id), {"type": "friends.updated", "friends": list(me.friends)})
    schedule_broadcast(friend_stream_manager, str(other.id), {"type": "friends.updated", "friends": list(other.friends)})
    return me


def remove_friend(db: Session, *, user: User, username: str) -> User:
    """Drop ``username`` from the caller's own array; the other row is not touched."""

    target_key = normalize_username(username)
    me = lock_user(db, user)
    me.friends = array_remove(me.friends, target_key)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove friend") from exc
    db.refresh(me)
    schedule_broadcast(friend_stream_manager, str(me.id), {"type": "friends.updated", "friends": list(me.friends)})
    return me


def get_friends(db: Session, *, user: User) -> list[User]:
    """Friends confirmed in both directions, in the caller's array order.

    Entries whose own array does not list the caller, or whose account no
    longer exists, are dropped.
    """

    me = reload_user(db, user)
    keys = list(me.friends or [])
    profiles = get_users_by_keys(db, keys)
    my_key = user_key(me)
    return [profiles[key] for key in keys if key in profiles and my_key in (profiles[key].friends or [])]


def check_friendship(db: Session, *, user: User, username: str) -> bool:
    me = reload_user(db, user)
    other = get_user_by_username(db, username)
    if other is None or other.id == me.id:
        return False
    return user_key(other) in (me.friends or []) and user_key(me) in (other.friends or [])


def friends_snapshot(db: Session, *, user: User) -> dict[str, Any]:
    """Payload pushed to a friend stream on connect and on demand."""

    friends = get_friends(db, user=user)
    incoming, outgoing = list_friend_requests(db, user=user)
    return {
        "type": "friends.snapshot",
        "friends": [
            {"id": str(friend.id), "username": friend.username, "name": friend.name, "avatar_url": friend.avatar_url}
            for friend in friends
        ],
        "incoming_requests": [serialize_request(request) for request in incoming],
        "outgoing_requests": [serialize_request(request) for request in outgoing],
    }


__all__ = [
    "send_friend_request",
    "list_friend_requests",
    "accept_friend_request",
    "sync_accepted_requests",
    "decline_friend_request",
    "cancel_friend_request",
    "add_friend",
    "remove_friend",
    "get_friends",
    "check_friendship",
    "friends_snapshot",
    "serialize_request",
]
