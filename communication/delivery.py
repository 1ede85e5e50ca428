"""
Delivery state tracking.

Message status only ever moves forward: ``sent -> delivered -> read``. The
delivered state is a best-effort snapshot taken at creation time from the
room size; after that the only transition is the jump to ``read``.
"""

import logging
from typing import List

from .models import Message

logger = logging.getLogger(__name__)

Status = Message.Status

STATUS_ORDER = [Status.SENT, Status.DELIVERED, Status.READ]


def advance(current: str, target: str) -> str:
    """Return whichever of the two statuses is further along."""
    current, target = Status(current), Status(target)
    if STATUS_ORDER.index(target) > STATUS_ORDER.index(current):
        return target
    return current


def initial_status(room_size: int) -> str:
    """Someone other than the sender is connected: delivered."""
    return Status.DELIVERED if room_size > 1 else Status.SENT


def add_reader(read_by: List[str], username: str) -> List[str]:
    """Append ``username`` to a read-by list unless it is already there."""
    read_by = list(read_by or [])
    if username not in read_by:
        read_by.append(username)
    return read_by


class DeliveryTracker:
    """Applies read receipts to persisted messages."""

    def mark_read(self, room_id: str, reader: str) -> List[str]:
        """
        Mark every unread message in ``room_id`` not authored by ``reader``
        as read by them.

        Idempotent: a second call finds nothing to update. Returns the ids of
        the messages that changed.
        """
        pending = (
            Message.objects
            .filter(room_id=room_id)
            .exclude(author=reader)
            .exclude(status=Status.READ)
        )
        changed = []
        for message in pending:
            message.status = advance(message.status, Status.READ)
            message.read_by = add_reader(message.read_by, reader)
            message.save(update_fields=["status", "read_by"])
            changed.append(str(message.id))

        if changed:
            logger.debug(f"{reader} read {len(changed)} messages in {room_id}")
        return changed


delivery_tracker = DeliveryTracker()
