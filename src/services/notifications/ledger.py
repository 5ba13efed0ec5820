"""Pure reducer for the unread-notification ledger."""

from __future__ import annotations

from src.models.notification import (
    LedgerEvent,
    MarkedAllRead,
    MarkedRead,
    NotificationLedger,
    PollResult,
    PushArrived,
)


def reduce(ledger: NotificationLedger, event: LedgerEvent) -> NotificationLedger:
    """Return the ledger that results from applying ``event`` to ``ledger``.

    Only ``PushArrived`` raises the unread flag on its own. Every poll result
    is authoritative and recomputes the flag from the count, so an earlier
    optimistic bump never survives it. Single reads are not decremented
    locally; the follow-up poll carries the new count.
    """

    revision = ledger.revision + 1
    if isinstance(event, PushArrived):
        return ledger.model_copy(update={"has_unread": True, "revision": revision})
    if isinstance(event, PollResult):
        return NotificationLedger(
            unread_count=event.unread_count,
            has_unread=event.unread_count > 0,
            revision=revision,
        )
    if isinstance(event, MarkedAllRead):
        return NotificationLedger(unread_count=0, has_unread=False, revision=revision)
    if isinstance(event, MarkedRead):
        return ledger.model_copy(update={"revision": revision})
    raise TypeError(f"Unsupported ledger event: {type(event).__name__}")
