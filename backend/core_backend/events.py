"""
After-commit publishing of fulfillment events.

Events describe facts (order created, stock deducted, ...) so they must only
go out once the transaction that produced them has committed. Receivers are
called with send_robust: a failing receiver is logged and never affects the
operation that emitted the event.
"""
import logging

from django.db import transaction

logger = logging.getLogger(__name__)


def publish_event(signal, sender, **payload):
    """Send ``signal`` after the current transaction commits (or now if none)."""
    if transaction.get_connection().in_atomic_block:
        transaction.on_commit(lambda: _send(signal, sender, payload))
    else:
        _send(signal, sender, payload)


def _send(signal, sender, payload):
    for receiver, response in signal.send_robust(sender=sender, **payload):
        if isinstance(response, Exception):
            logger.error(
                f"Event receiver {getattr(receiver, '__qualname__', receiver)} failed "
                f"for {sender.__name__ if hasattr(sender, '__name__') else sender}: {response}"
            )
