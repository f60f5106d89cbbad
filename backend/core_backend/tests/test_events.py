"""
After-commit events and the audit receivers connected to them.
"""
import json
import pytest
from unittest.mock import patch

from django.dispatch import Signal

from core_backend.events import publish_event
from core_backend.exceptions import InsufficientStockError
from orders.models import Order
from orders.services import OrderService


def audit_events(audit_logger):
    return [json.loads(call.args[0]) for call in audit_logger.info.call_args_list]


class TestPublishEvent:

    def test_sends_immediately_outside_a_transaction(self):
        signal = Signal()
        received = []
        signal.connect(lambda sender, **kwargs: received.append(kwargs), weak=False)

        publish_event(signal, sender=Order, order_number="ORD-1")

        assert received == [{"signal": signal, "order_number": "ORD-1"}]

    def test_failing_receiver_is_isolated(self):
        signal = Signal()
        received = []

        def broken(sender, **kwargs):
            raise RuntimeError("receiver bug")

        signal.connect(broken, weak=False)
        signal.connect(lambda sender, **kwargs: received.append(kwargs["value"]), weak=False)

        publish_event(signal, sender=Order, value=1)

        assert received == [1]


@pytest.mark.django_db
class TestAfterCommit:

    def test_waits_for_commit(self, django_capture_on_commit_callbacks):
        signal = Signal()
        received = []
        signal.connect(lambda sender, **kwargs: received.append(kwargs["value"]), weak=False)

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            publish_event(signal, sender=Order, value=1)
            assert received == []

        for callback in callbacks:
            callback()
        assert received == [1]

    def test_order_lifecycle_is_audited(self, staff_user, lemon_tea, django_capture_on_commit_callbacks):
        with patch("core_backend.signals.audit_logger") as audit_logger:
            with django_capture_on_commit_callbacks(execute=True):
                order = OrderService.create_order(staff_user, [{"product_id": lemon_tea.pk, "quantity": 1}])
            with django_capture_on_commit_callbacks(execute=True):
                OrderService.cancel_order(order.pk)

        events = audit_events(audit_logger)
        names = [event["event"] for event in events]
        assert names.count("stock_deducted") == 2
        assert names.count("order_created") == 1
        assert names.count("stock_restored") == 2
        assert names.count("order_status_changed") == 1

        created = next(event for event in events if event["event"] == "order_created")
        assert created["order_number"] == order.order_number
        assert created["staff_id"] == staff_user.pk
        assert created["final_amount"] == "12.00"

    def test_rolled_back_order_publishes_nothing(
        self, staff_user, pearl_milk_tea, django_capture_on_commit_callbacks
    ):
        with patch("core_backend.signals.audit_logger") as audit_logger:
            with django_capture_on_commit_callbacks(execute=True):
                with pytest.raises(InsufficientStockError):
                    OrderService.create_order(staff_user, [{"product_id": pearl_milk_tea.pk, "quantity": 20}])

        assert audit_events(audit_logger) == []

    def test_skipped_restoration_is_audited(self, pearls, django_capture_on_commit_callbacks):
        from inventory.services import InventoryService

        with patch("core_backend.signals.audit_logger") as audit_logger:
            with django_capture_on_commit_callbacks(execute=True):
                InventoryService.restore(pearls.pk, 11, reference_id="ORD-X")

        (event,) = audit_events(audit_logger)
        assert event["event"] == "stock_restoration_skipped"
        assert event["reference_id"] == "ORD-X"
        assert event["ceiling"] == "15.0000"
