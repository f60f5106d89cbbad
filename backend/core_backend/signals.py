"""
Audit receivers for fulfillment events.

Every order, production and ledger event is written as one JSON record to
the ``fulfillment.audit`` logger. Receivers run after commit through
send_robust (see core_backend.events), so a failure here never affects the
operation that produced the event.
"""
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.dispatch import receiver

from inventory.signals import (
    stock_adjusted,
    stock_deducted,
    stock_restoration_skipped,
    stock_restored,
)
from orders.signals import order_created, order_status_changed
from production.signals import production_stage_advanced

audit_logger = logging.getLogger("fulfillment.audit")


def _clean(value):
    # Users and other model instances are recorded by primary key
    if hasattr(value, "_meta") and hasattr(value, "pk"):
        return value.pk
    return value


def audit(event, **payload):
    payload.pop("signal", None)
    record = {"event": event}
    record.update({key: _clean(value) for key, value in payload.items()})
    audit_logger.info(json.dumps(record, cls=DjangoJSONEncoder, sort_keys=True))
    return record


@receiver(order_created)
def audit_order_created(sender, **kwargs):
    audit("order_created", **kwargs)


@receiver(order_status_changed)
def audit_order_status_changed(sender, **kwargs):
    audit("order_status_changed", **kwargs)


@receiver(production_stage_advanced)
def audit_production_stage_advanced(sender, **kwargs):
    audit("production_stage_advanced", **kwargs)


@receiver(stock_deducted)
def audit_stock_deducted(sender, **kwargs):
    audit("stock_deducted", **kwargs)


@receiver(stock_restored)
def audit_stock_restored(sender, **kwargs):
    audit("stock_restored", **kwargs)


@receiver(stock_restoration_skipped)
def audit_stock_restoration_skipped(sender, **kwargs):
    audit("stock_restoration_skipped", **kwargs)


@receiver(stock_adjusted)
def audit_stock_adjusted(sender, **kwargs):
    audit("stock_adjusted", **kwargs)
