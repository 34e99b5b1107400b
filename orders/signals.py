# Real-time notifications for area displays, cashiers and KDS screens
import logging

from django.core.cache import cache
from django.db import transaction
from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# Every signal is sent with ``group``, ``event`` and ``payload`` keyword arguments
order_status_changed = Signal()
stock_updated = Signal()
queue_event = Signal()

LAST_MESSAGE_KEY = 'broadcast:{group}:{event}'


def area_group(area_id):
    return f"Area-{area_id}"


def broadcast_to_area(signal, area_id, event, payload):
    """
    Publish ``payload`` as ``event`` to everyone listening on the area group.

    Inside a transaction the message waits for the commit and is dropped on
    rollback; outside one it is sent right away.
    """
    group = area_group(area_id)
    transaction.on_commit(lambda: signal.send(sender=None, group=group, event=event, payload=payload))


def last_message(area_id, event):
    """Most recent payload sent for ``event`` on the area group, if any"""
    return cache.get(LAST_MESSAGE_KEY.format(group=area_group(area_id), event=event))


@receiver([order_status_changed, stock_updated, queue_event])
def record_broadcast(sender, group, event, payload, **kwargs):
    """Log every broadcast and keep the latest one per group and event"""
    logger.info(f"Broadcast {event} to {group}: {payload}")
    cache.set(LAST_MESSAGE_KEY.format(group=group, event=event), payload, timeout=None)
