"""Change notification ingestion and artifact dispatch."""

from viewexport.export.adapter import NOTIFY_CHANNEL, PostgresNotifySubscription, Subscription
from viewexport.export.aggregator import PendingSet
from viewexport.export.channel import DispatchChannel
from viewexport.export.listener import OUTPUT_DIR, POLL_INTERVAL_SECONDS, ChangeListener

__all__ = [
    "ChangeListener",
    "DispatchChannel",
    "NOTIFY_CHANNEL",
    "OUTPUT_DIR",
    "POLL_INTERVAL_SECONDS",
    "PendingSet",
    "PostgresNotifySubscription",
    "Subscription",
]
