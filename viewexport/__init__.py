"""Keep file exports of database views in sync with PostgreSQL LISTEN/NOTIFY."""

from viewexport.export import ChangeListener, DispatchChannel, PendingSet, PostgresNotifySubscription
from viewexport.mirror import Mirror
from viewexport.resources import Resource, ResourceRegistry, SqlResource, default_registry
from viewexport.service import start

__all__ = [
    "ChangeListener",
    "DispatchChannel",
    "Mirror",
    "PendingSet",
    "PostgresNotifySubscription",
    "Resource",
    "ResourceRegistry",
    "SqlResource",
    "default_registry",
    "start",
]
