"""Notification layer package for realtime outcome fan-out."""

from .fanout import NotificationDeliveryError, NotificationFanout
from .interfaces import NotificationDeliveryReport, NotificationFanoutPort

__all__ = [
	"NotificationDeliveryError",
	"NotificationDeliveryReport",
	"NotificationFanout",
	"NotificationFanoutPort",
]
