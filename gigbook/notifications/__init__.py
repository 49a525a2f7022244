from .emitter import LoggingNotificationEmitter, NotificationEmitter

__all__ = ["LoggingNotificationEmitter", "NotificationEmitter"]
