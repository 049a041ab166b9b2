"""Notification sink registry. Defaults to emailing the store admin."""

from storefront.notifications.sink import EmailNotificationSink, NotificationSink

_current_sink: NotificationSink | None = None


def get_notification_sink() -> NotificationSink:
    global _current_sink
    if _current_sink is None:
        _current_sink = EmailNotificationSink()
    return _current_sink


def set_notification_sink(sink: NotificationSink) -> None:
    global _current_sink
    _current_sink = sink


def reset_notification_sink() -> None:
    global _current_sink
    _current_sink = None
