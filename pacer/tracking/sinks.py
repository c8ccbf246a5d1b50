import logging

from .collaborators import ActionCallback, CallbackSubscription, NotificationAction
from .notifications import NotificationPayload

logger = logging.getLogger(__name__)


class InMemoryNotificationSink:
    """Keeps the current notification so a client can poll for it.

    Action presses reported by the client are fanned out to the listeners
    registered by the engine that owns the run.
    """

    def __init__(self, permission_granted: bool = True) -> None:
        self.permission_granted = permission_granted
        self.current: dict[str, NotificationPayload] = {}
        self._listeners: list[ActionCallback] = []

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def show(self, notification_id: str, payload: NotificationPayload) -> None:
        self.current[notification_id] = payload

    async def update(self, notification_id: str, payload: NotificationPayload) -> None:
        self.current[notification_id] = payload

    async def dismiss(self, notification_id: str) -> None:
        self.current.pop(notification_id, None)

    def add_action_listener(self, callback: ActionCallback) -> CallbackSubscription:
        self._listeners.append(callback)

        def release() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return CallbackSubscription(release)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch_action(self, action: NotificationAction) -> int:
        """Deliver an action press to every listener. Returns how many received it."""
        delivered = 0
        for callback in list(self._listeners):
            try:
                callback(action)
                delivered += 1
            except Exception as e:
                logger.error(f"Notification action handler failed for {action}: {e}")
        return delivered
