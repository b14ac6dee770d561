from typing import Any, Callable, List, Tuple

from savekeeper.util.log import logger


def get_upload_complete_topic(object_id: str, shop: str) -> str:
    return "upload-complete:%s:%s" % (object_id, shop)


def get_restore_complete_topic(object_id: str, shop: str) -> str:
    return "restore-complete:%s:%s" % (object_id, shop)


class NotificationSource:
    """Channel through which the backup engine tells the front end that an
    operation finished. Handlers are called with (topic, payload), right away
    and in priority order; the front end decides how to deliver them further.
    """

    def __init__(self) -> None:
        self._callbacks: List[Tuple[Callable, int]] = []

    def register(self, callback: Callable, priority: int = 0) -> None:
        """Registers a callback to be called on each notification; lower
        priorities run first."""
        self._callbacks.append((callback, priority))

    def notify(self, topic: str, payload: Any = None) -> None:
        for callback, _priority in sorted(self._callbacks, key=lambda t: t[1]):
            try:
                callback(topic, payload)
            except Exception as ex:  # pylint: disable=broad-except
                logger.exception("Notification handler %s failed for %s: %s", callback, topic, ex)
