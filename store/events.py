import inspect
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional
from settings import logger


@dataclass(frozen=True)
class ChangeEvent:
    """A mutation applied by the board store."""
    action: str
    entity: str
    entity_id: str
    board_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"type": "board_changed", **asdict(self)}


Listener = Callable[[ChangeEvent], Any]


class ChangeFeed:
    """In-process publisher of board mutations.

    Listeners may be plain callables or coroutine functions.
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def publish(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Change listener failed", extra={
                    "event": event.as_dict(),
                    "error": str(e)
                })

    def listener_count(self) -> int:
        return len(self._listeners)


# Global feed instance
change_feed = ChangeFeed()
