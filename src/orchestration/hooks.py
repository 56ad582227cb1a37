"""
Extension points around issue publish / unpublish.

Callbacks are registered per point and run in registration order. Each one
receives the same mutable LifecycleEvent: callbacks at a PRE point may veto
the operation (nothing has been changed yet), and any callback may defer a
side effect that runs once the operation has finished.

    hooks = LifecycleHooks()

    async def refuse_empty_issue(event: LifecycleEvent) -> None:
        if not event.data.get("publication_count"):
            event.veto("Issue has no publications")

    hooks.register(LifecyclePoint.PRE_PUBLISH, refuse_empty_issue)
"""

import inspect
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from src.kernel.exceptions import LifecycleVetoedError
from src.kernel.models.issue import Issue
from src.kernel.models.journal import Journal
from src.logging_config import get_logger

logger = get_logger(__name__)


class LifecyclePoint(str, Enum):
    PRE_PUBLISH = "pre_publish"
    POST_PUBLISH = "post_publish"
    PRE_UNPUBLISH = "pre_unpublish"
    POST_UNPUBLISH = "post_unpublish"

    @property
    def can_veto(self) -> bool:
        return self in (LifecyclePoint.PRE_PUBLISH, LifecyclePoint.PRE_UNPUBLISH)


SideEffect = Callable[[], Union[None, Awaitable[None]]]


@dataclass
class LifecycleEvent:
    """State shared by every callback of one lifecycle operation."""

    point: LifecyclePoint
    issue: Issue
    journal: Journal
    user_id: Optional[uuid.UUID] = None
    data: Dict[str, Any] = field(default_factory=dict)
    veto_reason: Optional[str] = None
    deferred: List[SideEffect] = field(default_factory=list)

    @property
    def vetoed(self) -> bool:
        return self.veto_reason is not None

    def veto(self, reason: str) -> None:
        if not self.point.can_veto:
            raise RuntimeError(f"{self.point.value} callbacks cannot veto")
        self.veto_reason = reason

    def defer(self, effect: SideEffect) -> None:
        self.deferred.append(effect)


Callback = Callable[[LifecycleEvent], Union[None, Awaitable[None]]]


class LifecycleHooks:
    """Ordered callback registry keyed by lifecycle point."""

    def __init__(self) -> None:
        self._callbacks: Dict[LifecyclePoint, List[Callback]] = {point: [] for point in LifecyclePoint}

    def register(self, point: LifecyclePoint, callback: Callback) -> Callback:
        self._callbacks[point].append(callback)
        return callback

    def unregister(self, point: LifecyclePoint, callback: Callback) -> None:
        self._callbacks[point].remove(callback)

    def callbacks(self, point: LifecyclePoint) -> List[Callback]:
        return list(self._callbacks[point])

    def clear(self) -> None:
        for callbacks in self._callbacks.values():
            callbacks.clear()

    async def call(self, event: LifecycleEvent) -> LifecycleEvent:
        """
        Run the point's callbacks in order.

        Raises:
            LifecycleVetoedError: a callback at a PRE point vetoed; later
                callbacks are not run
        """
        for callback in self._callbacks[event.point]:
            result = callback(event)
            if inspect.isawaitable(result):
                await result
            if event.vetoed:
                logger.info(
                    "Lifecycle operation vetoed",
                    extra={
                        "point": event.point.value,
                        "issue_id": str(event.issue.id),
                        "reason": event.veto_reason,
                    },
                )
                raise LifecycleVetoedError(event.point.value, event.veto_reason)
        return event


async def run_deferred(events: List[LifecycleEvent]) -> int:
    """Run the side effects deferred by callbacks, in the order they were added."""
    count = 0
    for event in events:
        for effect in event.deferred:
            result = effect()
            if inspect.isawaitable(result):
                await result
            count += 1
    return count


# Application-wide registry; the lifecycle manager uses it unless given another
default_hooks = LifecycleHooks()
