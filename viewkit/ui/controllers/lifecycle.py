"""
Dispatch lifecycle and effects.

One ``DispatchLifecycle`` tracks one execution of an action:

    PENDING -> RUNNING_BEFORE -> RUNNING_ACTION -> AWAITING_EFFECT -> RUNNING_AFTER -> SETTLED

Any non-terminal phase may move to SUPERSEDED (a newer dispatch on the
same controller took over) or ABORTED (a filter or the action raised).

An ``Effect`` is the completion handle of a render or redirect. Waiting on
it is what lets after-filters run only once the view is ready or the
navigation committed.
"""
import asyncio
from enum import Enum
from typing import Any, Dict, Generator, Optional

from loguru import logger


class LifecyclePhase(Enum):
    PENDING = "pending"
    RUNNING_BEFORE = "running_before"
    RUNNING_ACTION = "running_action"
    AWAITING_EFFECT = "awaiting_effect"
    RUNNING_AFTER = "running_after"
    SETTLED = "settled"
    SUPERSEDED = "superseded"
    ABORTED = "aborted"


TERMINAL_PHASES = frozenset({LifecyclePhase.SETTLED, LifecyclePhase.SUPERSEDED, LifecyclePhase.ABORTED})

_FORWARD = {
    LifecyclePhase.PENDING: {LifecyclePhase.RUNNING_BEFORE},
    LifecyclePhase.RUNNING_BEFORE: {LifecyclePhase.RUNNING_ACTION},
    LifecyclePhase.RUNNING_ACTION: {LifecyclePhase.AWAITING_EFFECT, LifecyclePhase.RUNNING_AFTER},
    LifecyclePhase.AWAITING_EFFECT: {LifecyclePhase.RUNNING_AFTER},
    LifecyclePhase.RUNNING_AFTER: {LifecyclePhase.SETTLED},
}


class EffectKind(Enum):
    RENDER = "render"
    REDIRECT = "redirect"


class Effect:
    """
    Completion handle for a render or redirect.

    The collaborator performing the effect calls ``resolve()`` when the view
    is ready or the navigation committed, or ``fail()`` if it could not.
    """

    def __init__(self, kind: EffectKind, target: Optional[str] = None, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.kind = EffectKind(kind)
        self.target = target
        self._future: asyncio.Future = (loop or asyncio.get_running_loop()).create_future()
        self._future.add_done_callback(self._log_outcome)

    @classmethod
    def completed(cls, kind: EffectKind, target: Optional[str] = None, result: Any = None) -> 'Effect':
        effect = cls(kind, target)
        effect.resolve(result)
        return effect

    @property
    def future(self) -> asyncio.Future:
        return self._future

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, result: Any = None) -> None:
        if not self._future.done():
            self._future.set_result(result)

    def fail(self, error: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(error)

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()

    def __repr__(self) -> str:
        state = "done" if self.done else "pending"
        return f"<Effect {self.kind.value} -> {self.target} ({state})>"

    def _log_outcome(self, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.debug(f"{self.kind.value} effect for '{self.target}' failed: {error}")


def _mark_error_retrieved(future: asyncio.Future) -> None:
    # Aborted dispatches are logged by the controller; awaiting still raises
    if not future.cancelled():
        future.exception()


class DispatchLifecycle:
    """
    Per-dispatch token; also the completion handle returned by ``dispatch``.

    Awaiting it waits until the lifecycle settles, is superseded, or aborts,
    and re-raises the error of an aborted dispatch.

    Example:
        lifecycle = controller.dispatch("show", {"id": 1})
        await lifecycle
        assert lifecycle.phase is LifecyclePhase.SETTLED
    """

    def __init__(self, action_name: str, params: Dict[str, Any], owner: str = ""):
        loop = asyncio.get_running_loop()
        self.action_name = action_name
        self.params = params
        self.owner = owner
        self.phase = LifecyclePhase.PENDING
        self.pending_effect: Optional[Effect] = None
        self.error: Optional[BaseException] = None
        self.task: Optional[asyncio.Task] = None
        self._superseded = asyncio.Event()
        self._completion: asyncio.Future = loop.create_future()
        self._completion.add_done_callback(_mark_error_retrieved)

    def __repr__(self) -> str:
        return f"<DispatchLifecycle {self.owner}#{self.action_name} {self.phase.value}>"

    def __await__(self) -> Generator[Any, None, 'DispatchLifecycle']:
        return self._completion.__await__()

    @property
    def completion(self) -> asyncio.Future:
        return self._completion

    @property
    def is_live(self) -> bool:
        return self.phase not in TERMINAL_PHASES

    @property
    def is_superseded(self) -> bool:
        return self.phase is LifecyclePhase.SUPERSEDED

    def advance(self, phase: LifecyclePhase) -> None:
        """
        Move forward along the normal path.

        Raises:
            RuntimeError: On a transition the state machine does not allow.
        """
        if phase not in _FORWARD.get(self.phase, ()):
            raise RuntimeError(f"{self!r} cannot move to {phase.value}")
        logger.debug(f"{self.owner}#{self.action_name}: {self.phase.value} -> {phase.value}")
        self.phase = phase
        if phase is LifecyclePhase.SETTLED:
            self._finish()

    def supersede(self) -> bool:
        """Stop all remaining filter work. Effects already in flight are not cancelled."""
        if not self.is_live:
            return False
        logger.info(f"{self.owner}#{self.action_name} superseded during {self.phase.value}")
        self.phase = LifecyclePhase.SUPERSEDED
        self._superseded.set()
        self._finish()
        return True

    def abort(self, error: BaseException) -> None:
        if not self.is_live:
            return
        self.phase = LifecyclePhase.ABORTED
        self.error = error
        if not self._completion.done():
            self._completion.set_exception(error)

    def attach_effect(self, effect: Effect) -> None:
        self.pending_effect = effect

    async def wait_for_effect(self) -> bool:
        """
        Wait for the pending effect, or for supersession, whichever comes first.

        Returns:
            True if the effect completed while the lifecycle is still live.

        Raises:
            Exception: Whatever the effect failed with.
        """
        effect = self.pending_effect
        if effect is None:
            return self.is_live
        superseded = asyncio.ensure_future(self._superseded.wait())
        try:
            done, _ = await asyncio.wait({effect.future, superseded}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            superseded.cancel()
        if effect.future in done and self.is_live:
            self.pending_effect = None
            effect.future.result()
            return True
        return False

    def _finish(self) -> None:
        if not self._completion.done():
            self._completion.set_result(self)
