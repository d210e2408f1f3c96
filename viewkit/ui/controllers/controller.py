"""
Controller - action dispatch wrapped by scoped before/after filters.

Declare actions with ``@action`` and filters with ``@before_action`` /
``@after_action`` (or at runtime with ``register_filter``). ``dispatch``
runs matching before-filters in order, the action body, waits for any
render or redirect it triggered, then runs matching after-filters.

Example:
    class TodosController(Controller):
        routing_key = "todos"

        @before_action(only=["show", "edit"])
        async def load_todo(self, params):
            self.todo = await self.store.find(params["id"])

        @action
        def show(self, params):
            self.render()

    await controller.dispatch("show", {"id": 3})
"""
import asyncio
import contextvars
import inspect
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Protocol, Tuple

from loguru import logger

from viewkit.core.config import DispatchSettings
from viewkit.core.errors import (
    ActionExecutionError,
    ConfigurationError,
    DoubleEffectError,
    FilterExecutionError,
    UnknownActionError,
)
from viewkit.ui.controllers.filters import FilterEntry, FilterPhase, FilterRegistry
from viewkit.ui.controllers.lifecycle import DispatchLifecycle, Effect, EffectKind, LifecyclePhase
from viewkit.ui.nodes import Node

HASH_PARAM = "#"

_current_lifecycle: contextvars.ContextVar[Optional[DispatchLifecycle]] = contextvars.ContextVar(
    "viewkit_current_lifecycle", default=None
)


class Renderer(Protocol):
    def render(self, controller: 'Controller', view: str, target: str, options: Dict[str, Any]) -> Effect: ...


class Navigator(Protocol):
    def navigate(self, url: str, options: Dict[str, Any]) -> Effect: ...


class HashScroller:
    """Scrolls the node whose id matches a URL hash into view."""

    def __init__(self, root: Node):
        self.root = root

    def scroll_to(self, hash_value: str) -> Optional[Node]:
        node = self.root.find_by_id(hash_value.lstrip("#"))
        if node is None:
            logger.debug(f"No node with id '{hash_value}' to scroll to")
            return None
        node.scroll_into_view()
        return node


# --- Declarations ---

def action(func: Callable) -> Callable:
    """Mark a controller method as a dispatchable action."""
    func._viewkit_action = True
    return func


def _filter_decorator(phase: FilterPhase, scope: Any, only: Any, except_: Any):
    def decorator(func: Callable) -> Callable:
        specs = getattr(func, "_viewkit_filters", [])
        if only is not None or except_ is not None:
            spec = {"only": only, "except": except_}
        else:
            spec = scope
        # Decorators apply bottom-up; keep top-down reading order
        func._viewkit_filters = [(phase, spec)] + specs
        return func

    # Bare @before_action
    if callable(scope) and only is None and except_ is None:
        func, scope = scope, None
        return decorator(func)
    return decorator


def before_action(scope: Any = None, *, only: Any = None, except_: Any = None):
    """Run the decorated method before matching actions."""
    return _filter_decorator(FilterPhase.BEFORE, scope, only, except_)


def after_action(scope: Any = None, *, only: Any = None, except_: Any = None):
    """Run the decorated method after matching actions and their render/redirect."""
    return _filter_decorator(FilterPhase.AFTER, scope, only, except_)


# --- Controller ---

class Controller:
    """
    Owner of one dispatch lifecycle at a time.

    Attributes:
        routing_key: Stable identifier used by routes and the registry.
    """

    routing_key: Optional[str] = None

    _class_filters: FilterRegistry = FilterRegistry()
    _actions: FrozenSet[str] = frozenset()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        registry = cls._class_filters.copy()
        actions = set(cls._actions)
        for name, attr in cls.__dict__.items():
            if getattr(attr, "_viewkit_action", False):
                actions.add(name)
            for phase, spec in getattr(attr, "_viewkit_filters", ()):
                registry.register(phase, spec, name)
        cls._class_filters = registry
        cls._actions = frozenset(actions)

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        navigator: Optional[Navigator] = None,
        scroller: Optional[HashScroller] = None,
        settings: Optional[DispatchSettings] = None,
    ):
        self.renderer = renderer
        self.navigator = navigator
        self.scroller = scroller
        self.settings = settings or DispatchSettings()
        self.filters = type(self)._class_filters.copy()
        self.action_name: Optional[str] = None
        self.params: Dict[str, Any] = {}
        self._lifecycle: Optional[DispatchLifecycle] = None

    @property
    def name(self) -> str:
        return self.routing_key or type(self).__name__

    @property
    def current_lifecycle(self) -> Optional[DispatchLifecycle]:
        return self._lifecycle

    @classmethod
    def action_names(cls) -> FrozenSet[str]:
        return cls._actions

    def has_action(self, action_name: str) -> bool:
        return action_name in self._actions

    def register_filter(self, phase: FilterPhase, scope: Any, filter_action: Any) -> FilterEntry:
        """
        Add a filter to this controller instance.

        ``filter_action`` is a method name, called as ``method(params)``, or a
        callable, called as ``fn(controller, params)``.
        """
        return self.filters.register(phase, scope, filter_action)

    # --- Dispatch ---

    def dispatch(self, action_name: str, params: Optional[Dict[str, Any]] = None) -> DispatchLifecycle:
        """
        Start running ``action_name`` and return its lifecycle (awaitable).

        Must be called from a running event loop. Any live lifecycle on
        this controller is superseded first.

        Raises:
            UnknownActionError: If the controller has no such action.
            ConfigurationError: If a filter names a method that does not exist.
        """
        if not self.has_action(action_name):
            logger.error(f"{self.name}: unknown action '{action_name}'")
            raise UnknownActionError(self.name, action_name)
        before = self._bind_filters(FilterPhase.BEFORE, action_name)
        after = self._bind_filters(FilterPhase.AFTER, action_name)

        previous = self._lifecycle
        if previous is not None and previous.is_live:
            previous.supersede()

        lifecycle = DispatchLifecycle(action_name, dict(params or {}), owner=self.name)
        self._lifecycle = lifecycle
        lifecycle.advance(LifecyclePhase.RUNNING_BEFORE)
        lifecycle.task = asyncio.ensure_future(self._run(lifecycle, before, after))
        return lifecycle

    async def _run(
        self,
        lifecycle: DispatchLifecycle,
        before: List[Tuple[FilterEntry, Callable]],
        after: List[Tuple[FilterEntry, Callable]],
    ) -> None:
        token = _current_lifecycle.set(lifecycle)
        try:
            if not await self._run_filters(lifecycle, before, "before"):
                return

            lifecycle.advance(LifecyclePhase.RUNNING_ACTION)
            self.action_name = lifecycle.action_name
            self.params = lifecycle.params
            try:
                await _maybe_await(getattr(self, lifecycle.action_name)(lifecycle.params))
                if lifecycle.pending_effect is not None and lifecycle.is_live:
                    lifecycle.advance(LifecyclePhase.AWAITING_EFFECT)
                    if not await lifecycle.wait_for_effect():
                        return
            except Exception as exc:
                self._abort(lifecycle, ActionExecutionError(lifecycle.action_name), exc)
                return
            if not lifecycle.is_live:
                return

            lifecycle.advance(LifecyclePhase.RUNNING_AFTER)
            if not await self._run_filters(lifecycle, after, "after"):
                return
            lifecycle.advance(LifecyclePhase.SETTLED)
            logger.debug(f"{self.name}#{lifecycle.action_name} settled")
            self._scroll_to_hash(lifecycle)
        finally:
            _current_lifecycle.reset(token)

    async def _run_filters(
        self,
        lifecycle: DispatchLifecycle,
        filters: List[Tuple[FilterEntry, Callable]],
        phase: str,
    ) -> bool:
        for entry, fn in filters:
            if not lifecycle.is_live:
                return False
            try:
                await _maybe_await(fn(lifecycle.params))
                if lifecycle.pending_effect is not None and not await lifecycle.wait_for_effect():
                    return False
            except Exception as exc:
                self._abort(lifecycle, FilterExecutionError(lifecycle.action_name, entry.name, phase), exc)
                return False
        return lifecycle.is_live

    def _abort(self, lifecycle: DispatchLifecycle, error: Exception, cause: Exception) -> None:
        error.__cause__ = cause
        logger.error(f"{self.name}: {error}: {cause!r}")
        lifecycle.abort(error)

    def _bind_filters(self, phase: FilterPhase, action_name: str) -> List[Tuple[FilterEntry, Callable]]:
        bound = []
        for entry in self.filters.resolve(phase, action_name):
            if isinstance(entry.action, str):
                method = getattr(self, entry.action, None)
                if not callable(method):
                    raise ConfigurationError(f"{self.name}: filter '{entry.action}' is not a method")
                bound.append((entry, method))
            else:
                bound.append((entry, _bind_callable(self, entry.action)))
        return bound

    def _scroll_to_hash(self, lifecycle: DispatchLifecycle) -> None:
        hash_value = lifecycle.params.get(HASH_PARAM)
        if hash_value and self.settings.auto_scroll_to_hash and self.scroller is not None:
            self.scroller.scroll_to(str(hash_value))

    # --- Effects ---

    def render(self, view: Optional[str] = None, *, into: Optional[str] = None, **options: Any) -> Effect:
        """
        Render ``view`` (default ``<name>/<action>``) into a yield target.

        Without ``into``, the configured default render yield is used.
        """
        lifecycle = self._effect_lifecycle("render")
        target = into or self.settings.default_render_yield
        view = view or f"{self.name}/{lifecycle.action_name}"
        if self.renderer is None:
            effect = Effect.completed(EffectKind.RENDER, target)
        else:
            effect = self.renderer.render(self, view, target, options)
        lifecycle.attach_effect(effect)
        logger.debug(f"{self.name}#{lifecycle.action_name} rendering '{view}' into '{target}'")
        return effect

    def redirect(self, url: str, **options: Any) -> Effect:
        lifecycle = self._effect_lifecycle("redirect")
        if self.navigator is None:
            raise ConfigurationError(f"{self.name}: redirect to '{url}' needs a navigator")
        effect = self.navigator.navigate(url, options)
        lifecycle.attach_effect(effect)
        logger.debug(f"{self.name}#{lifecycle.action_name} redirecting to '{url}'")
        return effect

    def _effect_lifecycle(self, what: str) -> DispatchLifecycle:
        lifecycle = _current_lifecycle.get()
        if lifecycle is None:
            raise ConfigurationError(f"{self.name}: {what}() called outside of a dispatch")
        if lifecycle.pending_effect is not None:
            raise DoubleEffectError(
                f"{self.name}#{lifecycle.action_name} already has a pending {lifecycle.pending_effect.kind.value}"
            )
        return lifecycle


def _bind_callable(controller: Controller, fn: Callable) -> Callable:
    def call(params: Dict[str, Any]) -> Any:
        return fn(controller, params)
    return call


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result
