"""
Controllers - filtered action dispatch.

Provides:
- FilterRegistry and scope variants (AllActions, NamedAction, OnlyActions, ExceptActions)
- DispatchLifecycle / Effect: per-dispatch state machine and completion handles
- Controller with @action, @before_action and @after_action
- ControllerRegistry: routing-key validation and shared controllers
"""
from viewkit.ui.controllers.filters import (
    FilterPhase,
    FilterEntry,
    FilterRegistry,
    AllActions,
    NamedAction,
    OnlyActions,
    ExceptActions,
    normalize_scope,
)
from viewkit.ui.controllers.lifecycle import (
    DispatchLifecycle,
    LifecyclePhase,
    Effect,
    EffectKind,
)
from viewkit.ui.controllers.controller import (
    Controller,
    HashScroller,
    action,
    before_action,
    after_action,
)
from viewkit.ui.controllers.registry import ControllerRegistry

__all__ = [
    "FilterPhase",
    "FilterEntry",
    "FilterRegistry",
    "AllActions",
    "NamedAction",
    "OnlyActions",
    "ExceptActions",
    "normalize_scope",
    "DispatchLifecycle",
    "LifecyclePhase",
    "Effect",
    "EffectKind",
    "Controller",
    "HashScroller",
    "action",
    "before_action",
    "after_action",
    "ControllerRegistry",
]
