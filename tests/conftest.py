import asyncio

import pytest

from viewkit.core.config import ConfigManager
from viewkit.ui.controllers.lifecycle import Effect, EffectKind
from viewkit.ui.mvvm.bindable import BindableProperty
from viewkit.ui.mvvm.keypath import RenderContext
from viewkit.ui.mvvm.record import Record
from viewkit.ui.mvvm.tree import BindingTree


class Todo(Record):
    title = BindableProperty(default="")
    notes = BindableProperty(default="")
    attachment = BindableProperty(default=None)


class DeferredEffects:
    """Renderer and navigator double: effects complete only when the test says so."""

    def __init__(self):
        self.calls = []

    def render(self, controller, view, target, options):
        effect = Effect(EffectKind.RENDER, target)
        self.calls.append((view, target, effect))
        return effect

    def navigate(self, url, options):
        effect = Effect(EffectKind.REDIRECT, url)
        self.calls.append((url, None, effect))
        return effect

    def complete_all(self):
        for _, _, effect in self.calls:
            effect.resolve()


async def _spin(times: int = 10):
    """Let scheduled dispatch tasks run until they block."""
    for _ in range(times):
        await asyncio.sleep(0)


@pytest.fixture
def spin():
    return _spin


@pytest.fixture
def todo_cls():
    return Todo


@pytest.fixture
def todo():
    return Todo(title="Draft")


@pytest.fixture
def tree():
    return BindingTree()


@pytest.fixture
def context(todo):
    return RenderContext({"todo": todo})


@pytest.fixture
def config():
    return ConfigManager(None)


@pytest.fixture
def deferred():
    return DeferredEffects()
