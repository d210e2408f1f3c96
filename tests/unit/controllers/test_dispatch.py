"""
Tests for Controller.dispatch: filter ordering, effects, supersession and failures.
"""
import asyncio
import gc

import pytest

from viewkit.core.config import DispatchSettings
from viewkit.core.errors import (
    ActionExecutionError,
    ConfigurationError,
    DoubleEffectError,
    FilterExecutionError,
    UnknownActionError,
)
from viewkit.ui.controllers import (
    Controller,
    FilterPhase,
    HashScroller,
    LifecyclePhase,
    action,
    after_action,
    before_action,
)
from viewkit.ui.nodes import Node


class TodosController(Controller):
    routing_key = "todos"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.log = []

    @before_action
    def authenticate(self, params):
        self.log.append("before")

    @before_action(only=["show", "edit"])
    async def load_todo(self, params):
        await asyncio.sleep(0)
        self.todo = {"id": params.get("id")}
        self.log.append("load")

    @before_action(except_=["index"])
    def check_loaded(self, params):
        self.log.append(f"loaded:{getattr(self, 'todo', None) is not None}")

    @after_action
    def track(self, params):
        self.log.append(f"after:{self.action_name}")

    @action
    def index(self, params):
        self.log.append("action:index")

    @action
    def show(self, params):
        self.log.append("action:show")
        self.render()

    @action
    async def edit(self, params):
        self.log.append("action:edit")
        self.render("todos/form", into="modal")

    @action
    def create(self, params):
        self.log.append("action:create")
        self.redirect("/todos")

    def helper(self, params):
        self.log.append("helper")


class TestOrdering:

    @pytest.mark.asyncio
    async def test_before_filters_then_action_then_after(self):
        controller = TodosController()

        lifecycle = await controller.dispatch("index")

        assert controller.log == ["before", "action:index", "after:index"]
        assert lifecycle.phase is LifecyclePhase.SETTLED

    @pytest.mark.asyncio
    async def test_async_filter_output_visible_to_next_filter(self):
        controller = TodosController()

        await controller.dispatch("show", {"id": 7})

        assert controller.log == ["before", "load", "loaded:True", "action:show", "after:show"]
        assert controller.todo == {"id": 7}
        assert controller.params == {"id": 7}

    @pytest.mark.asyncio
    async def test_named_filter_scope(self):
        class Shows(Controller):
            def __init__(self):
                super().__init__()
                self.log = []

            @before_action("show")
            def only_for_show(self, params):
                self.log.append("filter")

            @action
            def index(self, params):
                pass

            @action
            def show(self, params):
                pass

        controller = Shows()
        await controller.dispatch("index")
        assert controller.log == []
        await controller.dispatch("show")
        assert controller.log == ["filter"]

    @pytest.mark.asyncio
    async def test_runtime_registered_filters(self):
        controller = TodosController()
        controller.register_filter(FilterPhase.BEFORE, {"only": ["index"]}, "helper")
        controller.register_filter(FilterPhase.AFTER, None, lambda ctrl, params: ctrl.log.append("lambda"))

        await controller.dispatch("index")

        assert controller.log == ["before", "helper", "action:index", "after:index", "lambda"]
        assert len(TodosController().filters) == 4

    @pytest.mark.asyncio
    async def test_subclass_inherits_filters(self):
        class Admin(TodosController):
            @before_action
            def audit(self, params):
                self.log.append("audit")

        controller = Admin()
        await controller.dispatch("index")

        assert controller.log == ["before", "audit", "action:index", "after:index"]
        assert "audit" not in [e.name for e in TodosController().filters.entries(FilterPhase.BEFORE)]


class TestEffects:

    @pytest.mark.asyncio
    async def test_after_filters_wait_for_render(self, deferred, spin):
        controller = TodosController(renderer=deferred)

        lifecycle = controller.dispatch("show", {"id": 1})
        await spin()

        assert lifecycle.phase is LifecyclePhase.AWAITING_EFFECT
        assert "after:show" not in controller.log

        deferred.complete_all()
        await lifecycle

        assert controller.log[-1] == "after:show"
        assert lifecycle.phase is LifecyclePhase.SETTLED

    @pytest.mark.asyncio
    async def test_render_targets(self, deferred, spin):
        controller = TodosController(renderer=deferred, settings=DispatchSettings(default_render_yield="content"))

        controller.dispatch("show", {"id": 1})
        await spin()
        deferred.complete_all()
        await controller.current_lifecycle
        controller.dispatch("edit", {"id": 1})
        await spin()
        deferred.complete_all()
        await controller.current_lifecycle

        assert [(view, target) for view, target, _ in deferred.calls] == [
            ("todos/show", "content"),
            ("todos/form", "modal"),
        ]

    @pytest.mark.asyncio
    async def test_render_without_renderer_completes_immediately(self):
        controller = TodosController()

        lifecycle = await controller.dispatch("show", {"id": 1})

        assert lifecycle.phase is LifecyclePhase.SETTLED

    @pytest.mark.asyncio
    async def test_redirect_waits_for_navigation(self, deferred, spin):
        controller = TodosController(navigator=deferred)

        lifecycle = controller.dispatch("create")
        await spin()
        assert deferred.calls[0][0] == "/todos"
        assert lifecycle.phase is LifecyclePhase.AWAITING_EFFECT

        deferred.complete_all()
        await lifecycle
        assert controller.log[-1] == "after:create"

    @pytest.mark.asyncio
    async def test_render_in_before_filter_blocks_next_filter(self, deferred, spin):
        class Gate(Controller):
            def __init__(self, **kwargs):
                super().__init__(**kwargs)
                self.log = []

            @before_action
            def splash(self, params):
                self.log.append("splash")
                self.render("splash")

            @before_action
            def second(self, params):
                self.log.append("second")

            @action
            def index(self, params):
                self.log.append("index")

        controller = Gate(renderer=deferred)
        lifecycle = controller.dispatch("index")
        await spin()
        assert controller.log == ["splash"]

        deferred.complete_all()
        await lifecycle
        assert controller.log == ["splash", "second", "index"]

    @pytest.mark.asyncio
    async def test_failed_render_aborts_dispatch(self, deferred, spin):
        controller = TodosController(renderer=deferred)

        lifecycle = controller.dispatch("show", {"id": 1})
        await spin()
        deferred.calls[0][2].fail(RuntimeError("template missing"))

        with pytest.raises(ActionExecutionError) as info:
            await lifecycle
        assert isinstance(info.value.__cause__, RuntimeError)
        assert "after:show" not in controller.log

    @pytest.mark.asyncio
    async def test_double_render_is_an_error(self):
        class Twice(Controller):
            @action
            def index(self, params):
                self.render()
                self.render()

        with pytest.raises(ActionExecutionError) as info:
            await Twice(renderer=None).dispatch("index")
        assert isinstance(info.value.__cause__, DoubleEffectError)

    def test_render_outside_dispatch(self):
        with pytest.raises(ConfigurationError):
            TodosController().render()


class TestSupersession:

    @pytest.mark.asyncio
    async def test_newer_dispatch_skips_pending_after_filters(self, deferred, spin):
        controller = TodosController(renderer=deferred)

        first = controller.dispatch("show", {"id": 1})
        await spin()
        assert first.phase is LifecyclePhase.AWAITING_EFFECT

        second = controller.dispatch("index")
        assert first.phase is LifecyclePhase.SUPERSEDED
        assert await first is first
        await second

        deferred.complete_all()
        await spin()

        assert "after:show" not in controller.log
        assert controller.log[-2:] == ["action:index", "after:index"]
        assert second.phase is LifecyclePhase.SETTLED

    @pytest.mark.asyncio
    async def test_immediate_redispatch_runs_only_latest_chain(self):
        controller = TodosController()

        first = controller.dispatch("show", {"id": 1})
        second = controller.dispatch("index")
        await asyncio.gather(first, second)

        assert first.is_superseded
        assert controller.log == ["before", "action:index", "after:index"]

    @pytest.mark.asyncio
    async def test_superseded_during_async_filter(self, spin):
        controller = TodosController()

        first = controller.dispatch("edit", {"id": 1})
        await asyncio.sleep(0)
        second = controller.dispatch("index")
        await asyncio.gather(first, second)
        await spin()

        assert "action:edit" not in controller.log
        assert "after:edit" not in controller.log
        assert controller.log[-1] == "after:index"


class TestFailures:

    @pytest.mark.asyncio
    async def test_unknown_action_raises_before_filters(self):
        controller = TodosController()

        with pytest.raises(UnknownActionError):
            controller.dispatch("destroy")
        with pytest.raises(UnknownActionError):
            controller.dispatch("helper")
        assert controller.log == []
        assert controller.current_lifecycle is None

    @pytest.mark.asyncio
    async def test_missing_filter_method_is_configuration_error(self):
        controller = TodosController()
        controller.register_filter(FilterPhase.BEFORE, None, "does_not_exist")

        with pytest.raises(ConfigurationError):
            controller.dispatch("index")
        assert controller.log == []

    @pytest.mark.asyncio
    async def test_failing_before_filter_aborts(self):
        controller = TodosController()

        def boom(ctrl, params):
            raise ValueError("denied")

        controller.register_filter(FilterPhase.BEFORE, None, boom)
        lifecycle = controller.dispatch("index")

        with pytest.raises(FilterExecutionError) as info:
            await lifecycle
        assert info.value.phase == "before"
        assert isinstance(info.value.__cause__, ValueError)
        assert controller.log == ["before"]
        assert lifecycle.phase is LifecyclePhase.ABORTED

    @pytest.mark.asyncio
    async def test_failing_action_skips_after_filters(self):
        class Broken(TodosController):
            @action
            def index(self, params):
                raise KeyError("todo")

        controller = Broken()

        with pytest.raises(ActionExecutionError):
            await controller.dispatch("index")
        assert controller.log == ["before"]

    @pytest.mark.asyncio
    async def test_failing_after_filter(self):
        controller = TodosController()

        def boom(ctrl, params):
            raise RuntimeError("tracking down")

        controller.register_filter(FilterPhase.AFTER, None, boom)

        with pytest.raises(FilterExecutionError) as info:
            await controller.dispatch("index")
        assert info.value.phase == "after"

    @pytest.mark.asyncio
    async def test_unawaited_failure_leaves_no_unretrieved_exception(self, spin):
        class Broken(TodosController):
            @action
            def index(self, params):
                raise KeyError("todo")

        loop = asyncio.get_running_loop()
        reported = []
        previous = loop.get_exception_handler()
        loop.set_exception_handler(lambda _, ctx: reported.append(ctx))
        try:
            lifecycle = Broken().dispatch("index")
            await spin()
            assert lifecycle.phase is LifecyclePhase.ABORTED
            del lifecycle
            gc.collect()
            await spin()
        finally:
            loop.set_exception_handler(previous)

        assert reported == []


class TestScrollToHash:

    def _page(self):
        root = Node("div")
        target = root.append(Node("section", id="comments"))
        return root, target

    @pytest.mark.asyncio
    async def test_scrolls_after_settle(self):
        root, target = self._page()
        controller = TodosController(scroller=HashScroller(root))

        await controller.dispatch("index", {"#": "comments"})

        assert target.scrolled_into_view

    @pytest.mark.asyncio
    async def test_disabled_by_settings(self):
        root, target = self._page()
        controller = TodosController(
            scroller=HashScroller(root),
            settings=DispatchSettings(auto_scroll_to_hash=False),
        )

        await controller.dispatch("index", {"#": "comments"})

        assert not target.scrolled_into_view

    @pytest.mark.asyncio
    async def test_no_scroll_when_superseded(self, deferred, spin):
        root, target = self._page()
        controller = TodosController(renderer=deferred, scroller=HashScroller(root))

        first = controller.dispatch("show", {"id": 1, "#": "comments"})
        await spin()
        second = controller.dispatch("index")
        deferred.complete_all()
        await asyncio.gather(first, second)

        assert not target.scrolled_into_view

    @pytest.mark.asyncio
    @pytest.mark.parametrize("node_id", ["intro.part", "my section", "/top"])
    async def test_scrolls_to_ids_that_are_not_identifiers(self, node_id):
        root = Node("div")
        decoy = root.append(Node("section", id="intro", class_="part"))
        target = root.append(Node("section", id=node_id))
        controller = TodosController(scroller=HashScroller(root))

        lifecycle = controller.dispatch("index", {"#": node_id})
        await lifecycle

        assert lifecycle.phase is LifecyclePhase.SETTLED
        assert target.scrolled_into_view
        assert not decoy.scrolled_into_view
