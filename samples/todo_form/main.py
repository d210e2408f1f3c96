"""
Todo Form Sample.

Shows both halves of viewkit working together:
- a form bound with data-formfor-todo gets per-field error classes
- a controller dispatch loads the record in a before-filter, renders,
  and validates in an after-filter once the view is ready

Run with: python samples/todo_form/main.py
"""
import asyncio

from loguru import logger

from viewkit.core import ServiceLocator, setup_logging
from viewkit.ui.controllers import (
    Controller,
    ControllerRegistry,
    Effect,
    EffectKind,
    HashScroller,
    action,
    after_action,
    before_action,
)
from viewkit.ui.mvvm import BindableProperty, BindingTree, DirectiveBinder, Record, RenderContext
from viewkit.ui.nodes import Node


class Todo(Record):
    title = BindableProperty(default="")


def build_page() -> Node:
    page = Node("div", id="page")
    form = page.append(Node("form", **{"data-formfor-todo": "currentTodo"}))
    form.append(Node("div", class_="errors"))
    form.append(Node("input", type="text", **{"data-bind": "todo.title"}))
    page.append(Node("section", id="comments"))
    return page


class PageRenderer:
    """Binds the page and reports ready on the next loop iteration."""

    def __init__(self, page: Node):
        self.page = page
        self.tree = BindingTree()

    def render(self, controller, view, target, options):
        effect = Effect(EffectKind.RENDER, target)
        DirectiveBinder(self.tree).bind(self.page, RenderContext({"currentTodo": controller.todo}))
        asyncio.get_running_loop().call_soon(effect.resolve)
        return effect


class TodosController(Controller):
    routing_key = "todos"

    @before_action(only=["edit"])
    async def load_todo(self, params):
        await asyncio.sleep(0)
        self.todo = Todo(title=params.get("title", ""))

    @after_action
    def validate(self, params):
        if not self.todo.title:
            self.todo.errors.add("title", "can't be blank")

    @action
    def edit(self, params):
        self.render()


async def main():
    locator = ServiceLocator()
    locator.init(None)
    setup_logging(locator.config.data.general, log_to_file=False)
    page = build_page()

    registry = locator.register_system(ControllerRegistry)
    registry.configure(renderer=PageRenderer(page), scroller=HashScroller(page))
    registry.register(TodosController)
    await locator.start_all()

    await registry.dispatch("todos", "edit", {"title": "", "#": "comments"})

    field = page.find("input")
    logger.info(f"title field classes: {sorted(field.classes)}")
    logger.info(f"errors list shown when: {page.find('div.errors').get_attribute('data-showif')}")
    logger.info(f"comments scrolled into view: {page.find('#comments').scrolled_into_view}")

    await locator.stop_all()


if __name__ == "__main__":
    asyncio.run(main())
