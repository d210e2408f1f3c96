import pytest

from viewkit.ui.nodes import Node


def _tree():
    root = Node("div", id="root")
    form = root.append(Node("form", class_="todo wide"))
    field = form.append(Node("input", id="title", type="text"))
    return root, form, field


def test_containment():
    root, form, field = _tree()

    assert root.contains(field)
    assert form.contains(form)
    assert not field.contains(form)

    form.remove()
    assert not root.contains(field)


def test_selectors():
    root, form, field = _tree()

    assert root.find("form") is form
    assert root.find(".todo") is form
    assert root.find("form.todo.wide") is form
    assert root.find("#title") is field
    assert root.find("input#title") is field
    assert root.find("#root") is None
    assert root.find("form.missing") is None
    with pytest.raises(ValueError):
        root.find("div > p")


def test_find_by_id_matches_exact_id():
    root, form, field = _tree()
    odd = form.append(Node("section", id="intro.part"))

    assert root.find_by_id("title") is field
    assert root.find_by_id("intro.part") is odd
    assert root.find_by_id("root") is None
    assert root.find_by_id("my section") is None


def test_attribute_keywords():
    node = Node("input", type_="file", data_bind="todo.attachment")

    assert node.get_attribute("type") == "file"
    assert node.get_attribute("data-bind") == "todo.attachment"


def test_events_and_default_action():
    _, form, _ = _tree()
    seen = []

    def handler(event):
        seen.append(event.name)
        event.prevent_default()

    form.on("submit", handler)
    assert form.trigger("submit").default_prevented
    form.off("submit", handler)
    assert not form.trigger("submit").default_prevented
    assert seen == ["submit"]
    assert form.listener_count("submit") == 0


def test_on_returns_stop_listening():
    _, form, _ = _tree()
    seen = []

    stop = form.on("change", lambda event: seen.append(event.detail))
    form.trigger("change", value=1)
    stop()
    form.trigger("change", value=2)

    assert seen == [{"value": 1}]


def test_append_moves_node():
    root, form, field = _tree()

    root.append(field)

    assert field.parent is root
    assert field not in form.children
