from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any, Callable, Iterable, Iterator, Mapping
import xml.etree.ElementTree as ET


EventHandler = Callable[["SceneNode"], None]

_COMPOUND = re.compile(r"^(?P<tag>\*|[A-Za-z][\w:-]*)?(?P<rest>(?:[.#][\w-]+)*)$")
_PART = re.compile(r"([.#])([\w-]+)")


@dataclass(frozen=True)
class _Compound:
    tag: str | None
    node_id: str | None
    classes: tuple[str, ...]

    def matches(self, node: "SceneNode") -> bool:
        if self.tag is not None and self.tag != "*" and node.tag != self.tag:
            return False
        if self.node_id is not None and node.attrs.get("id") != self.node_id:
            return False
        return all(name in node.classes for name in self.classes)


def _parse_selector(selector: str) -> tuple[tuple[str, _Compound], ...]:
    steps: list[tuple[str, _Compound]] = []
    combinator = " "
    for token in selector.replace(">", " > ").split():
        if token == ">":
            if not steps:
                raise ValueError(f"unsupported selector: {selector!r}")
            combinator = ">"
            continue
        match = _COMPOUND.match(token)
        if match is None:
            raise ValueError(f"unsupported selector: {selector!r}")
        node_id: str | None = None
        classes: list[str] = []
        for kind, name in _PART.findall(match.group("rest")):
            if kind == "#":
                node_id = name
            else:
                classes.append(name)
        steps.append((combinator, _Compound(tag=match.group("tag"), node_id=node_id, classes=tuple(classes))))
        combinator = " "
    if not steps or combinator == ">":
        raise ValueError(f"unsupported selector: {selector!r}")
    return tuple(steps)


def _match_ancestors(node: "SceneNode", steps: tuple[tuple[str, _Compound], ...], combinator: str) -> bool:
    if not steps:
        return True
    prev_combinator, compound = steps[-1]
    parent = node.parent
    if combinator == ">":
        return parent is not None and compound.matches(parent) and _match_ancestors(parent, steps[:-1], prev_combinator)
    while parent is not None:
        if compound.matches(parent) and _match_ancestors(parent, steps[:-1], prev_combinator):
            return True
        parent = parent.parent
    return False


@dataclass(eq=False)
class SceneNode:
    """Retained scene-graph element (an SVG/DOM stand-in).

    Classes are kept in insertion order so exported markup is stable. `datum`
    carries the bound data record the way a d3 selection does.
    """

    tag: str
    attrs: dict[str, Any] = field(default_factory=dict)
    classes: list[str] = field(default_factory=list)
    text: str = ""
    datum: Any = None
    parent: "SceneNode | None" = field(default=None, repr=False)
    children: list["SceneNode"] = field(default_factory=list, repr=False)
    handlers: dict[str, EventHandler] = field(default_factory=dict, repr=False)

    @property
    def node_id(self) -> str | None:
        value = self.attrs.get("id")
        return None if value is None else str(value)

    def append(
        self,
        tag: str,
        attrs: Mapping[str, Any] | None = None,
        *,
        classes: Iterable[str] = (),
        text: str = "",
        datum: Any = None,
    ) -> "SceneNode":
        child = SceneNode(tag=tag, attrs=dict(attrs or {}), text=text, datum=datum, parent=self)
        for name in classes:
            child.classed(name, True)
        self.children.append(child)
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children = [c for c in self.parent.children if c is not self]
            self.parent = None

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []

    def get(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def set(self, name: str, value: Any) -> "SceneNode":
        if value is None:
            self.attrs.pop(name, None)
        else:
            self.attrs[name] = value
        return self

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def classed(self, name: str, enabled: bool) -> "SceneNode":
        if enabled and name not in self.classes:
            self.classes.append(name)
        elif not enabled and name in self.classes:
            self.classes.remove(name)
        return self

    def iter_descendants(self) -> Iterator["SceneNode"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def select_all(self, selector: str) -> list["SceneNode"]:
        steps = _parse_selector(selector)
        combinator, compound = steps[-1]
        return [
            node
            for node in self.iter_descendants()
            if compound.matches(node) and _match_ancestors(node, steps[:-1], combinator)
        ]

    def select(self, selector: str) -> "SceneNode | None":
        found = self.select_all(selector)
        return found[0] if found else None

    def on(self, event: str, handler: EventHandler | None) -> "SceneNode":
        if handler is None:
            self.handlers.pop(event, None)
        else:
            self.handlers[event] = handler
        return self

    def dispatch(self, event: str) -> int:
        """Invoke every handler registered for `event`, including `event.namespace` ones."""

        fired = 0
        for name, handler in list(self.handlers.items()):
            if name == event or name.startswith(event + "."):
                handler(self)
                fired += 1
        return fired

    def to_element(self) -> ET.Element:
        attrib = {str(k): _format_attr(v) for k, v in self.attrs.items()}
        if self.classes:
            attrib["class"] = " ".join(self.classes)
        element = ET.Element(self.tag, attrib)
        if self.text:
            element.text = self.text
        for child in self.children:
            element.append(child.to_element())
        return element

    def to_svg(self) -> str:
        return ET.tostring(self.to_element(), encoding="unicode")


def _format_attr(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
