"""
Selector Model
Immutable, chainable selectors in the style of Android's UiSelector.

A selector is a group of predicates plus optional links to other selectors:

    child      the next group must match a descendant of this node
    parent     the next group is searched from this node's parent
    container  scopes the search to the subtree of the container's match
    pattern    a repeated group, selected by instance or counted
    before / after
               bound the accepted match by document order

Every builder call returns a new Selector, so a selector can be shared and
reused across searches without copying.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from typing import Iterator, Optional, Pattern, Tuple, Union
import re

from .errors import MalformedSelectorError


class MatchMode(Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    MATCHES = "matches"


class LinkKind(Enum):
    CHILD = "child"
    PARENT = "parent"
    CONTAINER = "container"
    PATTERN = "pattern"
    BEFORE = "before"
    AFTER = "after"


STRING_PROPERTIES = ("text", "description", "class_name", "package_name", "resource_id")

BOOLEAN_PROPERTIES = (
    "checkable",
    "checked",
    "clickable",
    "enabled",
    "focusable",
    "focused",
    "long_clickable",
    "scrollable",
    "selected",
)

# (property, mode) -> UiSelector method name, used for rendering
_METHOD_NAMES = {
    ("text", MatchMode.EXACT): "text",
    ("text", MatchMode.CONTAINS): "textContains",
    ("text", MatchMode.STARTS_WITH): "textStartsWith",
    ("text", MatchMode.MATCHES): "textMatches",
    ("description", MatchMode.EXACT): "description",
    ("description", MatchMode.CONTAINS): "descriptionContains",
    ("description", MatchMode.STARTS_WITH): "descriptionStartsWith",
    ("description", MatchMode.MATCHES): "descriptionMatches",
    ("class_name", MatchMode.EXACT): "className",
    ("class_name", MatchMode.MATCHES): "classNameMatches",
    ("package_name", MatchMode.EXACT): "packageName",
    ("package_name", MatchMode.MATCHES): "packageNameMatches",
    ("resource_id", MatchMode.EXACT): "resourceId",
    ("resource_id", MatchMode.MATCHES): "resourceIdMatches",
    ("checkable", MatchMode.EXACT): "checkable",
    ("checked", MatchMode.EXACT): "checked",
    ("clickable", MatchMode.EXACT): "clickable",
    ("enabled", MatchMode.EXACT): "enabled",
    ("focusable", MatchMode.EXACT): "focusable",
    ("focused", MatchMode.EXACT): "focused",
    ("long_clickable", MatchMode.EXACT): "longClickable",
    ("scrollable", MatchMode.EXACT): "scrollable",
    ("selected", MatchMode.EXACT): "selected",
}

_LINK_METHOD_NAMES = {
    LinkKind.CHILD: "childSelector",
    LinkKind.PARENT: "fromParent",
    LinkKind.CONTAINER: "containerSelector",
    LinkKind.PATTERN: "patternSelector",
    LinkKind.BEFORE: "beforeSelector",
    LinkKind.AFTER: "afterSelector",
}


@lru_cache(maxsize=256)
def _compile(expression: str) -> Pattern:
    return re.compile(expression)


@dataclass(frozen=True)
class Predicate:
    """A single (property, expected value, mode) test"""

    prop: str
    expected: Union[str, bool]
    mode: MatchMode = MatchMode.EXACT

    def __post_init__(self):
        if self.prop in BOOLEAN_PROPERTIES:
            if not isinstance(self.expected, bool) or self.mode is not MatchMode.EXACT:
                raise MalformedSelectorError(f"{self.prop} takes a boolean and exact matching")
        elif self.prop in STRING_PROPERTIES:
            if not isinstance(self.expected, str):
                raise MalformedSelectorError(f"{self.prop} takes a string value")
            if (self.prop, self.mode) not in _METHOD_NAMES:
                raise MalformedSelectorError(f"{self.prop} does not support {self.mode.value} matching")
            if self.mode is MatchMode.MATCHES:
                try:
                    _compile(self.expected)
                except re.error as e:
                    raise MalformedSelectorError(f"Invalid regular expression {self.expected!r}: {e}")
        else:
            raise MalformedSelectorError(f"Unknown selector property: {self.prop}")

    def evaluate(self, value: Union[str, bool, None]) -> bool:
        """Test a node attribute value against this predicate"""
        if value is None:
            return False
        if self.prop in BOOLEAN_PROPERTIES:
            return bool(value) == self.expected
        value = str(value)
        if self.mode is MatchMode.EXACT:
            return value == self.expected
        if self.mode is MatchMode.CONTAINS:
            return self.expected.lower() in value.lower()
        if self.mode is MatchMode.STARTS_WITH:
            return value.lower().startswith(self.expected.lower())
        return _compile(self.expected).fullmatch(value) is not None

    def render(self) -> str:
        method = _METHOD_NAMES[(self.prop, self.mode)]
        if isinstance(self.expected, bool):
            return f"{method}({'true' if self.expected else 'false'})"
        return f"{method}({quote(self.expected)})"


def quote(value: str) -> str:
    """Quote a string literal for a UiSelector expression"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class Selector:
    """
    Immutable selector node.

    `links` keeps declaration order. A link whose target is None was declared
    without a body; the engine reports it as malformed instead of matching.
    On a selector with a pattern link, `instance` selects the pattern
    occurrence; otherwise it selects the n-th node this selector matches.
    """

    predicates: Tuple[Predicate, ...] = ()
    index: Optional[int] = None
    instance: Optional[int] = None
    links: Tuple[Tuple[LinkKind, Optional["Selector"]], ...] = field(default=())

    # ------------------------------------------------------------------
    # Link access
    # ------------------------------------------------------------------

    def has_link(self, kind: LinkKind) -> bool:
        return any(k is kind for k, _ in self.links)

    def link(self, kind: LinkKind) -> Optional["Selector"]:
        for k, target in self.links:
            if k is kind:
                return target
        return None

    @property
    def child(self) -> Optional["Selector"]:
        return self.link(LinkKind.CHILD)

    @property
    def parent(self) -> Optional["Selector"]:
        return self.link(LinkKind.PARENT)

    @property
    def container(self) -> Optional["Selector"]:
        return self.link(LinkKind.CONTAINER)

    @property
    def pattern(self) -> Optional["Selector"]:
        return self.link(LinkKind.PATTERN)

    @property
    def before(self) -> Optional["Selector"]:
        return self.link(LinkKind.BEFORE)

    @property
    def after(self) -> Optional["Selector"]:
        return self.link(LinkKind.AFTER)

    @property
    def is_leaf(self) -> bool:
        return not (self.has_link(LinkKind.CHILD) or self.has_link(LinkKind.PARENT))

    @property
    def has_range(self) -> bool:
        return self.has_link(LinkKind.BEFORE) or self.has_link(LinkKind.AFTER)

    @property
    def pattern_instance(self) -> int:
        return self.instance or 0

    def iter_chain(self) -> Iterator["Selector"]:
        """Yield this selector and every selector reached through child/parent links"""
        current: Optional[Selector] = self
        while current is not None:
            yield current
            if current.has_link(LinkKind.CHILD):
                current = current.child
            elif current.has_link(LinkKind.PARENT):
                current = current.parent
            else:
                current = None

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def with_predicate(self, prop: str, expected: Union[str, bool],
                       mode: MatchMode = MatchMode.EXACT) -> "Selector":
        """Add a predicate, replacing an existing one for the same property and mode"""
        predicate = Predicate(prop, expected, mode)
        kept = tuple(p for p in self.predicates if (p.prop, p.mode) != (prop, mode))
        return replace(self, predicates=kept + (predicate,))

    def text(self, value: str) -> "Selector":
        return self.with_predicate("text", value)

    def text_contains(self, value: str) -> "Selector":
        return self.with_predicate("text", value, MatchMode.CONTAINS)

    def text_starts_with(self, value: str) -> "Selector":
        return self.with_predicate("text", value, MatchMode.STARTS_WITH)

    def text_matches(self, regex: str) -> "Selector":
        return self.with_predicate("text", regex, MatchMode.MATCHES)

    def description(self, value: str) -> "Selector":
        return self.with_predicate("description", value)

    def description_contains(self, value: str) -> "Selector":
        return self.with_predicate("description", value, MatchMode.CONTAINS)

    def description_starts_with(self, value: str) -> "Selector":
        return self.with_predicate("description", value, MatchMode.STARTS_WITH)

    def description_matches(self, regex: str) -> "Selector":
        return self.with_predicate("description", regex, MatchMode.MATCHES)

    def class_name(self, value: str) -> "Selector":
        return self.with_predicate("class_name", value)

    def class_name_matches(self, regex: str) -> "Selector":
        return self.with_predicate("class_name", regex, MatchMode.MATCHES)

    def package_name(self, value: str) -> "Selector":
        return self.with_predicate("package_name", value)

    def package_name_matches(self, regex: str) -> "Selector":
        return self.with_predicate("package_name", regex, MatchMode.MATCHES)

    def resource_id(self, value: str) -> "Selector":
        return self.with_predicate("resource_id", value)

    def resource_id_matches(self, regex: str) -> "Selector":
        return self.with_predicate("resource_id", regex, MatchMode.MATCHES)

    def checkable(self, value: bool = True) -> "Selector":
        return self.with_predicate("checkable", value)

    def checked(self, value: bool = True) -> "Selector":
        return self.with_predicate("checked", value)

    def clickable(self, value: bool = True) -> "Selector":
        return self.with_predicate("clickable", value)

    def enabled(self, value: bool = True) -> "Selector":
        return self.with_predicate("enabled", value)

    def focusable(self, value: bool = True) -> "Selector":
        return self.with_predicate("focusable", value)

    def focused(self, value: bool = True) -> "Selector":
        return self.with_predicate("focused", value)

    def long_clickable(self, value: bool = True) -> "Selector":
        return self.with_predicate("long_clickable", value)

    def scrollable(self, value: bool = True) -> "Selector":
        return self.with_predicate("scrollable", value)

    def selected(self, value: bool = True) -> "Selector":
        return self.with_predicate("selected", value)

    def at_index(self, index: int) -> "Selector":
        if index < 0:
            raise MalformedSelectorError(f"index must be >= 0, got {index}")
        return replace(self, index=index)

    def at_instance(self, instance: int) -> "Selector":
        if instance < 0:
            raise MalformedSelectorError(f"instance must be >= 0, got {instance}")
        return replace(self, instance=instance)

    def with_link(self, kind: LinkKind, target: Optional["Selector"]) -> "Selector":
        """Set a link on this selector itself, replacing any link of the same kind"""
        kept = tuple((k, t) for k, t in self.links if k is not kind)
        return replace(self, links=kept + ((kind, target),))

    def _append_to_chain(self, kind: LinkKind, target: Optional["Selector"]) -> "Selector":
        # child/parent links attach to the last selector of the chain
        if self.has_link(LinkKind.CHILD) and self.child is not None:
            return self.with_link(LinkKind.CHILD, self.child._append_to_chain(kind, target))
        if self.has_link(LinkKind.PARENT) and self.parent is not None:
            return self.with_link(LinkKind.PARENT, self.parent._append_to_chain(kind, target))
        return self.with_link(kind, target)

    def child_selector(self, target: Optional["Selector"]) -> "Selector":
        return self._append_to_chain(LinkKind.CHILD, target)

    def from_parent(self, target: Optional["Selector"]) -> "Selector":
        return self._append_to_chain(LinkKind.PARENT, target)

    def container_selector(self, target: Optional["Selector"]) -> "Selector":
        return self.with_link(LinkKind.CONTAINER, target)

    def pattern_selector(self, target: Optional["Selector"], instance: Optional[int] = None) -> "Selector":
        selector = self.with_link(LinkKind.PATTERN, target)
        if instance is not None:
            selector = selector.at_instance(instance)
        return selector

    def before_selector(self, target: Optional["Selector"]) -> "Selector":
        return self.with_link(LinkKind.BEFORE, target)

    def after_selector(self, target: Optional["Selector"]) -> "Selector":
        return self.with_link(LinkKind.AFTER, target)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        parts = ["new UiSelector()"]
        parts.extend(p.render() for p in self.predicates)
        if self.index is not None:
            parts.append(f"index({self.index})")
        if self.instance is not None:
            parts.append(f"instance({self.instance})")
        for kind, target in self.links:
            body = "null" if target is None else str(target)
            parts.append(f"{_LINK_METHOD_NAMES[kind]}({body})")
        return ".".join(parts)


def new_selector() -> Selector:
    """Start an empty selector, the equivalent of `new UiSelector()`"""
    return Selector()
