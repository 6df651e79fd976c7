"""
Tree Access Interface
The node abstraction the selector engine walks, plus the lxml-backed
implementation used for UIAutomator / XCUITest hierarchy dumps.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import logging
import re

from .selector import BOOLEAN_PROPERTIES, Selector

logger = logging.getLogger(__name__)

AttributeValue = Union[str, bool, None]


class UiNode(ABC):
    """Read-only view of one accessibility node"""

    @abstractmethod
    def child_count(self) -> int:
        """Number of child slots, including empty ones"""

    @abstractmethod
    def child_at(self, i: int) -> Optional["UiNode"]:
        """Child in slot i; None when the platform returned no node for it"""

    @abstractmethod
    def is_visible(self) -> bool:
        """Whether the node is visible to the user"""

    @abstractmethod
    def parent(self) -> Optional["UiNode"]:
        """Parent node, or None at a window root"""

    @abstractmethod
    def get(self, prop: str) -> AttributeValue:
        """Value of a selector property (see selector.STRING_PROPERTIES / BOOLEAN_PROPERTIES)"""

    def package_id(self) -> Optional[str]:
        value = self.get("package_name")
        return str(value) if value else None

    def title(self) -> Optional[str]:
        return None

    def matches(self, selector: Selector, index: int) -> bool:
        """
        Check a selector's predicates and positional index against this node.

        Args:
            selector: Selector whose own predicate group is tested (links are ignored)
            index: Position of this node among its parent's child slots

        Returns:
            True when every predicate holds
        """
        if selector.index is not None and selector.index != index:
            return False
        for predicate in selector.predicates:
            if not predicate.evaluate(self.get(predicate.prop)):
                return False
        return True


# Selector property -> XML attribute, per platform
ANDROID_ATTRIBUTES: Dict[str, str] = {
    "text": "text",
    "description": "content-desc",
    "class_name": "class",
    "package_name": "package",
    "resource_id": "resource-id",
    "checkable": "checkable",
    "checked": "checked",
    "clickable": "clickable",
    "enabled": "enabled",
    "focusable": "focusable",
    "focused": "focused",
    "long_clickable": "long-clickable",
    "scrollable": "scrollable",
    "selected": "selected",
}

IOS_ATTRIBUTES: Dict[str, str] = {
    "text": "label",
    "description": "name",
    "class_name": "type",
    "package_name": "bundleId",
    "resource_id": "name",
    "enabled": "enabled",
    "focused": "focused",
    "selected": "selected",
}

_VISIBILITY_ATTRIBUTE = {"android": "visible-to-user", "ios": "visible"}


def parse_bounds(bounds_str: str) -> Optional[Dict[str, int]]:
    """
    Parse bounds string to coordinates
    Android: [x1,y1][x2,y2]
    iOS: {{x,y},{w,h}}
    """
    if not bounds_str:
        return None

    if bounds_str.startswith('['):
        matches = re.findall(r'\[(-?\d+),(-?\d+)\]', bounds_str)
        if len(matches) == 2:
            x1, y1 = map(int, matches[0])
            x2, y2 = map(int, matches[1])
            return {'x': x1, 'y': y1, 'w': x2 - x1, 'h': y2 - y1}

    elif bounds_str.startswith('{'):
        matches = re.findall(r'\{(-?\d+),(-?\d+)\}', bounds_str)
        if len(matches) == 2:
            x, y = map(int, matches[0])
            w, h = map(int, matches[1])
            return {'x': x, 'y': y, 'w': w, 'h': h}

    logger.debug(f"Unrecognised bounds: {bounds_str!r}")
    return None


class XmlNode(UiNode):
    """
    A node of a parsed hierarchy dump.

    Child slots holding XML comments or processing instructions are kept as
    None entries, the same way a live accessibility tree can hand back a
    null child.
    """

    def __init__(self, element, parent: Optional["XmlNode"] = None, platform: str = 'android'):
        self.element = element
        self.platform = platform
        self._parent = parent
        self._children: List[Optional[XmlNode]] = []
        self._attribute_map = IOS_ATTRIBUTES if platform == 'ios' else ANDROID_ATTRIBUTES

    def add_child(self, child: Optional["XmlNode"]) -> None:
        self._children.append(child)

    @property
    def tag(self) -> str:
        return self.element.get('class') or self.element.get('type') or self.element.tag

    @property
    def attributes(self) -> Dict[str, str]:
        return dict(self.element.attrib)

    @property
    def bounds(self) -> Optional[Dict[str, int]]:
        raw = self.element.get('bounds')
        if raw:
            return parse_bounds(raw)
        if self.platform == 'ios' and self.element.get('width') is not None:
            try:
                return {
                    'x': int(float(self.element.get('x', '0'))),
                    'y': int(float(self.element.get('y', '0'))),
                    'w': int(float(self.element.get('width', '0'))),
                    'h': int(float(self.element.get('height', '0'))),
                }
            except ValueError:
                return None
        return None

    def child_count(self) -> int:
        return len(self._children)

    def child_at(self, i: int) -> Optional["XmlNode"]:
        return self._children[i]

    def children(self) -> List["XmlNode"]:
        return [c for c in self._children if c is not None]

    def parent(self) -> Optional["XmlNode"]:
        return self._parent

    def is_visible(self) -> bool:
        value = self.element.get(_VISIBILITY_ATTRIBUTE.get(self.platform, 'visible-to-user'))
        if value is None:
            return True
        return value.strip().lower() == 'true'

    def get(self, prop: str) -> AttributeValue:
        attr = self._attribute_map.get(prop)
        if attr is None:
            return None
        value = self.element.get(attr)
        if prop == "class_name" and not value:
            value = self.tag
        if value is None:
            return None
        if prop in BOOLEAN_PROPERTIES:
            return value.strip().lower() == 'true'
        return value

    def title(self) -> Optional[str]:
        """Window title as reported by the dump: the description, else the text"""
        return (self.get("description") or self.get("text") or None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag,
            'attributes': self.attributes,
            'bounds_computed': self.bounds,
        }

    def __repr__(self) -> str:
        label = self.get("resource_id") or self.get("text") or self.get("description") or ""
        return f"<XmlNode {self.tag} {label!r}>"
