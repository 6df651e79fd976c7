"""
Selector Suggestion
Generate UiSelector candidates for a node and keep the ones that find it again
"""
from typing import List, Optional
import logging

from .engine import SelectorEngine
from .node import UiNode
from .selector import Selector

logger = logging.getLogger(__name__)

# resource ids shared by most screens, useless as anchors
GENERIC_IDS = ("android:id/content", "android:id/body", "id/container")


def _attribute_candidates(node: UiNode) -> List[Selector]:
    """
    Candidates built from the node's own attributes, in priority order
    """
    candidates = []
    base = Selector()

    resource_id = node.get("resource_id")
    text = node.get("text")
    content_desc = node.get("description")
    tag = node.get("class_name")

    # Priority 1: resourceId
    if resource_id:
        candidates.append(base.resource_id(resource_id))

    # Priority 2: text
    if text:
        candidates.append(base.text(text))

    # Priority 3: description
    if content_desc:
        candidates.append(base.description(content_desc))

    # Priority 4: className
    if tag:
        candidates.append(base.class_name(tag))

    # Priority 5: className + text
    if tag and text:
        candidates.append(base.class_name(tag).text(text))

    # Priority 6: className + resourceId
    if tag and resource_id:
        candidates.append(base.class_name(tag).resource_id(resource_id))

    return candidates


def _find_anchor(node: UiNode, unique) -> Optional[Selector]:
    """Closest ancestor with a non-generic resource id that resolves uniquely"""
    current = node.parent()
    while current is not None:
        resource_id = current.get("resource_id")
        if resource_id and not any(g in resource_id for g in GENERIC_IDS):
            anchor = Selector().resource_id(resource_id)
            if unique(anchor, current):
                return anchor
        current = current.parent()
    return None


def suggest_selectors(node: UiNode, root: UiNode, engine: Optional[SelectorEngine] = None,
                      limit: Optional[int] = None) -> List[Selector]:
    """
    Selectors that resolve to exactly `node` when searched from `root`.

    Search order:
      1. the node's own attributes (resourceId, text, description, className, pairs)
      2. a uniquely identified ancestor with childSelector(own attributes)
      3. className with an instance number

    Args:
        node: Target node
        root: Root the selectors will be searched from
        engine: Engine to verify candidates with
        limit: Stop after this many suggestions

    Returns:
        Verified selectors, best first
    """
    engine = engine or SelectorEngine()

    def unique(selector: Selector, target: UiNode) -> bool:
        return engine.search(selector, root) is target and engine.count(selector, root) == 1

    suggestions: List[Selector] = []

    def accept(selector: Selector) -> bool:
        if selector not in suggestions:
            suggestions.append(selector)
        return limit is not None and len(suggestions) >= limit

    own = _attribute_candidates(node)
    for candidate in own:
        if unique(candidate, node) and accept(candidate):
            return suggestions

    anchor = _find_anchor(node, unique)
    if anchor is not None:
        for candidate in own:
            scoped = anchor.child_selector(candidate)
            if engine.search(scoped, root) is node and accept(scoped):
                return suggestions

    tag = node.get("class_name")
    if tag:
        by_class = Selector().class_name(tag)
        for instance in range(engine.count(by_class, root)):
            candidate = by_class.at_instance(instance)
            if engine.search(candidate, root) is node:
                accept(candidate)
                break

    if not suggestions:
        logger.info(f"No selector resolves uniquely to {node!r}")
    return suggestions
