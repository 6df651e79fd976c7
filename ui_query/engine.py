"""
Selector Resolution Engine
Evaluates compound selectors against a UI tree.

A compound selector is resolved in stages:

    container  ->  pattern  ->  regular (child/parent chain)

with before/after range selectors handled by a separate document-order scan.
All per-search state lives in a SearchFrame created for each top-level call,
so one engine can serve several threads at once.
"""
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional, Set
import logging

from .node import UiNode
from .selector import LinkKind, Selector

logger = logging.getLogger(__name__)

# pattern_indexer value meaning "count every occurrence, never stop early"
COUNT_UNBOUNDED = -1


# ============================================================================
# Outcomes
# ============================================================================

class Outcome:
    """Result of resolving a selector"""

    node: Optional[UiNode] = None

    @property
    def found(self) -> bool:
        return self.node is not None


@dataclass(frozen=True)
class Matched(Outcome):
    node: UiNode


@dataclass(frozen=True)
class NotFound(Outcome):
    reason: str = ""


@dataclass(frozen=True)
class Malformed(Outcome):
    reason: str


@dataclass(frozen=True)
class Unavailable(Outcome):
    reason: str


# ============================================================================
# Search state
# ============================================================================

@dataclass
class SearchFrame:
    """Working state of one top-level search or count"""

    pattern_counter: int = 0
    pattern_indexer: int = 0
    # id(sub-selector) -> matches seen so far, for selectors carrying instance(n).
    # Keyed selectors are reachable from the searched selector or held in
    # own_chains, so their ids stay unique for the life of the frame.
    instance_counts: Dict[int, int] = field(default_factory=dict)
    # id(selector) -> its own chain, built once per frame
    own_chains: Dict[int, Selector] = field(default_factory=dict)
    null_child_parents: Set[int] = field(default_factory=set)
    depth: int = 0

    def own_chain(self, selector: Selector) -> Selector:
        chain = self.own_chains.get(id(selector))
        if chain is None:
            chain = _own_chain(selector)
            self.own_chains[id(selector)] = chain
        return chain

    def reset_pattern(self) -> None:
        self.pattern_counter = 0
        self.pattern_indexer = 0
        self.instance_counts.clear()


@dataclass
class RangeState:
    started: bool
    ended: bool
    matched_node: Optional[UiNode] = None

    @property
    def complete(self) -> bool:
        return self.started and self.ended and self.matched_node is not None


def validate_selector(selector: Selector) -> Optional[str]:
    """
    Check a selector tree for construction defects.

    Returns:
        A description of the first defect found, or None when the selector is usable
    """
    if selector.has_link(LinkKind.PATTERN) and selector.has_range:
        return "A selector cannot combine a pattern with before/after bounds"
    for kind, target in selector.links:
        if target is None:
            return f"A {kind.value} selector without content"
        reason = validate_selector(target)
        if reason:
            return reason
    return None


def _own_chain(selector: Selector) -> Selector:
    """The selector with only its predicate group and child/parent chain"""
    links = tuple((k, t) for k, t in selector.links if k in (LinkKind.CHILD, LinkKind.PARENT))
    instance = None if selector.has_link(LinkKind.PATTERN) else selector.instance
    return replace(selector, links=links, instance=instance)


def as_pattern(selector: Selector) -> Selector:
    """
    The form a selector is counted and enumerated in.

    A selector without a pattern link becomes a pattern over its own chain,
    kept inside its container when it has one.
    """
    if selector.has_link(LinkKind.PATTERN):
        return selector
    wrapped = Selector().pattern_selector(replace(_own_chain(selector), instance=None))
    if selector.has_link(LinkKind.CONTAINER):
        wrapped = wrapped.container_selector(selector.container)
    return wrapped


def _index_of(node: UiNode) -> int:
    parent = node.parent()
    if parent is None:
        return 0
    for i in range(parent.child_count()):
        if parent.child_at(i) is node:
            return i
    return 0


class SelectorEngine:
    """Finds nodes matching a Selector below a given root node"""

    # ========================================================================
    # Public API
    # ========================================================================

    def resolve(self, selector: Selector, root: UiNode) -> Outcome:
        """
        Resolve a selector against the tree under `root`.

        The selector tree is validated first, so the matchers below can
        rely on every link having a body.

        Returns:
            Matched(node), NotFound() or Malformed(reason)
        """
        reason = validate_selector(selector)
        if reason:
            logger.error(f"Malformed selector {selector}: {reason}")
            return Malformed(reason)

        frame = SearchFrame()
        node = self._translate_compound(selector, root, frame, counting=False)
        if node is None:
            return NotFound(f"No match for {selector}")
        return Matched(node)

    def search(self, selector: Selector, root: UiNode) -> Optional[UiNode]:
        """Return the first node matching `selector`, or None"""
        return self.resolve(selector, root).node

    def count(self, selector: Selector, root: UiNode) -> int:
        """
        Count occurrences of a pattern under `root`.

        A selector without a pattern link is counted as its own pattern body,
        inside its container when it has one.
        """
        if selector.has_range:
            logger.error(f"Range selectors cannot be counted: {selector}")
            return 0
        selector = as_pattern(selector)

        reason = validate_selector(selector)
        if reason:
            logger.error(f"Malformed selector {selector}: {reason}")
            return 0

        frame = SearchFrame()
        self._translate_compound(selector, root, frame, counting=True)
        logger.debug(f"Counted {frame.pattern_counter} occurrence(s) of {selector}")
        return frame.pattern_counter

    # ========================================================================
    # Compound orchestration
    # ========================================================================

    def _translate_compound(self, selector: Selector, from_node: UiNode,
                            frame: SearchFrame, counting: bool) -> Optional[UiNode]:
        scope = from_node
        if selector.has_link(LinkKind.CONTAINER):
            container = selector.container
            if (container.has_link(LinkKind.CONTAINER) or container.has_link(LinkKind.PATTERN)
                    or container.has_range):
                scope = self._translate_compound(container, from_node, frame, counting=False)
                frame.reset_pattern()
            else:
                scope = self._find_regular(container, from_node, _index_of(from_node), frame)
            if scope is None:
                logger.debug(f"Container not found: {container}")
                return None

        if selector.has_range:
            return self._translate_range(selector, scope, frame)

        if not selector.has_link(LinkKind.PATTERN):
            return self._find_regular(frame.own_chain(selector), scope, _index_of(scope), frame)

        node = self._translate_pattern(selector, scope, frame, counting)
        if counting:
            return None
        if node is None:
            logger.debug(f"Pattern instance {selector.pattern_instance} not found: {selector.pattern}")
            return None

        # refinement on top of the pattern match
        if not selector.is_leaf:
            node = self._find_regular(frame.own_chain(selector), node, _index_of(node), frame)
        return node

    # ========================================================================
    # Shared traversal helpers
    # ========================================================================

    def _is_match(self, selector: Selector, node: UiNode, index: int, frame: SearchFrame) -> bool:
        if not node.matches(selector, index):
            return False
        if selector.instance is None:
            return True
        key = id(selector)
        seen = frame.instance_counts.get(key, 0)
        if seen == selector.instance:
            return True
        frame.instance_counts[key] = seen + 1
        return False

    def _advance(self, selector: Selector, node: UiNode):
        """
        Step from a matched non-leaf selector to the next one in its chain.

        Returns:
            (next selector, node to search from), or None when the path fails
        """
        if selector.has_link(LinkKind.CHILD):
            return selector.child, node
        nxt = selector.parent
        parent = node.parent()
        if parent is None:
            logger.debug(f"No parent to continue {nxt} from")
            return None
        return nxt, parent

    def _walk_children(self, node: UiNode, frame: SearchFrame,
                       visit: Callable[[UiNode, int], Optional[UiNode]]) -> Optional[UiNode]:
        child_count = node.child_count()
        for i in range(child_count):
            child = node.child_at(i)
            if child is None:
                self._report_null_child(node, i, child_count, frame)
                continue
            if not child.is_visible():
                logger.debug(f"Skipping invisible child {child!r}")
                continue
            frame.depth += 1
            try:
                found = visit(child, i)
            finally:
                frame.depth -= 1
            if found is not None:
                return found
        return None

    def _report_null_child(self, parent: UiNode, i: int, child_count: int, frame: SearchFrame) -> None:
        key = id(parent)
        if key in frame.null_child_parents:
            return
        frame.null_child_parents.add(key)
        logger.warning(f"Null child ({i} of {child_count}) at depth {frame.depth}, parent = {parent!r}")

    # ========================================================================
    # Regular matcher
    # ========================================================================

    def _find_regular(self, selector: Selector, node: UiNode, index: int,
                      frame: SearchFrame) -> Optional[UiNode]:
        if self._is_match(selector, node, index, frame):
            if selector.is_leaf:
                return node
            step = self._advance(selector, node)
            if step is None:
                return None
            selector, node = step

        return self._walk_children(
            node, frame, lambda child, i: self._find_regular(selector, child, i, frame)
        )

    def _find_anchored(self, selector: Selector, node: UiNode, index: int,
                       frame: SearchFrame) -> Optional[UiNode]:
        """Match a selector chain whose head must match `node` itself"""
        if not self._is_match(selector, node, index, frame):
            return None
        if selector.is_leaf:
            return node
        step = self._advance(selector, node)
        if step is None:
            return None
        selector, start = step
        return self._walk_children(
            start, frame, lambda child, i: self._find_regular(selector, child, i, frame)
        )

    # ========================================================================
    # Pattern matcher
    # ========================================================================

    def _translate_pattern(self, selector: Selector, scope: UiNode, frame: SearchFrame,
                           counting: bool) -> Optional[UiNode]:
        body = selector.pattern
        frame.pattern_counter = 0
        frame.pattern_indexer = COUNT_UNBOUNDED if counting else selector.pattern_instance
        return self._find_pattern(body, scope, _index_of(scope), frame, body)

    def _find_pattern(self, selector: Selector, node: UiNode, index: int,
                      frame: SearchFrame, original: Selector) -> Optional[UiNode]:
        if self._is_match(selector, node, index, frame):
            if selector.is_leaf:
                if frame.pattern_indexer == 0:
                    return node
                frame.pattern_counter += 1
                if frame.pattern_indexer > 0:
                    frame.pattern_indexer -= 1
                # next occurrence starts again from the head of the body
                selector = original
            else:
                step = self._advance(selector, node)
                if step is None:
                    return None
                selector, node = step

        return self._walk_children(
            node, frame, lambda child, i: self._find_pattern(selector, child, i, frame, original)
        )

    # ========================================================================
    # Range matcher
    # ========================================================================

    def _translate_range(self, selector: Selector, scope: UiNode, frame: SearchFrame) -> Optional[UiNode]:
        primary = frame.own_chain(selector)
        after = selector.after
        before = selector.before

        state = RangeState(started=after is None, ended=before is None)
        self._walk_range(primary, after, before, scope, _index_of(scope), state, frame)
        if state.complete:
            return state.matched_node
        logger.debug(
            f"Range not satisfied (started={state.started}, ended={state.ended}, "
            f"candidate={state.matched_node is not None}) for {selector}"
        )
        return None

    def _walk_range(self, primary: Selector, after: Optional[Selector], before: Optional[Selector],
                    node: UiNode, index: int, state: RangeState, frame: SearchFrame) -> bool:
        """Depth-first document-order scan; returns True once the range is complete"""
        self._visit_range_node(primary, after, before, node, index, state, frame)
        if state.complete:
            return True

        stop = self._walk_children(
            node, frame,
            lambda child, i: child if self._walk_range(primary, after, before, child, i, state, frame) else None,
        )
        return stop is not None

    def _visit_range_node(self, primary: Selector, after: Optional[Selector], before: Optional[Selector],
                          node: UiNode, index: int, state: RangeState, frame: SearchFrame) -> None:
        if not state.started:
            if self._find_anchored(after, node, index, frame) is not None:
                state.started = True
            return

        candidate = self._find_anchored(primary, node, index, frame)
        if candidate is not None:
            state.matched_node = candidate

        if state.matched_node is not None and not state.ended:
            if self._find_anchored(before, node, index, frame) is not None:
                state.ended = True
