"""
Finder
Runs the selector engine over the candidate roots of a root provider
"""
from typing import List, Optional
import logging

from .engine import Malformed, NotFound, Outcome, SelectorEngine, Unavailable, as_pattern
from .errors import TreeUnavailableError
from .node import UiNode
from .root_provider.base import BaseRootProvider
from .selector import Selector

logger = logging.getLogger(__name__)


class UiFinder:
    """Selector lookups across every candidate window root"""

    def __init__(self, provider: BaseRootProvider, engine: Optional[SelectorEngine] = None):
        self.provider = provider
        self.engine = engine or SelectorEngine()

    def _roots(self, window: Optional[str]) -> List[UiNode]:
        return self.provider.get_roots(window)

    def find_outcome(self, selector: Selector, window: Optional[str] = None) -> Outcome:
        """
        Resolve a selector against each candidate root in order.

        Returns:
            The first Matched outcome; Malformed as soon as the selector is
            found defective; Unavailable when no tree could be acquired;
            NotFound otherwise
        """
        try:
            roots = self._roots(window)
        except TreeUnavailableError as e:
            logger.warning(f"Tree unavailable while resolving {selector}: {e}")
            return Unavailable(str(e))

        if not roots:
            return NotFound(f"No window roots for {window!r}")

        for i, root in enumerate(roots):
            outcome = self.engine.resolve(selector, root)
            if outcome.found or isinstance(outcome, Malformed):
                return outcome
            logger.debug(f"No match in root {i + 1}/{len(roots)}")
        return NotFound(f"No match for {selector} in {len(roots)} root(s)")

    def find(self, selector: Selector, window: Optional[str] = None) -> Optional[UiNode]:
        return self.find_outcome(selector, window).node

    def exists(self, selector: Selector, window: Optional[str] = None) -> bool:
        return self.find(selector, window) is not None

    def count(self, selector: Selector, window: Optional[str] = None) -> int:
        """Count in the first root where the pattern occurs at all"""
        try:
            roots = self._roots(window)
        except TreeUnavailableError as e:
            logger.warning(f"Tree unavailable while counting {selector}: {e}")
            return 0
        for root in roots:
            total = self.engine.count(selector, root)
            if total:
                return total
        return 0

    def find_all(self, selector: Selector, window: Optional[str] = None) -> List[UiNode]:
        """
        Every occurrence of a selector, in document order.

        Each occurrence is looked up by instance, so the result agrees with count().
        """
        if selector.has_range:
            # a range accepts at most one node
            node = self.find(selector, window)
            return [node] if node is not None else []

        selector = as_pattern(selector)

        try:
            roots = self._roots(window)
        except TreeUnavailableError as e:
            logger.warning(f"Tree unavailable while listing {selector}: {e}")
            return []

        for root in roots:
            total = self.engine.count(selector, root)
            if not total:
                continue
            nodes = []
            for instance in range(total):
                node = self.engine.search(selector.at_instance(instance), root)
                if node is not None:
                    nodes.append(node)
            return nodes
        return []

