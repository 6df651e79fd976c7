"""
Base Root Provider
Abstract interface for acquiring the window roots of a UI tree
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional
import logging

from ..node import UiNode

logger = logging.getLogger(__name__)


class DevicePlatform(Enum):
    ANDROID = "android"
    IOS = "ios"


class BaseRootProvider(ABC):
    """Abstract base class for root acquisition"""

    @abstractmethod
    def load_roots(self) -> List[UiNode]:
        """
        Acquire every window root, the active one first.

        Raises:
            TreeUnavailableError: the tree could not be acquired
        """
        pass

    @property
    @abstractmethod
    def platform(self) -> DevicePlatform:
        """Return platform type"""
        pass

    def get_roots(self, window_hint: Optional[str] = None) -> List[UiNode]:
        """
        Candidate roots for a search.

        Args:
            window_hint: Package name or window title. When given, only
                matching window roots are returned.
        """
        roots = self.load_roots()
        if not window_hint:
            return roots
        matching = [r for r in roots if window_hint in (r.package_id(), r.title())]
        if not matching:
            logger.info(f"No window matches {window_hint!r} among {len(roots)} root(s)")
        return matching
