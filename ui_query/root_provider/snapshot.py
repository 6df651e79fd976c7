"""
Snapshot Root Provider
Serves window roots from a hierarchy dump held in memory
"""
from pathlib import Path
from typing import List, Optional, Union
import logging
import threading

from ..errors import TreeUnavailableError
from ..hierarchy_parser import HierarchyParser
from ..node import XmlNode
from .base import BaseRootProvider, DevicePlatform

logger = logging.getLogger(__name__)

Source = Union[str, bytes, Path]


class SnapshotRootProvider(BaseRootProvider):
    """Thread-safe holder of the current parsed snapshot"""

    def __init__(self, source: Optional[Source] = None, platform: Optional[str] = None):
        self._lock = threading.Lock()
        self._roots: List[XmlNode] = []
        self._platform = platform or 'android'
        self._error: Optional[str] = "No snapshot loaded"
        if source is not None:
            self.update(source, platform)

    def update(self, source: Source, platform: Optional[str] = None) -> bool:
        """
        Replace the snapshot.

        Args:
            source: XML string/bytes, or a path to a dump file
            platform: 'android', 'ios' or None to detect

        Returns:
            True if the new snapshot parsed
        """
        if isinstance(source, Path):
            result = HierarchyParser.parse_file(source, platform)
        else:
            result = HierarchyParser.parse_xml(source, platform)

        with self._lock:
            if not result['success'] or not result['roots']:
                self._roots = []
                self._error = result.get('error') or "Hierarchy has no window roots"
                return False
            self._roots = HierarchyParser.order_roots(result['roots'])
            self._platform = result['platform']
            self._error = None
        logger.info(f"[snapshot] Loaded {result['total_nodes']} node(s)")
        return True

    def invalidate(self) -> None:
        with self._lock:
            self._roots = []
            self._error = "Snapshot invalidated"

    @property
    def platform(self) -> DevicePlatform:
        return DevicePlatform.IOS if self._platform == 'ios' else DevicePlatform.ANDROID

    def load_roots(self) -> List[XmlNode]:
        with self._lock:
            if not self._roots:
                raise TreeUnavailableError(f"Snapshot unavailable: {self._error}", attempts=1,
                                           last_error=self._error or "")
            return list(self._roots)
