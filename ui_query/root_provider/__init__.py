"""
Root Providers
Pick a snapshot file or a live Android device as the source of window roots
"""
from pathlib import Path
from typing import Optional, Union
import logging

from ..config import Settings
from .android_provider import AndroidRootProvider, describe_devices
from .base import BaseRootProvider, DevicePlatform
from .snapshot import SnapshotRootProvider

logger = logging.getLogger(__name__)

__all__ = [
    "AndroidRootProvider",
    "BaseRootProvider",
    "DevicePlatform",
    "SnapshotRootProvider",
    "create_root_provider",
    "describe_devices",
]


def create_root_provider(dump: Optional[Union[str, Path]] = None,
                         serial: Optional[str] = None,
                         platform: Optional[str] = None,
                         settings: Optional[Settings] = None) -> BaseRootProvider:
    """
    Build the provider for a dump file or a live device.

    A dump file wins over a serial; with neither, the single connected
    Android device is used.
    """
    if dump is not None:
        logger.info(f"Using hierarchy snapshot {dump}")
        return SnapshotRootProvider(Path(dump), platform)
    if platform == 'ios':
        raise ValueError("Live iOS devices are not supported; pass a dump file instead")
    logger.info(f"Using live Android device {serial or '(default)'}")
    return AndroidRootProvider(serial, settings)
