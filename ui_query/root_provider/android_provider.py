"""
Android Root Provider
Acquires the live UI hierarchy of an Android device using adbutils
"""
from typing import Dict, List, Optional, Tuple
import logging
import time

import requests
from adbutils import adb

from ..config import Settings
from ..errors import TreeUnavailableError
from ..hierarchy_parser import HierarchyParser
from ..node import XmlNode
from .base import BaseRootProvider, DevicePlatform

logger = logging.getLogger(__name__)


class AndroidRootProvider(BaseRootProvider):
    """Dumps, parses and retries until a usable hierarchy is available"""

    def __init__(self, serial: Optional[str] = None, settings: Optional[Settings] = None):
        self.serial = serial
        self.settings = settings or Settings.from_env()
        self._device = None
        # Persistent HTTP session for ATX agent direct calls (connection reuse).
        self._http_session: Optional[Tuple[requests.Session, str]] = None
        self.last_error: Optional[str] = None

    @property
    def platform(self) -> DevicePlatform:
        return DevicePlatform.ANDROID

    def _get_device(self):
        if self._device is None:
            self._device = adb.device(serial=self.serial)
        return self._device

    def _get_atx_session(self) -> Optional[Tuple[requests.Session, str]]:
        """Return a (session, base_url) for direct HTTP calls to the ATX agent.

        The agent listens on the device port from settings; the same local
        port is forwarded over adb. Returns None when no agent answers.
        """
        if self._http_session is not None:
            return self._http_session

        port = self.settings.atx_port
        try:
            self._get_device().forward(f"tcp:{port}", f"tcp:{port}")
            base_url = f"http://127.0.0.1:{port}"
            session = requests.Session()
            resp = session.get(f"{base_url}/info", timeout=3)
            if resp.status_code == 200:
                logger.info(f"[atx] Direct HTTP session to {self.serial} at {base_url}")
                self._http_session = (session, base_url)
                return self._http_session
            logger.warning(f"[atx] /info returned {resp.status_code}")
        except Exception as e:
            logger.warning(f"[atx] forward/info failed for {self.serial}: {e}")
        return None

    def _read_xml_via_sync(self, device, target: str) -> Optional[str]:
        """Read a remote file via adb sync."""
        try:
            buf = b""
            for chunk in device.sync.iter_content(target):
                buf += chunk
            return buf.decode("utf-8", errors="replace")
        except Exception as e:
            logger.warning(f"Sync read failed for {target}: {e}")
            return None

    def _native_uiautomator_dump(self, device, target: str) -> Tuple[Optional[str], Optional[str]]:
        """Run uiautomator dump and read result via sync."""
        result = device.shell(f"rm -f {target}; uiautomator dump {target} && echo __ok__",
                              timeout=self.settings.dump_timeout)
        if "ERROR" in result or "Exception" in result or "__ok__" not in result:
            return None, result.strip()

        xml_content = self._read_xml_via_sync(device, target)
        device.shell(f"rm -f {target}")

        if xml_content and len(xml_content) > 100 and "<hierarchy" in xml_content:
            return xml_content, None
        return None, f"invalid XML (len={len(xml_content or '')})"

    def dump_ui_hierarchy(self) -> Optional[str]:
        """Dump UI hierarchy from the device, with multiple fallbacks."""
        device = self._get_device()

        # --- Method 0: ATX agent JSON-RPC dumpWindowHierarchy ---
        if self.settings.use_atx:
            atx = self._get_atx_session()
            if atx is not None:
                session, base_url = atx
                try:
                    payload = {
                        "method": "dumpWindowHierarchy",
                        "id": 1,
                        "jsonrpc": "2.0",
                        "params": [True, None],
                    }
                    resp = session.post(f"{base_url}/jsonrpc/0", json=payload,
                                        timeout=self.settings.dump_timeout)
                    if resp.status_code == 200:
                        xml = resp.json().get("result") or ""
                        if xml and "<hierarchy" in xml:
                            logger.info(f"[dump] ATX JSONRPC dumpWindowHierarchy: {len(xml)} bytes")
                            return xml
                    logger.warning(f"[dump] ATX JSONRPC returned unexpected: status={resp.status_code}")
                except Exception as e:
                    logger.warning(f"[dump] ATX JSONRPC failed: {e}; dropping session")
                    self._http_session = None

        # --- Method 1: adbutils built-in dump_hierarchy ---
        try:
            if hasattr(device, "dump_hierarchy"):
                xml_content = device.dump_hierarchy()
                if xml_content and "<hierarchy" in xml_content:
                    logger.info(f"[dump] adbutils dump_hierarchy succeeded: {len(xml_content)} bytes")
                    return xml_content
        except Exception as e:
            logger.warning(f"[dump] adbutils dump_hierarchy failed: {e}")

        # --- Method 2: uiautomator dump /dev/stdout ---
        try:
            output = device.shell("uiautomator dump /dev/stdout", timeout=self.settings.dump_timeout)
            if output and "<hierarchy" in output:
                logger.info(f"[dump] uiautomator /dev/stdout succeeded: {len(output)} bytes")
                return output
        except Exception as e:
            logger.warning(f"[dump] uiautomator /dev/stdout failed: {e}")

        # --- Method 3: Native uiautomator dump to tmp file ---
        try:
            xml_content, err = self._native_uiautomator_dump(device, "/data/local/tmp/window_dump.xml")
            if xml_content:
                logger.info(f"[dump] Native uiautomator dump succeeded: {len(xml_content)} bytes")
                return xml_content
            self.last_error = err
            logger.warning(f"[dump] Native dump failed: {err}")
        except Exception as e:
            self.last_error = str(e)
            logger.warning(f"[dump] Native dump exception: {e}")
            self._device = None

        return None

    def load_roots(self) -> List[XmlNode]:
        """
        Dump and parse the hierarchy, retrying transient failures.

        Raises:
            TreeUnavailableError: no usable hierarchy after settings.dump_retries attempts
        """
        self.last_error = None
        attempts = self.settings.dump_retries
        for attempt in range(1, attempts + 1):
            logger.info(f"[roots] Acquiring hierarchy, attempt {attempt}/{attempts} for {self.serial}")
            try:
                xml_content = self.dump_ui_hierarchy()
            except Exception as e:
                # adb connection itself failed (device offline, server restarting)
                logger.warning(f"[roots] Dump raised: {e}")
                self.last_error = str(e)
                self._device = None
                xml_content = None

            if xml_content:
                result = HierarchyParser.parse_xml(xml_content, 'android')
                if result['success'] and result['roots']:
                    return HierarchyParser.order_roots(result['roots'])
                self.last_error = result.get('error') or "hierarchy has no window roots"
            elif not self.last_error:
                self.last_error = "all dump methods returned nothing"

            if attempt < attempts:
                time.sleep(self.settings.dump_retry_interval)

        logger.error(f"[roots] Hierarchy unavailable for {self.serial} after {attempts} attempt(s)")
        raise TreeUnavailableError(
            f"UI hierarchy unavailable after {attempts} attempt(s): {self.last_error}",
            attempts=attempts,
            last_error=self.last_error or "",
        )


def describe_devices() -> List[Dict[str, str]]:
    """List connected Android devices for the CLI"""
    try:
        devices = []
        for device in adb.device_list():
            try:
                model = device.shell("getprop ro.product.model").strip()
            except Exception as e:
                logger.error(f"Error getting device info for {device.serial}: {e}")
                model = "Unknown"
            devices.append({"serial": device.serial, "model": model or "Unknown", "platform": "android"})
        return devices
    except Exception as e:
        logger.error(f"Error listing devices: {e}")
        return []
