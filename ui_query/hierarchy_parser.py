"""
Hierarchy Parser Module
Turns UIAutomator / XCUITest XML dumps into XmlNode window roots
"""
from lxml import etree
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import re
import traceback

from .node import XmlNode

logger = logging.getLogger(__name__)

# Wrapper elements that are not part of any window
WRAPPER_TAGS = {'hierarchy', 'AppiumAUT'}


class HierarchyParser:
    """Parse UI hierarchy XML into a tree of XmlNode objects"""

    @staticmethod
    def _sanitize_xml(raw: str) -> str:
        """
        Trim junk before/after the XML root, e.g. the
        "UI hierchary dumped to: /dev/tty" trailer of uiautomator.
        """
        if not raw:
            return raw

        text = raw.strip()
        text = re.sub(r'<\?xml.*?\?>', '', text, count=1).strip()

        first_tag = text.find("<")
        if first_tag > 0:
            text = text[first_tag:]

        start = text.find("<hierarchy")
        end = text.rfind("</hierarchy>")
        if start != -1 and end != -1 and end > start:
            return text[start:end + len("</hierarchy>")]

        return text

    @staticmethod
    def detect_platform(xml_content: str) -> str:
        """Guess 'android' or 'ios' from the dump contents"""
        if '<XCUIElementType' in xml_content or '<AppiumAUT' in xml_content:
            return 'ios'
        return 'android'

    @staticmethod
    def _build(element, parent: Optional[XmlNode], platform: str, counter: List[int]) -> XmlNode:
        node = XmlNode(element, parent, platform)
        counter[0] += 1
        for child in element:
            # comments and processing instructions have a non-string tag
            if not isinstance(child.tag, str):
                node.add_child(None)
                continue
            node.add_child(HierarchyParser._build(child, node, platform, counter))
        return node

    @staticmethod
    def parse_xml(xml_content: Union[str, bytes], platform: Optional[str] = None) -> Dict:
        """
        Parse XML content into window roots

        Args:
            xml_content: XML string or bytes from UIAutomator/XCUITest
            platform: 'android', 'ios' or None to detect

        Returns:
            Dictionary with success status, roots and node count
        """
        try:
            if isinstance(xml_content, bytes):
                xml_content = xml_content.decode('utf-8', errors='replace')

            if not xml_content or not xml_content.strip():
                logger.error("XML content is empty!")
                return {'success': False, 'error': 'XML content is empty', 'roots': [], 'total_nodes': 0}

            xml_content = HierarchyParser._sanitize_xml(xml_content)
            if not xml_content.startswith('<'):
                logger.error("XML content does not start with '<'")
                return {'success': False, 'error': 'Invalid XML format', 'roots': [], 'total_nodes': 0}

            platform = platform or HierarchyParser.detect_platform(xml_content)
            parser = etree.XMLParser(huge_tree=True, remove_comments=False)
            root = etree.fromstring(xml_content.encode('utf-8'), parser=parser)

            counter = [0]
            if root.tag in WRAPPER_TAGS:
                roots = [
                    HierarchyParser._build(child, None, platform, counter)
                    for child in root
                    if isinstance(child.tag, str)
                ]
            else:
                roots = [HierarchyParser._build(root, None, platform, counter)]

            logger.info(f"Parsed {platform} hierarchy: {len(roots)} window(s), {counter[0]} node(s)")
            return {
                'success': True,
                'platform': platform,
                'roots': roots,
                'total_nodes': counter[0],
            }

        except etree.XMLSyntaxError as e:
            logger.error(f"XML Syntax Error: {e}")
            return {'success': False, 'error': f'XML Syntax Error: {str(e)}', 'roots': [], 'total_nodes': 0}
        except Exception as e:
            logger.error(f"Error parsing XML: {e}")
            logger.error(traceback.format_exc())
            return {'success': False, 'error': str(e), 'roots': [], 'total_nodes': 0}

    @staticmethod
    def parse_file(path: Union[str, Path], platform: Optional[str] = None) -> Dict:
        """Parse a hierarchy dump stored on disk"""
        try:
            content = Path(path).read_bytes()
        except OSError as e:
            logger.error(f"Cannot read hierarchy dump {path}: {e}")
            return {'success': False, 'error': str(e), 'roots': [], 'total_nodes': 0}
        return HierarchyParser.parse_xml(content, platform)

    @staticmethod
    def order_roots(roots: List[XmlNode]) -> List[XmlNode]:
        """
        Put the active window first: the first root holding a focused node.
        Remaining roots keep document order.
        """
        def has_focus(node: XmlNode) -> bool:
            if node.get("focused"):
                return True
            return any(has_focus(child) for child in node.children())

        for i, root in enumerate(roots):
            if has_focus(root):
                return [root] + roots[:i] + roots[i + 1:]
        return list(roots)
