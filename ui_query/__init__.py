"""
ui_query - UiSelector-style lookups over Android (and iOS) UI hierarchies
"""
from .config import Settings
from .engine import Malformed, Matched, NotFound, Outcome, SelectorEngine, Unavailable
from .errors import MalformedSelectorError, SelectorSyntaxError, TreeUnavailableError, UiQueryError
from .finder import UiFinder
from .hierarchy_parser import HierarchyParser
from .node import UiNode, XmlNode
from .root_provider import (
    AndroidRootProvider,
    BaseRootProvider,
    SnapshotRootProvider,
    create_root_provider,
)
from .selector import LinkKind, MatchMode, Predicate, Selector, new_selector
from .selector_parser import parse_selector
from .selector_schema import SelectorSpec, load_selector_file, selector_from_dict
from .suggest import suggest_selectors

__version__ = "1.0.0"

__all__ = [
    "AndroidRootProvider",
    "BaseRootProvider",
    "HierarchyParser",
    "LinkKind",
    "Malformed",
    "MalformedSelectorError",
    "MatchMode",
    "Matched",
    "NotFound",
    "Outcome",
    "Predicate",
    "Selector",
    "SelectorEngine",
    "SelectorSpec",
    "SelectorSyntaxError",
    "Settings",
    "SnapshotRootProvider",
    "TreeUnavailableError",
    "UiFinder",
    "UiNode",
    "UiQueryError",
    "Unavailable",
    "XmlNode",
    "create_root_provider",
    "load_selector_file",
    "new_selector",
    "parse_selector",
    "selector_from_dict",
    "suggest_selectors",
]
