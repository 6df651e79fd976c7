"""Selector files: a JSON form of Selector validated with pydantic."""
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedSelectorError, SelectorSyntaxError
from .selector import LinkKind, MatchMode, Selector

# field name -> (property, mode)
_FIELD_PREDICATES = {
    "text": ("text", MatchMode.EXACT),
    "text_contains": ("text", MatchMode.CONTAINS),
    "text_starts_with": ("text", MatchMode.STARTS_WITH),
    "text_matches": ("text", MatchMode.MATCHES),
    "description": ("description", MatchMode.EXACT),
    "description_contains": ("description", MatchMode.CONTAINS),
    "description_starts_with": ("description", MatchMode.STARTS_WITH),
    "description_matches": ("description", MatchMode.MATCHES),
    "class_name": ("class_name", MatchMode.EXACT),
    "class_name_matches": ("class_name", MatchMode.MATCHES),
    "package_name": ("package_name", MatchMode.EXACT),
    "package_name_matches": ("package_name", MatchMode.MATCHES),
    "resource_id": ("resource_id", MatchMode.EXACT),
    "resource_id_matches": ("resource_id", MatchMode.MATCHES),
    "checkable": ("checkable", MatchMode.EXACT),
    "checked": ("checked", MatchMode.EXACT),
    "clickable": ("clickable", MatchMode.EXACT),
    "enabled": ("enabled", MatchMode.EXACT),
    "focusable": ("focusable", MatchMode.EXACT),
    "focused": ("focused", MatchMode.EXACT),
    "long_clickable": ("long_clickable", MatchMode.EXACT),
    "scrollable": ("scrollable", MatchMode.EXACT),
    "selected": ("selected", MatchMode.EXACT),
}

_LINK_FIELDS = {
    "child": LinkKind.CHILD,
    "parent": LinkKind.PARENT,
    "container": LinkKind.CONTAINER,
    "pattern": LinkKind.PATTERN,
    "before": LinkKind.BEFORE,
    "after": LinkKind.AFTER,
}


class SelectorSpec(BaseModel):
    """
    JSON description of a selector.

    Links nest directly: {"class_name": "List", "child": {"text": "OK"}}.
    A link given as null is kept as a link without a body, which the engine
    reports as malformed.
    """
    model_config = ConfigDict(extra="forbid")

    text: Optional[str] = None
    text_contains: Optional[str] = None
    text_starts_with: Optional[str] = None
    text_matches: Optional[str] = None
    description: Optional[str] = None
    description_contains: Optional[str] = None
    description_starts_with: Optional[str] = None
    description_matches: Optional[str] = None
    class_name: Optional[str] = None
    class_name_matches: Optional[str] = None
    package_name: Optional[str] = None
    package_name_matches: Optional[str] = None
    resource_id: Optional[str] = None
    resource_id_matches: Optional[str] = None

    checkable: Optional[bool] = None
    checked: Optional[bool] = None
    clickable: Optional[bool] = None
    enabled: Optional[bool] = None
    focusable: Optional[bool] = None
    focused: Optional[bool] = None
    long_clickable: Optional[bool] = None
    scrollable: Optional[bool] = None
    selected: Optional[bool] = None

    index: Optional[int] = Field(default=None, ge=0)
    instance: Optional[int] = Field(default=None, ge=0)

    child: Optional["SelectorSpec"] = None
    parent: Optional["SelectorSpec"] = None
    container: Optional["SelectorSpec"] = None
    pattern: Optional["SelectorSpec"] = None
    before: Optional["SelectorSpec"] = None
    after: Optional["SelectorSpec"] = None

    def to_selector(self) -> Selector:
        selector = Selector()
        for field_name, (prop, mode) in _FIELD_PREDICATES.items():
            value = getattr(self, field_name)
            if value is not None:
                selector = selector.with_predicate(prop, value, mode)
        if self.index is not None:
            selector = selector.at_index(self.index)
        if self.instance is not None:
            selector = selector.at_instance(self.instance)
        for field_name, kind in _LINK_FIELDS.items():
            if field_name not in self.model_fields_set:
                continue
            linked = getattr(self, field_name)
            selector = selector.with_link(kind, linked.to_selector() if linked is not None else None)
        return selector


SelectorSpec.model_rebuild()


def selector_from_dict(data: Dict[str, Any]) -> Selector:
    """
    Build a Selector from already-decoded JSON.

    Raises:
        SelectorSyntaxError: the data does not describe a valid selector
    """
    try:
        return SelectorSpec.model_validate(data).to_selector()
    except ValidationError as e:
        raise SelectorSyntaxError(f"Invalid selector definition: {e}")
    except MalformedSelectorError as e:
        raise SelectorSyntaxError(str(e))


def load_selector_file(path: Union[str, Path]) -> Selector:
    """Read a selector definition from a JSON file"""
    try:
        definition = SelectorSpec.model_validate_json(Path(path).read_text(encoding="utf-8"))
    except ValidationError as e:
        raise SelectorSyntaxError(f"Invalid selector file {path}: {e}")
    try:
        return definition.to_selector()
    except MalformedSelectorError as e:
        raise SelectorSyntaxError(f"Invalid selector file {path}: {e}")
