"""
UiSelector Expression Parser
Reads selectors written as Java-style UiSelector expressions, e.g.

    new UiSelector().className("android.widget.ListView")
        .childSelector(new UiSelector().text("Settings"))
"""
from typing import List, Optional, Union

from .errors import MalformedSelectorError, SelectorSyntaxError
from .selector import LinkKind, MatchMode, Selector


class TokenType:
    NAME: str = "NAME"  # new, UiSelector, text, ...
    STRING: str = "STRING"  # "value"
    NUMBER: str = "NUMBER"  # 3
    DOT: str = "DOT"
    PAREN_OPEN: str = "PAREN_OPEN"
    PAREN_CLOSE: str = "PAREN_CLOSE"
    SEMICOLON: str = "SEMICOLON"
    EOF: str = "EOF"


class Token:
    __slots__ = ("type", "value", "pos")

    def __init__(self, token_type: str, value: Optional[str] = None, pos: int = 0) -> None:
        self.type = token_type
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"


class SelectorTokenizer:
    """Tokenizes a UiSelector expression"""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.length = len(text)

    def _read_string(self, quote: str) -> str:
        start_pos = self.pos
        self.pos += 1
        parts: List[str] = []
        while self.pos < self.length:
            ch = self.text[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(parts)
            if ch == "\\":
                self.pos += 1
                if self.pos >= self.length:
                    break
                escaped = self.text[self.pos]
                parts.append({"n": "\n", "t": "\t"}.get(escaped, escaped))
                self.pos += 1
                continue
            parts.append(ch)
            self.pos += 1
        raise SelectorSyntaxError("Unterminated string", start_pos)

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        singles = {
            ".": TokenType.DOT,
            "(": TokenType.PAREN_OPEN,
            ")": TokenType.PAREN_CLOSE,
            ";": TokenType.SEMICOLON,
        }

        while self.pos < self.length:
            ch = self.text[self.pos]

            if ch.isspace():
                self.pos += 1
                continue

            if ch in singles:
                tokens.append(Token(singles[ch], ch, self.pos))
                self.pos += 1
                continue

            if ch in "\"'":
                start = self.pos
                tokens.append(Token(TokenType.STRING, self._read_string(ch), start))
                continue

            if ch.isdigit() or (ch == "-" and self.text[self.pos + 1:self.pos + 2].isdigit()):
                start = self.pos
                self.pos += 1
                while self.pos < self.length and self.text[self.pos].isdigit():
                    self.pos += 1
                tokens.append(Token(TokenType.NUMBER, self.text[start:self.pos], start))
                continue

            if ch.isalpha() or ch == "_":
                start = self.pos
                while self.pos < self.length and (self.text[self.pos].isalnum() or self.text[self.pos] == "_"):
                    self.pos += 1
                tokens.append(Token(TokenType.NAME, self.text[start:self.pos], start))
                continue

            raise SelectorSyntaxError(f"Unexpected character {ch!r}", self.pos)

        tokens.append(Token(TokenType.EOF, None, self.length))
        return tokens


# UiSelector method -> (property, mode)
PREDICATE_METHODS = {
    "text": ("text", MatchMode.EXACT),
    "textContains": ("text", MatchMode.CONTAINS),
    "textStartsWith": ("text", MatchMode.STARTS_WITH),
    "textMatches": ("text", MatchMode.MATCHES),
    "description": ("description", MatchMode.EXACT),
    "descriptionContains": ("description", MatchMode.CONTAINS),
    "descriptionStartsWith": ("description", MatchMode.STARTS_WITH),
    "descriptionMatches": ("description", MatchMode.MATCHES),
    "className": ("class_name", MatchMode.EXACT),
    "classNameMatches": ("class_name", MatchMode.MATCHES),
    "packageName": ("package_name", MatchMode.EXACT),
    "packageNameMatches": ("package_name", MatchMode.MATCHES),
    "resourceId": ("resource_id", MatchMode.EXACT),
    "resourceIdMatches": ("resource_id", MatchMode.MATCHES),
    "checkable": ("checkable", MatchMode.EXACT),
    "checked": ("checked", MatchMode.EXACT),
    "clickable": ("clickable", MatchMode.EXACT),
    "enabled": ("enabled", MatchMode.EXACT),
    "focusable": ("focusable", MatchMode.EXACT),
    "focused": ("focused", MatchMode.EXACT),
    "longClickable": ("long_clickable", MatchMode.EXACT),
    "scrollable": ("scrollable", MatchMode.EXACT),
    "selected": ("selected", MatchMode.EXACT),
}

LINK_METHODS = {
    "childSelector": LinkKind.CHILD,
    "fromParent": LinkKind.PARENT,
    "containerSelector": LinkKind.CONTAINER,
    "patternSelector": LinkKind.PATTERN,
    "beforeSelector": LinkKind.BEFORE,
    "afterSelector": LinkKind.AFTER,
}

_NULL = object()

Argument = Union[str, int, bool, Selector, None, object]


class SelectorParser:
    """Recursive-descent parser producing Selector values"""

    def __init__(self, tokens: List[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _expect(self, token_type: str, value: Optional[str] = None) -> Token:
        token = self._advance()
        if token.type != token_type or (value is not None and token.value != value):
            wanted = value or token_type
            found = token.value if token.value is not None else token.type
            raise SelectorSyntaxError(f"Expected {wanted}, found {found}", token.pos)
        return token

    def parse(self) -> Selector:
        selector = self._parse_selector()
        if self._peek().type == TokenType.SEMICOLON:
            self._advance()
        token = self._peek()
        if token.type != TokenType.EOF:
            raise SelectorSyntaxError(f"Unexpected {token.value!r} after selector", token.pos)
        return selector

    def _parse_selector(self) -> Selector:
        token = self._peek()
        if token.type == TokenType.NAME and token.value == "new":
            self._advance()
        self._expect(TokenType.NAME, "UiSelector")
        self._expect(TokenType.PAREN_OPEN)
        self._expect(TokenType.PAREN_CLOSE)

        selector = Selector()
        while self._peek().type == TokenType.DOT:
            self._advance()
            name = self._expect(TokenType.NAME)
            self._expect(TokenType.PAREN_OPEN)
            argument = self._parse_argument()
            self._expect(TokenType.PAREN_CLOSE)
            selector = self._apply(selector, name, argument)
        return selector

    def _parse_argument(self) -> Argument:
        token = self._peek()
        if token.type == TokenType.PAREN_CLOSE:
            return None
        if token.type == TokenType.STRING:
            return self._advance().value
        if token.type == TokenType.NUMBER:
            return int(self._advance().value)
        if token.type == TokenType.NAME:
            if token.value in ("true", "false"):
                return self._advance().value == "true"
            if token.value == "null":
                self._advance()
                return _NULL
            return self._parse_selector()
        raise SelectorSyntaxError(f"Unexpected {token.value!r} in argument list", token.pos)

    def _apply(self, selector: Selector, name: Token, argument: Argument) -> Selector:
        method = name.value

        if method in PREDICATE_METHODS:
            prop, mode = PREDICATE_METHODS[method]
            if argument is None or argument is _NULL or isinstance(argument, Selector):
                raise SelectorSyntaxError(f"{method}() needs a value", name.pos)
            try:
                return selector.with_predicate(prop, argument, mode)
            except MalformedSelectorError as e:
                raise SelectorSyntaxError(f"{method}(): {e}", name.pos)

        if method in ("index", "instance"):
            if isinstance(argument, bool) or not isinstance(argument, int):
                raise SelectorSyntaxError(f"{method}() needs an integer", name.pos)
            if argument < 0:
                raise SelectorSyntaxError(f"{method}() must not be negative", name.pos)
            return selector.at_index(argument) if method == "index" else selector.at_instance(argument)

        if method in LINK_METHODS:
            kind = LINK_METHODS[method]
            if argument is _NULL:
                target = None
            elif isinstance(argument, Selector):
                target = argument
            else:
                raise SelectorSyntaxError(f"{method}() needs a UiSelector", name.pos)
            if kind is LinkKind.CHILD:
                return selector.child_selector(target)
            if kind is LinkKind.PARENT:
                return selector.from_parent(target)
            return selector.with_link(kind, target)

        raise SelectorSyntaxError(f"Unknown UiSelector method {method!r}", name.pos)


def parse_selector(text: str) -> Selector:
    """
    Parse a UiSelector expression.

    Raises:
        SelectorSyntaxError: the expression is not valid
    """
    if not text or not text.strip():
        raise SelectorSyntaxError("Empty selector expression")
    tokens = SelectorTokenizer(text).tokenize()
    return SelectorParser(tokens).parse()
