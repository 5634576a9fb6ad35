"""Tokenizer and recursive-descent parser for time expressions.

A time expression is a small arithmetic language for writing timeline
positions in seconds:

    2.5               plain seconds
    30f  500ms  2s    frames (divided by fps), milliseconds, explicit seconds
    scene(intro).end + 0.5
    max(cue(hook), mark(beat) - 12f)
    snap(prev.end, 0.25)

Grammar (lowest to highest precedence):

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER | "(" expression ")"
                | IDENT ["(" [expression ("," expression)*] ")"] ("." IDENT)*

Identifiers match ``[A-Za-z_][A-Za-z0-9_-]*`` so ids such as ``intro-2`` can
be used directly inside ``scene()``. A consequence is that ``a-b`` reads as
one identifier; put spaces around a minus that follows an identifier.

This module only builds the immutable AST. Evaluation against resolved
anchors lives in framecue.core.time_expressions.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, NamedTuple, Optional, Tuple, Union

from framecue.errors import ParseError

# ============================================================================
# TOKENS
# ============================================================================

TIME_UNITS = ("f", "s", "ms")

_IDENT_START = re.compile(r"[A-Za-z_]")
_IDENT_BODY = re.compile(r"[A-Za-z0-9_-]")
_NUMBER_BODY = re.compile(r"[\d.]")


class Token(NamedTuple):
    """One lexical token.

    kind is one of "number", "identifier", "operator", "paren", "dot", "comma".
    For numbers, value holds the float and unit the optional suffix.
    """
    kind: str
    value: Union[float, str, None] = None
    unit: Optional[str] = None


def tokenize_time(text: str) -> List[Token]:
    """Split a time expression into tokens.

    Args:
        text: Expression source

    Returns:
        List of tokens in source order

    Raises:
        ParseError: On a character that cannot start any token, or a malformed number

    Examples:
        >>> [t.kind for t in tokenize_time("scene(a).end + 30f")]
        ['identifier', 'paren', 'identifier', 'paren', 'dot', 'identifier', 'operator', 'number']
        >>> tokenize_time("500ms")[0]
        Token(kind='number', value=500.0, unit='ms')
    """
    tokens: List[Token] = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch in " \t\n\r":
            i += 1
        elif ch in "+-*/":
            tokens.append(Token("operator", ch))
            i += 1
        elif ch in "()":
            tokens.append(Token("paren", ch))
            i += 1
        elif ch == ".":
            tokens.append(Token("dot"))
            i += 1
        elif ch == ",":
            tokens.append(Token("comma"))
            i += 1
        elif ch.isdigit():
            j = i + 1
            while j < length and _NUMBER_BODY.match(text[j]):
                j += 1
            raw = text[i:j]
            try:
                value = float(raw)
            except ValueError:
                raise ParseError(f'Invalid number "{raw}"', text) from None
            unit = None
            if text.startswith("ms", j):
                unit = "ms"
                j += 2
            elif j < length and text[j] in "fs":
                unit = text[j]
                j += 1
            tokens.append(Token("number", value, unit))
            i = j
        elif _IDENT_START.match(ch):
            j = i + 1
            while j < length and _IDENT_BODY.match(text[j]):
                j += 1
            tokens.append(Token("identifier", text[i:j]))
            i = j
        else:
            raise ParseError(f'Unexpected character "{ch}"', text)
    return tokens


# ============================================================================
# AST
# ============================================================================


@dataclass(frozen=True)
class NumberNode:
    value: float
    unit: Optional[str] = None


@dataclass(frozen=True)
class IdentifierNode:
    name: str


@dataclass(frozen=True)
class UnaryNode:
    op: str
    operand: "TimeNode"


@dataclass(frozen=True)
class BinaryNode:
    op: str
    left: "TimeNode"
    right: "TimeNode"


@dataclass(frozen=True)
class CallNode:
    name: str
    args: Tuple["TimeNode", ...]


@dataclass(frozen=True)
class PropertyNode:
    target: "TimeNode"
    prop: str


TimeNode = Union[NumberNode, IdentifierNode, UnaryNode, BinaryNode, CallNode, PropertyNode]


# ============================================================================
# PARSER
# ============================================================================


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize_time(text)
        self.pos = 0

    def peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def consume(self) -> Optional[Token]:
        token = self.peek()
        if token is not None:
            self.pos += 1
        return token

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.text)

    def expect_close(self) -> None:
        closing = self.consume()
        if closing is None or closing != Token("paren", ")"):
            raise self.error("Expected closing ')'")

    def parse(self) -> TimeNode:
        if not self.tokens:
            raise self.error("Empty time expression")
        node = self.expression()
        if self.pos < len(self.tokens):
            raise self.error(f"Unexpected token {self.tokens[self.pos].value or self.tokens[self.pos].kind!r}")
        return node

    def expression(self) -> TimeNode:
        node = self.term()
        while True:
            op = self.peek()
            if op is None or op.kind != "operator" or op.value not in "+-":
                return node
            self.consume()
            node = BinaryNode(op.value, node, self.term())

    def term(self) -> TimeNode:
        node = self.unary()
        while True:
            op = self.peek()
            if op is None or op.kind != "operator" or op.value not in "*/":
                return node
            self.consume()
            node = BinaryNode(op.value, node, self.unary())

    def unary(self) -> TimeNode:
        token = self.peek()
        if token is not None and token.kind == "operator" and token.value in "+-":
            self.consume()
            return UnaryNode(token.value, self.unary())
        return self.primary()

    def primary(self) -> TimeNode:
        token = self.consume()
        if token is None:
            raise self.error("Unexpected end of input")
        if token.kind == "number":
            return NumberNode(token.value, token.unit)
        if token.kind == "paren" and token.value == "(":
            node = self.expression()
            self.expect_close()
            return node
        if token.kind != "identifier":
            raise self.error("Invalid time expression")

        node: TimeNode = IdentifierNode(token.value)
        if self.peek() == Token("paren", "("):
            self.consume()
            args: List[TimeNode] = []
            if self.peek() != Token("paren", ")"):
                args.append(self.expression())
                while self.peek() == Token("comma"):
                    self.consume()
                    args.append(self.expression())
            self.expect_close()
            node = CallNode(token.value, tuple(args))

        while self.peek() == Token("dot"):
            self.consume()
            prop = self.consume()
            if prop is None or prop.kind != "identifier":
                raise self.error("Expected property name after '.'")
            node = PropertyNode(node, prop.value)
        return node


@lru_cache(maxsize=1024)
def parse_time_expression(text: str) -> TimeNode:
    """Parse expression text into an immutable AST.

    Results are cached per text; the AST is frozen so sharing it is safe.

    Args:
        text: Expression source (surrounding whitespace is ignored)

    Returns:
        Root AST node

    Raises:
        ParseError: On any lexical or syntax error

    Examples:
        >>> parse_time_expression("1 + 2 * 3")
        BinaryNode(op='+', left=NumberNode(value=1.0, unit=None), right=BinaryNode(op='*', left=NumberNode(value=2.0, unit=None), right=NumberNode(value=3.0, unit=None)))
        >>> parse_time_expression("scene(intro).end")
        PropertyNode(target=CallNode(name='scene', args=(IdentifierNode(name='intro'),)), prop='end')
    """
    return _Parser(text.strip()).parse()
