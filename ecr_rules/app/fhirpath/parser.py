"""
Path expression compiler.

Grammar (whitespace is ignored between tokens):

    path      := IDENT segment* EOF
    segment   := "." where | "." IDENT | ".." IDENT
    where     := "where" "(" IDENT "=" STRING ")"

The first identifier names the resource type the path applies to. A compiled
path is an immutable tuple of steps, cached per expression string so rules
evaluated repeatedly do not re-parse.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, NamedTuple, Optional, Tuple, Union

from ecr_shared.errors import InvalidPathError


# Token types - ORDER MATTERS (longer matches first)
TOKEN_TYPES = [
    ("DESCEND", r"\.\."),
    ("DOT", r"\."),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("EQUALS", r"="),
    ("STRING", r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\''),
    ("IDENT", r"[A-Za-z_][A-Za-z0-9_]*"),
    ("WHITESPACE", r"\s+"),
    ("MISMATCH", r"."),
]

TOKEN_REGEX = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in TOKEN_TYPES), re.DOTALL)

WHERE_FUNCTION = "where"


class Token(NamedTuple):
    type: str
    value: str
    pos: int


@dataclass(frozen=True)
class FieldStep:
    """Select a named child of every node."""
    name: str


@dataclass(frozen=True)
class DescendantStep:
    """Select a named field anywhere below every node."""
    name: str


@dataclass(frozen=True)
class WhereStep:
    """Keep nodes whose ``field`` equals ``literal``."""
    field: str
    literal: str


Step = Union[FieldStep, DescendantStep, WhereStep]


@dataclass(frozen=True)
class CompiledPath:
    """A parsed path expression, ready for extraction."""
    expression: str
    root: str
    steps: Tuple[Step, ...]

    @property
    def has_descendants(self) -> bool:
        return any(isinstance(step, DescendantStep) for step in self.steps)

    @property
    def filters(self) -> Tuple[WhereStep, ...]:
        return tuple(step for step in self.steps if isinstance(step, WhereStep))

    def __str__(self) -> str:
        return self.expression


def tokenize(expression: str) -> List[Token]:
    """Tokenize a path expression, rejecting characters outside the grammar."""
    tokens = []
    for match in TOKEN_REGEX.finditer(expression):
        token_type = match.lastgroup
        value = match.group()
        if token_type == "WHITESPACE":
            continue
        if token_type == "MISMATCH":
            raise InvalidPathError(
                f"unexpected character {value!r} at position {match.start()}",
                {"path": expression, "position": match.start()}
            )
        tokens.append(Token(token_type, value, match.start()))
    return tokens


def _unquote(literal: str) -> str:
    return re.sub(r"\\(.)", r"\1", literal[1:-1])


class PathParser:
    """Recursive descent parser for path expressions."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = tokenize(expression)
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.pos + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def consume(self) -> Optional[Token]:
        token = self.peek()
        self.pos += 1
        return token

    def expect(self, token_type: str, what: str) -> Token:
        token = self.consume()
        if token is None:
            self._fail(f"expected {what} but the path ended", len(self.expression))
        if token.type != token_type:
            self._fail(f"expected {what}, got {token.value!r}", token.pos)
        return token

    def _fail(self, message: str, position: int):
        raise InvalidPathError(
            f"{message} at position {position}",
            {"path": self.expression, "position": position}
        )

    def parse(self) -> CompiledPath:
        """path := IDENT segment* EOF"""
        if not self.tokens:
            self._fail("expected a resource type", 0)

        root = self.expect("IDENT", "a resource type")
        if self.peek() is not None and self.peek().type == "LPAREN":
            self._fail(f"path cannot start with a function call {root.value!r}", root.pos)

        steps: List[Step] = []
        while self.peek() is not None:
            steps.append(self.parse_segment())

        return CompiledPath(expression=self.expression, root=root.value, steps=tuple(steps))

    def parse_segment(self) -> Step:
        """segment := "." where | "." IDENT | ".." IDENT"""
        token = self.consume()

        if token.type == "DESCEND":
            name = self.expect("IDENT", "a field name after '..'")
            if self.peek() is not None and self.peek().type == "LPAREN":
                self._fail(f"function {name.value!r} cannot follow '..'", name.pos)
            return DescendantStep(name.value)

        if token.type != "DOT":
            self._fail(f"unexpected {token.value!r}", token.pos)

        name = self.expect("IDENT", "a field name after '.'")
        following = self.peek()
        if following is not None and following.type == "LPAREN":
            if name.value != WHERE_FUNCTION:
                self._fail(f"unsupported function {name.value + '()'!r}", name.pos)
            return self.parse_where()

        return FieldStep(name.value)

    def parse_where(self) -> WhereStep:
        """where := "where" "(" IDENT "=" STRING ")"  (the name is already consumed)"""
        self.expect("LPAREN", "'('")
        field = self.expect("IDENT", "a field name inside where()")
        self.expect("EQUALS", "'=' inside where()")
        literal = self.expect("STRING", "a quoted string literal inside where()")
        self.expect("RPAREN", "')' to close where()")
        return WhereStep(field=field.value, literal=_unquote(literal.value))


@lru_cache(maxsize=1024)
def compile_path(expression: str) -> CompiledPath:
    """Compile a path expression.

    Raises:
        InvalidPathError: if the expression is empty or malformed
    """
    if not isinstance(expression, str) or not expression.strip():
        raise InvalidPathError("path must be a non-empty string", {"path": expression})
    return PathParser(expression).parse()
