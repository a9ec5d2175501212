# Copyright (c) Syntropy Systems
"""Grammar for //go:build lines and the clause tinygoize manages.

Expressions follow the Go build constraint syntax::

    expr  := or
    or    := and { "||" and }
    and   := unary { "&&" unary }
    unary := "!" unary | "(" expr ")" | tag

Only the top-level ``&&`` operands of an expression are ever touched.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from tinygoize.errors import ConstraintSyntaxError

GO_BUILD = "//go:build "
CONSTRAINT = "!tinygo || tinygo.enable"

_TOKEN_RE = re.compile(r"\s*(?:(&&|\|\|)|([()!])|([A-Za-z0-9_.]+))")


@dataclass(frozen=True)
class Tag:
    """A named build tag."""

    name: str


@dataclass(frozen=True)
class Not:
    """Negation of an expression."""

    x: Expr


@dataclass(frozen=True)
class And:
    """Conjunction of two expressions."""

    x: Expr
    y: Expr


@dataclass(frozen=True)
class Or:
    """Disjunction of two expressions."""

    x: Expr
    y: Expr


Expr = Union[Tag, Not, And, Or]


def tokenize(text: str) -> list[tuple[str, int, int]]:
    """Split an expression into ``(token, start, end)`` triples."""
    tokens: list[tuple[str, int, int]] = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            msg = f"unexpected character {text[pos:].lstrip()[0]!r} in {text!r}"
            raise ConstraintSyntaxError(msg)
        group = match.lastindex or 0
        tokens.append((match.group(group), match.start(group), match.end(group)))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos][0]
        return None

    def take(self) -> str:
        tok = self.peek()
        if tok is None:
            msg = f"unexpected end of expression in {self.text!r}"
            raise ConstraintSyntaxError(msg)
        self.pos += 1
        return tok

    def parse(self) -> Expr:
        if not self.tokens:
            msg = "empty build constraint"
            raise ConstraintSyntaxError(msg)
        expr = self.parse_or()
        if self.peek() is not None:
            msg = f"unexpected {self.peek()!r} in {self.text!r}"
            raise ConstraintSyntaxError(msg)
        return expr

    def parse_or(self) -> Expr:
        x = self.parse_and()
        while self.peek() == "||":
            self.pos += 1
            x = Or(x, self.parse_and())
        return x

    def parse_and(self) -> Expr:
        x = self.parse_unary()
        while self.peek() == "&&":
            self.pos += 1
            x = And(x, self.parse_unary())
        return x

    def parse_unary(self) -> Expr:
        tok = self.take()
        if tok == "!":
            return Not(self.parse_unary())
        if tok == "(":
            x = self.parse_or()
            if self.take() != ")":
                msg = f"missing ')' in {self.text!r}"
                raise ConstraintSyntaxError(msg)
            return x
        if tok in ("&&", "||", ")"):
            msg = f"unexpected {tok!r} in {self.text!r}"
            raise ConstraintSyntaxError(msg)
        return Tag(tok)


def parse_expr(text: str) -> Expr:
    """Parse a build constraint expression, ignoring parentheses."""
    return _Parser(text).parse()


def split_conjuncts(text: str) -> list[str]:
    """Return the top-level ``&&`` operands of ``text``, stripped.

    An expression with a top-level ``||`` is a single operand.
    """
    tokens = tokenize(text)
    cuts: list[tuple[int, int]] = []
    depth = 0
    for tok, start, end in tokens:
        if tok == "(":
            depth += 1
        elif tok == ")":
            depth -= 1
        elif depth == 0 and tok == "||":
            return [text.strip()]
        elif depth == 0 and tok == "&&":
            cuts.append((start, end))

    parts: list[str] = []
    prev = 0
    for start, end in cuts:
        parts.append(text[prev:start].strip())
        prev = end
    parts.append(text[prev:].strip())
    return parts


def _is_clause(text: str, clause: str) -> bool:
    return parse_expr(text) == parse_expr(clause)


def has_clause(text: str, clause: str = CONSTRAINT) -> bool:
    """Report whether ``clause`` is one of the top-level conjuncts of ``text``."""
    _ = parse_expr(text)
    return any(_is_clause(part, clause) for part in split_conjuncts(text))


def conjoin(text: str, clause: str = CONSTRAINT) -> str:
    """Require ``clause`` in addition to the existing expression."""
    return f"({clause}) && ({text.strip()})"


def _unwrap(text: str) -> str:
    """Drop one pair of parentheses enclosing the whole of ``text``."""
    tokens = tokenize(text)
    if len(tokens) < 2 or tokens[0][0] != "(" or tokens[-1][0] != ")":
        return text
    depth = 0
    for i, (tok, _, _) in enumerate(tokens):
        if tok == "(":
            depth += 1
        elif tok == ")":
            depth -= 1
            if depth == 0 and i != len(tokens) - 1:
                return text
    return text[tokens[0][2]:tokens[-1][1]].strip()


def strip_clause(text: str, clause: str = CONSTRAINT) -> str:
    """Remove ``clause`` and its ``&&`` from ``text``.

    Returns an empty string when nothing else is left.
    """
    _ = parse_expr(text)
    kept = [part for part in split_conjuncts(text) if not _is_clause(part, clause)]
    if len(kept) == 1:
        return _unwrap(kept[0])
    return " && ".join(kept)
