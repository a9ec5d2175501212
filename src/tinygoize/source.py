# Copyright (c) Syntropy Systems
"""Minimal Go source scanner.

Finds comments and groups them the way go/ast does, while skipping
string, raw string and rune literals so that comment markers inside
literals are ignored. The scanner also checks that the first token of
the file is a ``package`` clause. It does not parse declarations.
"""
from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field

from tinygoize.errors import SourceParseError

BOM = "\ufeff"

_PACKAGE_RE = re.compile(r"package\s+[^\W\d]\w*")


@dataclass
class Comment:
    """A single ``//`` or ``/* */`` comment."""

    start: int
    end: int
    text: str
    start_line: int
    end_line: int
    own_line: bool


@dataclass
class CommentGroup:
    """Adjacent comments with no token and no blank line between them."""

    comments: list[Comment] = field(default_factory=list)

    @property
    def start_line(self) -> int:
        return self.comments[0].start_line

    @property
    def end_line(self) -> int:
        return self.comments[-1].end_line

    @property
    def end(self) -> int:
        return self.comments[-1].end


@dataclass
class GoSource:
    """Result of scanning one Go file."""

    text: str
    comments: list[Comment]
    groups: list[CommentGroup]
    package_offset: int

    @property
    def newline(self) -> str:
        return "\r\n" if "\r\n" in self.text else "\n"


class _Scanner:
    def __init__(self, text: str) -> None:
        self.text = text
        self.line_starts = [0] + [m.end() for m in re.finditer("\n", text)]
        self.comments: list[Comment] = []
        self.package_offset = -1

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self.line_starts, offset) - 1

    def add_comment(self, start: int, end: int) -> None:
        line = self.line_of(start)
        prefix = self.text[self.line_starts[line]:start]
        text = self.text[start:end]
        if text.startswith("//"):
            text = text.rstrip("\r")
        self.comments.append(
            Comment(
                start=start,
                end=start + len(text),
                text=text,
                start_line=line,
                end_line=self.line_of(max(start, end - 1)),
                own_line=prefix.strip().lstrip(BOM) == "",
            )
        )

    def skip_quoted(self, pos: int, quote: str) -> int:
        """Return the offset just past a string or rune literal."""
        i = pos + 1
        while i < len(self.text):
            ch = self.text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "\n":
                break
            if ch == quote:
                return i + 1
            i += 1
        kind = "rune" if quote == "'" else "string"
        msg = f"line {self.line_of(pos) + 1}: {kind} literal not terminated"
        raise SourceParseError(msg)

    def scan(self) -> None:
        text = self.text
        i = 1 if text.startswith(BOM) else 0
        n = len(text)
        while i < n:
            ch = text[i]
            if text.startswith("//", i):
                end = text.find("\n", i)
                end = n if end == -1 else end
                self.add_comment(i, end)
                i = end
            elif text.startswith("/*", i):
                end = text.find("*/", i + 2)
                if end == -1:
                    msg = f"line {self.line_of(i) + 1}: comment not terminated"
                    raise SourceParseError(msg)
                self.add_comment(i, end + 2)
                i = end + 2
            elif ch.isspace():
                i += 1
            else:
                if self.package_offset < 0:
                    if not _PACKAGE_RE.match(text, i):
                        msg = f"line {self.line_of(i) + 1}: expected 'package' clause"
                        raise SourceParseError(msg)
                    self.package_offset = i
                if ch in "\"'":
                    i = self.skip_quoted(i, ch)
                elif ch == "`":
                    end = text.find("`", i + 1)
                    if end == -1:
                        msg = f"line {self.line_of(i) + 1}: raw string literal not terminated"
                        raise SourceParseError(msg)
                    i = end + 1
                else:
                    i += 1
        if self.package_offset < 0:
            msg = "expected 'package' clause"
            raise SourceParseError(msg)

    def group(self) -> list[CommentGroup]:
        groups: list[CommentGroup] = []
        prev: Comment | None = None
        for comment in self.comments:
            gap = self.text[prev.end:comment.start] if prev is not None else ""
            if prev is not None and gap.strip() == "" and gap.count("\n") <= 1:
                groups[-1].comments.append(comment)
            else:
                groups.append(CommentGroup([comment]))
            prev = comment
        return groups


def scan(text: str) -> GoSource:
    """Scan Go source text.

    Raises:
        SourceParseError: the text is not a plausible Go file.

    """
    scanner = _Scanner(text)
    scanner.scan()
    return GoSource(
        text=text,
        comments=scanner.comments,
        groups=scanner.group(),
        package_offset=scanner.package_offset,
    )


def decode(data: bytes) -> str:
    """Decode Go source bytes, which must be UTF-8."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"invalid UTF-8: {e}"
        raise SourceParseError(msg) from e
