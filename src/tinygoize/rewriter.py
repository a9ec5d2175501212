# Copyright (c) Syntropy Systems
"""Keep the managed //go:build clause of Go files in sync with build results.

``desired=True`` means the package does not build with tinygo, so each
file must carry ``!tinygo || tinygo.enable``. ``desired=False`` means it
builds, so the clause is removed again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tinygoize.constraints import CONSTRAINT, GO_BUILD, conjoin, has_clause, strip_clause
from tinygoize.errors import ConstraintSyntaxError, SourceParseError
from tinygoize.source import BOM, decode, scan

if TYPE_CHECKING:
    from tinygoize.source import Comment, CommentGroup, GoSource

logger = logging.getLogger(__name__)


@dataclass
class AnnotationEdit:
    """Planned change to one file's //go:build line."""

    path: Path
    original: bytes
    has_annotation: bool
    has_clause: bool
    rewritten: bytes

    @property
    def changed(self) -> bool:
        return self.rewritten != self.original


def _find_annotation(src: GoSource) -> tuple[CommentGroup, Comment] | None:
    """Return the first own-line //go:build comment and its group."""
    for group in src.groups:
        for comment in group.comments:
            if comment.own_line and comment.text.startswith(GO_BUILD):
                return group, comment
    return None


def _header_group(src: GoSource) -> CommentGroup | None:
    """Return the leading comment group an annotation may follow.

    The group must end before the package clause, end its line, and be
    separated from what follows by a blank line, otherwise it is a doc
    comment and the annotation goes to the top of the file.
    """
    if not src.groups:
        return None
    group = src.groups[0]
    if group.end > src.package_offset:
        return None
    rest = src.text[group.end:]
    line_end = rest.find("\n")
    if line_end == -1 or rest[:line_end].strip() != "":
        return None
    after = rest[line_end + 1:]
    next_line = after.split("\n", 1)[0]
    if next_line.strip() != "":
        return None
    return group


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def _split_lines(text: str) -> list[str]:
    """Split on "\\n" only, keeping line endings."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _split_body(text: str) -> tuple[str, list[str]]:
    """Split off a leading byte order mark, which must stay at offset 0."""
    bom = BOM if text.startswith(BOM) else ""
    return bom, _split_lines(text[len(bom):])


def _insert(src: GoSource, clause: str) -> str:
    nl = src.newline
    bom, lines = _split_body(src.text)
    new_line = GO_BUILD + clause + nl
    header = _header_group(src)
    if header is None:
        while lines and _is_blank(lines[0]):
            lines.pop(0)
        return "".join([bom, new_line, nl, *lines])

    cut = header.end_line + 1
    head, tail = lines[:cut], lines[cut:]
    while tail and _is_blank(tail[0]):
        tail.pop(0)
    return "".join([bom, *head, nl, new_line, nl, *tail])


def _replace_comment(src: GoSource, comment: Comment, new_text: str) -> str:
    return src.text[:comment.start] + new_text + src.text[comment.end:]


def _delete_line(src: GoSource, group: CommentGroup, comment: Comment) -> str:
    """Remove the annotation line, and the group's blank line if it empties."""
    bom, lines = _split_body(src.text)
    idx = comment.start_line
    del lines[idx]
    if len(group.comments) == 1:
        prev_blank = idx == 0 or _is_blank(lines[idx - 1])
        if prev_blank and idx < len(lines) and _is_blank(lines[idx]):
            del lines[idx]
    return bom + "".join(lines)


def plan_edit(path: Path, desired: bool, clause: str = CONSTRAINT) -> AnnotationEdit:
    """Compute the edit that brings ``path`` to the desired clause state.

    Raises:
        SourceParseError: the file is not valid Go or its //go:build
            expression cannot be parsed.
        OSError: the file cannot be read.

    """
    original = path.read_bytes()
    try:
        src = scan(decode(original))
    except SourceParseError as e:
        raise SourceParseError(str(e), path) from e

    found = _find_annotation(src)
    if found is None:
        if desired:
            rewritten = _insert(src, clause).encode("utf-8")
        else:
            rewritten = original
        return AnnotationEdit(path, original, False, False, rewritten)

    group, comment = found
    expr = comment.text[len(GO_BUILD):]
    try:
        present = has_clause(expr, clause)
        if desired == present:
            return AnnotationEdit(path, original, True, present, original)
        if desired:
            logger.info("Adding build constraint %s", path)
            text = _replace_comment(src, comment, GO_BUILD + conjoin(expr, clause))
        else:
            logger.info("Stripping build constraint %s", path)
            remaining = strip_clause(expr, clause)
            if remaining:
                text = _replace_comment(src, comment, GO_BUILD + remaining)
            else:
                text = _delete_line(src, group, comment)
    except ConstraintSyntaxError as e:
        msg = f"line {comment.start_line + 1}: {e}"
        raise SourceParseError(msg, path) from e

    return AnnotationEdit(path, original, True, present, text.encode("utf-8"))


def fixup_file_constraints(path: Path, desired: bool, check_only: bool) -> bool:
    """Add, update or remove the managed clause in one file.

    Returns whether the file needed a change. The file is only written
    when it changed and ``check_only`` is false.
    """
    logger.debug("Process %s", path)
    edit = plan_edit(path, desired)
    if not edit.changed:
        logger.debug("Skipped, constraint up-to-date: %s", path)
        return False
    if not check_only:
        _ = path.write_bytes(edit.rewritten)
    return True


def fixup_pkg_constraints(directory: Path, desired: bool, check_only: bool) -> list[Path]:
    """Fix up every ``.go`` file directly inside ``directory``.

    Returns the files that needed a change.
    """
    modified: list[Path] = []
    for path in sorted(Path(directory).glob("*.go")):
        if not path.is_file():
            continue
        if fixup_file_constraints(path, desired, check_only):
            modified.append(path)
    return modified
