# Copyright (c) Syntropy Systems
"""Tests for the Go source scanner."""

import pytest

from tinygoize.errors import SourceParseError
from tinygoize.source import decode, scan


class TestScan:
    """Tests for scan."""

    def test_comment_groups(self):
        """Test that a blank line separates comment groups."""
        src = scan(
            "// Copyright\n"
            "// License\n"
            "\n"
            "//go:build linux\n"
            "\n"
            "// Package main does things.\n"
            "package main\n"
        )
        assert [len(g.comments) for g in src.groups] == [2, 1, 1]
        assert src.groups[1].comments[0].text == "//go:build linux"
        assert src.groups[1].start_line == 3

    def test_block_comment(self):
        src = scan("/*\n * Copyright\n */\n\npackage main\n")
        assert len(src.comments) == 1
        assert src.comments[0].start_line == 0
        assert src.comments[0].end_line == 2

    def test_trailing_comment_is_not_own_line(self):
        src = scan("package main\n\nvar x = 1 //go:build linux\n")
        assert len(src.comments) == 1
        assert not src.comments[0].own_line

    def test_comment_markers_in_literals_ignored(self):
        """Test that // inside strings, raw strings and runes is not a comment."""
        src = scan(
            "package main\n"
            'var a = "http://example.com"\n'
            "var b = `//go:build linux\n/* not a comment */`\n"
            "var c = '/'\n"
            'var d = "escaped \\" // still a string"\n'
        )
        assert src.comments == []

    def test_crlf(self):
        src = scan("// Copyright\r\n\r\npackage main\r\n")
        assert src.comments[0].text == "// Copyright"
        assert src.newline == "\r\n"

    def test_package_offset(self):
        text = "// c\n\npackage main\n"
        assert scan(text).package_offset == text.index("package")

    def test_package_name_on_next_line(self):
        """Test that any whitespace may separate package and its name."""
        text = "package\nmain\n"
        assert scan(text).package_offset == 0

    def test_annotation_after_byte_order_mark_is_own_line(self):
        src = scan("\ufeff//go:build linux\n\npackage main\n")
        assert src.comments[0].own_line
        assert src.comments[0].text == "//go:build linux"

    @pytest.mark.parametrize(
        "text",
        [
            "func main() {}\n",
            "// only a comment\n",
            "package main\n/* open\n",
            'package main\nvar s = "open\n',
            "package main\nvar s = `open\n",
            "package main\nvar r = 'x\n",
        ],
    )
    def test_parse_errors(self, text):
        with pytest.raises(SourceParseError):
            _ = scan(text)


def test_decode_rejects_invalid_utf8():
    with pytest.raises(SourceParseError):
        _ = decode(b"package main\n\xff\n")
