# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Identifier tokens of physical source lines.

Each line is scanned once: string contents and the comment are masked,
every standalone identifier is recorded with its 1-based occurrence among
same-named tokens on the line, and member accesses are linked to the token
they qualify. Occurrence numbering matches source_text.find_token_positions,
which the rewrite plan builder uses to find the n-th match again.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from vb6_xref.source_text import searchable_code

TOKEN_RE = re.compile(r"(?<![\w])[A-Za-z_]\w*")

WITH_RELATIVE = -1
UNKNOWN_QUALIFIER = -2


@dataclass
class Token:
    """One identifier on a physical line.

    Attributes:
        name: Identifier as written.
        start: Offset within the line.
        end: Offset just past the identifier.
        occurrence: 1-based occurrence among same-named tokens on the line.
        member_of: None for a root token, WITH_RELATIVE for ".Name" inside a
            With block, UNKNOWN_QUALIFIER after a non-identifier, otherwise
            the index of the qualifying token.
        named_argument: True for "Name:=" argument labels.
    """

    name: str
    start: int
    end: int
    occurrence: int
    member_of: Optional[int] = None
    named_argument: bool = False

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def is_member(self) -> bool:
        return self.member_of is not None


@dataclass
class ScannedLine:
    number: int  # 1-based physical line
    text: str
    masked: str
    tokens: List[Token] = field(default_factory=list)

    def root_of(self, index: int) -> int:
        """Index of the first token of the chain holding token index.

        Returns WITH_RELATIVE or UNKNOWN_QUALIFIER when the chain does not
        start with a token of this line.
        """
        current = index
        while True:
            parent = self.tokens[current].member_of
            if parent is None:
                return current
            if parent < 0:
                return parent
            current = parent

    def tokens_named(self, name: str) -> List[Token]:
        key = name.lower()
        return [t for t in self.tokens if t.key == key]


def _skip_spaces_back(text: str, pos: int) -> int:
    i = pos - 1
    while i >= 0 and text[i] in " \t":
        i -= 1
    return i


def _skip_parens_back(text: str, pos: int) -> int:
    """From a ')' at pos, return the index just before its matching '('."""
    depth = 0
    i = pos
    while i >= 0:
        if text[i] == ")":
            depth += 1
        elif text[i] == "(":
            depth -= 1
            if depth == 0:
                return i - 1
        i -= 1
    return -1


def scan_line(number: int, text: str) -> ScannedLine:
    """Tokenize one physical line."""
    masked = searchable_code(text)
    scanned = ScannedLine(number=number, text=text, masked=masked)
    by_end: Dict[int, int] = {}
    counts: Dict[str, int] = {}

    for match in TOKEN_RE.finditer(masked):
        name = match.group(0)
        key = name.lower()
        counts[key] = counts.get(key, 0) + 1
        token = Token(name=name, start=match.start(), end=match.end(), occurrence=counts[key])

        dot = _skip_spaces_back(masked, match.start())
        if dot >= 0 and masked[dot] == ".":
            before = _skip_spaces_back(masked, dot)
            indexed = before >= 0 and masked[before] == ")"
            if indexed:
                before = _skip_spaces_back(masked, _skip_parens_back(masked, before) + 1)
            if before >= 0 and (masked[before].isalnum() or masked[before] == "_"):
                token.member_of = by_end.get(before + 1, UNKNOWN_QUALIFIER)
            elif indexed or (before >= 0 and masked[before] in "\"!"):
                token.member_of = UNKNOWN_QUALIFIER
            else:
                token.member_of = WITH_RELATIVE

        after = masked[match.end() :].lstrip(" \t")
        token.named_argument = after.startswith(":=")

        by_end[match.end()] = len(scanned.tokens)
        scanned.tokens.append(token)

    return scanned


def scan_lines(lines: List[str]) -> List[ScannedLine]:
    return [scan_line(number, text) for number, text in enumerate(lines, start=1)]
