# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Lexical helpers over single physical or logical VB6 source lines.

All helpers are position-preserving: masking replaces characters with
spaces instead of removing them, so an offset found in a masked line is
valid in the original line. Token matching is case-insensitive and bounded
by identifier characters.
"""

import re
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

IDENTIFIER = r"[A-Za-z_]\w*"
IDENTIFIER_RE = re.compile(IDENTIFIER)

# Structural keywords and built-in functions that are never user symbols
VB_KEYWORDS = frozenset(
    word.lower()
    for word in (
        # Structure
        "If Then Else ElseIf End For Next Do Loop While Wend Until Select Case Function Sub "
        "Property Get Let Set Call With EndIf Type Enum Private Public Friend Global Dim "
        "Static Option Explicit As ByVal ByRef Optional ParamArray Not And Or Xor Mod Is "
        "Like Eqv Imp New On Error Resume GoTo GoSub Return Exit Step To Each In Const "
        "Declare Lib Alias Event RaiseEvent Implements WithEvents Attribute Default "
        "Preserve ReDim Erase Me Nothing Null Empty True False Stop Print Input Output "
        "Append Binary Random Access Read Write Shared Open Close Get Put Seek Lock Unlock "
        "Line Width Name Kill Let Begin BeginProperty EndProperty Object Version "
        # Built-in types
        "Boolean Byte Integer Long Single Double Currency Date String Variant Any Decimal "
        # Built-in functions
        "Abs Array Asc AscB AscW Atn CBool CByte CCur CDate CDbl CDec Choose Chr ChrB ChrW "
        "CInt CLng CreateObject CSng CStr CVar CVErr DateAdd DateDiff DatePart DateSerial "
        "DateValue Day DDB DeleteSetting DoEvents Environ EOF Exp FileAttr FileDateTime "
        "FileLen Filter Fix Format FormatCurrency FormatDateTime FormatNumber "
        "FormatPercent FreeFile FV GetAllSettings GetAttr GetObject GetSetting Hex Hour "
        "IIf InputBox InStr InStrRev Int IPmt IRR IsArray IsDate IsEmpty IsError "
        "IsMissing IsNull IsNumeric IsObject Join LBound LCase Left Len LenB "
        "LoadPicture Loc LOF Log LTrim Mid MidB Minute Month MonthName MsgBox Now Nper "
        "NPV Oct Partition Pmt PPmt PV Rate Replace Reset RGB Right RmDir Rnd Round RTrim "
        "SavePicture SaveSetting Second SetAttr Shell Sgn Sin SLN Space Spc Split Sqr Str "
        "StrComp StrConv StrReverse SYD Tab Tan Time Timer TimeSerial TimeValue Trim "
        "TypeName TypeOf UBound UCase Unload Load Val VarType Weekday WeekdayName Year "
        "Debug Err App Screen Printer Clipboard Forms"
    ).split()
)

_COMMENT_REM_RE = re.compile(r"\s*(Rem)(\s|$)", re.IGNORECASE)


def is_keyword(name: str) -> bool:
    return name.lower() in VB_KEYWORDS


def comment_start(line: str) -> int:
    """Return the offset where the comment begins, or len(line) if none.

    An apostrophe inside a string literal does not start a comment; a
    doubled quote inside a string is an escaped quote. ``Rem`` starts a
    comment at the beginning of the line or after a ``:`` separator.
    """
    if _COMMENT_REM_RE.match(line):
        return len(line) - len(line.lstrip())
    in_string = False
    i = 0
    length = len(line)
    while i < length:
        ch = line[i]
        if ch == '"':
            if not in_string:
                in_string = True
            elif i + 1 < length and line[i + 1] == '"':
                i += 1
            else:
                in_string = False
        elif ch == "'" and not in_string:
            return i
        elif ch == ":" and not in_string:
            match = _COMMENT_REM_RE.match(line, i + 1)
            if match:
                return match.start(1)
        i += 1
    return length


def strip_comment(line: str) -> str:
    """Return the code portion of a line (comment removed)."""
    return line[: comment_start(line)]


def split_code_and_comment(line: str) -> Tuple[str, str]:
    """Split a line into (code, comment) where comment keeps its marker."""
    index = comment_start(line)
    return line[:index], line[index:]


def string_literal_ranges(line: str) -> List[Tuple[int, int]]:
    """Return [start, end) ranges of string literals, quotes included.

    Only the code portion is scanned. An unterminated literal runs to the
    start of the comment (or line end).
    """
    ranges: List[Tuple[int, int]] = []
    limit = comment_start(line)
    start = -1
    i = 0
    while i < limit:
        if line[i] == '"':
            if start < 0:
                start = i
            elif i + 1 < limit and line[i + 1] == '"':
                i += 1
            else:
                ranges.append((start, i + 1))
                start = -1
        i += 1
    if start >= 0:
        ranges.append((start, limit))
    return ranges


def is_in_string(line: str, pos: int) -> bool:
    return any(start <= pos < end for start, end in string_literal_ranges(line))


def mask_string_literals(line: str) -> str:
    """Blank the contents of string literals, keeping the quote delimiters."""
    chars = list(line)
    for start, end in string_literal_ranges(line):
        for i in range(start + 1, end - 1):
            chars[i] = " "
        if end - start == 1 or line[end - 1] != '"':
            # Unterminated literal: blank through to its end
            for i in range(start + 1, end):
                chars[i] = " "
    return "".join(chars)


def searchable_code(line: str) -> str:
    """Mask string contents and blank the comment, preserving length."""
    masked = mask_string_literals(line)
    index = comment_start(line)
    return masked[:index] + " " * (len(line) - index)


@lru_cache(maxsize=4096)
def token_pattern(token: str) -> Pattern[str]:
    return re.compile(r"(?<![\w])" + re.escape(token) + r"(?![\w])", re.IGNORECASE)


def find_token_positions(line: str, token: str) -> List[int]:
    """Return start offsets of every standalone, case-insensitive token match.

    Matches inside string literals and comments are excluded.
    """
    if not token:
        return []
    code = searchable_code(line)
    return [m.start() for m in token_pattern(token).finditer(code)]


def find_token_positions_raw(line: str, token: str) -> List[int]:
    """Like find_token_positions but also matching inside strings and comments."""
    if not token:
        return []
    return [m.start() for m in token_pattern(token).finditer(line)]


def contains_standalone_token(line: str, token: str) -> bool:
    return bool(find_token_positions(line, token))


def occurrence_index_at(line: str, token: str, pos: int) -> int:
    """Return the 1-based occurrence of the token match starting at pos.

    Returns 0 when no match starts at pos.
    """
    for index, start in enumerate(find_token_positions(line, token), start=1):
        if start == pos:
            return index
    return 0


def position_of_occurrence(line: str, token: str, occurrence: int) -> int:
    """Return the start offset of the n-th (1-based) match, or -1."""
    positions = find_token_positions(line, token)
    if 1 <= occurrence <= len(positions):
        return positions[occurrence - 1]
    return -1


def _skip_back_whitespace(line: str, pos: int) -> int:
    i = pos - 1
    while i >= 0 and line[i] in " \t":
        i -= 1
    return i


def is_member_access_token(line: str, pos: int) -> bool:
    """True when the token at pos is preceded by '.', across whitespace."""
    i = _skip_back_whitespace(line, pos)
    return i >= 0 and line[i] == "."


def member_access_qualifier(line: str, pos: int) -> Optional[str]:
    """Return the identifier before the '.' preceding pos.

    Returns None when the token is not a member access and "" for a bare
    With-block access (".Member"). An index suffix such as "ctl(3)" is
    skipped so "ctl" is returned.
    """
    i = _skip_back_whitespace(line, pos)
    if i < 0 or line[i] != ".":
        return None
    i = _skip_back_whitespace(line, i)
    if i >= 0 and line[i] == ")":
        depth = 0
        while i >= 0:
            if line[i] == ")":
                depth += 1
            elif line[i] == "(":
                depth -= 1
                if depth == 0:
                    break
            i -= 1
        i = _skip_back_whitespace(line, i)
    end = i + 1
    while i >= 0 and (line[i].isalnum() or line[i] == "_"):
        i -= 1
    return line[i + 1 : end]


def is_qualified_enum_reference(line: str, pos: int) -> bool:
    """True when the token at pos is written as Identifier.Token."""
    qualifier = member_access_qualifier(line, pos)
    return bool(qualifier) and IDENTIFIER_RE.fullmatch(qualifier) is not None


def strip_array_suffix(name: str) -> str:
    """Strip an index suffix: 'items(3)' -> 'items'."""
    paren = name.find("(")
    return name[:paren].strip() if paren >= 0 else name.strip()


def normalize_type_name(type_name: str) -> str:
    """Normalize a declared type: drop 'New', array bounds and stray ')'."""
    value = type_name.strip()
    if value.lower().startswith("new "):
        value = value[4:].strip()
    if "(" not in value:
        value = value.rstrip(")")
    else:
        value = value.split("(", 1)[0]
    return value.strip()


def base_type_name(type_name: str) -> str:
    """Return the last segment of a qualified type ('Lib.Cls' -> 'Cls')."""
    value = normalize_type_name(type_name)
    return value.rsplit(".", 1)[-1] if value else value
