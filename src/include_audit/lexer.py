# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Low-level lexing shared by the directive tracker, scanner and knowledge base.

Source text goes through two steps before any analysis:
1. Line splicing: physical lines ending in a backslash are joined into one
   logical line that remembers its first and last physical line.
2. Cleaning: comments are removed everywhere. On code lines the contents of
   string and character literals are removed as well (the quotes stay), so no
   later stage can mistake literal text for code. Directive lines keep their
   literals because #include "x.h" needs the path.

tokenize() then splits a cleaned line into (kind, text) pairs.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from include_audit.errors import ResourceLimitExceeded, SourceSyntaxError
from include_audit.models import TokenKind

logger = logging.getLogger(__name__)

KEYWORDS = frozenset(
    """
    alignas alignof and and_eq asm auto bitand bitor bool break case catch char
    char8_t char16_t char32_t class compl concept const consteval constexpr
    constinit const_cast continue co_await co_return co_yield decltype default
    delete do double dynamic_cast else enum explicit export extern false final
    float for friend goto if inline int long mutable namespace new noexcept not
    not_eq nullptr operator or or_eq override private protected public register
    reinterpret_cast requires restrict return short signed sizeof static
    static_assert static_cast struct switch template this thread_local throw true
    try typedef typeid typename union unsigned using virtual void volatile wchar_t
    while xor xor_eq _Alignas _Alignof _Atomic _Bool _Complex _Generic _Imaginary
    _Noreturn _Static_assert _Thread_local
    """.split()
)

# Keywords that C headers supply as macros or typedefs, such as bool from
# <stdbool.h> or char16_t from <uchar.h>. They are matched like identifiers.
HEADER_PROVIDED_KEYWORDS = frozenset(
    ["bool", "true", "false", "static_assert", "wchar_t", "char16_t", "char32_t"]
)

# Identifiers that only have meaning inside preprocessor expressions.
PREPROCESSOR_OPERATORS = frozenset(
    [
        "defined",
        "__has_include",
        "__has_include_next",
        "__has_cpp_attribute",
        "__has_attribute",
        "__has_builtin",
        "__VA_ARGS__",
        "__VA_OPT__",
    ]
)

_STRING_PREFIXES = frozenset(["L", "u", "U", "u8"])
_RAW_STRING_PREFIXES = frozenset(["R", "LR", "uR", "UR", "u8R"])

_TOKEN_RE = re.compile(
    r"""
    (?P<identifier>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<number>\.?[0-9](?:[eEpP][+-]|[0-9A-Za-z_.'])*)
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<char>'(?:[^'\\]|\\.)*')
  | (?P<punct>::|->\*|->|\.\*|\.\.\.|<=>|<<=|>>=|<<|>>|[<>!=+\-*/%&|^]=
      |&&|\|\||\+\+|--|\#\#|[{}()\[\];,<>=+\-*/%&|^!~?:.\#@\\`])
  | (?P<space>\s+)
""",
    re.VERBOSE,
)


@dataclass
class LogicalLine:
    """A spliced, comment-free source line."""

    text: str
    line: int  # first physical line
    end_line: int  # last physical line
    is_directive: bool


class ParseBudget:
    """Counts parse steps (directives and tokens) for one file."""

    def __init__(self, limit: Optional[int], source_id: str = "<memory>"):
        self.limit = limit
        self.source_id = source_id
        self.steps = 0

    def charge(self, steps: int = 1, line: Optional[int] = None) -> None:
        self.steps += steps
        if self.limit is not None and self.steps > self.limit:
            raise ResourceLimitExceeded(self.limit, self.source_id, line)


def split_logical_lines(text: str) -> List[Tuple[str, int, int]]:
    """Join backslash-continued physical lines.

    Returns:
        List of (text, first_line, last_line) tuples, lines numbered from 1.
    """
    result: List[Tuple[str, int, int]] = []
    parts: List[str] = []
    start: Optional[int] = None
    physical = text.splitlines()
    for number, raw in enumerate(physical, start=1):
        if start is None:
            start = number
        if raw.endswith("\\"):
            parts.append(raw[:-1])
            continue
        parts.append(raw)
        result.append(("".join(parts), start, number))
        parts = []
        start = None
    if start is not None:
        result.append(("".join(parts), start, len(physical)))
    return result


def _find_closing_quote(text: str, start: int, quote: str) -> int:
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


def _is_digit_separator(text: str, i: int) -> bool:
    """Return True if the quote at i separates digits, as in 1'000'000."""
    j = i
    while j > 0 and (text[j - 1].isalnum() or text[j - 1] in "_.'"):
        j -= 1
    return j < i and text[j].isdigit() and i + 1 < len(text) and text[i + 1].isalnum()


def _trailing_identifier(chars: List[str]) -> str:
    i = len(chars)
    while i > 0 and (chars[i - 1].isalnum() or chars[i - 1] == "_"):
        i -= 1
    return "".join(chars[i:])


class SourceCleaner:
    """Removes comments and literal contents from source text.

    State carries across logical lines for block comments and raw strings.
    """

    _NORMAL = "normal"
    _BLOCK_COMMENT = "block_comment"
    _RAW_STRING = "raw_string"

    def __init__(self, source_id: str = "<memory>"):
        self.source_id = source_id
        self._state = self._NORMAL
        self._opened_at = 0
        self._raw_terminator = ""

    def clean(self, text: str) -> List[LogicalLine]:
        """Clean a whole source text.

        Raises:
            SourceSyntaxError: On an unterminated block comment, raw string,
                or string/character literal on a code line.
        """
        lines: List[LogicalLine] = []
        for raw, start, end in split_logical_lines(text):
            is_directive = self._starts_directive(raw)
            cleaned = self._clean_line(raw, start, keep_literals=is_directive)
            lines.append(LogicalLine(cleaned, start, end, is_directive))

        if self._state == self._BLOCK_COMMENT:
            raise SourceSyntaxError("unterminated block comment", self.source_id, self._opened_at)
        if self._state == self._RAW_STRING:
            raise SourceSyntaxError(
                "unterminated raw string literal", self.source_id, self._opened_at
            )
        return lines

    def _starts_directive(self, text: str) -> bool:
        """Return True if "#" is the first thing on the line outside comments.

        Covers "/* note */ #include <x>" and a block comment from an earlier
        line closing just before the "#". Cleaner state is not changed.
        """
        if self._state == self._RAW_STRING:
            return False
        i = 0
        if self._state == self._BLOCK_COMMENT:
            end = text.find("*/")
            if end < 0:
                return False
            i = end + 2
        n = len(text)
        while i < n:
            if text[i].isspace():
                i += 1
            elif text.startswith("/*", i):
                end = text.find("*/", i + 2)
                if end < 0:
                    return False
                i = end + 2
            else:
                return text[i] == "#"
        return False

    def _clean_line(self, text: str, line: int, keep_literals: bool) -> str:
        out: List[str] = []
        i = 0
        n = len(text)
        while i < n:
            if self._state == self._BLOCK_COMMENT:
                end = text.find("*/", i)
                if end < 0:
                    break
                self._state = self._NORMAL
                out.append(" ")
                i = end + 2
                continue

            if self._state == self._RAW_STRING:
                end = text.find(self._raw_terminator, i)
                if end < 0:
                    break
                self._state = self._NORMAL
                out.append('"')
                i = end + len(self._raw_terminator)
                continue

            ch = text[i]
            if ch == "/" and text.startswith("//", i):
                break
            if ch == "/" and text.startswith("/*", i):
                self._state = self._BLOCK_COMMENT
                self._opened_at = line
                i += 2
                continue

            if ch == '"':
                prefix = _trailing_identifier(out)
                if prefix in _RAW_STRING_PREFIXES and not keep_literals:
                    paren = text.find("(", i + 1)
                    if paren < 0:
                        raise SourceSyntaxError(
                            "malformed raw string literal", self.source_id, line
                        )
                    self._raw_terminator = ")" + text[i + 1 : paren] + '"'
                    self._state = self._RAW_STRING
                    self._opened_at = line
                    out.append('"')
                    i = paren + 1
                    continue
                end = _find_closing_quote(text, i, '"')
                if end < 0:
                    if keep_literals:
                        out.append(text[i:])
                        break
                    raise SourceSyntaxError("unterminated string literal", self.source_id, line)
                out.append(text[i : end + 1] if keep_literals else '""')
                i = end + 1
                continue

            if ch == "'":
                if _is_digit_separator(text, i):
                    out.append(ch)
                    i += 1
                    continue
                end = _find_closing_quote(text, i, "'")
                if end < 0:
                    if keep_literals:
                        # e.g. "#error Don't build this" is not a char literal
                        out.append(text[i:])
                        break
                    raise SourceSyntaxError("unterminated character literal", self.source_id, line)
                out.append(text[i : end + 1] if keep_literals else "''")
                i = end + 1
                continue

            out.append(ch)
            i += 1

        return "".join(out)


def clean_source(text: str, source_id: str = "<memory>") -> List[LogicalLine]:
    """Splice and clean source text into logical lines."""
    return SourceCleaner(source_id).clean(text)


def tokenize(text: str) -> List[Tuple[str, str]]:
    """Split cleaned text into (TokenKind, text) pairs.

    Encoding prefixes of string literals (L"", u8"", R"") are dropped so they
    never show up as identifiers.
    """
    tokens: List[Tuple[str, str]] = []
    for match in _TOKEN_RE.finditer(text):
        group = match.lastgroup
        value = match.group()
        if group == "space":
            continue
        if group == "identifier":
            following = text[match.end() : match.end() + 1]
            if following in ('"', "'") and (
                value in _STRING_PREFIXES or value in _RAW_STRING_PREFIXES
            ):
                continue
            kind = TokenKind.KEYWORD if value in KEYWORDS else TokenKind.IDENTIFIER
        elif group == "number":
            kind = TokenKind.NUMBER
        elif group == "string":
            kind = TokenKind.STRING
        elif group == "char":
            kind = TokenKind.CHAR
        else:
            kind = TokenKind.PUNCT
        tokens.append((kind, value))
    return tokens
