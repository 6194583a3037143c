"""Tokenizer for R source.

Newlines only terminate expressions at top level and directly inside
``{ }``; inside ``( )``, ``[ ]`` and ``[[ ]]`` they are dropped here so the
parser never sees them. The bracket stack also decides whether ``]]``
closes a ``[[`` or two nested ``[``.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

from rdeps.exceptions import RParseError

KEYWORDS = {
    "function": "FUNCTION",
    "if": "IF",
    "else": "ELSE",
    "for": "FOR",
    "in": "IN",
    "while": "WHILE",
    "repeat": "REPEAT",
    "break": "BREAK",
    "next": "NEXT",
}

# name -> (value, kind)
CONSTANTS: dict[str, tuple[object, str]] = {
    "TRUE": (True, "logical"),
    "FALSE": (False, "logical"),
    "NULL": (None, "null"),
    "NA": (None, "na"),
    "NA_integer_": (None, "na"),
    "NA_real_": (None, "na"),
    "NA_character_": (None, "na"),
    "Inf": (float("inf"), "number"),
    "NaN": (float("nan"), "number"),
}

_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]*(?:\.[0-9a-fA-F]*)?(?:[pP][+-]?\d+)?[Li]?")
_DEC_RE = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?[Li]?")

# Longest operators first.
_OPERATORS = [
    "<<-", "->>", ":::",
    "<-", "->", "<=", ">=", "==", "!=", "&&", "||", "|>", "::", "**",
    "<", ">", "!", "&", "|", "~", "?", "+", "-", "*", "/", "^", ":", "$", "@", "=",
]

_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b",
    "f": "\f", "v": "\v", "\\": "\\", "'": "'", '"': '"', "`": "`", " ": " ",
}

_HEX_ESCAPE_RE = re.compile(r"([0-9a-fA-F]{1,2})")
_UNICODE_ESCAPE_RE = re.compile(r"\{([0-9a-fA-F]{1,8})\}|([0-9a-fA-F]{1,8})")
_OCTAL_ESCAPE_RE = re.compile(r"([0-7]{1,3})")

_CLOSERS = {"(": ")", "[": "]", "{": "}"}


@dataclass
class Token:
    kind: str
    value: object
    line: int
    col: int


class Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.stack: list[str] = []
        self.tokens: list[Token] = []
        self._newlines = [m.start() for m in re.finditer("\n", text)]

    def _where(self, pos: int) -> tuple[int, int]:
        line = bisect.bisect_left(self._newlines, pos)
        start = self._newlines[line - 1] + 1 if line else 0
        return line + 1, pos - start + 1

    def _error(self, message: str, pos: int) -> RParseError:
        line, col = self._where(pos)
        return RParseError(message, line, col)

    def _emit(self, kind: str, value: object, start: int) -> None:
        line, col = self._where(start)
        self.tokens.append(Token(kind, value, line, col))

    def tokenize(self) -> list[Token]:
        text = self.text
        n = len(text)
        while self.pos < n:
            c = text[self.pos]
            start = self.pos

            if c == "\n":
                if not self.stack or self.stack[-1] == "{":
                    self._emit("NEWLINE", None, start)
                self.pos += 1
            elif c in " \t\r\f\v\u00a0\ufeff":
                self.pos += 1
            elif c == "#":
                end = text.find("\n", self.pos)
                self.pos = n if end == -1 else end
            elif c.isdigit() or (c == "." and text[self.pos + 1 : self.pos + 2].isdigit()):
                self._number()
            elif c in "rR" and text[self.pos + 1 : self.pos + 2] in ("'", '"'):
                self._raw_string()
            elif c.isalpha() or c in "._":
                self._identifier()
            elif c in "'\"":
                self._emit("STRING", self._quoted(c), start)
            elif c == "`":
                self._emit("SYMBOL", self._quoted("`"), start)
            elif c == "%":
                end = text.find("%", self.pos + 1)
                if end == -1 or "\n" in text[self.pos : end]:
                    raise self._error("unexpected input '%'", start)
                self._emit("OP", text[self.pos : end + 1], start)
                self.pos = end + 1
            elif c in "({":
                self.stack.append(c)
                self._emit(c, c, start)
                self.pos += 1
            elif c == "[":
                if text.startswith("[[", self.pos):
                    self.stack.append("[[")
                    self._emit("[[", "[[", start)
                    self.pos += 2
                else:
                    self.stack.append("[")
                    self._emit("[", "[", start)
                    self.pos += 1
            elif c in ")}":
                opener = "(" if c == ")" else "{"
                if not self.stack or self.stack[-1] != opener:
                    raise self._error(f"unexpected '{c}'", start)
                self.stack.pop()
                self._emit(c, c, start)
                self.pos += 1
            elif c == "]":
                self._close_bracket(start)
            elif c in ",;":
                self._emit(c, c, start)
                self.pos += 1
            elif c == "\\":
                self._emit("LAMBDA", c, start)
                self.pos += 1
            else:
                for op in _OPERATORS:
                    if text.startswith(op, self.pos):
                        self._emit("OP", "^" if op == "**" else op, start)
                        self.pos += len(op)
                        break
                else:
                    raise self._error(f"unexpected input '{c}'", start)

        self._emit("EOF", None, n)
        return self.tokens

    def _close_bracket(self, start: int) -> None:
        top = self.stack[-1] if self.stack else None
        if top == "[[":
            if not self.text.startswith("]]", self.pos):
                raise self._error("unexpected ']'", start)
            self.stack.pop()
            self._emit("]]", "]]", start)
            self.pos += 2
        elif top == "[":
            self.stack.pop()
            self._emit("]", "]", start)
            self.pos += 1
        else:
            raise self._error("unexpected ']'", start)

    def _number(self) -> None:
        start = self.pos
        m = _HEX_RE.match(self.text, start) or _DEC_RE.match(self.text, start)
        raw = m.group(0)  # type: ignore[union-attr]
        self.pos = m.end()  # type: ignore[union-attr]
        if raw.endswith("i"):
            self._emit("NUM", (raw, "complex"), start)
            return
        kind = "integer" if raw.endswith("L") else "number"
        body = raw.rstrip("L")
        try:
            if body[:2].lower() == "0x":
                value: object = float.fromhex(body) if "." in body or "p" in body.lower() else int(body, 16)
            else:
                value = float(body)
        except ValueError:
            raise self._error(f"malformed number '{raw}'", start) from None
        self._emit("NUM", (value, kind), start)

    def _identifier(self) -> None:
        start = self.pos
        text = self.text
        end = start
        while end < len(text) and (text[end].isalnum() or text[end] in "._"):
            end += 1
        word = text[start:end]
        self.pos = end
        if word in KEYWORDS:
            self._emit(KEYWORDS[word], word, start)
        elif word in CONSTANTS:
            self._emit("CONST", CONSTANTS[word], start)
        else:
            self._emit("SYMBOL", word, start)

    def _quoted(self, quote: str) -> str:
        text = self.text
        start = self.pos
        self.pos += 1
        out: list[str] = []
        while True:
            if self.pos >= len(text):
                raise self._error("unterminated string", start)
            c = text[self.pos]
            if c == quote:
                self.pos += 1
                return "".join(out)
            if c == "\\":
                out.append(self._escape(start))
                continue
            out.append(c)
            self.pos += 1

    def _escape(self, string_start: int) -> str:
        text = self.text
        self.pos += 1
        if self.pos >= len(text):
            raise self._error("unterminated string", string_start)
        c = text[self.pos]
        if c in _ESCAPES:
            self.pos += 1
            return _ESCAPES[c]
        m = None
        if c == "x":
            m = _HEX_ESCAPE_RE.match(text, self.pos + 1)
        elif c in "uU":
            m = _UNICODE_ESCAPE_RE.match(text, self.pos + 1)
        elif c in "01234567":
            m = _OCTAL_ESCAPE_RE.match(text, self.pos)
        if m:
            digits = m.group(m.lastindex or 0)
            try:
                char = chr(int(digits, 8 if c in "01234567" else 16))
            except ValueError:
                raise self._error(f"invalid escape '\\{c}{digits}'", self.pos) from None
            self.pos = m.end()
            return char
        # Unknown escape: keep the character itself
        self.pos += 1
        return c

    def _raw_string(self) -> None:
        text = self.text
        start = self.pos
        quote = text[self.pos + 1]
        i = self.pos + 2
        dashes = 0
        while i < len(text) and text[i] == "-":
            dashes += 1
            i += 1
        if i >= len(text) or text[i] not in _CLOSERS:
            raise self._error("malformed raw string literal", start)
        terminator = _CLOSERS[text[i]] + "-" * dashes + quote
        end = text.find(terminator, i + 1)
        if end == -1:
            raise self._error("unterminated raw string", start)
        self._emit("STRING", text[i + 1 : end], start)
        self.pos = end + len(terminator)


def tokenize(text: str) -> list[Token]:
    return Lexer(text).tokenize()
