"""Minimal Go source scanner for locating top-level function declarations.

This is not a full Go parser. It tokenizes a file well enough to skip
comments and string/rune literals, applies Go's automatic semicolon
insertion, tracks bracket nesting, and records every ``func`` keyword that
starts a top-level declaration together with the declared name. Files that
do not tokenize, lack a package clause, or have unbalanced brackets are
reported as syntax errors, which is all the locator needs to mirror
``go/parser`` failing on a directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_IDENT = re.compile(r"[^\W\d]\w*")
_NUMBER = re.compile(r"(?:\d|\.\d)(?:[eEpP][+-]|[\w.])*")
_OPERATOR_CHARS = frozenset("+-*/%&|^<>=!:.,~")
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())

_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer",
    "else", "fallthrough", "for", "func", "go", "goto", "if", "import",
    "interface", "map", "package", "range", "return", "select", "struct",
    "switch", "type", "var",
})
# Keywords after which a newline ends the statement
_TERMINATING_KEYWORDS = frozenset({"break", "continue", "fallthrough", "return"})


class GoSyntaxError(ValueError):
    """The source could not be tokenized or is structurally invalid."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


@dataclass
class Token:
    kind: str  # ident, keyword, literal, op, open, close, semi
    value: str
    line: int


@dataclass
class FuncDecl:
    """A top-level ``func`` declaration."""

    name: str
    line: int
    receiver: bool = False


@dataclass
class GoFile:
    """Declarations found in one Go source file."""

    package: str
    funcs: list[FuncDecl] = field(default_factory=list)


def _ends_statement(tok: Token | None) -> bool:
    if tok is None:
        return False
    if tok.kind in ("ident", "literal", "close"):
        return True
    if tok.kind == "keyword":
        return tok.value in _TERMINATING_KEYWORDS
    return tok.kind == "op" and tok.value in ("++", "--")


def _skip_quoted(text: str, pos: int, quote: str, line: int) -> int:
    """Return the index just past the closing *quote* of a literal at *pos*."""
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            if i + 1 < n and text[i + 1] == "\n":
                break
            i += 2
            continue
        if ch == "\n":
            break
        if ch == quote:
            return i + 1
        i += 1
    kind = "rune" if quote == "'" else "string"
    raise GoSyntaxError(f"unterminated {kind} literal", line)


def tokenize(text: str) -> list[Token]:
    """Split Go source into tokens, inserting automatic semicolons.

    Raises:
        GoSyntaxError: On unterminated literals or comments, or characters
            that cannot appear outside a literal.
    """
    tokens: list[Token] = []
    last: Token | None = None
    line = 1
    i = 0
    n = len(text)

    def newline() -> None:
        nonlocal last
        if _ends_statement(last):
            last = Token("semi", "\n", line)
            tokens.append(last)

    while i < n:
        ch = text[i]

        if ch == "\n":
            newline()
            line += 1
            i += 1
            continue
        if ch in " \t\r\ufeff":
            i += 1
            continue

        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end < 0 else end
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                raise GoSyntaxError("comment not terminated", line)
            body = text[i:end]
            if "\n" in body:
                newline()
                line += body.count("\n")
            i = end + 2
            continue

        if ch == "`":
            end = text.find("`", i + 1)
            if end < 0:
                raise GoSyntaxError("raw string literal not terminated", line)
            last = Token("literal", text[i:end + 1], line)
            tokens.append(last)
            line += text.count("\n", i, end)
            i = end + 1
            continue
        if ch in "\"'":
            end = _skip_quoted(text, i, ch, line)
            last = Token("literal", text[i:end], line)
            tokens.append(last)
            i = end
            continue

        match = _NUMBER.match(text, i)
        if match:
            last = Token("literal", match.group(), line)
            tokens.append(last)
            i = match.end()
            continue
        match = _IDENT.match(text, i)
        if match:
            word = match.group()
            kind = "keyword" if word in _KEYWORDS else "ident"
            last = Token(kind, word, line)
            tokens.append(last)
            i = match.end()
            continue

        if ch in _OPENERS:
            last = Token("open", ch, line)
        elif ch in _CLOSERS:
            last = Token("close", ch, line)
        elif ch == ";":
            last = Token("semi", ch, line)
        elif ch in _OPERATOR_CHARS:
            if text.startswith("++", i) or text.startswith("--", i):
                last = Token("op", text[i:i + 2], line)
                tokens.append(last)
                i += 2
                continue
            last = Token("op", ch, line)
        else:
            raise GoSyntaxError(f"invalid character {ch!r}", line)
        tokens.append(last)
        i += 1

    newline()
    return tokens


def scan_source(text: str) -> GoFile:
    """Collect the package name and top-level func declarations of a file.

    Raises:
        GoSyntaxError: If the file does not tokenize, has no package clause,
            or its brackets do not balance.
    """
    tokens = tokenize(text)
    if len(tokens) < 2 or tokens[0].value != "package" or tokens[1].kind != "ident":
        line = tokens[0].line if tokens else 1
        raise GoSyntaxError("expected 'package' clause", line)

    result = GoFile(package=tokens[1].value)
    stack: list[str] = []
    prev: Token | None = None
    for idx, tok in enumerate(tokens):
        if tok.kind == "open":
            stack.append(_OPENERS[tok.value])
        elif tok.kind == "close":
            if not stack or stack.pop() != tok.value:
                raise GoSyntaxError(f"unexpected {tok.value!r}", tok.line)
        elif (
            tok.kind == "keyword"
            and tok.value == "func"
            and not stack
            and (prev is None or prev.kind == "semi")
        ):
            decl = _read_func_decl(tokens, idx)
            if decl is not None:
                result.funcs.append(decl)
        prev = tok

    if stack:
        raise GoSyntaxError(f"expected {stack[-1]!r} before end of file", tokens[-1].line)
    return result


def _read_func_decl(tokens: list[Token], idx: int) -> FuncDecl | None:
    """Read the name following the ``func`` keyword at *idx*."""
    func_tok = tokens[idx]
    j = idx + 1
    receiver = False
    if j < len(tokens) and tokens[j].value == "(":
        receiver = True
        depth = 0
        while j < len(tokens):
            if tokens[j].kind == "open":
                depth += 1
            elif tokens[j].kind == "close":
                depth -= 1
                if depth == 0:
                    break
            j += 1
        j += 1
    if j < len(tokens) and tokens[j].kind == "ident":
        return FuncDecl(name=tokens[j].value, line=func_tok.line, receiver=receiver)
    return None
