"""Translation of Go-style ``{{ .VAR }}`` templates onto Jinja2.

Served documents use the Go text/template dialect understood by the image's
original templating tool. Only the subset that documents actually need is
supported:

* field output: ``{{ .NAME }}`` and string literals ``{{ "text" }}``
* conditionals: ``{{ if PIPE }}``, ``{{ else if PIPE }}``, ``{{ else }}``, ``{{ end }}``
* functions in conditions: ``eq``, ``ne``, ``not``, ``and``, ``or``
* comments: ``{{/* ... */}}``
* whitespace trimming: ``{{-`` and ``-}}``

The translated source uses ``{{%`` / ``%}}`` block delimiters so that literal
text such as ``{%`` in HTML never reaches the Jinja2 lexer as syntax; plain
text can never contain ``{{`` since that always opens an action.
"""

from __future__ import annotations

import json
import re

from ..core.errors import TemplateInvalid

BLOCK_START = "{{%"
BLOCK_END = "%}}"
COMMENT_START = "{{#"
COMMENT_END = "#}}"

_ACTION = re.compile(
    r"\{\{(-\s)?((?:\"(?:[^\"\\]|\\.)*\"|`[^`]*`|.)*?)(\s-)?\}\}", re.DOTALL
)
_TOKEN = re.compile(
    r"""\s*(?:
        (?P<string>"(?:[^"\\]|\\.)*")
      | (?P<raw>`[^`]*`)
      | (?P<field>\.[A-Za-z_][A-Za-z0-9_]*)
      | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<number>-?\d+(?:\.\d+)?)
      | (?P<lparen>\()
      | (?P<rparen>\))
    )""",
    re.VERBOSE,
)

_COMPARATORS = {"eq": "==", "ne": "!="}
_BOOLEANS = {"and", "or"}


def _tokenize(pipeline: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    stripped = pipeline.rstrip()
    while pos < len(stripped):
        match = _TOKEN.match(stripped, pos)
        if not match or match.end() == pos:
            raise TemplateInvalid(f"Unexpected input in action: {pipeline.strip()!r}")
        kind = match.lastgroup or ""
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive descent over one pipeline, emitting a Jinja2 expression."""

    def __init__(self, tokens: list[tuple[str, str]], source: str) -> None:
        self.tokens = tokens
        self.source = source
        self.pos = 0

    def _fail(self, message: str) -> TemplateInvalid:
        return TemplateInvalid(f"{message} in action {{{{ {self.source.strip()} }}}}")

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise self._fail("Unexpected end of pipeline")
        self.pos += 1
        return token

    def parse(self) -> str:
        expr = self._command()
        if self._peek() is not None:
            raise self._fail("Unexpected trailing tokens")
        return expr

    def _command(self) -> str:
        token = self._peek()
        if token is None:
            raise self._fail("Empty pipeline")
        kind, value = token
        if kind != "ident" or value in ("true", "false"):
            return self._operand()

        self.pos += 1
        if value in _COMPARATORS:
            left = self._operand()
            right = self._operand()
            return f"({left} {_COMPARATORS[value]} {right})"
        if value == "not":
            return f"(not {self._operand()})"
        if value in _BOOLEANS:
            operands = [self._operand()]
            while self._peek() is not None and self._peek()[0] != "rparen":
                operands.append(self._operand())
            if len(operands) < 2:
                raise self._fail(f"'{value}' needs at least two arguments")
            return "(" + f" {value} ".join(operands) + ")"
        raise self._fail(f"Unsupported function '{value}'")

    def _operand(self) -> str:
        kind, value = self._next()
        if kind == "field":
            return f"env[{json.dumps(value[1:])}]"
        if kind == "string":
            try:
                return json.dumps(json.loads(value))
            except json.JSONDecodeError as exc:
                raise self._fail(f"Bad string literal {value}") from exc
        if kind == "raw":
            return json.dumps(value[1:-1])
        if kind == "number":
            return value
        if kind == "ident" and value in ("true", "false"):
            return value
        if kind == "lparen":
            expr = self._command()
            if self._next()[0] != "rparen":
                raise self._fail("Unbalanced parentheses")
            return expr
        raise self._fail(f"Unexpected token {value!r}")


def _pipeline(source: str) -> str:
    return _Parser(_tokenize(source), source).parse()


def translate(source: str) -> str:
    """Translate a Go-style template into Jinja2 source.

    Args:
        source: Template text

    Returns:
        Equivalent Jinja2 source using the ``{{%``/``%}}`` block delimiters

    Raises:
        TemplateInvalid: On unsupported actions or unbalanced blocks
    """
    out: list[str] = []
    open_blocks = 0
    pos = 0

    for match in _ACTION.finditer(source):
        out.append(source[pos : match.start()])
        pos = match.end()

        left = "-" if match.group(1) else ""
        right = "-" if match.group(3) else ""
        body = match.group(2).strip()

        if body.startswith("/*"):
            if not body.endswith("*/"):
                raise TemplateInvalid(f"Unterminated comment: {match.group(0)!r}")
            out.append(f"{COMMENT_START}{left} {right}{COMMENT_END}")
            continue

        keyword, _, rest = body.partition(" ")
        if keyword == "if":
            open_blocks += 1
            out.append(f"{BLOCK_START}{left} if {_pipeline(rest)} {right}{BLOCK_END}")
        elif keyword == "else":
            if open_blocks == 0:
                raise TemplateInvalid("'else' without matching 'if'")
            nested, _, cond = rest.strip().partition(" ")
            if not rest.strip():
                out.append(f"{BLOCK_START}{left} else {right}{BLOCK_END}")
            elif nested == "if":
                out.append(f"{BLOCK_START}{left} elif {_pipeline(cond)} {right}{BLOCK_END}")
            else:
                raise TemplateInvalid(f"Unsupported action: {body!r}")
        elif keyword == "end":
            if rest.strip():
                raise TemplateInvalid(f"Unexpected arguments to 'end': {body!r}")
            if open_blocks == 0:
                raise TemplateInvalid("'end' without matching 'if'")
            open_blocks -= 1
            out.append(f"{BLOCK_START}{left} endif {right}{BLOCK_END}")
        elif keyword in ("range", "with", "define", "template", "block"):
            raise TemplateInvalid(f"Unsupported action: {keyword!r}")
        else:
            out.append(f"{{{{{left} {_pipeline(body)} {right}}}}}")

    tail = source[pos:]
    if "{{" in tail:
        raise TemplateInvalid("Unclosed action: missing '}}'")
    out.append(tail)

    if open_blocks:
        raise TemplateInvalid(f"{open_blocks} 'if' block(s) missing 'end'")

    return "".join(out)
