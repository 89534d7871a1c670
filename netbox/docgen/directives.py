"""Directive translation.

Templates are written with Go text/template style actions::

    {{ $words := split .Text " " }}{{ index $words 3 | upper }}

Jinja2 does the actual rendering. This module turns the template text into
Jinja2 source before it is compiled: every ``{{ ... }}`` action is parsed here
and re-emitted as a Jinja2 expression or ``{% set %}`` statement, and the
literal text between actions is passed through untouched. Function names and
variables are resolved while translating, so an unknown name fails before
anything is rendered.

The emitted source only ever refers to four render globals:

``dot``
    the data value the template is rendered against
``fn``
    the function mapping for this render call
``field``
    the field accessor (``render.lookup_field``)
``lit``
    the list of literal values collected from the template

and to ``var_<name>`` for template variables. Line breaks inside actions are
kept so Jinja2 line numbers match the template's own lines.
"""

import inspect
import re
from typing import Any, Callable, Mapping, NamedTuple, Optional

from .errors import TemplateSyntaxError, UndefinedReferenceError

_OPEN = "{{"
_CLOSE = "}}"
_TRIM_SPACE = " \t\r\n"

_TOKEN_RE = re.compile(r"""
    (?P<space>\s+)
  | (?P<string>"(?:[^"\\\n]|\\.)*")
  | (?P<raw>`[^`]*`)
  | (?P<declare>:=)
  | (?P<assign>=)
  | (?P<pipe>\|)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<number>[-+]?(?:0[xX][0-9a-fA-F]+|\d+(?:\.\d+)?(?:[eE][-+]?\d+)?))
  | (?P<variable>\$\w*(?:\.\w+)*)
  | (?P<field>(?:\.\w+)+|\.)
  | (?P<identifier>[^\W\d]\w*)
""", re.VERBOSE)

_STRING_ESCAPE_RE = re.compile(
    r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r",
    "t": "\t", "v": "\v", "\\": "\\", '"': '"', "'": "'",
}
_KEYWORDS = {"true": True, "false": False, "nil": None}


class Translation(NamedTuple):
    """Jinja2 source for a template plus the literal values it indexes."""
    source: str
    literals: list


class _Token(NamedTuple):
    kind: str
    value: str


class _Operand(NamedTuple):
    expr: str
    function: Optional[str] = None


def translate(template_name: str, text: str, functions: Mapping[str, Callable]) -> Translation:
    """Translate template text into Jinja2 source.

    Args:
        template_name: Name used in error messages.
        text: The template text.
        functions: Functions the template may call, by name.

    Returns:
        The Jinja2 source and the literal values it refers to.

    Raises:
        TemplateSyntaxError: If an action is malformed.
        UndefinedReferenceError: If an action names an unknown function or
            variable.
    """
    return _Translator(template_name, text, functions).run()


class _Translator:
    """Walks the template once, alternating literal text and actions."""

    def __init__(self, template_name: str, text: str, functions: Mapping[str, Callable]):
        self.template_name = template_name
        self.text = text
        self.functions = functions
        self.literals: list = []
        self.variables: set[str] = set()
        self.parts: list[str] = []

    def run(self) -> Translation:
        text = self.text
        pos = 0
        line = 1
        trim_next = False

        while True:
            start = text.find(_OPEN, pos)
            if start < 0:
                self._emit_text(text[pos:], trim_left=trim_next, trim_right=False)
                break

            trim_left = text[start + 2:start + 3] == "-" and text[start + 3:start + 4] in tuple(_TRIM_SPACE)
            body_start = start + (3 if trim_left else 2)

            self._emit_text(text[pos:start], trim_left=trim_next, trim_right=trim_left)
            line += text.count("\n", pos, start)

            body_end, pos, trim_next = self._find_close(body_start, line)
            self._emit_action(text[body_start:body_end], line)
            line += text.count("\n", start, pos)

        return Translation("".join(self.parts), self.literals)

    # -----------------------------------------------------------------------
    # Scanning
    # -----------------------------------------------------------------------

    def _error(self, cls, message: str, line: int):
        return cls(message, self.template_name, line)

    def _find_close(self, pos: int, line: int) -> tuple[int, int, bool]:
        """Find the end of the action whose body starts at *pos*.

        Quoted strings and comments are skipped so a ``}}`` inside them does
        not close the action.

        Returns:
            (end of body, position after the closing braces, right trim flag)
        """
        text = self.text
        body_start = pos
        while pos < len(text):
            char = text[pos]
            if char == '"':
                pos += 1
                while pos < len(text) and text[pos] not in '"\n':
                    pos += 2 if text[pos] == "\\" else 1
                if pos >= len(text) or text[pos] != '"':
                    raise self._error(TemplateSyntaxError, "unterminated quoted string", line)
                pos += 1
            elif char == "`":
                close = text.find("`", pos + 1)
                if close < 0:
                    raise self._error(TemplateSyntaxError, "unterminated raw quoted string", line)
                pos = close + 1
            elif text.startswith("/*", pos):
                close = text.find("*/", pos + 2)
                if close < 0:
                    raise self._error(TemplateSyntaxError, "unclosed comment", line)
                pos = close + 2
            elif text.startswith(_CLOSE, pos):
                if pos - 2 >= body_start and text[pos - 1] == "-" and text[pos - 2] in _TRIM_SPACE:
                    return pos - 1, pos + 2, True
                return pos, pos + 2, False
            else:
                pos += 1
        raise self._error(TemplateSyntaxError, "unclosed action", line)

    # -----------------------------------------------------------------------
    # Emitting
    # -----------------------------------------------------------------------

    def _literal(self, value: Any) -> str:
        self.literals.append(value)
        return f"lit[{len(self.literals) - 1}]"

    def _emit_text(self, chunk: str, trim_left: bool, trim_right: bool):
        if trim_left:
            chunk = chunk.lstrip(_TRIM_SPACE)
        if trim_right:
            chunk = chunk.rstrip(_TRIM_SPACE)
        if not chunk:
            return
        # Text that Jinja2 would read as markup goes through as a literal.
        if "{%" in chunk or "{#" in chunk or "{{" in chunk or chunk.endswith("{"):
            padding = "\n" * chunk.count("\n")
            self.parts.append("{{ " + self._literal(chunk) + padding + " }}")
        else:
            self.parts.append(chunk)

    def _emit_action(self, body: str, line: int):
        padding = "\n" * body.count("\n")
        stripped = body.strip()

        if stripped.startswith("/*"):
            if not stripped.endswith("*/"):
                raise self._error(TemplateSyntaxError, "comment ends before closing delimiter", line)
            self.parts.append("{# " + padding + " #}")
            return

        tokens = self._tokenize(body, line)
        if not tokens:
            raise self._error(TemplateSyntaxError, "missing value for command", line)

        if len(tokens) > 1 and tokens[0].kind == "variable" and tokens[1].kind in ("declare", "assign"):
            target = tokens[0].value[1:]
            if not target or "." in target:
                raise self._error(
                    TemplateSyntaxError, f"cannot assign to {tokens[0].value}", line)
            if tokens[1].kind == "assign" and target not in self.variables:
                raise self._error(
                    UndefinedReferenceError, f'undefined variable "${target}"', line)
            parser = _ActionParser(self, tokens[2:], line)
            expr = parser.parse()
            self.variables.add(target)
            self.parts.append(f"{{% set var_{target} = {expr}{padding} %}}")
            return

        expr = _ActionParser(self, tokens, line).parse()
        self.parts.append(f"{{{{ {expr}{padding} }}}}")

    def _tokenize(self, body: str, line: int) -> list[_Token]:
        tokens = []
        pos = 0
        while pos < len(body):
            match = _TOKEN_RE.match(body, pos)
            if match is None:
                raise self._error(
                    TemplateSyntaxError, f"unexpected {body[pos]!r} in command", line)
            if match.lastgroup != "space":
                tokens.append(_Token(match.lastgroup, match.group()))
            pos = match.end()
        return tokens


class _ActionParser:
    """Recursive descent over the tokens of a single action.

    Grammar::

        pipeline := command ("|" command)*
        command  := operand+
        operand  := literal | field | variable | identifier | "(" pipeline ")"
    """

    def __init__(self, translator: _Translator, tokens: list[_Token], line: int):
        self.translator = translator
        self.tokens = tokens
        self.pos = 0
        self.line = line

    def _error(self, cls, message: str):
        return self.translator._error(cls, message, self.line)

    def _peek(self) -> Optional[_Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def parse(self) -> str:
        expr = self._pipeline()
        token = self._peek()
        if token is not None:
            raise self._error(TemplateSyntaxError, f"unexpected {token.value!r} in operand")
        return expr

    def _pipeline(self) -> str:
        expr = self._command(None)
        while self._peek() is not None and self._peek().kind == "pipe":
            self.pos += 1
            expr = self._command(expr)
        return expr

    def _command(self, piped: Optional[str]) -> str:
        operands = []
        while self._peek() is not None and self._peek().kind not in ("pipe", "rparen"):
            operands.append(self._operand())
        if not operands:
            raise self._error(TemplateSyntaxError, "missing value for command")

        head = operands[0]
        if head.function is not None:
            args = [self._as_value(op) for op in operands[1:]]
            if piped is not None:
                args.append(piped)
            return self._call(head.function, args)

        if len(operands) > 1 or piped is not None:
            raise self._error(TemplateSyntaxError, f"can't give argument to non-function {head.expr}")
        return head.expr

    def _as_value(self, operand: _Operand) -> str:
        # A bare function name used as an argument is called with no arguments.
        if operand.function is not None:
            return self._call(operand.function, [])
        return operand.expr

    def _call(self, name: str, args: list[str]) -> str:
        self._check_arity(name, len(args))
        return f"fn[{self.translator._literal(name)}]({', '.join(args)})"

    def _check_arity(self, name: str, count: int):
        try:
            signature = inspect.signature(self.translator.functions[name])
        except (TypeError, ValueError):
            return
        try:
            signature.bind(*([None] * count))
        except TypeError:
            raise self._error(
                TemplateSyntaxError, f"wrong number of args for {name}: got {count}") from None

    def _operand(self) -> _Operand:
        token = self.tokens[self.pos]
        self.pos += 1
        kind = token.kind

        if kind == "string":
            return _Operand(self.translator._literal(self._unquote(token.value)))
        if kind == "raw":
            return _Operand(self.translator._literal(token.value[1:-1]))
        if kind == "number":
            return _Operand(self.translator._literal(self._number(token.value)))
        if kind == "field":
            return _Operand(self._field_chain("dot", token.value[1:]))
        if kind == "variable":
            return _Operand(self._variable(token.value))
        if kind == "identifier":
            if token.value in _KEYWORDS:
                return _Operand(self.translator._literal(_KEYWORDS[token.value]))
            if token.value not in self.translator.functions:
                raise self._error(UndefinedReferenceError, f'function "{token.value}" not defined')
            return _Operand("", function=token.value)
        if kind == "lparen":
            expr = self._pipeline()
            closing = self._peek()
            if closing is None or closing.kind != "rparen":
                raise self._error(TemplateSyntaxError, "unclosed left paren")
            self.pos += 1
            return _Operand(f"({expr})")
        raise self._error(TemplateSyntaxError, f"unexpected {token.value!r} in operand")

    def _field_chain(self, base: str, path: str) -> str:
        expr = base
        for name in filter(None, path.split(".")):
            expr = f"field({expr}, {self.translator._literal(name)})"
        return expr

    def _variable(self, value: str) -> str:
        name, _, path = value[1:].partition(".")
        if not name:
            return self._field_chain("dot", path)
        if name not in self.translator.variables:
            raise self._error(UndefinedReferenceError, f'undefined variable "${name}"')
        return self._field_chain(f"var_{name}", path)

    def _unquote(self, quoted: str) -> str:
        def replace(match):
            escape = match.group(1)
            if escape in _SIMPLE_ESCAPES:
                return _SIMPLE_ESCAPES[escape]
            if len(escape) > 1 and escape[0] in "xuU":
                return chr(int(escape[1:], 16))
            if len(escape) == 3 and escape.isdigit():
                return chr(int(escape, 8))
            raise self._error(TemplateSyntaxError, f"unknown escape sequence \\{escape}")

        return _STRING_ESCAPE_RE.sub(replace, quoted[1:-1])

    def _number(self, value: str):
        if value.lstrip("+-")[:2] in ("0x", "0X"):
            return int(value, 16)
        if any(c in value for c in ".eE"):
            return float(value)
        return int(value)
