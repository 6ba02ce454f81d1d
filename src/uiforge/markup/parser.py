"""
Markup Parser
Recursive-descent parser for the JSX-like markup produced by the generation
stage. Produces a Document of Element/Fragment/Text/ExpressionSlot nodes;
expressions inside braces are reduced to an ``Expr`` shape and never evaluated.
"""

import html
import re

from ..core.logging_config import get_logger
from .ast import (
    Attribute,
    Document,
    Element,
    Expr,
    ExpressionSlot,
    ExprShape,
    Fragment,
    ImportStatement,
    NameForm,
    Node,
    SpreadAttribute,
    Text,
)

logger = get_logger(__name__)

_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
)
_IDENT = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_JSX_IDENT = re.compile(r"[A-Za-z_$][A-Za-z0-9_$\-]*")

# Deepest tag nesting accepted, counting tags embedded in expressions
MAX_NESTING = 100

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


class MarkupSyntaxError(Exception):
    """Markup could not be parsed."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at offset {position}")
        self.position = position


def clean_text(raw: str) -> str:
    """Collapse text the way JSX does: drop whitespace-only lines, join with spaces."""
    lines = raw.replace("\r\n", "\n").split("\n")
    parts = []
    for index, line in enumerate(lines):
        line = line.replace("\t", " ")
        if index > 0:
            line = line.lstrip()
        if index < len(lines) - 1:
            line = line.rstrip()
        if line:
            parts.append(line)
    return html.unescape(" ".join(parts))


# Expressions


class _ExprSyntax(Exception):
    pass


class _ExprReader:
    """Reads one expression; anything that is not a literal keeps only its shape."""

    def __init__(self, source: str, depth: int = 0) -> None:
        self.source = source
        self.pos = 0
        self.depth = depth

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, length: int = 1) -> str:
        return self.source[self.pos:self.pos + length]

    def skip(self) -> None:
        while not self.at_end():
            if self.source[self.pos].isspace():
                self.pos += 1
            elif self.peek(2) == "//":
                end = self.source.find("\n", self.pos)
                self.pos = len(self.source) if end < 0 else end + 1
            elif self.peek(2) == "/*":
                end = self.source.find("*/", self.pos + 2)
                if end < 0:
                    raise _ExprSyntax("unterminated comment")
                self.pos = end + 2
            else:
                return

    def expect(self, token: str) -> None:
        self.skip()
        if self.peek(len(token)) != token:
            raise _ExprSyntax(f"expected {token!r}")
        self.pos += len(token)

    def expression(self) -> Expr:
        start = self.pos
        expr = self.primary()
        while True:
            self.skip()
            char = self.peek()
            if self.peek(2) == "?.":
                self.pos += 2
                self.skip()
                if self.peek() in ("(", "["):
                    continue
                self.identifier()
            elif char == "." and self.peek(3) != "...":
                self.pos += 1
                self.skip()
                self.identifier()
            elif char == "[":
                self.pos += 1
                self.skip()
                self.expression()
                self.expect("]")
            elif char == "(":
                self.pos += 1
                self.arguments()
                expr = Expr(ExprShape.CALL, self.source[start:self.pos])
                continue
            else:
                return expr
            expr = Expr(ExprShape.MEMBER, self.source[start:self.pos])

    def arguments(self) -> None:
        self.skip()
        if self.peek() == ")":
            self.pos += 1
            return
        while True:
            self.skip()
            if self.peek(3) == "...":
                self.pos += 3
            self.expression()
            self.skip()
            if self.peek() == ",":
                self.pos += 1
                self.skip()
                if self.peek() == ")":
                    self.pos += 1
                    return
                continue
            self.expect(")")
            return

    def identifier(self) -> str:
        match = _IDENT.match(self.source, self.pos)
        if not match:
            raise _ExprSyntax("expected identifier")
        self.pos = match.end()
        return match.group()

    def primary(self) -> Expr:
        self.skip()
        start = self.pos
        char = self.peek()

        if char in ("'", '"'):
            value = self.string(char)
            return Expr(ExprShape.STRING, self.source[start:self.pos], value=value)
        if char == "`":
            self.template()
            return Expr(ExprShape.TEMPLATE, self.source[start:self.pos])
        if char == "-" and _NUMBER.match(self.source, self.pos + 1):
            self.pos += 1
            value = self.number()
            return Expr(ExprShape.NUMBER, self.source[start:self.pos], value=-value)
        if _NUMBER.match(self.source, self.pos) and (char.isdigit() or char == "."):
            value = self.number()
            return Expr(ExprShape.NUMBER, self.source[start:self.pos], value=value)
        if char == "[":
            return self.array()
        if char == "{":
            self.balanced("{", "}")
            return Expr(ExprShape.OBJECT, self.source[start:self.pos])
        if char == "(":
            self.pos += 1
            inner = self.expression()
            self.expect(")")
            return inner
        if char == "<":
            parser = MarkupParser(self.source, self.depth)
            parser.pos = self.pos
            try:
                node = parser.parse_tag()
            except MarkupSyntaxError as e:
                raise _ExprSyntax(str(e)) from e
            self.pos = parser.pos
            return Expr(ExprShape.MARKUP, self.source[start:self.pos], markup=node)
        if _IDENT.match(self.source, self.pos):
            name = self.identifier()
            if name in ("true", "false"):
                return Expr(ExprShape.BOOLEAN, name, value=name == "true")
            return Expr(ExprShape.IDENTIFIER, name)
        raise _ExprSyntax(f"unexpected {char!r}")

    def number(self) -> int | float:
        match = _NUMBER.match(self.source, self.pos)
        if not match:
            raise _ExprSyntax("expected number")
        self.pos = match.end()
        text = match.group()
        if text[:2].lower() in ("0x", "0b", "0o"):
            return int(text, 0)
        if any(c in text for c in ".eE"):
            return float(text)
        return int(text)

    def string(self, quote: str) -> str:
        self.pos += 1
        chars = []
        while not self.at_end():
            char = self.source[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chars)
            if char == "\n":
                raise _ExprSyntax("newline in string literal")
            if char == "\\":
                chars.append(self.escape())
                continue
            chars.append(char)
            self.pos += 1
        raise _ExprSyntax("unterminated string")

    def escape(self) -> str:
        self.pos += 1
        if self.at_end():
            raise _ExprSyntax("unterminated escape")
        char = self.source[self.pos]
        self.pos += 1
        if char in _ESCAPES:
            return _ESCAPES[char]
        if char == "\n":
            return ""
        if char == "x":
            digits = self.source[self.pos:self.pos + 2]
            self.pos += 2
            return self._code_point(digits, 2)
        if char == "u":
            if self.peek() == "{":
                end = self.source.find("}", self.pos)
                if end < 0:
                    raise _ExprSyntax("bad unicode escape")
                digits = self.source[self.pos + 1:end]
                self.pos = end + 1
                return self._code_point(digits, None)
            digits = self.source[self.pos:self.pos + 4]
            self.pos += 4
            return self._code_point(digits, 4)
        return char

    @staticmethod
    def _code_point(digits: str, width: int | None) -> str:
        if (width is not None and len(digits) != width) or not digits:
            raise _ExprSyntax("bad escape")
        try:
            value = int(digits, 16)
            return chr(value)
        except ValueError as e:
            raise _ExprSyntax("bad escape") from e

    def template(self) -> None:
        self.pos += 1
        while not self.at_end():
            char = self.source[self.pos]
            if char == "\\":
                self.pos += 2
                continue
            self.pos += 1
            if char == "`":
                return
        raise _ExprSyntax("unterminated template")

    def balanced(self, open_char: str, close_char: str) -> None:
        end = find_closing(self.source, self.pos, open_char, close_char)
        if end < 0:
            raise _ExprSyntax(f"unbalanced {open_char!r}")
        self.pos = end + 1

    def array(self) -> Expr:
        start = self.pos
        self.pos += 1
        items: list[Expr] = []
        while True:
            self.skip()
            char = self.peek()
            if char == "]":
                self.pos += 1
                break
            if char == ",":
                self.pos += 1
                items.append(Expr(ExprShape.HOLE))
                continue
            if self.peek(3) == "...":
                item_start = self.pos
                self.pos += 3
                self.expression()
                items.append(Expr(ExprShape.SPREAD, self.source[item_start:self.pos]))
            else:
                items.append(self.expression())
            self.skip()
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != "]":
                raise _ExprSyntax("expected ',' or ']'")
        return Expr(ExprShape.ARRAY, self.source[start:self.pos], items=tuple(items))


def parse_expression(source: str, depth: int = 0) -> Expr:
    """
    Reduce expression text to an Expr. Total: malformed or trailing input
    yields an UNSUPPORTED expression rather than an exception.

    Args:
        source: Expression text without the surrounding braces
        depth: Tag nesting depth of the enclosing markup
    """
    reader = _ExprReader(source, depth)
    try:
        reader.skip()
        if reader.at_end():
            return Expr(ExprShape.EMPTY, source)
        if reader.peek(3) == "...":
            return Expr(ExprShape.SPREAD, source.strip())
        expr = reader.expression()
        reader.skip()
    except _ExprSyntax:
        return Expr(ExprShape.UNSUPPORTED, source.strip())
    if not reader.at_end():
        return Expr(ExprShape.UNSUPPORTED, source.strip())
    return expr


def find_closing(text: str, start: int, open_char: str = "{", close_char: str = "}") -> int:
    """
    Index of the bracket closing the one at ``start``, or -1.

    String literals, template literals and comments are skipped.
    """
    depth = 0
    pos = start
    while pos < len(text):
        char = text[pos]
        if char in ("'", '"', "`"):
            pos += 1
            while pos < len(text) and text[pos] != char:
                pos += 2 if text[pos] == "\\" else 1
            if pos >= len(text):
                return -1
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            if newline < 0:
                return -1
            pos = newline
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            if close < 0:
                return -1
            pos = close + 1
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return -1


# Markup


class MarkupParser:
    """
    Parses one markup document.

    Grammar::

        document  := import* root? ';'?
        root      := '(' root ')' | element | fragment
        element   := '<' name attribute* ('/>' | '>' child* '</' name '>')
        fragment  := '<>' child* '</>'
        child     := text | element | fragment | '{' expression? '}'
        attribute := name ('=' (string | '{' expression '}'))? | '{' '...' expression '}'
    """

    def __init__(self, text: str, depth: int = 0) -> None:
        self.text = text
        self.pos = 0
        self.depth = depth

    def error(self, message: str) -> MarkupSyntaxError:
        return MarkupSyntaxError(message, self.pos)

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, length: int = 1) -> str:
        return self.text[self.pos:self.pos + length]

    def startswith(self, token: str) -> bool:
        return self.text.startswith(token, self.pos)

    def skip_ws(self, comments: bool = False) -> None:
        while not self.at_end():
            if self.text[self.pos].isspace():
                self.pos += 1
            elif comments and self.startswith("//"):
                end = self.text.find("\n", self.pos)
                self.pos = len(self.text) if end < 0 else end + 1
            elif comments and self.startswith("/*"):
                end = self.text.find("*/", self.pos + 2)
                if end < 0:
                    raise self.error("Unterminated comment")
                self.pos = end + 2
            else:
                return

    def expect(self, token: str) -> None:
        if not self.startswith(token):
            raise self.error(f"Expected {token!r}")
        self.pos += len(token)

    def parse(self) -> Document:
        document = Document()
        self.skip_ws(comments=True)
        while self._at_keyword("import"):
            document.imports.append(self.parse_import())
            self.skip_ws(comments=True)

        if self.at_end():
            return document

        document.root = self.parse_root()
        self.skip_ws(comments=True)
        if self.peek() == ";":
            self.pos += 1
            self.skip_ws(comments=True)
        if not self.at_end():
            raise self.error("Unexpected content after root element")
        return document

    def _at_keyword(self, word: str) -> bool:
        if not self.startswith(word):
            return False
        after = self.text[self.pos + len(word):self.pos + len(word) + 1]
        return not (after.isalnum() or after in ("_", "$"))

    def parse_import(self) -> ImportStatement:
        start = self.pos
        ends = [i for i in (self.text.find(";", start), self.text.find("\n", start)) if i >= 0]
        end = min(ends) if ends else len(self.text)
        self.pos = end + 1 if end < len(self.text) else end
        return ImportStatement(source=self.text[start:end].strip())

    def parse_root(self) -> Element | Fragment:
        if self.peek() == "(":
            self.pos += 1
            self.skip_ws(comments=True)
            root = self.parse_root()
            self.skip_ws(comments=True)
            self.expect(")")
            return root
        if self.peek() != "<":
            raise self.error("Expected '<'")
        return self.parse_tag()

    def parse_tag(self) -> Element | Fragment:
        if self.depth >= MAX_NESTING:
            raise self.error("Markup nesting too deep")
        self.depth += 1
        try:
            return self._tag()
        finally:
            self.depth -= 1

    def _tag(self) -> Element | Fragment:
        self.expect("<")
        self.skip_ws()
        if self.peek() == ">":
            self.pos += 1
            children = self.parse_children()
            self.expect("</")
            self.skip_ws()
            self.expect(">")
            return Fragment(children=children)

        name, form = self.parse_name(_JSX_IDENT, allow_member=True)
        attributes: list[Attribute | SpreadAttribute] = []
        while True:
            self.skip_ws()
            if self.startswith("/>"):
                self.pos += 2
                return Element(name=name, form=form, attributes=tuple(attributes))
            if self.peek() == ">":
                self.pos += 1
                break
            if self.at_end():
                raise self.error(f"Unterminated <{name}> tag")
            attributes.append(self.parse_attribute())

        children = self.parse_children()
        self.expect("</")
        self.skip_ws()
        closing, _ = self.parse_name(_JSX_IDENT, allow_member=True)
        if closing != name:
            raise self.error(f"Expected </{name}> but found </{closing}>")
        self.skip_ws()
        self.expect(">")
        return Element(name=name, form=form, attributes=tuple(attributes), children=children)

    def parse_name(self, pattern: re.Pattern[str], allow_member: bool) -> tuple[str, NameForm]:
        match = pattern.match(self.text, self.pos)
        if not match:
            raise self.error("Expected a name")
        self.pos = match.end()
        name = match.group()

        if self.peek() == ":":
            self.pos += 1
            local = pattern.match(self.text, self.pos)
            if not local:
                raise self.error("Expected a name after ':'")
            self.pos = local.end()
            return f"{name}:{local.group()}", NameForm.NAMESPACED

        form = NameForm.SIMPLE
        while allow_member and self.peek() == ".":
            self.pos += 1
            part = _IDENT.match(self.text, self.pos)
            if not part:
                raise self.error("Expected a name after '.'")
            self.pos = part.end()
            name = f"{name}.{part.group()}"
            form = NameForm.MEMBER
        return name, form

    def parse_attribute(self) -> Attribute | SpreadAttribute:
        if self.peek() == "{":
            expr = self.parse_container()
            if expr.shape is not ExprShape.SPREAD:
                raise self.error("Expected spread attribute")
            return SpreadAttribute(expr=expr)

        name, form = self.parse_name(_JSX_IDENT, allow_member=False)
        self.skip_ws()
        if self.peek() != "=":
            return Attribute(name=name, form=form)

        self.pos += 1
        self.skip_ws()
        quote = self.peek()
        if quote in ('"', "'"):
            end = self.text.find(quote, self.pos + 1)
            if end < 0:
                raise self.error("Unterminated attribute string")
            raw = self.text[self.pos + 1:end]
            self.pos = end + 1
            return Attribute(name=name, form=form, text=html.unescape(raw))
        if quote == "{":
            return Attribute(name=name, form=form, expr=self.parse_container())
        if quote == "<":
            start = self.pos
            node = self.parse_tag()
            expr = Expr(ExprShape.MARKUP, self.text[start:self.pos], markup=node)
            return Attribute(name=name, form=form, expr=expr)
        raise self.error(f"Invalid value for attribute {name!r}")

    def parse_container(self) -> Expr:
        end = find_closing(self.text, self.pos)
        if end < 0:
            raise self.error("Unbalanced '{'")
        source = self.text[self.pos + 1:end]
        self.pos = end + 1
        return parse_expression(source, self.depth)

    def parse_children(self) -> tuple[Node, ...]:
        children: list[Node] = []
        while True:
            if self.at_end():
                raise self.error("Unclosed element")
            if self.startswith("</"):
                return tuple(children)
            char = self.peek()
            if char == "<":
                children.append(self.parse_tag())
            elif char == "{":
                children.append(ExpressionSlot(expr=self.parse_container()))
            else:
                children.append(self.parse_text())

    def parse_text(self) -> Text:
        start = self.pos
        while not self.at_end() and self.peek() not in ("<", "{"):
            if self.peek() in (">", "}"):
                raise self.error(f"Unexpected {self.peek()!r} in text")
            self.pos += 1
        return Text(value=clean_text(self.text[start:self.pos]))


def parse_markup(text: str) -> Document:
    """
    Parse markup text into a Document.

    Raises:
        MarkupSyntaxError: If the text is not well-formed markup
    """
    try:
        return MarkupParser(text).parse()
    except RecursionError as e:
        logger.warning("markup_nesting_too_deep")
        raise MarkupSyntaxError("Markup nesting too deep", 0) from e
