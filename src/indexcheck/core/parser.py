from __future__ import annotations

import re
from dataclasses import replace
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import LarkError, UnexpectedInput

from .exceptions import MalformedReference, ParseError
from .ir import Directive, DirectiveItem, Expression, SourceLocation, TensorRef
from .labels import Literal, parse_label

GRAMMAR_PATH = Path(__file__).with_name("indexcheck_grammar.lark")

_BOOL_WORDS = {"true": True, "false": False}
_INT_RE = re.compile(r"[+-]?[0-9]+")

ParsedLine = Union[Expression, List[DirectiveItem]]


@lru_cache(maxsize=1)
def _build_lark() -> Lark:
    grammar = GRAMMAR_PATH.read_text(encoding="utf-8")
    return Lark(
        grammar,
        parser="earley",
        start=["line", "expression", "directives", "tensor_ref"],
        ambiguity="resolve",
        propagate_positions=True,
        maybe_placeholders=False,
    )


class IndexCheckTransformer(Transformer):
    def __init__(self, text: str, location: Optional[SourceLocation] = None):
        super().__init__()
        self.text = text
        self.location = location

    def _error_token(self, token: Token, message: str) -> None:
        raise ParseError(
            message,
            line=self._line(),
            column=token.column,
            line_text=self.text,
        )

    def _line(self) -> Optional[int]:
        return self.location.line if self.location is not None else None

    # ------------------------------------------------------------------ visitors
    def tensor_ref(self, items):
        name_token: Token = items[0]
        labels = tuple(items[1:])
        return TensorRef(name=name_token.value, labels=labels, location=self.location)

    def index(self, items):
        token: Token = items[0]
        if token.type == "SIGNED_INT":
            return Literal(int(token.value))
        try:
            return parse_label(token.value)
        except MalformedReference:  # pragma: no cover - grammar only admits names
            self._error_token(token, f"Invalid index token '{token.value}'")

    def assign_op(self, items):
        return items[0].value

    def product(self, items):
        return list(items)

    @v_args(meta=True)
    def expression(self, meta, items):
        lhs, op, rhs = items
        return Expression(
            lhs=lhs,
            op=op,
            rhs=rhs,
            line=self._line(),
            source=self.text[meta.start_pos : meta.end_pos].strip(),
        )

    def value(self, items):
        token: Token = items[0]
        if _INT_RE.fullmatch(token.value):
            return int(token.value)
        lowered = token.value.lower()
        if lowered in _BOOL_WORDS:
            return _BOOL_WORDS[lowered]
        return token.value

    @v_args(meta=True)
    def option(self, meta, items):
        name_token, value = items
        return Directive(name=name_token.value, value=value, has_value=True, column=meta.column)

    @v_args(meta=True)
    def flag(self, meta, items):
        return Directive(name=items[0].value, column=meta.column)

    def directives(self, items):
        return list(items)


def _parse(
    text: str,
    start: str,
    location: Optional[SourceLocation],
) -> Any:
    parser = _build_lark()
    line = location.line if location is not None else None
    try:
        tree = parser.parse(text, start=start)
    except UnexpectedInput as exc:
        column = exc.column if isinstance(exc.column, int) and exc.column > 0 else len(text) + 1
        raise ParseError(
            "Syntax error while parsing index expression",
            line=line if line is not None else 1,
            column=column,
            line_text=text,
        ) from exc
    except LarkError as exc:  # pragma: no cover - defensive
        raise ParseError(str(exc), line=line) from exc
    return IndexCheckTransformer(text, location).transform(tree)


def _strip_comment(text: str) -> str:
    return text.split("#", 1)[0].strip()


def parse_reference(text: str, *, location: Optional[SourceLocation] = None) -> TensorRef:
    return _parse(text.strip(), "tensor_ref", location)


def parse_expression(text: str, *, location: Optional[SourceLocation] = None) -> Expression:
    return _parse(text.strip(), "expression", location)


def parse_directives(
    text: str,
    *,
    location: Optional[SourceLocation] = None,
) -> List[DirectiveItem]:
    if not _strip_comment(text):
        return []
    return _parse(text.strip(), "directives", location)


def parse_line(text: str, *, location: Optional[SourceLocation] = None) -> ParsedLine:
    if not _strip_comment(text):
        return []
    return _parse(text.strip(), "line", location)


def parse_source(
    source: str,
    *,
    file: Optional[str] = None,
    module: Optional[str] = None,
) -> List[Tuple[int, ParsedLine]]:
    """Parse a lint file one line at a time, skipping blanks and comments."""
    base = SourceLocation(module=module, file=file)
    parsed: List[Tuple[int, ParsedLine]] = []
    for number, raw in enumerate(source.splitlines(), start=1):
        if not _strip_comment(raw):
            continue
        parsed.append((number, parse_line(raw, location=replace(base, line=number))))
    return parsed
