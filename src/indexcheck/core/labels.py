"""Index labels and the letter-drift comparison between them.

A label is one of four frozen variants:

* ``Alpha`` -- a single alphabetic character such as ``i`` or ``μ``;
* ``Literal`` -- a fixed integer index;
* ``Wildcard`` -- the ``_`` marker for a dimension that is ignored;
* ``Named`` -- any other symbol, usually a multi-character name like ``batch``.

Only two ``Alpha`` labels are compared by character distance under the
default policy.  ``MULTICHAR_LEADING`` extends the comparison to the leading
characters of ``Named`` labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple, Union

from .exceptions import MalformedReference

WILDCARD_TOKEN = "_"

MULTICHAR_EXEMPT = "exempt"
MULTICHAR_LEADING = "leading"
MULTICHAR_POLICIES = (MULTICHAR_EXEMPT, MULTICHAR_LEADING)


@dataclass(frozen=True)
class Alpha:
    char: str

    def __str__(self) -> str:
        return self.char


@dataclass(frozen=True)
class Literal:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Wildcard:
    def __str__(self) -> str:
        return WILDCARD_TOKEN


@dataclass(frozen=True)
class Named:
    name: str

    def __str__(self) -> str:
        return self.name


IndexLabel = Union[Alpha, Literal, Wildcard, Named]
LabelSequence = Tuple[IndexLabel, ...]

_LABEL_TYPES = (Alpha, Literal, Wildcard, Named)


def parse_label(token: Any) -> IndexLabel:
    if isinstance(token, _LABEL_TYPES):
        return token
    # bool is an int subclass but never a valid index
    if isinstance(token, bool):
        raise MalformedReference(f"Index label must be a symbol or an integer, got {token!r}")
    if isinstance(token, int):
        return Literal(token)
    if not isinstance(token, str):
        raise MalformedReference(f"Index label must be a symbol or an integer, got {token!r}")
    text = token.strip()
    if not text:
        raise MalformedReference("Empty index label")
    if text == WILDCARD_TOKEN:
        return Wildcard()
    if len(text) == 1 and text.isalpha():
        return Alpha(text)
    try:
        return Literal(int(text))
    except ValueError:
        return Named(text)


def as_label_sequence(tokens: Iterable[Any]) -> LabelSequence:
    if isinstance(tokens, (str, bytes)) or not _is_iterable(tokens):
        raise MalformedReference(
            f"Expected a sequence of index labels like ('i', 'j'), got {tokens!r}"
        )
    return tuple(parse_label(token) for token in tokens)


def _is_iterable(value: Any) -> bool:
    try:
        iter(value)
    except TypeError:
        return False
    return True


def format_labels(labels: Iterable[IndexLabel]) -> str:
    return ",".join(str(label) for label in labels)


def drift_distance(
    new: IndexLabel,
    old: IndexLabel,
    multichar: str = MULTICHAR_EXEMPT,
) -> Optional[int]:
    """Return the character distance between two labels, or ``None`` if exempt."""
    if isinstance(new, (Literal, Wildcard)) or isinstance(old, (Literal, Wildcard)):
        return None
    if isinstance(new, Alpha) and isinstance(old, Alpha):
        return abs(ord(new.char) - ord(old.char))
    if multichar != MULTICHAR_LEADING:
        return None
    lead_new = str(new)[0]
    lead_old = str(old)[0]
    if not (lead_new.isalpha() and lead_old.isalpha()):
        return None
    return abs(ord(lead_new) - ord(lead_old))
