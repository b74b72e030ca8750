"""
dsdk.core.params - Request body parameter encoding
==================================================

Body parameters come in one of two shapes:

1. ``FlatPairs``: ``"key=value"`` strings. Values cannot be nested, only
   strings, with ``"true"``/``"false"`` coerced to booleans. This covers most
   calls.
2. ``StructuredBody``: one mapping holding arbitrarily nested JSON values,
   sent unchanged.

``encode_params`` resolves caller arguments into one of the two once, at the
call boundary, and returns an ordered dict ready for ``json.dumps``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple, Union

from dsdk.core.errors import EncodingError


def _coerce(value: str) -> Union[str, bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return value


@dataclass(frozen=True)
class FlatPairs:
    """A run of ``"key=value"`` strings."""

    pairs: Tuple[str, ...] = ()

    def encode(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for pair in self.pairs:
            if not isinstance(pair, str):
                raise EncodingError(f"Couldn't parse param {pair!r}: expected 'key=value' string")
            key, sep, value = pair.partition("=")
            if not sep:
                raise EncodingError(f"Couldn't parse param {pair!r}: missing '='")
            result[key] = _coerce(value)
        return result


@dataclass(frozen=True)
class StructuredBody:
    """A pre-built, possibly nested, JSON body."""

    body: Mapping[str, Any] = field(default_factory=dict)

    def encode(self) -> Dict[str, Any]:
        if isinstance(self.body, dict):
            return self.body
        return dict(self.body)


Params = Union[FlatPairs, StructuredBody]


def to_params(*args: Any) -> Params:
    """Resolve raw call arguments into a ``FlatPairs`` or ``StructuredBody``."""
    if not args:
        return FlatPairs()
    first = args[0]
    if isinstance(first, (FlatPairs, StructuredBody)):
        if len(args) > 1:
            raise EncodingError("Only one parameter set may be given")
        return first
    if isinstance(first, Mapping):
        if len(args) > 1:
            raise EncodingError("A structured body must be the only parameter")
        return StructuredBody(first)
    if isinstance(first, str):
        return FlatPairs(tuple(args))
    raise EncodingError(f"Couldn't parse params: {args!r}")


def encode_params(*args: Any) -> Dict[str, Any]:
    """
    Encode body parameters into a dict.

    Examples
    --------
    >>> encode_params("a=1", "b=true")
    {'a': '1', 'b': True}
    >>> encode_params({"x": [1, 2]})
    {'x': [1, 2]}
    >>> encode_params()
    {}
    """
    return to_params(*args).encode()
