"""
Collector for positional arguments: every token that was not consumed as an
option switch, an option value or a command name.
"""
from collections.abc import Sequence

from .values import to_integer, to_float


class PositionalCollector(Sequence):
    """
    Append-only ordered sequence of leftover tokens, in encounter order.

    Besides the Sequence protocol (len, indexing, iteration) it offers a
    snapshot() copy and bulk typed conversion with the same coercion rules as
    integer and float options; conversion fails on the first bad entry.
    """

    def __init__(self):
        self._tokens = []

    def append(self, token, /):
        if not isinstance(token, str):
            raise TypeError("positional-collector append() argument must be a string")
        self._tokens.append(token)

    def __getitem__(self, index):
        return self._tokens[index]

    def __len__(self):
        return len(self._tokens)

    def snapshot(self):
        return list(self._tokens)

    def as_integers(self):
        return [to_integer(token) for token in self._tokens]

    def as_floats(self):
        return [to_float(token) for token in self._tokens]

    def __repr__(self):
        return "positional-collector(%r)" % self._tokens


__all__ = ("PositionalCollector",)
