"""
Forward-only cursor over the raw token sequence.

A single TokenCursor is shared by a parser node and every command node it
delegates to: the child consumes from exactly where the parent stopped.
Tokens are never revisited or pushed back.
"""


class TokenCursor:
    """
    Forward-only view over an ordered token sequence.

    Operations
    - has_next(): at least one token remains.
    - peek(): the next token, without consuming it.
    - next(): the next token, consumed.
    - looks_like_value(): the next token exists and qualifies as an option value.
    """

    def __init__(self, tokens, /):
        self._tokens = tuple(tokens)
        self._index = 0

    @property
    def index(self):
        """
        zero-based position of the next token.
        """
        return self._index

    def has_next(self):
        return self._index < len(self._tokens)

    def peek(self):
        try:
            return self._tokens[self._index]
        except IndexError:
            raise IndexError("token-cursor is exhausted") from None

    def next(self):
        token = self.peek()
        self._index += 1
        return token

    def looks_like_value(self):
        """
        return True when the next token should be read as a value, not a switch.

        a token qualifies when it does not start with '-', when it is exactly
        '-', or when its second character is a decimal digit (negative numbers).
        """
        if not self.has_next():
            return False
        token = self.peek()
        if not token.startswith("-"):
            return True
        return len(token) == 1 or token[1] in "0123456789"

    def __len__(self):
        # remaining tokens
        return len(self._tokens) - self._index

    def __iter__(self):
        while self.has_next():
            yield self.next()

    def __repr__(self):
        return "token-cursor(index=%d, remaining=%r)" % (self._index, self._tokens[self._index:])


__all__ = ("TokenCursor",)
