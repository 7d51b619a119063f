"""Bound token records and the ordered token registry."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace

from weighted_amm.errors import AlreadyBoundError, NotBoundError
from weighted_amm.math.fixed_point import Bnum


@dataclass
class TokenRecord:
    """Per-token pool state.

    Attributes:
        bound: True while the token is part of the pool
        index: Position of the token in the registry's iteration order
        denorm: Denormalized weight
        balance: Balance recorded by the pool, authoritative for pricing
    """

    bound: bool = False
    index: int = 0
    denorm: Bnum = field(default_factory=Bnum.zero)
    balance: Bnum = field(default_factory=Bnum.zero)


class TokenRegistry:
    """Dense list of bound tokens plus a token -> record map.

    Removal swaps the last token into the freed slot and truncates, so every
    record's index always matches its position in the list.
    """

    def __init__(self) -> None:
        self._tokens: list[str] = []
        self._records: dict[str, TokenRecord] = {}

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._tokens))

    def __contains__(self, token: object) -> bool:
        return token in self._records

    @property
    def tokens(self) -> list[str]:
        """Bound tokens in iteration order (a copy)."""
        return list(self._tokens)

    def is_bound(self, token: str) -> bool:
        record = self._records.get(token)
        return record is not None and record.bound

    def get(self, token: str) -> TokenRecord:
        """Return the record for a bound token.

        Raises:
            NotBoundError: If token is not bound
        """
        record = self._records.get(token)
        if record is None or not record.bound:
            raise NotBoundError(f"Token {token} is not bound")
        return record

    def add(self, token: str) -> TokenRecord:
        """Register token at the end of the iteration order with zero weight and balance."""
        if self.is_bound(token):
            raise AlreadyBoundError(f"Token {token} is already bound")
        record = TokenRecord(bound=True, index=len(self._tokens))
        self._records[token] = record
        self._tokens.append(token)
        return record

    def remove(self, token: str) -> TokenRecord:
        """Unregister token, moving the last token into its slot.

        Returns:
            The removed record, reset to unbound with zero weight and balance
        """
        record = self.get(token)
        index = record.index
        last = len(self._tokens) - 1

        moved = self._tokens[last]
        self._tokens[index] = moved
        self._records[moved].index = index
        self._tokens.pop()

        del self._records[token]
        record.bound = False
        record.index = 0
        record.denorm = Bnum.zero()
        record.balance = Bnum.zero()
        return record

    def snapshot(self) -> tuple[list[str], dict[str, TokenRecord]]:
        """Copy of the registry state for rollback."""
        return list(self._tokens), {token: replace(rec) for token, rec in self._records.items()}

    def restore(self, snapshot: tuple[list[str], dict[str, TokenRecord]]) -> None:
        tokens, records = snapshot
        self._tokens = list(tokens)
        self._records = {token: replace(rec) for token, rec in records.items()}
