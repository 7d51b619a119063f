"""State-change records emitted by pool operations.

Records are appended to the pool's event list in the order the changes are
applied and are discarded along with the rest of the state when an
operation fails.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Transfer:
    """Pool shares moved between accounts (src is empty for mint, dst for burn)."""

    src: str
    dst: str
    amount: int


@dataclass(frozen=True)
class Approval:
    """Allowance of spender over owner's shares was set."""

    owner: str
    spender: str
    amount: int


@dataclass(frozen=True)
class LogSwap:
    """A swap between two bound tokens."""

    caller: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


@dataclass(frozen=True)
class LogJoin:
    """Tokens added to the pool in exchange for shares."""

    caller: str
    token_in: str
    amount_in: int


@dataclass(frozen=True)
class LogExit:
    """Tokens removed from the pool in exchange for shares."""

    caller: str
    token_out: str
    amount_out: int


PoolEvent = Transfer | Approval | LogSwap | LogJoin | LogExit
