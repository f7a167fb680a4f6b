"""
Authorization gate for value transfers.
"""
from dataclasses import dataclass
from typing import Union

INSUFFICIENT_BALANCE = "insufficient credential balance"


@dataclass(frozen=True)
class Allowed:
    """The transfer may proceed."""


@dataclass(frozen=True)
class Denied:
    """The transfer is refused."""
    reason: str


Decision = Union[Allowed, Denied]


def authorize(balance: int) -> Decision:
    """Allow a transfer only when the sender holds at least one credential."""
    if balance > 0:
        return Allowed()
    return Denied(INSUFFICIENT_BALANCE)
