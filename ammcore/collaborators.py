"""External collaborators used by the router.

Token movement and signature checks live outside the pool math. The router
receives implementations of these protocols at construction time.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import structlog

from ammcore.errors import TransferFailed
from ammcore.models.types import normalize_address

logger = structlog.get_logger()

Clock = Callable[[], int]


def system_clock() -> int:
    """Current unix time in seconds."""
    return int(time.time())


@runtime_checkable
class TokenLedger(Protocol):
    """Token balances and allowances.

    snapshot/restore let the router roll back transfers made by an operation
    that later fails.
    """

    def balance_of(self, token: str, owner: str) -> int:
        """Balance of owner in token."""
        ...

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """Move amount from sender to recipient. Raises TransferFailed."""
        ...

    def transfer_from(
        self, token: str, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        """Move amount from owner to recipient using spender's allowance."""
        ...

    def snapshot(self) -> object:
        """Opaque copy of the ledger state."""
        ...

    def restore(self, state: object) -> None:
        """Restore a state returned by snapshot()."""
        ...


@runtime_checkable
class SignatureVerifier(Protocol):
    """Checks permit signatures. Returns False for an invalid signature."""

    def verify(
        self,
        owner: str,
        spender: str,
        value: int,
        nonce: int,
        deadline: int,
        signature: bytes,
    ) -> bool:
        """Verify that owner signed the permit message."""
        ...


@dataclass
class _LedgerState:
    balances: dict[tuple[str, str], int]
    allowances: dict[tuple[str, str, str], int]


@dataclass
class InMemoryLedger:
    """Dictionary-backed TokenLedger.

    Keys are normalized addresses. Allowances of 2**256 - 1 are treated as
    infinite and never decremented.
    """

    balances: dict[tuple[str, str], int] = field(default_factory=dict)
    allowances: dict[tuple[str, str, str], int] = field(default_factory=dict)

    def mint(self, token: str, owner: str, amount: int) -> None:
        """Credit owner with freshly created tokens."""
        key = (normalize_address(token), normalize_address(owner))
        self.balances[key] = self.balances.get(key, 0) + amount

    def balance_of(self, token: str, owner: str) -> int:
        return self.balances.get((normalize_address(token), normalize_address(owner)), 0)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        return self.allowances.get(key, 0)

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        self.allowances[key] = amount

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        token, sender, recipient = (
            normalize_address(token),
            normalize_address(sender),
            normalize_address(recipient),
        )
        balance = self.balances.get((token, sender), 0)
        if amount > balance:
            logger.debug(
                "ledger_transfer_rejected",
                token=token,
                sender=sender,
                amount=amount,
                balance=balance,
            )
            raise TransferFailed("TransferHelper: TRANSFER_FAILED")
        self.balances[(token, sender)] = balance - amount
        self.balances[(token, recipient)] = self.balances.get((token, recipient), 0) + amount

    def transfer_from(
        self, token: str, spender: str, owner: str, recipient: str, amount: int
    ) -> None:
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        allowed = self.allowances.get(key, 0)
        if amount > allowed or amount > self.balance_of(token, owner):
            raise TransferFailed()
        if allowed != 2**256 - 1:
            self.allowances[key] = allowed - amount
        self.transfer(token, owner, recipient, amount)

    def snapshot(self) -> _LedgerState:
        return _LedgerState(dict(self.balances), dict(self.allowances))

    def restore(self, state: object) -> None:
        if not isinstance(state, _LedgerState):
            raise TypeError(f"Unexpected ledger snapshot: {type(state).__name__}")
        self.balances = dict(state.balances)
        self.allowances = dict(state.allowances)


__all__ = [
    "Clock",
    "InMemoryLedger",
    "SignatureVerifier",
    "TokenLedger",
    "system_clock",
]
