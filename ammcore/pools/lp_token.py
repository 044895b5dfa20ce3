"""LP share ledger.

Each pool owns exactly one LPToken. Supply only changes through the owning
pool's mint and burn paths; holders can transfer, approve and permit.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from ammcore.collaborators import SignatureVerifier
from ammcore.errors import (
    CannotMintZero,
    CannotSendToItself,
    Expired,
    InsufficientLpBalance,
    InvalidSignature,
    TransferFailed,
)
from ammcore.models.types import normalize_address

logger = structlog.get_logger()

MAX_ALLOWANCE = 2**256 - 1


@dataclass(frozen=True)
class LPTokenState:
    """Point-in-time copy of an LPToken's storage."""

    total_supply: int
    balances: dict[str, int]
    allowances: dict[tuple[str, str], int]
    nonces: dict[str, int]


@dataclass
class LPToken:
    """Fungible share accounting for one pool.

    Invariant: sum(balances.values()) == total_supply.
    """

    address: str
    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)
    nonces: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.address = normalize_address(self.address)

    def balance_of(self, owner: str) -> int:
        return self.balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def nonce_of(self, owner: str) -> int:
        return self.nonces.get(normalize_address(owner), 0)

    # --- Supply changes (pool only) ---

    def mint(self, recipient: str, amount: int) -> None:
        """Create amount shares for recipient.

        Raises:
            CannotMintZero: If amount is zero
            CannotSendToItself: If recipient is the token itself
        """
        recipient = normalize_address(recipient)
        if amount == 0:
            raise CannotMintZero()
        if recipient == self.address:
            raise CannotSendToItself()
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        self.total_supply += amount

    def burn_from(self, owner: str, amount: int) -> None:
        """Destroy amount of owner's shares.

        Raises:
            InsufficientLpBalance: If owner holds fewer than amount shares
        """
        owner = normalize_address(owner)
        balance = self.balances.get(owner, 0)
        if amount > balance:
            raise InsufficientLpBalance()
        self.balances[owner] = balance - amount
        self.total_supply -= amount

    # --- Holder operations ---

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        sender, recipient = normalize_address(sender), normalize_address(recipient)
        if recipient == self.address:
            raise CannotSendToItself()
        balance = self.balances.get(sender, 0)
        if amount > balance:
            raise InsufficientLpBalance()
        self.balances[sender] = balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.allowances[(normalize_address(owner), normalize_address(spender))] = amount

    def spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        """Consume spender's allowance over owner's shares.

        Raises:
            TransferFailed: If the allowance is smaller than amount
        """
        key = (normalize_address(owner), normalize_address(spender))
        allowed = self.allowances.get(key, 0)
        if amount > allowed:
            raise TransferFailed()
        if allowed != MAX_ALLOWANCE:
            self.allowances[key] = allowed - amount

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        self.spend_allowance(owner, spender, amount)
        self.transfer(owner, recipient, amount)

    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        signature: bytes,
        *,
        verifier: SignatureVerifier,
        now: int,
    ) -> None:
        """Set an allowance from a signed message.

        The verifier checks the signature against the owner's current nonce.
        On success the nonce increments, so a signature cannot be replayed.

        Raises:
            Expired: If deadline is before now
            InvalidSignature: If the verifier rejects the signature
        """
        owner, spender = normalize_address(owner), normalize_address(spender)
        if deadline < now:
            raise Expired()
        nonce = self.nonces.get(owner, 0)
        if not verifier.verify(owner, spender, value, nonce, deadline, signature):
            logger.debug("lp_permit_rejected", token=self.address, owner=owner, nonce=nonce)
            raise InvalidSignature()
        self.nonces[owner] = nonce + 1
        self.allowances[(owner, spender)] = value

    # --- Snapshots ---

    def snapshot(self) -> LPTokenState:
        return LPTokenState(
            total_supply=self.total_supply,
            balances=dict(self.balances),
            allowances=dict(self.allowances),
            nonces=dict(self.nonces),
        )

    def restore(self, state: LPTokenState) -> None:
        self.total_supply = state.total_supply
        self.balances = dict(state.balances)
        self.allowances = dict(state.allowances)
        self.nonces = dict(state.nonces)


__all__ = ["LPToken", "LPTokenState", "MAX_ALLOWANCE"]
