"""Tests for the LP share ledger."""

import pytest

from ammcore.errors import (
    CannotMintZero,
    CannotSendToItself,
    Expired,
    InsufficientLpBalance,
    InvalidSignature,
    TransferFailed,
)
from ammcore.pools.lp_token import MAX_ALLOWANCE, LPToken
from tests.helpers import ALICE, BOB, CAROL, START_TIME, StubVerifier

LP_ADDRESS = "0x" + "ab" * 20


@pytest.fixture
def token() -> LPToken:
    lp = LPToken(address=LP_ADDRESS)
    lp.mint(ALICE, 1_000)
    return lp


class TestSupply:
    """Tests for mint and burn."""

    def test_mint_tracks_supply(self, token):
        """Minting credits the recipient and grows supply."""
        token.mint(BOB, 500)
        assert token.balance_of(BOB) == 500
        assert token.total_supply == 1_500
        assert sum(token.balances.values()) == token.total_supply

    def test_mint_zero(self, token):
        """Minting zero shares is rejected."""
        with pytest.raises(CannotMintZero) as exc_info:
            token.mint(BOB, 0)
        assert exc_info.value.reason == "LPToken: cannot mint 0"

    def test_mint_to_itself(self, token):
        """The token cannot hold its own shares."""
        with pytest.raises(CannotSendToItself):
            token.mint(LP_ADDRESS, 1)

    def test_burn(self, token):
        """Burning debits the owner and shrinks supply."""
        token.burn_from(ALICE, 400)
        assert token.balance_of(ALICE) == 600
        assert token.total_supply == 600

    def test_burn_above_balance(self, token):
        """Burning more than owned is rejected."""
        with pytest.raises(InsufficientLpBalance):
            token.burn_from(ALICE, 1_001)


class TestTransfers:
    """Tests for transfer, approve and transfer_from."""

    def test_transfer(self, token):
        """Transfers move shares without changing supply."""
        token.transfer(ALICE, BOB, 300)
        assert token.balance_of(ALICE) == 700
        assert token.balance_of(BOB) == 300
        assert token.total_supply == 1_000

    def test_transfer_from_spends_allowance(self, token):
        """transfer_from consumes the spender's allowance."""
        token.approve(ALICE, BOB, 500)
        token.transfer_from(BOB, ALICE, CAROL, 200)
        assert token.allowance(ALICE, BOB) == 300
        assert token.balance_of(CAROL) == 200

    def test_transfer_from_without_allowance(self, token):
        """transfer_from without enough allowance is rejected."""
        with pytest.raises(TransferFailed):
            token.transfer_from(BOB, ALICE, CAROL, 1)

    def test_max_allowance_is_not_decremented(self, token):
        """An unlimited allowance stays unlimited."""
        token.approve(ALICE, BOB, MAX_ALLOWANCE)
        token.transfer_from(BOB, ALICE, CAROL, 10)
        assert token.allowance(ALICE, BOB) == MAX_ALLOWANCE

    def test_addresses_are_normalized(self, token):
        """Mixed-case addresses resolve to the same holder."""
        assert token.balance_of(ALICE.upper().replace("0X", "0x")) == 1_000


class TestPermit:
    """Tests for signed approvals."""

    def test_permit_sets_allowance_and_increments_nonce(self, token):
        """A valid permit sets the allowance and consumes the nonce."""
        verifier = StubVerifier()
        token.permit(ALICE, BOB, 250, START_TIME, b"sig", verifier=verifier, now=START_TIME)

        assert token.allowance(ALICE, BOB) == 250
        assert token.nonce_of(ALICE) == 1
        assert verifier.calls == [(ALICE, BOB, 250, 0, START_TIME)]

    def test_second_permit_uses_next_nonce(self, token):
        """Each permit is checked against the owner's current nonce."""
        verifier = StubVerifier()
        token.permit(ALICE, BOB, 1, START_TIME, b"a", verifier=verifier, now=START_TIME)
        token.permit(ALICE, BOB, 2, START_TIME, b"b", verifier=verifier, now=START_TIME)
        assert [call[3] for call in verifier.calls] == [0, 1]
        assert token.nonce_of(ALICE) == 2

    def test_expired_permit(self, token):
        """A permit past its deadline is rejected before verification."""
        verifier = StubVerifier()
        with pytest.raises(Expired) as exc_info:
            token.permit(ALICE, BOB, 1, START_TIME - 1, b"", verifier=verifier, now=START_TIME)
        assert exc_info.value.reason == "EXPIRED"
        assert verifier.calls == []

    def test_invalid_signature(self, token):
        """A rejected signature leaves the allowance and nonce untouched."""
        with pytest.raises(InvalidSignature) as exc_info:
            token.permit(
                ALICE, BOB, 1, START_TIME, b"", verifier=StubVerifier(valid=False), now=START_TIME
            )
        assert exc_info.value.reason == "INVALID_SIGNATURE"
        assert token.allowance(ALICE, BOB) == 0
        assert token.nonce_of(ALICE) == 0


class TestSnapshots:
    """Tests for snapshot and restore."""

    def test_restore_undoes_changes(self, token):
        """restore returns the token to the snapshotted state."""
        state = token.snapshot()
        token.mint(BOB, 10)
        token.approve(ALICE, BOB, 5)
        token.restore(state)

        assert token.total_supply == 1_000
        assert token.balance_of(BOB) == 0
        assert token.allowance(ALICE, BOB) == 0
