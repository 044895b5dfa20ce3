"""Tests for the in-memory token ledger."""

import pytest

from ammcore.collaborators import InMemoryLedger, SignatureVerifier, TokenLedger
from ammcore.errors import TransferFailed
from ammcore.pools.lp_token import MAX_ALLOWANCE
from tests.helpers import ALICE, BOB, CAROL, USDC, StubVerifier


@pytest.fixture
def ledger():
    ledger = InMemoryLedger()
    ledger.mint(USDC, ALICE, 1_000)
    return ledger


class TestInMemoryLedger:
    """Tests for InMemoryLedger."""

    def test_satisfies_protocols(self, ledger):
        """The ledger and the test verifier match the router's protocols."""
        assert isinstance(ledger, TokenLedger)
        assert isinstance(StubVerifier(), SignatureVerifier)

    def test_transfer(self, ledger):
        """Transfers move balance between owners."""
        ledger.transfer(USDC, ALICE, BOB, 400)
        assert ledger.balance_of(USDC, ALICE) == 600
        assert ledger.balance_of(USDC, BOB) == 400

    def test_transfer_above_balance(self, ledger):
        """Overdrawn transfers fail and change nothing."""
        with pytest.raises(TransferFailed):
            ledger.transfer(USDC, ALICE, BOB, 1_001)
        assert ledger.balance_of(USDC, ALICE) == 1_000

    def test_transfer_from_spends_allowance(self, ledger):
        """transfer_from consumes a finite allowance."""
        ledger.approve(USDC, ALICE, CAROL, 500)
        ledger.transfer_from(USDC, CAROL, ALICE, BOB, 200)
        assert ledger.allowance(USDC, ALICE, CAROL) == 300
        assert ledger.balance_of(USDC, BOB) == 200

    def test_infinite_allowance(self, ledger):
        """The maximum allowance is never decremented."""
        ledger.approve(USDC, ALICE, CAROL, MAX_ALLOWANCE)
        ledger.transfer_from(USDC, CAROL, ALICE, BOB, 200)
        assert ledger.allowance(USDC, ALICE, CAROL) == MAX_ALLOWANCE

    def test_transfer_from_without_allowance(self, ledger):
        """Spending without an allowance fails."""
        with pytest.raises(TransferFailed) as exc_info:
            ledger.transfer_from(USDC, CAROL, ALICE, BOB, 1)
        assert exc_info.value.reason == "TransferHelper: TRANSFER_FROM_FAILED"

    def test_snapshot_restore(self, ledger):
        """Restoring a snapshot undoes later transfers."""
        state = ledger.snapshot()
        ledger.transfer(USDC, ALICE, BOB, 1_000)
        ledger.restore(state)
        assert ledger.balance_of(USDC, ALICE) == 1_000
        assert ledger.balance_of(USDC, BOB) == 0

    def test_restore_foreign_state(self, ledger):
        """Only states produced by snapshot() can be restored."""
        with pytest.raises(TypeError):
            ledger.restore({})
