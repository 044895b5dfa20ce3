"""Pytest configuration and fixtures."""

import pytest

from ammcore.collaborators import InMemoryLedger
from ammcore.pools.registry import PairRegistry
from ammcore.routing.router import Router
from tests.helpers.constants import ALICE, BOB, DAI, ONE_ETHER, ONE_USDC, USDC, USDT, WBTC, WETH
from tests.helpers.factories import FakeClock, StubVerifier, fund


@pytest.fixture
def clock() -> FakeClock:
    """Settable clock starting at START_TIME."""
    return FakeClock()


@pytest.fixture
def ledger() -> InMemoryLedger:
    """Empty in-memory token ledger."""
    return InMemoryLedger()


@pytest.fixture
def verifier() -> StubVerifier:
    """Permit verifier that accepts every signature."""
    return StubVerifier()


@pytest.fixture
def registry(clock: FakeClock) -> PairRegistry:
    """Pair registry with volatile and stable pairs enabled."""
    return PairRegistry.with_default_pair_types(clock=clock)


@pytest.fixture
def router(
    registry: PairRegistry,
    ledger: InMemoryLedger,
    verifier: StubVerifier,
    clock: FakeClock,
) -> Router:
    """Router wired to the registry, ledger, verifier and clock fixtures."""
    return Router(registry, ledger, verifier=verifier, clock=clock)


@pytest.fixture
def funded(ledger: InMemoryLedger, router: Router) -> dict[str, int]:
    """Give ALICE and BOB large balances of every test token, approved to the router."""
    balances = {
        WETH: 10_000 * ONE_ETHER,
        DAI: 10_000_000 * ONE_ETHER,
        USDC: 10_000_000 * ONE_USDC,
        USDT: 10_000_000 * ONE_USDC,
        WBTC: 1_000 * 10**8,
    }
    for owner in (ALICE, BOB):
        fund(ledger, owner, router.address, balances)
    return balances
