"""End-to-end multi-hop swaps across volatile and stable pairs."""

import pytest

from ammcore.errors import InsufficientOutputAmount, InvalidRoute
from ammcore.models.route import PairType
from tests.helpers import (
    ALICE,
    BOB,
    CAROL,
    DAI,
    ONE_ETHER,
    ONE_USDC,
    USDC,
    USDT,
    WBTC,
    WETH,
    add_liquidity,
    create_stable_pair,
)


@pytest.fixture
def deadline(clock):
    return clock.now + 600


@pytest.fixture
def pools(router, funded, deadline):
    """WETH/USDC volatile, DAI/USDC/USDT stable and DAI/WBTC volatile pairs."""
    weth_usdc = add_liquidity(
        router, PairType.VOLATILE, [WETH, USDC], [100 * ONE_ETHER, 200_000 * ONE_USDC], deadline
    )
    stable = create_stable_pair(router.registry, [DAI, USDC, USDT])
    add_liquidity(
        router,
        PairType.STABLE,
        [DAI, USDC, USDT],
        [1_000_000 * ONE_ETHER, 1_000_000 * ONE_USDC, 1_000_000 * ONE_USDC],
        deadline,
    )
    dai_wbtc = add_liquidity(
        router, PairType.VOLATILE, [DAI, WBTC], [2_000_000 * ONE_ETHER, 50 * 10**8], deadline
    )
    registry = router.registry
    return registry.get_pair(weth_usdc.pool), stable, registry.get_pair(dai_wbtc.pool)


def three_hop_route(pools, middle_type=PairType.STABLE):
    weth_usdc, stable, dai_wbtc = pools
    return [
        {"from": WETH, "to": USDC, "pair": weth_usdc.address, "pairType": 1},
        {"from": USDC, "to": DAI, "pair": stable.address, "pairType": int(middle_type)},
        {"from": DAI, "to": WBTC, "pair": dai_wbtc.address, "pairType": 1},
    ]


class TestMultiHop:
    """Tests for routes through several pair types."""

    def test_three_hops(self, router, ledger, pools, deadline):
        """Each hop feeds the next and the receiver gets the quoted output."""
        route = three_hop_route(pools)
        path = router.get_amounts_out_path(ONE_ETHER, route)

        result = router.swap(route, ONE_ETHER, path[-1], CAROL, deadline, sender=BOB)

        assert result.amounts == path
        assert len(result.hops) == 3
        for prev, nxt in zip(result.hops, result.hops[1:]):
            assert prev.amount_out == nxt.amount_in
        assert ledger.balance_of(WBTC, CAROL) == path[-1]
        # roughly 1 WETH = 2000 USDC = 2000 DAI = 0.05 WBTC before fees
        assert 4 * 10**6 < path[-1] < 5 * 10**6

    def test_no_intermediate_tokens_left_with_router(self, router, ledger, pools, deadline):
        """Intermediate outputs move pair to pair, never through the router."""
        router.swap(three_hop_route(pools), ONE_ETHER, 0, CAROL, deadline, sender=BOB)
        for token in (WETH, USDC, DAI, WBTC):
            assert ledger.balance_of(token, router.address) == 0

    def test_type_confused_hop_changes_nothing(self, router, ledger, pools, deadline):
        """A middle hop claiming the wrong type fails before the first pair moves."""
        snapshots = [pool.snapshot() for pool in pools]
        reserves = router.get_reserves(PairType.VOLATILE, [WETH, USDC])
        balance = ledger.balance_of(WETH, BOB)

        with pytest.raises(InvalidRoute) as exc_info:
            router.swap(
                three_hop_route(pools, middle_type=PairType.VOLATILE),
                ONE_ETHER,
                0,
                BOB,
                deadline,
                sender=BOB,
            )

        assert exc_info.value.reason == "is not volatile pair"
        assert router.get_reserves(PairType.VOLATILE, [WETH, USDC]) == reserves
        assert [pool.snapshot() for pool in pools] == snapshots
        assert ledger.balance_of(WETH, BOB) == balance

    def test_final_slippage_reverts_every_hop(self, router, ledger, pools, deadline):
        """A short final output undoes the earlier hops too."""
        route = three_hop_route(pools)
        expected = router.get_amounts_out(ONE_ETHER, route)
        snapshots = [pool.snapshot() for pool in pools]
        ledger_before = ledger.snapshot()

        with pytest.raises(InsufficientOutputAmount):
            router.swap(route, ONE_ETHER, expected + 1, ALICE, deadline, sender=ALICE)

        assert [pool.snapshot() for pool in pools] == snapshots
        assert ledger.snapshot() == ledger_before

    def test_round_trip_loses_fees(self, router, ledger, pools, deadline):
        """Swapping out and back returns less than was put in."""
        weth_usdc, _, _ = pools
        out = router.swap(
            [{"from": WETH, "to": USDC, "pair": weth_usdc.address}],
            ONE_ETHER,
            0,
            BOB,
            deadline,
            sender=BOB,
        ).amount_out
        back = router.swap(
            [{"from": USDC, "to": WETH, "pair": weth_usdc.address}],
            out,
            0,
            BOB,
            deadline,
            sender=BOB,
        ).amount_out
        assert back < ONE_ETHER
