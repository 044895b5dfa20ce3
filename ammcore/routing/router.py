"""Router and quoter.

The router is the single entry point callers use to trade and to manage
liquidity. It resolves pairs through the PairRegistry, dispatches to the
handler registered for each pair type, moves tokens through the injected
TokenLedger and enforces deadlines and caller-side slippage bounds.

Callers may list tokens in any order. Pools keep their tokens in canonical
(sorted) order, so amounts are mapped to the pool's order on the way in and
back to the caller's order on the way out.

Every mutating operation is atomic: the touched pools and the ledger are
snapshotted first and restored if anything fails.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

import structlog
from pydantic import ValidationError as HopValidationError

from ammcore.collaborators import Clock, SignatureVerifier, TokenLedger, system_clock
from ammcore.constants import ZERO_ADDRESS
from ammcore.errors import (
    AmountsLengthMismatch,
    DesiredAmountInvalid,
    Expired,
    InsufficientOutputAmount,
    InvalidPairType,
    InvalidRecipient,
    InvalidRoute,
    InvalidSignature,
    InvalidTokens,
    NotPair,
    SlippageError,
    TokenNotInPool,
    ValidationError,
)
from ammcore.models.route import Hop, PairType
from ammcore.models.types import derive_address, normalize_address
from ammcore.pools.base import Pool
from ammcore.pools.lp_token import MAX_ALLOWANCE
from ammcore.pools.registry import PairRegistry
from ammcore.routing.handlers.base import PairHandler
from ammcore.routing.handlers.stable import StableHandler
from ammcore.routing.registry import HandlerRegistry
from ammcore.routing.types import AddLiquidityQuote, AddLiquidityResult, HopResult, SwapResult

logger = structlog.get_logger()

# Errors a quote turns into an empty result instead of raising.
# Solver non-convergence and arithmetic faults propagate.
QUOTE_ERRORS = (ValidationError, SlippageError)


class Router:
    """Routes swaps and liquidity operations to registered pairs.

    Usage:
        router = Router(registry, ledger, verifier=verifier)
        router.add_liquidity(
            PairType.VOLATILE, [USDC, WETH], [a, b], [0, 0], 0, alice, deadline,
            sender=alice,
        )
        result = router.swap(route, amount_in, min_out, alice, deadline, sender=alice)
    """

    def __init__(
        self,
        registry: PairRegistry,
        ledger: TokenLedger,
        verifier: SignatureVerifier | None = None,
        clock: Clock = system_clock,
        handlers: HandlerRegistry | None = None,
        address: str | None = None,
    ) -> None:
        """Initialize the router.

        Args:
            registry: Pair lookup and creation
            ledger: Token balances used to move funds in and out of pools
            verifier: Permit signature checker, required for *_with_permit
            clock: Source of the current time for deadline checks
            handlers: Pair type handlers; volatile and stable by default
            address: The router's own address, used as the allowance spender
        """
        self._registry = registry
        self._ledger = ledger
        self._verifier = verifier
        self._clock = clock
        self._handlers = handlers if handlers is not None else HandlerRegistry.with_default_handlers()
        self.address = normalize_address(address) if address else derive_address("router")

    @property
    def registry(self) -> PairRegistry:
        return self._registry

    @property
    def handlers(self) -> HandlerRegistry:
        return self._handlers

    # =========================================================================
    # Lookups
    # =========================================================================

    def pair_for(self, tokens: Sequence[str], pair_type: PairType | int) -> tuple[str, bool]:
        """Address of the pair for tokens and pair_type, and whether it exists."""
        return self._registry.pair_for(tokens, pair_type)

    def get_reserves(self, pair_type: PairType | int, tokens: Sequence[str]) -> list[int]:
        """Reserves of the pair, in the order tokens are given.

        Raises:
            NotPair: If the pair has not been created
        """
        pool = self._existing_pool(tokens, pair_type)
        return self._caller_order(pool, tokens, pool.reserves)

    # =========================================================================
    # Quotes
    # =========================================================================

    def quote_add_liquidity(
        self,
        pair_type: PairType | int,
        tokens: Sequence[str],
        amounts_desired: Sequence[int],
    ) -> AddLiquidityQuote:
        """Preview a deposit: the amounts it would take and the shares it would mint.

        Use the result to set amounts_min and min_liquidity for add_liquidity.
        A pair that does not exist yet is quoted as zeros. An unknown pair
        type or a deposit the pool rejects yields (amounts_desired, 0).

        Raises:
            ConvergenceError: If the StableSwap solver does not converge
        """
        fallback = AddLiquidityQuote(amounts=list(amounts_desired), liquidity=0)
        handler = self._handlers.get_handler(pair_type)
        if handler is None or len(tokens) != len(amounts_desired):
            return fallback

        try:
            address, exists = self._registry.pair_for(tokens, pair_type)
            if not exists:
                return AddLiquidityQuote(amounts=[0] * len(tokens), liquidity=0)
            pool = self._resolve_pool(address, handler)
            amounts, liquidity = handler.quote_add_liquidity(
                pool, self._pool_order(pool, tokens, amounts_desired)
            )
            return AddLiquidityQuote(
                amounts=self._caller_order(pool, tokens, amounts), liquidity=liquidity
            )
        except QUOTE_ERRORS as e:
            self._log_quote_failure("quote_add_liquidity", e)
            return fallback

    def quote_remove_liquidity(
        self,
        pair_type: PairType | int,
        tokens: Sequence[str],
        liquidity: int,
    ) -> list[int]:
        """Preview a proportional withdrawal. Zeros if it would fail."""
        zeros = [0] * len(tokens)
        handler = self._handlers.get_handler(pair_type)
        if handler is None:
            return zeros
        try:
            address, exists = self._registry.pair_for(tokens, pair_type)
            if not exists:
                return zeros
            pool = self._resolve_pool(address, handler)
            amounts = handler.quote_remove_liquidity(pool, liquidity)
            return self._caller_order(pool, tokens, amounts)
        except QUOTE_ERRORS as e:
            self._log_quote_failure("quote_remove_liquidity", e)
            return zeros

    def quote_remove_liquidity_one_token(
        self,
        tokens: Sequence[str],
        liquidity: int,
        token: str,
    ) -> int:
        """Preview burning liquidity shares of a stable pair for one token. 0 if it would fail."""
        try:
            pool, handler = self._stable_pool(tokens)
            return handler.quote_remove_liquidity_one_token(pool, liquidity, pool.token_index(token))
        except QUOTE_ERRORS as e:
            self._log_quote_failure("quote_remove_liquidity_one_token", e)
            return 0

    def quote_remove_liquidity_imbalance(
        self,
        tokens: Sequence[str],
        amounts: Sequence[int],
    ) -> int:
        """Preview the shares burned to withdraw exact amounts from a stable pair. 0 if it would fail."""
        try:
            pool, handler = self._stable_pool(tokens)
            return handler.quote_remove_liquidity_imbalance(
                pool, self._pool_order(pool, tokens, amounts)
            )
        except QUOTE_ERRORS as e:
            self._log_quote_failure("quote_remove_liquidity_imbalance", e)
            return 0

    def get_amounts_out_path(
        self,
        amount_in: int,
        route: Sequence[Hop | Mapping[str, Any]],
    ) -> list[int]:
        """Amounts along a route: [amount_in, out_hop_0, ..., out_hop_n].

        Pure: each hop is priced against current state without executing.

        Raises:
            InvalidRoute / NotPair / TokenNotInPool: If the route is invalid
        """
        amounts = [amount_in]
        for hop, pool, handler in self._resolve_route(route):
            amounts.append(
                handler.get_amount_out(pool, hop.from_token, hop.to_token, amounts[-1])
            )
        return amounts

    def get_amounts_out(self, amount_in: int, route: Sequence[Hop | Mapping[str, Any]]) -> int:
        """Final output of a route for amount_in."""
        return self.get_amounts_out_path(amount_in, route)[-1]

    # =========================================================================
    # Liquidity
    # =========================================================================

    def add_liquidity(
        self,
        pair_type: PairType | int,
        tokens: Sequence[str],
        amounts_desired: Sequence[int],
        amounts_min: Sequence[int],
        min_liquidity: int,
        receiver: str,
        deadline: int,
        *,
        sender: str,
    ) -> AddLiquidityResult:
        """Deposit tokens and mint LP shares to receiver.

        Volatile pairs are created by their first deposit. Stable pairs must
        already exist.

        Raises:
            Expired / DeadlineNotMet: If the deadline has passed
            InvalidPairType: If pair_type has no handler
            DesiredAmountInvalid: If amounts_min[i] > amounts_desired[i]
            NotPair: If a stable pair does not exist
            MinLiquidityNotMet: If fewer than min_liquidity shares would be minted
            TransferFailed: If the tokens cannot be pulled from sender
        """
        handler = self._handler(pair_type)
        handler.check_deadline(deadline, self._clock())
        if len(tokens) != len(amounts_desired) or len(tokens) != len(amounts_min):
            raise AmountsLengthMismatch()
        for i, (desired, minimum) in enumerate(zip(amounts_desired, amounts_min, strict=True)):
            if minimum > desired:
                raise DesiredAmountInvalid.for_index(i)

        address, exists = self._registry.pair_for(tokens, pair_type)
        if exists:
            pool = self._resolve_pool(address, handler)
        elif handler.creates_pairs:
            pool = self._registry.create_pair(tokens, pair_type)
        else:
            raise NotPair()

        try:
            with self._atomic([pool]):
                desired_p = self._pool_order(pool, tokens, amounts_desired)
                min_p = self._pool_order(pool, tokens, amounts_min)
                amounts, liquidity = handler.add_liquidity(
                    pool, desired_p, min_p, min_liquidity, receiver
                )
                for token, amount in zip(pool.tokens, amounts, strict=True):
                    if amount > 0:
                        self._ledger.transfer_from(token, self.address, sender, pool.address, amount)
        except BaseException:
            if not exists:
                self._registry.discard_pair(pool.address)
            raise

        logger.info(
            "liquidity_added",
            pair=pool.address,
            pair_type=handler.pair_type.name,
            receiver=normalize_address(receiver),
            liquidity=liquidity,
        )
        return AddLiquidityResult(
            pool=pool.address,
            amounts=self._caller_order(pool, tokens, amounts),
            liquidity=liquidity,
        )

    def remove_liquidity(
        self,
        pair_type: PairType | int,
        tokens: Sequence[str],
        liquidity: int,
        amounts_min: Sequence[int],
        receiver: str,
        deadline: int,
        *,
        sender: str,
    ) -> list[int]:
        """Burn sender's LP shares for a pro-rata share of every token.

        The router spends its LP allowance from sender, so sender must have
        approved (or permitted) the router for at least liquidity shares.

        Raises:
            Expired / DeadlineNotMet: If the deadline has passed
            NotPair: If the pair does not exist
            TransferFailed: If the router's LP allowance is too small
            MinAmountsNotMet: If a payout is below amounts_min
        """
        handler = self._handler(pair_type)
        handler.check_deadline(deadline, self._clock())
        pool = self._existing_pool(tokens, pair_type, handler)
        return self._remove_liquidity(
            handler, pool, tokens, liquidity, amounts_min, receiver, sender
        )

    def remove_liquidity_with_permit(
        self,
        pair_type: PairType | int,
        tokens: Sequence[str],
        liquidity: int,
        amounts_min: Sequence[int],
        receiver: str,
        deadline: int,
        approve_max: bool,
        signature: bytes,
        *,
        sender: str,
    ) -> list[int]:
        """remove_liquidity, approving the router from a permit signature first.

        Raises:
            InvalidSignature: If the verifier rejects the signature
        """
        handler = self._handler(pair_type)
        now = self._clock()
        handler.check_deadline(deadline, now)
        pool = self._existing_pool(tokens, pair_type, handler)
        with self._atomic([pool]):
            self._permit(pool, sender, liquidity, deadline, approve_max, signature, now)
            return self._remove_liquidity(
                handler, pool, tokens, liquidity, amounts_min, receiver, sender
            )

    def remove_liquidity_one_token(
        self,
        tokens: Sequence[str],
        liquidity: int,
        token: str,
        min_amount: int,
        receiver: str,
        deadline: int,
        *,
        sender: str,
    ) -> int:
        """Burn sender's shares of a stable pair for a single token.

        Raises:
            DeadlineNotMet: If the deadline has passed
            NotPair: If the stable pair does not exist
            WithdrawExceedsAvailable: If liquidity exceeds the token's balance
            InsufficientOutputAmount: If the payout is below min_amount
        """
        handler = self._stable_handler()
        handler.check_deadline(deadline, self._clock())
        pool = self._existing_pool(tokens, PairType.STABLE, handler)
        return self._remove_one_token(
            handler, pool, liquidity, token, min_amount, receiver, sender
        )

    def remove_liquidity_one_token_with_permit(
        self,
        tokens: Sequence[str],
        liquidity: int,
        token: str,
        min_amount: int,
        receiver: str,
        deadline: int,
        approve_max: bool,
        signature: bytes,
        *,
        sender: str,
    ) -> int:
        handler = self._stable_handler()
        now = self._clock()
        handler.check_deadline(deadline, now)
        pool = self._existing_pool(tokens, PairType.STABLE, handler)
        with self._atomic([pool]):
            self._permit(pool, sender, liquidity, deadline, approve_max, signature, now)
            return self._remove_one_token(
                handler, pool, liquidity, token, min_amount, receiver, sender
            )

    def remove_liquidity_imbalance(
        self,
        tokens: Sequence[str],
        amounts: Sequence[int],
        max_burn_amount: int,
        receiver: str,
        deadline: int,
        *,
        sender: str,
    ) -> int:
        """Withdraw exact amounts from a stable pair, burning at most max_burn_amount shares.

        The router spends max_burn_amount of its LP allowance from sender.
        Only the shares actually burned leave sender's balance.

        Raises:
            DeadlineNotMet: If the deadline has passed
            NotPair: If the stable pair does not exist
            MaxBurnExceeded: If more than max_burn_amount shares would be burned
        """
        handler = self._stable_handler()
        handler.check_deadline(deadline, self._clock())
        pool = self._existing_pool(tokens, PairType.STABLE, handler)
        return self._remove_imbalance(
            handler, pool, tokens, amounts, max_burn_amount, receiver, sender
        )

    def remove_liquidity_imbalance_with_permit(
        self,
        tokens: Sequence[str],
        amounts: Sequence[int],
        max_burn_amount: int,
        receiver: str,
        deadline: int,
        approve_max: bool,
        signature: bytes,
        *,
        sender: str,
    ) -> int:
        handler = self._stable_handler()
        now = self._clock()
        handler.check_deadline(deadline, now)
        pool = self._existing_pool(tokens, PairType.STABLE, handler)
        with self._atomic([pool]):
            self._permit(pool, sender, max_burn_amount, deadline, approve_max, signature, now)
            return self._remove_imbalance(
                handler, pool, tokens, amounts, max_burn_amount, receiver, sender
            )

    # =========================================================================
    # Swaps
    # =========================================================================

    def swap(
        self,
        route: Sequence[Hop | Mapping[str, Any]],
        amount_in: int,
        amount_out_min: int,
        receiver: str,
        deadline: int,
        *,
        sender: str,
    ) -> SwapResult:
        """Swap an exact input along a route.

        The whole route is validated before anything moves: each hop's pair
        must be registered, registered under the type the hop claims, backed
        by the handler's pool class and hold both hop tokens, and consecutive
        hops must chain. Input is pulled from sender into the first pair,
        each hop's output is sent on to the next pair and the final output
        goes to receiver.

        Raises:
            Expired: If the deadline has passed
            InvalidRoute / NotPair / TokenNotInPool: If the route is invalid
            InvalidRecipient: If receiver is the zero address
            InsufficientOutputAmount: If the final output is below amount_out_min
            TransferFailed: If the input cannot be pulled from sender
        """
        if self._clock() > deadline:
            raise Expired()
        resolved = self._resolve_route(route)
        receiver = normalize_address(receiver)
        if receiver == ZERO_ADDRESS:
            raise InvalidRecipient()

        amounts = [amount_in]
        hops: list[HopResult] = []
        with self._atomic(pool for _, pool, _ in resolved):
            first_hop, first_pool, _ = resolved[0]
            self._ledger.transfer_from(
                first_hop.from_token, self.address, sender, first_pool.address, amount_in
            )
            for k, (hop, pool, handler) in enumerate(resolved):
                amount_out = handler.swap(pool, hop.from_token, hop.to_token, amounts[-1])
                hops.append(
                    HopResult(
                        pool=pool.address,
                        input_token=hop.from_token,
                        output_token=hop.to_token,
                        amount_in=amounts[-1],
                        amount_out=amount_out,
                    )
                )
                amounts.append(amount_out)
                if k + 1 < len(resolved):
                    self._ledger.transfer(
                        hop.to_token, pool.address, resolved[k + 1][1].address, amount_out
                    )

            if amounts[-1] < amount_out_min:
                raise InsufficientOutputAmount("Router: INSUFFICIENT_OUTPUT_AMOUNT")
            last_hop, last_pool, _ = resolved[-1]
            self._ledger.transfer(last_hop.to_token, last_pool.address, receiver, amounts[-1])

        logger.info(
            "swap_executed",
            hops=len(hops),
            amount_in=amount_in,
            amount_out=amounts[-1],
            receiver=receiver,
        )
        return SwapResult(amounts=amounts, hops=hops)

    # =========================================================================
    # Internals
    # =========================================================================

    def _handler(self, pair_type: PairType | int) -> PairHandler:
        handler = self._handlers.get_handler(pair_type)
        if handler is None:
            raise InvalidPairType("Router: invalid pair type")
        return handler

    def _stable_handler(self) -> StableHandler:
        handler = self._handler(PairType.STABLE)
        if not isinstance(handler, StableHandler):
            raise InvalidPairType("Router: invalid pair type")
        return handler

    def _resolve_pool(self, address: str, handler: PairHandler) -> Pool:
        pool = self._registry.get_pair(address)
        if pool is None:
            raise NotPair()
        handler.check_pool(pool)
        return pool

    def _existing_pool(
        self,
        tokens: Sequence[str],
        pair_type: PairType | int,
        handler: PairHandler | None = None,
    ) -> Pool:
        if handler is None:
            handler = self._handler(pair_type)
        address, exists = self._registry.pair_for(tokens, pair_type)
        if not exists:
            raise NotPair()
        return self._resolve_pool(address, handler)

    def _stable_pool(self, tokens: Sequence[str]) -> tuple[Pool, StableHandler]:
        handler = self._stable_handler()
        return self._existing_pool(tokens, PairType.STABLE, handler), handler

    def _resolve_route(
        self, route: Sequence[Hop | Mapping[str, Any]]
    ) -> list[tuple[Hop, Pool, PairHandler]]:
        """Validate every hop of a route and look up its pair and handler."""
        hops: list[Hop] = []
        for h in route:
            if isinstance(h, Hop):
                hops.append(h)
                continue
            try:
                hops.append(Hop.model_validate(h))
            except HopValidationError as e:
                raise InvalidRoute() from e
        if not hops:
            raise InvalidRoute()

        resolved: list[tuple[Hop, Pool, PairHandler]] = []
        for k, hop in enumerate(hops):
            if k > 0 and hops[k - 1].to_token != hop.from_token:
                raise InvalidRoute()
            pool = self._registry.get_pair(hop.pool)
            registered = self._registry.pair_type_of(hop.pool)
            if pool is None or registered is None:
                raise NotPair()
            if hop.pair_type is not None and hop.pair_type != registered:
                logger.warning(
                    "route_pair_type_mismatch",
                    hop=k,
                    pair=hop.pool,
                    claimed=hop.pair_type.name,
                    registered=registered.name,
                )
                raise InvalidRoute(f"is not {hop.pair_type.name.lower()} pair")
            handler = self._handler(registered)
            handler.check_pool(pool)
            if not pool.has_tokens(hop.from_token, hop.to_token):
                raise TokenNotInPool()
            resolved.append((hop, pool, handler))
        return resolved

    def _pool_order(self, pool: Pool, tokens: Sequence[str], values: Sequence[int]) -> list[int]:
        """Map values given per caller token to the pool's token order."""
        if len(tokens) != pool.n_tokens or len(values) != len(tokens):
            raise AmountsLengthMismatch()
        ordered = [0] * pool.n_tokens
        seen: set[int] = set()
        for token, value in zip(tokens, values, strict=True):
            index = pool.token_index(token)
            if index in seen:
                raise InvalidTokens("Duplicate tokens")
            seen.add(index)
            ordered[index] = value
        return ordered

    def _caller_order(self, pool: Pool, tokens: Sequence[str], values: Sequence[int]) -> list[int]:
        """Map values in the pool's token order back to the caller's order."""
        return [values[pool.token_index(token)] for token in tokens]

    @contextmanager
    def _atomic(self, pools: Iterable[Pool]) -> Iterator[None]:
        """Restore the given pools and the ledger if the block raises."""
        unique = list({pool.address: pool for pool in pools}.values())
        pool_states = [(pool, pool.snapshot()) for pool in unique]
        ledger_state = self._ledger.snapshot()
        try:
            yield
        except BaseException:
            for pool, state in pool_states:
                pool.restore(state)
            self._ledger.restore(ledger_state)
            logger.debug("router_operation_reverted", pairs=[p.address for p in unique])
            raise

    def _permit(
        self,
        pool: Pool,
        owner: str,
        value: int,
        deadline: int,
        approve_max: bool,
        signature: bytes,
        now: int,
    ) -> None:
        if self._verifier is None:
            raise InvalidSignature("No signature verifier configured")
        pool.lp_token.permit(
            owner,
            self.address,
            MAX_ALLOWANCE if approve_max else value,
            deadline,
            signature,
            verifier=self._verifier,
            now=now,
        )

    def _remove_liquidity(
        self,
        handler: PairHandler,
        pool: Pool,
        tokens: Sequence[str],
        liquidity: int,
        amounts_min: Sequence[int],
        receiver: str,
        sender: str,
    ) -> list[int]:
        with self._atomic([pool]):
            min_p = self._pool_order(pool, tokens, amounts_min)
            pool.lp_token.spend_allowance(sender, self.address, liquidity)
            amounts = handler.remove_liquidity(pool, liquidity, min_p, sender)
            self._pay_out(pool, amounts, receiver)

        logger.info(
            "liquidity_removed",
            pair=pool.address,
            owner=normalize_address(sender),
            liquidity=liquidity,
        )
        return self._caller_order(pool, tokens, amounts)

    def _remove_one_token(
        self,
        handler: StableHandler,
        pool: Pool,
        liquidity: int,
        token: str,
        min_amount: int,
        receiver: str,
        sender: str,
    ) -> int:
        with self._atomic([pool]):
            index = pool.token_index(token)
            pool.lp_token.spend_allowance(sender, self.address, liquidity)
            amount = handler.remove_liquidity_one_token(pool, liquidity, index, min_amount, sender)
            self._ledger.transfer(pool.tokens[index], pool.address, receiver, amount)

        logger.info(
            "liquidity_removed_one_token",
            pair=pool.address,
            owner=normalize_address(sender),
            token=pool.tokens[index],
            liquidity=liquidity,
            amount=amount,
        )
        return amount

    def _remove_imbalance(
        self,
        handler: StableHandler,
        pool: Pool,
        tokens: Sequence[str],
        amounts: Sequence[int],
        max_burn_amount: int,
        receiver: str,
        sender: str,
    ) -> int:
        with self._atomic([pool]):
            amounts_p = self._pool_order(pool, tokens, amounts)
            pool.lp_token.spend_allowance(sender, self.address, max_burn_amount)
            burned = handler.remove_liquidity_imbalance(pool, amounts_p, max_burn_amount, sender)
            self._pay_out(pool, amounts_p, receiver)

        logger.info(
            "liquidity_removed_imbalance",
            pair=pool.address,
            owner=normalize_address(sender),
            burned=burned,
        )
        return burned

    def _pay_out(self, pool: Pool, amounts: Sequence[int], receiver: str) -> None:
        for token, amount in zip(pool.tokens, amounts, strict=True):
            if amount > 0:
                self._ledger.transfer(token, pool.address, receiver, amount)

    def _log_quote_failure(self, operation: str, error: ValidationError | SlippageError) -> None:
        logger.debug("quote_failed", operation=operation, reason=error.reason)


__all__ = ["QUOTE_ERRORS", "Router"]
