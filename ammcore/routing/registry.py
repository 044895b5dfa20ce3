"""Registry mapping pair types to their router handlers.

The router never branches on pool classes. It looks up the handler for the
pair type a pool is registered under, and the handler checks that the pool
really is of the class it expects before touching it.
"""

from __future__ import annotations

import structlog

from ammcore.errors import InvalidPairType
from ammcore.models.route import PairType
from ammcore.routing.handlers.base import PairHandler
from ammcore.routing.handlers.stable import StableHandler
from ammcore.routing.handlers.volatile import VolatileHandler

logger = structlog.get_logger()


class HandlerRegistry:
    """Registry for pair-type-specific router handlers.

    Usage:
        registry = HandlerRegistry.with_default_handlers()
        handler = registry.get_handler(PairType.STABLE)
    """

    def __init__(self) -> None:
        """Initialize an empty handler registry."""
        self._handlers: dict[PairType, PairHandler] = {}

    @classmethod
    def with_default_handlers(cls) -> HandlerRegistry:
        registry = cls()
        registry.register(VolatileHandler())
        registry.register(StableHandler())
        return registry

    def register(self, handler: PairHandler) -> None:
        """Register (or replace) the handler for handler.pair_type."""
        self._handlers[handler.pair_type] = handler
        logger.debug("pair_handler_registered", pair_type=handler.pair_type.name)

    def unregister(self, pair_type: PairType) -> None:
        if self._handlers.pop(pair_type, None) is None:
            raise InvalidPairType("Router: invalid pair type")

    def get_handler(self, pair_type: PairType | int) -> PairHandler | None:
        """Handler for pair_type, or None if none is registered."""
        try:
            return self._handlers.get(PairType(pair_type))
        except ValueError:
            return None

    def is_registered(self, pair_type: PairType | int) -> bool:
        return self.get_handler(pair_type) is not None

    def __len__(self) -> int:
        return len(self._handlers)


__all__ = ["HandlerRegistry"]
