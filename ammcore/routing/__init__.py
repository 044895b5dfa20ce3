"""Routing: the router/quoter and its pair type handlers."""

from ammcore.routing.handlers import BaseHandler, PairHandler, StableHandler, VolatileHandler
from ammcore.routing.registry import HandlerRegistry
from ammcore.routing.router import Router
from ammcore.routing.types import AddLiquidityQuote, AddLiquidityResult, HopResult, SwapResult

__all__ = [
    "AddLiquidityQuote",
    "AddLiquidityResult",
    "BaseHandler",
    "HandlerRegistry",
    "HopResult",
    "PairHandler",
    "Router",
    "StableHandler",
    "SwapResult",
    "VolatileHandler",
]
