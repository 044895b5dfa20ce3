"""Pair type handlers."""

from ammcore.routing.handlers.base import BaseHandler, PairHandler
from ammcore.routing.handlers.stable import StableHandler
from ammcore.routing.handlers.volatile import VolatileHandler

__all__ = ["BaseHandler", "PairHandler", "StableHandler", "VolatileHandler"]
