"""AMM engine: constant-product and StableSwap pools with a router/quoter."""

from ammcore.collaborators import InMemoryLedger, SignatureVerifier, TokenLedger
from ammcore.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ammcore.models import Hop, PairType
from ammcore.pools import ConstantProductPool, PairRegistry, StableSwapPool
from ammcore.routing import Router

__version__ = "0.1.0"
__all__ = [
    "ConstantProductPool",
    "DEFAULT_ENGINE_CONFIG",
    "EngineConfig",
    "Hop",
    "InMemoryLedger",
    "PairRegistry",
    "PairType",
    "Router",
    "SignatureVerifier",
    "StableSwapPool",
    "TokenLedger",
    "__version__",
]
