"""Engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from ammcore.constants import MAX_LOOP_LIMIT, MAX_POOLED_TOKENS


@dataclass(frozen=True)
class EngineConfig:
    """Centralized defaults for pool creation and solver limits.

    Pools created through the registry take their fee rates and
    amplification from here unless the caller overrides them.

    Attributes:
        default_swap_fee_rate: Swap fee for new pairs, scaled by 1e10 (default: 0.3%)
        default_admin_fee_rate: Share of the swap fee kept by the protocol,
            scaled by 1e10 (default: 50%)
        default_amplification: Raw A for new stable pairs (default: 10,000)
        max_iterations: Newton iteration cap for the D and y solvers
        max_pooled_tokens: Largest token count a stable pair accepts
    """

    default_swap_fee_rate: int = 3 * 10**7
    default_admin_fee_rate: int = 5 * 10**9
    default_amplification: int = 10_000
    max_iterations: int = MAX_LOOP_LIMIT
    max_pooled_tokens: int = MAX_POOLED_TOKENS

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from AMM_* environment variables with defaults."""
        default = cls()
        return cls(
            default_swap_fee_rate=int(
                os.environ.get("AMM_SWAP_FEE_RATE", str(default.default_swap_fee_rate))
            ),
            default_admin_fee_rate=int(
                os.environ.get("AMM_ADMIN_FEE_RATE", str(default.default_admin_fee_rate))
            ),
            default_amplification=int(
                os.environ.get("AMM_AMPLIFICATION", str(default.default_amplification))
            ),
            max_iterations=int(os.environ.get("AMM_MAX_ITERATIONS", str(default.max_iterations))),
        )


# Default configuration instance
DEFAULT_ENGINE_CONFIG = EngineConfig()
