"""Amplification coefficient with linear ramping.

A moves linearly from initial_a at initial_a_time to future_a at
future_a_time. Values are stored in A_PRECISION units.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ammcore.constants import A_PRECISION, MAX_A, MAX_A_CHANGE, MIN_RAMP_TIME, RAMP_COOLDOWN
from ammcore.errors import InvalidAmplification

logger = structlog.get_logger()


@dataclass
class Amplification:
    """Ramp schedule for the amplification coefficient."""

    initial_a: int
    future_a: int
    initial_a_time: int = 0
    future_a_time: int = 0

    @classmethod
    def constant(cls, a: int) -> Amplification:
        """Fixed amplification from a raw A value."""
        if not 0 < a < MAX_A:
            raise InvalidAmplification("_a exceeds maximum")
        precise = a * A_PRECISION
        return cls(initial_a=precise, future_a=precise)

    def get_a_precise(self, now: int) -> int:
        """Current A in A_PRECISION units."""
        t1, a1 = self.future_a_time, self.future_a
        if now >= t1:
            return a1
        t0, a0 = self.initial_a_time, self.initial_a
        if a1 > a0:
            return a0 + (a1 - a0) * (now - t0) // (t1 - t0)
        return a0 - (a0 - a1) * (now - t0) // (t1 - t0)

    def get_a(self, now: int) -> int:
        """Current raw A."""
        return self.get_a_precise(now) // A_PRECISION

    def ramp(self, future_a: int, future_time: int, now: int) -> None:
        """Start ramping towards raw future_a, reached at future_time.

        Raises:
            InvalidAmplification: If the ramp starts too soon after the last
                one, is too short, or changes A by more than MAX_A_CHANGE
        """
        if now < self.initial_a_time + RAMP_COOLDOWN:
            raise InvalidAmplification("Wait 1 day before starting ramp")
        if future_time < now + MIN_RAMP_TIME:
            raise InvalidAmplification("Insufficient ramp time")
        if not 0 < future_a < MAX_A:
            raise InvalidAmplification()

        initial_precise = self.get_a_precise(now)
        future_precise = future_a * A_PRECISION
        if future_precise < initial_precise:
            if future_precise * MAX_A_CHANGE < initial_precise:
                raise InvalidAmplification("futureA_ is too small")
        elif future_precise > initial_precise * MAX_A_CHANGE:
            raise InvalidAmplification("futureA_ is too large")

        self.initial_a = initial_precise
        self.future_a = future_precise
        self.initial_a_time = now
        self.future_a_time = future_time
        logger.debug(
            "amplification_ramp_started",
            initial_a=initial_precise,
            future_a=future_precise,
            start=now,
            end=future_time,
        )

    def stop(self, now: int) -> None:
        """Freeze A at its current value.

        Raises:
            InvalidAmplification: If no ramp is in progress
        """
        if self.future_a_time <= now:
            raise InvalidAmplification("Ramp is already stopped")
        current = self.get_a_precise(now)
        self.initial_a = current
        self.future_a = current
        self.initial_a_time = now
        self.future_a_time = now
        logger.debug("amplification_ramp_stopped", a=current, time=now)


__all__ = ["Amplification"]
