"""Pydantic models for swap routes."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from ammcore.models.types import Address


class PairType(int, Enum):
    """Invariant family of a pair."""

    VOLATILE = 1
    STABLE = 2


class Hop(BaseModel):
    """One leg of a route: swap from_token for to_token through pool.

    pair_type is the type the caller claims for the pool. It is optional; when
    given, routing refuses the hop unless the registry has the pool registered
    under that type.
    """

    from_token: Address = Field(alias="from")
    to_token: Address = Field(alias="to")
    pool: Address = Field(alias="pair")
    pair_type: PairType | None = Field(default=None, alias="pairType")

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="after")
    def _check_distinct_tokens(self) -> "Hop":
        if self.from_token == self.to_token:
            raise ValueError("Hop tokens must differ")
        return self


Route = list[Hop]

__all__ = ["PairType", "Hop", "Route"]
