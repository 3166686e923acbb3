"""Stake record model."""
import json
from pydantic import BaseModel, ConfigDict, Field

U64_MAX = 2**64 - 1


class StakeRecord(BaseModel):
    """Ledger record owned by a single identity.

    ``total_points`` is fixed-point, scaled by ``POINTS_SCALE``.
    """
    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    staked_amount: int = Field(default=0, ge=0, le=U64_MAX)
    total_points: int = Field(default=0, ge=0, le=U64_MAX)
    last_updated_time: int = Field(default=0, ge=0, le=U64_MAX)

    def evolve(self, **changes) -> "StakeRecord":
        """Copy with ``changes`` applied, validated like a fresh record."""
        return StakeRecord.model_validate({**self.model_dump(), **changes})

    def to_json(self) -> str:
        """Serialize to the persisted layout."""
        return json.dumps(self.model_dump(), indent=2)

    @classmethod
    def from_json(cls, data: str) -> "StakeRecord":
        """Load a record from its persisted layout."""
        return cls(**json.loads(data))
