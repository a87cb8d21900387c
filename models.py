from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List

import settings


class StockLot(BaseModel):
    length: int = Field(..., description="Length of one stock bar in mm")
    quantity: int = Field(default=1, description="Number of bars of this length")


class DemandItem(BaseModel):
    length: int = Field(..., description="Required piece length in mm")
    quantity: int = Field(default=1, description="Number of pieces still needed")


class CostModel(BaseModel):
    alpha: float = Field(default=settings.COST_ALPHA, gt=0, description="Cost per mm of scrap")
    beta: float = Field(default=settings.COST_BETA, ge=0, description="Cost per weld")
    gamma: int = Field(default=settings.COST_GAMMA, ge=0, description="Minimum reusable leftover length in mm")
    delta: int = Field(default=settings.COST_DELTA, ge=0, description="Minimum segment length in a weld in mm")

    @property
    def weld_penalty(self) -> float:
        """One weld expressed in mm of scrap."""
        return self.beta / self.alpha


class WeldJoin(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_length: int
    segment_length: int

    @computed_field
    @property
    def complement_length(self) -> int:
        return self.target_length - self.segment_length


class CutPlanEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_length: int
    cuts: List[int]
    leftover: int
    from_leftover: bool = False
    welds: List[WeldJoin] = Field(default_factory=list)


class CutSelection(BaseModel):
    """What a selector decided to cut from one source."""
    cuts: List[int] = Field(default_factory=list)
    welds: List[WeldJoin] = Field(default_factory=list)

    @property
    def used(self) -> int:
        return sum(self.cuts)

    def __bool__(self) -> bool:
        return bool(self.cuts)


class CuttingPlan(BaseModel):
    entries: List[CutPlanEntry] = Field(default_factory=list)
    leftover: List[int] = Field(default_factory=list)
    cut_count: int = 0
    weld_count: int = 0
    unmet_demand: List[DemandItem] = Field(default_factory=list)
    stock_consumed: int = 0

    @property
    def is_complete(self) -> bool:
        return not self.unmet_demand
