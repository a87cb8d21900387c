from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator
from typing import List
import logging
import sys
import time

import settings
from cut_selection import CutStrategy
from models import CostModel, CutPlanEntry, CuttingPlan, DemandItem, StockLot
from ordering import StockOrder
from solver import optimize_cutting

# Configure logging to stdout so we can see it in the terminal
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Rebar Cutting Planner", docs_url="/api/docs", openapi_url="/api/openapi.json")

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _check_records(records, kind: str):
    for record in records:
        if record.length <= 0:
            raise ValueError(f"{kind} length must be positive, got {record.length}")
        if record.quantity < 0:
            raise ValueError(f"{kind} quantity must not be negative, got {record.quantity}")
    return records


class SolveRequest(BaseModel):
    stock: List[StockLot] = Field(default_factory=list, description="Available stock bars")
    demand: List[DemandItem] = Field(default_factory=list, description="Pieces to cut")
    stock_order: StockOrder = Field(default=StockOrder(settings.DEFAULT_STOCK_ORDER))
    strategy: CutStrategy = Field(default=CutStrategy(settings.DEFAULT_STRATEGY))
    cost_model: CostModel = Field(default_factory=CostModel)

    @field_validator('stock')
    @classmethod
    def validate_stock(cls, v):
        return _check_records(v, "Stock")

    @field_validator('demand')
    @classmethod
    def validate_demand(cls, v):
        return _check_records(v, "Piece")


class SolveResponse(BaseModel):
    entries: List[CutPlanEntry]
    leftover: List[int]
    cut_count: int
    weld_count: int
    unmet_demand: List[DemandItem]
    total_waste: int
    total_cost: float
    elapsed_seconds: float


def summarize_plan(plan: CuttingPlan, cost_model: CostModel, elapsed: float) -> SolveResponse:
    """
    Turn an engine plan into the response shown to the client.

    Waste and cost are display figures only; the engine never uses them.
    """
    total_waste = sum(entry.source_length - sum(entry.cuts) for entry in plan.entries) - sum(plan.leftover)
    total_cost = total_waste * cost_model.alpha + plan.weld_count * cost_model.beta

    return SolveResponse(
        entries=plan.entries,
        leftover=plan.leftover,
        cut_count=plan.cut_count,
        weld_count=plan.weld_count,
        unmet_demand=plan.unmet_demand,
        total_waste=total_waste,
        total_cost=round(total_cost, 2),
        elapsed_seconds=round(elapsed, 3),
    )


@app.get("/")
async def root():
    return {"message": "Rebar Cutting Planner API"}


@app.get("/api")
async def api_root():
    return {"message": "Rebar Cutting Planner API"}


@app.post("/api/solve", response_model=SolveResponse)
def solve(request: SolveRequest):
    """
    Plan the cuts for the posted stock and demand.
    """
    try:
        logger.info("📥 Received solve request")
        start_time = time.time()
        plan = optimize_cutting(
            request.stock,
            request.demand,
            stock_order=request.stock_order,
            strategy=request.strategy,
            cost_model=request.cost_model,
        )
        result = summarize_plan(plan, request.cost_model, time.time() - start_time)
        logger.info("📤 Sending response to client")
        return result
    except ValueError as e:
        logger.error(f"❌ Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"❌ Unexpected error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error planning cuts: {str(e)}")
