import logging

from databases import Database
from fastapi import APIRouter, Depends

from . import crud, generator
from .auth import require_user
from .deps import get_db
from .exceptions import APIError, store_error
from .schemas import GenerateDataRequest, MetricRecordCreate, ModifyDataRequest, ScenarioRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_user)])


@router.post("/add-record")
async def add_record(payload: MetricRecordCreate, db: Database = Depends(get_db)):
    try:
        record = await crud.add_metric_record(db, payload.model_dump())
    except APIError:
        raise
    except Exception as exc:
        raise store_error("Failed to add sales record", exc) from exc
    return {"status": "success", "message": "Sales record added successfully", "data": record}


@router.post("/generate-data")
async def generate_data(payload: GenerateDataRequest = GenerateDataRequest(), db: Database = Depends(get_db)):
    multiplier = generator.scenario_multiplier(payload.scenario)
    try:
        await crud.regenerate_metrics(db, payload.records, payload.scenario)
    except Exception as exc:
        raise store_error("Failed to generate test data", exc) from exc
    logger.info("Generated %s records with %s scenario", payload.records, payload.scenario)
    return {
        "status": "success",
        "message": f"Generated {payload.records} records with {payload.scenario} scenario",
        "data": {"records": payload.records, "scenario": payload.scenario, "multiplier": multiplier},
    }


@router.get("/scenarios")
async def list_scenarios():
    return {
        "status": "success",
        "data": [
            {"name": name, "description": scenario["description"]}
            for name, scenario in generator.SCENARIOS.items()
        ],
    }


@router.post("/apply-scenario")
async def apply_scenario(payload: ScenarioRequest, db: Database = Depends(get_db)):
    try:
        result = await crud.apply_scenario(db, payload.scenario)
    except APIError:
        raise
    except Exception as exc:
        raise store_error("Failed to apply scenario", exc) from exc
    return {"status": "success", "message": f"Applied scenario: {result['description']}", "data": result}


@router.post("/reset-data")
async def reset_data(db: Database = Depends(get_db)):
    try:
        records = await crud.reset_metrics(db)
    except Exception as exc:
        raise store_error("Failed to reset data", exc) from exc
    return {"status": "success", "message": "Data reset to default sample data", "data": {"records": records}}


@router.post("/modify-data")
async def modify_data(payload: ModifyDataRequest = ModifyDataRequest(), db: Database = Depends(get_db)):
    multipliers = {"revenue": payload.revenueMultiplier, "profit": payload.profitMultiplier}
    try:
        affected = await crud.scale_metrics(db, multipliers, payload.category, payload.region)
    except Exception as exc:
        raise store_error("Failed to modify data", exc) from exc
    return {
        "status": "success",
        "message": f"Data modified with multipliers: Revenue ×{payload.revenueMultiplier}, Profit ×{payload.profitMultiplier}",
        "data": {
            "revenueMultiplier": payload.revenueMultiplier,
            "profitMultiplier": payload.profitMultiplier,
            "category": payload.category or "all",
            "region": payload.region or "all",
            "affectedRows": affected,
        },
    }
