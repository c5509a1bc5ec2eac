from fastapi import APIRouter, HTTPException, Depends
from datetime import date
from typing import List, Literal, Optional
from pydantic import BaseModel
from app.models.rebate import CalculationInputs, QuoteCalculationResult, RebateProgram
from app.services.quote_service import calculate_solar_quote
from app.services.quote_settings_service import QuoteSettingsService, get_quote_settings_service
from app.services.rebate_catalog import get_catalog
from app.services.validators import InputValidator, ValidationError, ensure_valid_quote_inputs

router = APIRouter()


class ZoneRatingResponse(BaseModel):
    postcode: str
    zone_rating: float
    state: str


def _require_postcode(postcode: str) -> None:
    is_valid, error = InputValidator.validate_postcode(postcode)
    if not is_valid:
        raise HTTPException(status_code=400, detail=error)


@router.post("/rebates/quote", response_model=QuoteCalculationResult)
async def create_quote(
    request: CalculationInputs,
    settings_service: QuoteSettingsService = Depends(get_quote_settings_service)
):
    """
    Estimate system size, cost and rebates for a homeowner.

    Args:
        postcode: 4-digit Australian postcode
        state: Optional state code; inferred from the postcode when omitted
        monthly_kwh / bill_amount: Energy usage (800 kWh/month assumed if neither)
        battery_included: Whether battery storage is part of the quote

    Returns:
        Quote with total cost, rebate breakdown, disclaimers and final price.
        Live pricing falls back to defaults if the settings store is down.
    """
    try:
        ensure_valid_quote_inputs(
            postcode=request.postcode,
            state=request.state,
            budget_range=request.budget_range,
            roof_type=request.roof_type,
            monthly_kwh=request.monthly_kwh,
            bill_amount=request.bill_amount,
            system_size_kw=request.system_size_kw,
            installation_year=request.installation_year
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await calculate_solar_quote(request, settings_service=settings_service)


@router.get("/rebates/programs", response_model=List[RebateProgram])
async def list_rebate_programs(
    jurisdiction: Optional[Literal["federal", "state"]] = None,
    state: Optional[str] = None
):
    """List catalog programs, optionally filtered by jurisdiction and state."""
    if state:
        is_valid, error = InputValidator.validate_state_code(state)
        if not is_valid:
            raise HTTPException(status_code=400, detail=error)
    return get_catalog().list_programs(jurisdiction=jurisdiction, state=state)


@router.get("/rebates/programs/available/{postcode}", response_model=List[RebateProgram])
async def list_available_programs(postcode: str):
    """Federal and state programs open today for a postcode."""
    _require_postcode(postcode)
    return get_catalog().get_available_programs(postcode, date.today())


@router.get("/rebates/zone-rating/{postcode}", response_model=ZoneRatingResponse)
async def get_zone_rating(postcode: str):
    """STC zone rating and inferred state for a postcode."""
    _require_postcode(postcode)
    catalog = get_catalog()
    return ZoneRatingResponse(
        postcode=postcode,
        zone_rating=catalog.lookup_zone_rating(postcode),
        state=catalog.infer_state_from_postcode(postcode)
    )
