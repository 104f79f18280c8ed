from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from ...db.session import get_db
from ...db import schemas
from ...db.schemas.booking import HOUR_PATTERN
from ...services import availability_service, catalogue_service, pricing_service

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=list[schemas.CourtAvailability])
def get_availability(
    date_: date | None = Query(default=None, alias="date"),
    start_time: str | None = Query(default=None, pattern=HOUR_PATTERN),
    end_time: str | None = Query(default=None, pattern=HOUR_PATTERN),
    db: Session = Depends(get_db),
):
    if date_ is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Thiếu ngày kiểm tra")
    try:
        return availability_service.check_availability(db, date_, start_time, end_time)
    except availability_service.AvailabilityError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/courts/{san_id}", response_model=schemas.CourtDaySlots)
def get_court_slots(
    san_id: int,
    date_: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
):
    if date_ is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Thiếu ngày kiểm tra")
    try:
        court = catalogue_service.get_court(db, san_id)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return availability_service.court_day_slots(db, court, date_)


@router.post("/calculate-price", response_model=schemas.PriceCalculation)
def calculate_price(payload: schemas.PriceCalculationRequest, db: Session = Depends(get_db)):
    try:
        breakdown = pricing_service.calculate(db, payload)
    except pricing_service.PricingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return breakdown.as_response()
