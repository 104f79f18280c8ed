from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import catalogue_service

router = APIRouter(prefix="/courts", tags=["courts"])


@router.get("", response_model=list[schemas.Court])
def list_courts(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("staff", "manager")),
):
    return catalogue_service.list_courts(db)


@router.get("/{court_id}", response_model=schemas.Court)
def get_court(
    court_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("staff", "manager")),
):
    try:
        return catalogue_service.get_court(db, court_id)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("", response_model=schemas.Court, status_code=status.HTTP_201_CREATED)
def create_court(
    payload: schemas.CourtCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    try:
        return catalogue_service.create_court(db, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.put("/{court_id}", response_model=schemas.Court)
def update_court(
    court_id: int,
    payload: schemas.CourtUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    try:
        court = catalogue_service.get_court(db, court_id)
        return catalogue_service.update_court(db, court, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.delete("/{court_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_court(
    court_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    try:
        court = catalogue_service.get_court(db, court_id)
        catalogue_service.delete_court(db, court)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
