from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import catalogue_service

router = APIRouter(tags=["time-frames"])

manager_only = deps.require_roles("manager")


@router.get("/time-frames", response_model=list[schemas.TimeFrame])
def list_time_frames(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("staff", "manager")),
):
    return catalogue_service.list_time_frames(db)


@router.post("/time-frames", response_model=schemas.TimeFrame, status_code=status.HTTP_201_CREATED)
def create_time_frame(
    payload: schemas.TimeFrameCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(manager_only),
):
    try:
        return catalogue_service.create_time_frame(db, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.put("/time-frames/{frame_id}", response_model=schemas.TimeFrame)
def update_time_frame(
    frame_id: int,
    payload: schemas.TimeFrameUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(manager_only),
):
    try:
        frame = catalogue_service.get_time_frame(db, frame_id)
        return catalogue_service.update_time_frame(db, frame, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.delete("/time-frames/{frame_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_time_frame(
    frame_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(manager_only),
):
    try:
        frame = catalogue_service.get_time_frame(db, frame_id)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    catalogue_service.delete_time_frame(db, frame)


@router.post("/shifts", response_model=schemas.Shift, status_code=status.HTTP_201_CREATED)
def create_shift(
    payload: schemas.ShiftCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(manager_only),
):
    try:
        return catalogue_service.create_shift(db, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.put("/shifts/{shift_id}", response_model=schemas.Shift)
def update_shift(
    shift_id: int,
    payload: schemas.ShiftUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(manager_only),
):
    try:
        shift = catalogue_service.get_shift(db, shift_id)
        return catalogue_service.update_shift(db, shift, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.delete("/shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shift(
    shift_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(manager_only),
):
    try:
        shift = catalogue_service.get_shift(db, shift_id)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    catalogue_service.delete_shift(db, shift)
