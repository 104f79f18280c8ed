from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas
from ...services import catalogue_service

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=list[schemas.Service])
def list_services(
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("staff", "manager")),
):
    return catalogue_service.list_services(db)


@router.post("", response_model=schemas.Service, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: schemas.ServiceCreate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    try:
        return catalogue_service.create_service(db, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.put("/{service_id}", response_model=schemas.Service)
def update_service(
    service_id: int,
    payload: schemas.ServiceUpdate,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    try:
        service = catalogue_service.get_service(db, service_id)
        return catalogue_service.update_service(db, service, payload)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    _: models.User = Depends(deps.require_roles("manager")),
):
    try:
        service = catalogue_service.get_service(db, service_id)
        catalogue_service.delete_service(db, service)
    except catalogue_service.CatalogueError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
