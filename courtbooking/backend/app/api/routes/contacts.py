from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from ...api import deps
from ...db.session import get_db
from ...db import models, schemas

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _own_contact(db: Session, contact_id: int, user: models.User) -> models.Contact:
    contact = db.get(models.Contact, contact_id)
    if not contact or contact.user_id != user.id:
        raise HTTPException(status_code=404, detail="Không tìm thấy liên hệ")
    return contact


def _clear_default(db: Session, user: models.User, keep_id: int | None = None) -> None:
    query = db.query(models.Contact).filter(
        models.Contact.user_id == user.id, models.Contact.is_default.is_(True)
    )
    if keep_id is not None:
        query = query.filter(models.Contact.id != keep_id)
    for contact in query.all():
        contact.is_default = False


@router.get("", response_model=list[schemas.Contact])
def list_contacts(db: Session = Depends(get_db), user: models.User = Depends(deps.get_current_user)):
    return (
        db.query(models.Contact)
        .filter(models.Contact.user_id == user.id)
        .order_by(models.Contact.is_default.desc(), models.Contact.id)
        .all()
    )


@router.post("", response_model=schemas.Contact, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: schemas.ContactCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    if payload.is_default:
        _clear_default(db, user)
    contact = models.Contact(user_id=user.id, **payload.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


@router.put("/{contact_id}", response_model=schemas.Contact)
def update_contact(
    contact_id: int,
    payload: schemas.ContactUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    contact = _own_contact(db, contact_id, user)
    data = payload.model_dump(exclude_unset=True)
    if data.get("is_default"):
        _clear_default(db, user, keep_id=contact.id)
    for field, value in data.items():
        setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(deps.get_current_user),
):
    contact = _own_contact(db, contact_id, user)
    db.delete(contact)
    db.commit()
