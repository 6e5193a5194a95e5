from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleet.db.base import Base


def _commit_or_conflict(db: Session, label: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"{label} already exists")


def get_or_404(db: Session, model: type[Base], entity_id: int, label: str):
    entity = db.get(model, entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return entity


def create_entity(db: Session, model: type[Base], data: BaseModel, label: str):
    entity = model(**data.model_dump())
    db.add(entity)
    _commit_or_conflict(db, label)
    db.refresh(entity)
    return entity


def list_entities(db: Session, model: type[Base], order_by=None):
    return db.query(model).order_by(order_by if order_by is not None else model.id.asc()).all()


def update_entity(db: Session, model: type[Base], entity_id: int, updates: BaseModel, label: str):
    entity = get_or_404(db, model, entity_id, label)
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(entity, key, value)
    _commit_or_conflict(db, label)
    db.refresh(entity)
    return entity


def delete_entity(db: Session, model: type[Base], entity_id: int, label: str):
    entity = get_or_404(db, model, entity_id, label)
    db.delete(entity)
    db.commit()
