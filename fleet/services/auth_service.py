import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleet.core.config import Settings
from fleet.core.security import create_access_token, hash_password, verify_password
from fleet.models.customer import Customer
from fleet.models.driver import Driver
from fleet.models.user import User
from fleet.schemas.user import UserCreate, UserUpdate
from fleet.services.audit_service import log_auth_event
from fleet.services.ledger_service import phone_variants


logger = logging.getLogger(__name__)


@dataclass
class AssociationSync:
    driver_id: Optional[int]
    customer_id: Optional[int]
    dirty: bool = False


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _find_by_phone(db: Session, model, phone: Optional[str]):
    variants = phone_variants(phone)
    if not variants:
        return None
    return (
        db.query(model)
        .filter(model.phone.in_(variants))
        .order_by(model.id.asc())
        .first()
    )


def sync_user_associations(db: Session, user: User) -> AssociationSync:
    """
    Link a driver/customer account to its master record by phone.

    Only unlinked accounts are looked up, so repeated logins of an already
    linked user never write.
    """
    result = AssociationSync(driver_id=user.driver_id, customer_id=user.customer_id)

    if user.role == "driver" and not user.driver_id:
        driver = _find_by_phone(db, Driver, user.phone)
        if driver:
            user.driver_id = driver.id
            result.driver_id = driver.id
            result.dirty = True

    if user.role == "customer" and not user.customer_id:
        customer = _find_by_phone(db, Customer, user.phone)
        if customer:
            user.customer_id = customer.id
            result.customer_id = customer.id
            result.dirty = True

    if result.dirty:
        db.commit()
        logger.info(
            "Linked user %s to driver=%s customer=%s",
            user.id,
            result.driver_id,
            result.customer_id,
        )

    return result


def register_user(db: Session, data: UserCreate) -> User:
    email = _normalize_email(data.email)
    existing = db.query(User).filter(func.lower(User.email) == email).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email in use")

    user = User(
        name=data.name.strip(),
        email=email,
        phone=(data.phone or "").strip() or None,
        hashed_password=hash_password(data.password),
        role=data.role,
        driver_id=data.driver_id,
        customer_id=data.customer_id,
    )

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email in use")
    db.refresh(user)

    log_auth_event(
        db=db,
        action="AUTH_REGISTER_SUCCESS",
        email=user.email,
        user_id=user.id,
        details=f"Role: {user.role}",
    )

    return user


def login_user(db: Session, email: str, password: str, settings: Settings) -> dict:
    email = _normalize_email(email)
    user = db.query(User).filter(func.lower(User.email) == email).first()

    if not user or not verify_password(password, user.hashed_password):
        log_auth_event(
            db=db,
            action="AUTH_LOGIN_FAILED",
            email=email,
            details="Invalid credentials",
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    links = sync_user_associations(db, user)

    access_token = create_access_token(
        data={
            "sub": str(user.id),
            "role": user.role,
            "driver_id": links.driver_id,
            "customer_id": links.customer_id,
        },
        settings=settings,
    )

    log_auth_event(
        db=db,
        action="AUTH_LOGIN_SUCCESS",
        email=user.email,
        user_id=user.id,
        details=f"Role: {user.role}",
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user,
    }


# =====================================================
# USER ADMINISTRATION
# =====================================================

def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def list_users(db: Session, page: int, limit: int) -> dict:
    query = db.query(User)
    total = query.count()
    users = (
        query
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {"users": users, "total": total}


def update_user(db: Session, user_id: int, updates: UserUpdate) -> User:
    user = get_user_or_404(db, user_id)
    values = updates.model_dump(exclude_unset=True)

    password = values.pop("password", None)
    if password:
        user.hashed_password = hash_password(password)

    if "email" in values:
        email = _normalize_email(values.pop("email"))
        clash = (
            db.query(User)
            .filter(func.lower(User.email) == email, User.id != user.id)
            .first()
        )
        if clash:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email in use")
        user.email = email

    for key, value in values.items():
        setattr(user, key, value)

    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int):
    user = get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
