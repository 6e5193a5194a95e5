from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleet.core.config import Settings
from fleet.core.dependencies import get_current_user, get_db, get_settings
from fleet.schemas.user import TokenResponse, UserCreate, UserLogin, UserResponse
from fleet.services.auth_service import login_user, register_user


router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: Session = Depends(get_db)):
    return register_user(db, user)


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return login_user(db, credentials.email, credentials.password, settings)


@router.get("/me", response_model=UserResponse)
def me(user=Depends(get_current_user)):
    return user
