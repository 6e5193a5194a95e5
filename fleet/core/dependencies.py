from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from fleet.core.config import Settings
from fleet.models.user import User, USER_ROLES


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str = "Invalid authentication") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid authentication token")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        raise _unauthorized("Invalid token payload")

    user = db.get(User, int(subject))
    if user is None:
        raise _unauthorized("User not found")

    return user


def require_role(required_roles: list[str]):
    allowed_roles = {role.strip().lower() for role in required_roles if role and role.strip()}
    unknown = allowed_roles - set(USER_ROLES)
    if unknown:
        raise ValueError(f"Unknown roles: {sorted(unknown)}")

    def role_checker(user: User = Depends(get_current_user)) -> User:
        user_role = (user.role or "").lower()

        if not user_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User role not assigned",
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )

        return user

    return role_checker
