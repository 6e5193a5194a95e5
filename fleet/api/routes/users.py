from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from fleet.core.dependencies import get_db, require_role
from fleet.schemas.user import UserListResponse, UserResponse, UserUpdate
from fleet.services.audit_service import log_action
from fleet.services.auth_service import delete_user, get_user_or_404, list_users, update_user


router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    return list_users(db, page, limit)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    return get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
def edit_user(
    user_id: int,
    updates: UserUpdate,
    db: Session = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    user = update_user(db, user_id, updates)

    log_action(
        db=db,
        user_id=admin.id,
        action="UPDATE_USER",
        entity_type="User",
        entity_id=user.id,
        details=f"Fields: {', '.join(sorted(updates.model_dump(exclude_unset=True))) or 'none'}",
    )

    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_role(["admin"])),
):
    delete_user(db, user_id)

    log_action(
        db=db,
        user_id=admin.id,
        action="DELETE_USER",
        entity_type="User",
        entity_id=user_id,
    )
