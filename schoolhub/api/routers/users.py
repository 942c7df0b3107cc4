# schoolhub/api/routers/users.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field

from schoolhub.core.db import get_db
from schoolhub.models.user import User, UserRole
from schoolhub.services.errors import NotFoundError
from schoolhub.services.users import UserService
from schoolhub.api.deps.auth import require_admin

router = APIRouter(prefix="/users", tags=["Users"])

class UserResponse(BaseModel):
    id: str
    username: str
    email: Optional[str]
    full_name: str
    roles: List[str]
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime]

class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    full_name: str
    password: str
    email: Optional[EmailStr] = None
    roles: List[str] = [UserRole.STAFF.value]

class UpdateUserRequest(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    roles: Optional[List[str]] = None
    is_active: Optional[bool] = None

class ResetPasswordRequest(BaseModel):
    new_password: str


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        roles=user.roles,
        is_active=user.is_active,
        created_at=user.created_at,
        last_login=user.last_login,
    )


@router.get("", response_model=List[UserResponse])
def list_users(ctx = Depends(require_admin), db: Session = Depends(get_db)):
    return [_to_response(u) for u in UserService(db).list_users()]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return _to_response(UserService(db).get_user(user_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=UserResponse, status_code=201)
def create_user(payload: CreateUserRequest, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        user = UserService(db).create_user(
            username=payload.username,
            full_name=payload.full_name,
            password=payload.password,
            roles=payload.roles,
            email=payload.email,
        )
        db.commit()
        return _to_response(user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create user: {str(e)}")


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: UUID, payload: UpdateUserRequest, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        user = UserService(db).update_user(user_id, **payload.model_dump(exclude_unset=True))
        db.commit()
        return _to_response(user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update user: {str(e)}")


@router.delete("/{user_id}")
def delete_user(user_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    if ctx["user"].id == user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    try:
        UserService(db).delete_user(user_id)
        db.commit()
        return {"message": "User deleted successfully"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to delete user: {str(e)}")


@router.post("/{user_id}/reset-password")
def reset_password(user_id: UUID, payload: ResetPasswordRequest, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        UserService(db).reset_password(user_id, payload.new_password)
        db.commit()
        return {"message": "Password reset successfully"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(user_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    if ctx["user"].id == user_id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    try:
        user = UserService(db).deactivate_user(user_id)
        db.commit()
        return _to_response(user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
