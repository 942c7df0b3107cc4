# schoolhub/api/routers/auth.py
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from schoolhub.core.db import get_db
from schoolhub.core.security import verify_password, create_token
from schoolhub.schemas.auth import LoginIn, LoginOut, MeOut
from schoolhub.services.users import UserService
from schoolhub.api.deps.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    user = UserService(db).get_by_username(payload.username)

    if not user or not verify_password(payload.password, user.password_hash):
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Failed login for '{payload.username}' from {client}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    user.last_login = datetime.utcnow()
    db.commit()

    token = create_token(
        sub=str(user.id),
        roles=user.roles,
        full_name=user.full_name,
    )
    return LoginOut(access_token=token, user_id=str(user.id), full_name=user.full_name, roles=user.roles)


@router.get("/me", response_model=MeOut)
def me(ctx = Depends(get_current_user)):
    user = ctx["user"]
    return MeOut(id=str(user.id), username=user.username, full_name=user.full_name, roles=list(user.roles))
