from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import AppUser

ROLES = ("admin", "buyer", "seller", "field_agent")


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: str  # admin | buyer | seller | field_agent


def _require_role(principal: Principal, role: str) -> None:
    if principal.role != role:
        raise HTTPException(status_code=403, detail=f"Requires role {role}")


# -------------------------
# JWT helpers
# -------------------------
def create_access_token(*, user_id: int, role: str, minutes: int = 60 * 24) -> str:
    now = datetime.utcnow()
    payload: dict[str, Any] = {
        "sub": str(int(user_id)),
        "role": str(role),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=int(minutes))).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _jwt_verify(token: str) -> dict[str, Any]:
    try:
        return dict(jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]))
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _get_user_by_email(db: Session, email: str) -> AppUser | None:
    return db.scalar(select(AppUser).where(AppUser.email == email))


# -------------------------
# get_principal
# -------------------------
def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes supported (in priority order):
      1) Authorization: Bearer <token> (claims: sub=user id, role)
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")
    """
    token = None
    if authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()

    if token:
        claims = _jwt_verify(token)
        sub = str(claims.get("sub") or "")
        if not sub.isdigit():
            raise HTTPException(status_code=401, detail="Token missing sub")

        user = db.get(AppUser, int(sub))
        if user is None:
            raise HTTPException(status_code=401, detail="Unknown user")

        # the stored role wins over whatever the token claims
        return Principal(user_id=int(user.id), email=str(user.email), role=str(user.role))

    if settings.auth_mode == "dev":
        email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
        role_hint = (request.headers.get(settings.dev_header_user_role) or "buyer").strip().lower()
        if not email:
            raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_email} for dev auth")

        user = _get_user_by_email(db, email=email)
        if user is None and settings.dev_auto_provision:
            user = AppUser(
                email=email,
                full_name=email.split("@")[0],
                role=role_hint if role_hint in ROLES else "buyer",
                created_at=datetime.utcnow(),
            )
            db.add(user)
            db.commit()
            db.refresh(user)

        if user is None:
            raise HTTPException(status_code=401, detail="Dev auth could not provision user")

        return Principal(user_id=int(user.id), email=str(user.email), role=str(user.role))

    raise HTTPException(status_code=401, detail="Not authenticated")


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    _require_role(p, "admin")
    return p


def require_field_agent(p: Principal = Depends(get_principal)) -> Principal:
    _require_role(p, "field_agent")
    return p
