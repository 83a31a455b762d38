from fastapi import Header, HTTPException, status
from jose import JWTError
from pydantic import ValidationError

from app.core.security import decode_access_token
from app.core.settings import settings
from app.schemas.export import CurrentUser


def get_current_user(authorization: str | None = Header(default=None)) -> CurrentUser:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    try:
        payload = decode_access_token(token, secret=settings.secret_key, alg=settings.jwt_alg)
        user_id = payload.get("user_id", payload.get("sub"))
        if user_id is None or not payload.get("role"):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        return CurrentUser(
            user_id=int(user_id),
            role=payload["role"],
            full_name=payload.get("full_name"),
            email=payload.get("email"),
            branch_id=payload.get("branch_id"),
        )
    except (JWTError, ValueError, TypeError, ValidationError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
