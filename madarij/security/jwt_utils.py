# madarij/security/jwt_utils.py
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Header, HTTPException, status

from madarij.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALG, JWT_SECRET

NOT_AUTHENTICATED = "غير مصرح، يرجى تسجيل الدخول"
INVALID_TOKEN = "رمز الدخول غير صالح"


def create_access_token(sub: str, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    return jwt.encode({"sub": sub, "exp": expire}, JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict:
    """
    Decodifica y valida el JWT.
    Lanza 401 si es inválido o expiró.
    """
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN,
        )


def get_current_user(authorization: str = Header(default="")) -> str:
    """
    Toma el header: Authorization: Bearer <token>
    Lo valida y devuelve el id del usuario (sub).
    Lanza 401 si falta o es inválido.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=NOT_AUTHENTICATED,
        )

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN,
        )

    payload = decode_token(authorization.removeprefix("Bearer ").strip())

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN,
        )

    return str(payload["sub"])
