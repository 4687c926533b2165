from datetime import datetime, timedelta
from typing import Any, Optional, Union

import pytz
from jose import jwt

from app.core.config import settings

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"

def create_access_token(
    subject: Union[str, Any], expires_delta: Optional[timedelta] = None, role: str = ADMIN_ROLE
) -> str:
    """Gera o JWT aceito pelo gate de administração."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(pytz.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject), "role": role}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)

def decode_token(token: str) -> dict:
    # JWTError sobe para quem chamou
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
