from typing import Generator, Optional
from fastapi import HTTPException, status, Request
from jose import JWTError

from app.db.session import SessionLocal
from app.core import security

def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()

def _token_from_request(request: Request) -> Optional[str]:
    # Header Authorization tem prioridade sobre o cookie
    return request.headers.get("Authorization") or request.cookies.get("access_token")

def get_current_active_admin(request: Request) -> dict:
    """
    Gate de administração: lê "Bearer <jwt>" do header ou do cookie
    'access_token' e exige role == admin. Devolve o payload do token.
    """
    token_str = _token_from_request(request)

    if not token_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não autenticado (token ausente)",
        )

    try:
        scheme, token = token_str.split()
        if scheme.lower() != "bearer":
            raise HTTPException(status_code=401, detail="Formato de token inválido")

        payload = security.decode_token(token)
        if payload.get("sub") is None:
            raise HTTPException(status_code=401, detail="Token inválido (sem sub)")

    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Token expirado ou inválido")

    if payload.get("role") != security.ADMIN_ROLE:
        raise HTTPException(
            status_code=403, detail="O usuário não tem privilégios de administrador"
        )
    return payload
