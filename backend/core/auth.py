"""
Bearer token handling and password hashing

Tokens are issued by the account service; this backend only verifies them.
The decoded claims dict (``id``, ``role``, ...) is what the services receive
as ``current_user``.
"""

from datetime import datetime, timedelta, UTC
from typing import Optional, Dict, Any
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
import structlog

from core.config import settings

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer()

DEFAULT_ROLE = "gutachter"

def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Ungültiges oder abgelaufenes Token",
        headers={"WWW-Authenticate": "Bearer"},
    )

class AuthService:

    @staticmethod
    def get_password_hash(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(claims: Dict[str, Any], lifetime: Optional[timedelta] = None) -> str:
        """Sign ``claims`` with an ``exp`` of now + lifetime (settings default)"""
        lifetime = lifetime or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        payload = {**claims, "exp": datetime.now(UTC) + lifetime}
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError as e:
            logger.warning("Rejected bearer token", error=str(e))
            raise _unauthorized()

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> Dict[str, Any]:
    """Claims of the calling user; ``sub`` is exposed as ``id``"""
    claims = AuthService.verify_token(credentials.credentials)
    subject = claims.get("sub") or claims.get("id")
    if not subject:
        raise _unauthorized()

    claims["id"] = subject
    claims.setdefault("role", DEFAULT_ROLE)
    return claims

def is_admin(current_user: Dict[str, Any]) -> bool:
    return current_user.get("role") == "admin"
