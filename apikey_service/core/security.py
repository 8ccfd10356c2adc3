from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from apikey_service.config import settings
from apikey_service.core.timeutils import utcnow

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_session_token(admin_id: int, session_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed token naming an admin and its server-side session."""
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ADMIN_SESSION_EXPIRE_MINUTES))
    to_encode = {"sub": str(admin_id), "sid": session_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    """Decode and verify a session token, None if invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
