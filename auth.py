from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import jwt_secret
from errors import AuthenticationRequired, InvalidToken
from logger import get_logger
from schemas import TokenData

logger = get_logger(__name__)

# JWT Config
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24
BCRYPT_ROUNDS = 10

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


# ---------- Passwords ----------
def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # not a hash passlib recognises
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# ---------- Tokens ----------
def create_access_token(user_id: str, email: Optional[str] = None, issued_at: Optional[datetime] = None) -> str:
    issued = issued_at or datetime.now(timezone.utc)
    to_encode = {
        "userId": user_id,
        "email": email,
        "exp": issued + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS),
    }
    return jwt.encode(to_encode, jwt_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    """Verify signature and expiry; raises InvalidToken on any failure."""
    try:
        payload = jwt.decode(token, jwt_secret(), algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        raise InvalidToken("Invalid token")
    user_id = payload.get("userId")
    if not user_id:
        logger.warning("Token verification failed: no userId claim")
        raise InvalidToken("Invalid token")
    return TokenData(userId=user_id, email=payload.get("email"))


# ---------- Request dependencies ----------
def _bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization")
    if not auth:
        return None
    parts = auth.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def get_current_user(request: Request) -> TokenData:
    token = _bearer_token(request)
    if not token:
        logger.warning("No token provided")
        raise AuthenticationRequired("Authentication required")
    return decode_access_token(token)


def get_optional_user(request: Request) -> Optional[TokenData]:
    """Identity for routes open to anonymous callers.

    A missing, malformed, invalid or expired bearer yields None rather than an
    error, so public resources stay readable with a stale token.
    """
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return decode_access_token(token)
    except InvalidToken:
        logger.info("Ignoring unusable token on anonymous-capable route")
        return None
