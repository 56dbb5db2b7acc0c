from datetime import datetime, timedelta
from typing import Optional
import secrets
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Request, Response
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from config import JWT_SECRET_KEY, JWT_ALGORITHM, JWT_EXPIRES_IN_DAYS, AUTH_COOKIE_NAME, ENVIRONMENT

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer header is optional, the cookie is the primary session carrier
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)

# Fields that must never leave the API
PRIVATE_USER_FIELDS = ("password", "activationToken", "activationExpires", "failedActivationAttempts")

# Token model
class TokenData(BaseModel):
    user_id: Optional[str] = None
    role: Optional[str] = None

# Password utilities
def verify_password(plain_password, hashed_password):
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password):
    return pwd_context.hash(password)

def generate_random_password():
    return secrets.token_urlsafe(24)

def generate_activation_code():
    """Six digit numeric activation code"""
    return f"{secrets.randbelow(1000000):06d}"

# JWT utilities
def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None):
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=JWT_EXPIRES_IN_DAYS)
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

def decode_access_token(token: str) -> Optional[TokenData]:
    """Returns None for a bad or expired token"""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("sub")
    if user_id is None:
        return None
    return TokenData(user_id=user_id, role=payload.get("role"))

async def get_token_from_request(request: Request) -> Optional[str]:
    """Cookie first, then the Authorization header"""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    return await oauth2_scheme_optional(request)

# Cookie utilities
def set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=ENVIRONMENT == "production",
        samesite="strict",
        max_age=JWT_EXPIRES_IN_DAYS * 24 * 60 * 60,
    )

def clear_auth_cookie(response: Response):
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        httponly=True,
        secure=ENVIRONMENT == "production",
        samesite="strict",
    )

def sanitize_user(user: dict) -> dict:
    """Strip password and activation fields from a serialized user"""
    if user is None:
        return None
    return {k: v for k, v in user.items() if k not in PRIVATE_USER_FIELDS}
