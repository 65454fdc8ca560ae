# backend/crm/routers/auth.py
import logging
import secrets

from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import BaseModel, validator

from crm.utils.jwt_handler import create_access_token, decode_token
from crm import config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
bearer_scheme = HTTPBearer(auto_error=False)

# Pydantic Models
class LoginRequest(BaseModel):
    username: str
    password: str

    @validator('username', 'password')
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Username and password are required')
        return v


def _user_from_claims(payload: dict) -> dict:
    return {
        "id": payload.get("userId"),
        "username": payload.get("sub"),
        "isAdmin": bool(payload.get("isAdmin", False)),
    }


def _check_credentials(username: str, password: str) -> bool:
    if not config.ADMIN_USERNAME or not config.ADMIN_PASSWORD:
        return False
    username_ok = secrets.compare_digest(username.encode(), config.ADMIN_USERNAME.encode())
    password_ok = secrets.compare_digest(password.encode(), config.ADMIN_PASSWORD.encode())
    return username_ok and password_ok

# ==================== LOGIN ====================
@router.post("/login")
async def login(data: LoginRequest):
    """Admin login against the environment-configured account"""
    if not _check_credentials(data.username, data.password):
        logger.warning("Failed login for %r", data.username)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    token = create_access_token({
        "sub": data.username,
        "userId": "admin",
        "isAdmin": True
    })

    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "user": {
                "id": "admin",
                "username": data.username,
                "isAdmin": True
            },
            "token": token
        }
    }

# ==================== GET CURRENT USER ====================
async def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)):
    """Validate the bearer token and return the user it was issued to"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Invalid token")

    if payload.get("sub") is None:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Invalid token")

    return _user_from_claims(payload)

# ==================== VERIFY ====================
@router.get("/verify")
async def verify(current_user: dict = Depends(get_current_user)):
    """Check that the presented token is still valid"""
    return {
        "success": True,
        "message": "Token is valid",
        "data": {"user": current_user}
    }

# ==================== LOGOUT ====================
@router.post("/logout")
async def logout():
    """Logout (tokens are stateless; the client discards its copy)"""
    return {
        "success": True,
        "message": "Logout successful"
    }
