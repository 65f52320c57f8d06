import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import PyMongoError

import config
from database import require_db, utcnow
from errors import ApiError
from schemas import Admin, LoginRequest, PasswordChangeRequest

logger = logging.getLogger(__name__)

# =====================
# Auth / Security Setup
# =====================
# Salted, iterated PBKDF2; pure python so no native backend is needed
pwd_context = CryptContext(schemes=["pbkdf2_sha512"], deprecated="auto")

AUTH_COOKIE = "auth_token"
USER_COOKIE = "user_id"

router = APIRouter()


# =========
# Utilities
# =========

def hash_password(password: str) -> Tuple[str, str]:
    """Return ``(hashedPassword, salt)``; the salt is also embedded in the hash."""
    hashed = pwd_context.hash(password)
    # $pbkdf2-sha512$<rounds>$<salt>$<checksum>
    salt = hashed.split("$")[3]
    return hashed, salt


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.ALGORITHM)


def get_current_admin(auth_token: Optional[str] = Cookie(None)) -> dict:
    if not auth_token:
        raise ApiError(401, "Not authenticated")
    try:
        payload = jwt.decode(auth_token, config.JWT_SECRET, algorithms=[config.ALGORITHM])
    except JWTError:
        raise ApiError(401, "Invalid session")
    username = payload.get("sub")
    if not username:
        raise ApiError(401, "Invalid session")
    return {"username": username}


def ensure_admin(db: Database) -> None:
    """Seed the admin account on first use from ADMIN_USERNAME/ADMIN_PASSWORD."""
    admins = db[Admin.collection]
    if admins.find_one({}) is not None:
        return
    if not config.ADMIN_PASSWORD:
        logger.warning("No admin account exists and ADMIN_PASSWORD is not set")
        raise ApiError(500, "Authentication failed", details="Admin account is not configured")
    hashed, salt = hash_password(config.ADMIN_PASSWORD)
    admin = Admin(username=config.ADMIN_USERNAME, hashedPassword=hashed, salt=salt)
    admins.insert_one({**admin.model_dump(), "createdAt": utcnow()})
    logger.info("Default admin user %s created", config.ADMIN_USERNAME)


# ======
# Routes
# ======
@router.post("")
def login(data: LoginRequest, db: Database = Depends(require_db)):
    try:
        ensure_admin(db)
        admins = db[Admin.collection]
        admin = admins.find_one({"username": data.username})
        if not admin or not verify_password(data.password, admin["hashedPassword"]):
            raise ApiError(401, "Invalid username or password")
        last_login = utcnow()
        admins.update_one({"_id": admin["_id"]}, {"$set": {"lastLogin": last_login}})
    except PyMongoError as exc:
        logger.exception("Login error")
        raise ApiError(500, "Authentication failed", details=str(exc))

    logger.info("Admin %s signed in", data.username)
    token = create_access_token({"sub": data.username})
    response = JSONResponse(
        {
            "success": True,
            "user": {"username": data.username, "lastLogin": last_login.isoformat()},
        }
    )
    max_age = config.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    response.set_cookie(AUTH_COOKIE, token, max_age=max_age, httponly=True, samesite="lax")
    response.set_cookie(USER_COOKIE, str(admin["_id"]), max_age=max_age, samesite="lax")
    return response


@router.put("")
def change_password(data: PasswordChangeRequest, db: Database = Depends(require_db)):
    try:
        admins = db[Admin.collection]
        admin = admins.find_one({"username": data.username})
        if not admin or not verify_password(data.currentPassword, admin["hashedPassword"]):
            raise ApiError(401, "Invalid username or current password")
        if not data.newPassword:
            raise ApiError(400, "New password is required")
        hashed, salt = hash_password(data.newPassword)
        admins.update_one({"_id": admin["_id"]}, {"$set": {"hashedPassword": hashed, "salt": salt}})
    except PyMongoError as exc:
        logger.exception("Password update error")
        raise ApiError(500, "Failed to update password", details=str(exc))
    logger.info("Password changed for admin %s", data.username)
    return {"success": True, "message": "Password updated successfully"}


@router.post("/signout")
def signout():
    response = JSONResponse({"success": True, "message": "Successfully signed out"})
    response.delete_cookie(AUTH_COOKIE)
    response.delete_cookie(USER_COOKIE)
    return response


@router.get("/session")
def session(admin: dict = Depends(get_current_admin)):
    return admin
