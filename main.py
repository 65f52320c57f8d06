import logging
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

import auth
import config
import crud
import errors
import mailer
import media
from database import get_db, require_db, utcnow
from documents import serialize, serialize_document
from errors import ApiError
from schemas import DEFAULT_PROFILE, SERVER_FIELDS, Profile

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ==================
# FastAPI app config
# ==================
app = FastAPI(title="Portfolio API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

errors.install(app)

blog_router = crud.build_router(crud.BLOG_POSTS)
crud.add_toggle_route(blog_router, crud.BLOG_POSTS)

app.include_router(crud.build_router(crud.PROJECTS), prefix="/api/projects", tags=["projects"])
app.include_router(blog_router, prefix="/api/blog", tags=["blog"])
# Older dashboard pages still call /api/blogs; same collection, same handlers
app.include_router(blog_router, prefix="/api/blogs", include_in_schema=False)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(media.router, prefix="/api/upload", tags=["upload"])
app.include_router(mailer.router, prefix="/api/contact", tags=["contact"])


# ======
# Routes
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "portfolio-api"}


@app.get("/api/test-db")
def test_database(db: Database = Depends(require_db)):
    try:
        probe = db["test"]
        inserted = probe.insert_one({"timestamp": utcnow(), "test": "Database connection successful"})
        doc = probe.find_one({"_id": inserted.inserted_id})
        probe.delete_one({"_id": inserted.inserted_id})
    except PyMongoError as exc:
        logger.exception("Database test error")
        raise ApiError(500, "Database test failed", details=str(exc))
    return {
        "status": "success",
        "message": "Database connection and operations successful",
        "testDocument": serialize_document(doc),
    }


# Profile (singleton document)
@app.get("/api/profile")
def get_profile(db: Optional[Database] = Depends(get_db)):
    if db is None:
        return DEFAULT_PROFILE
    profiles = db[Profile.collection]
    try:
        profile = profiles.find_one({})
        if profile is None:
            logger.info("No profile found, creating default profile")
            inserted = profiles.insert_one(dict(DEFAULT_PROFILE))
            profile = {**DEFAULT_PROFILE, "_id": inserted.inserted_id}
        return serialize(profile, Profile, strict=True)
    except PyMongoError:
        logger.exception("Database error in GET /api/profile; serving default profile")
    except ValidationError:
        logger.exception("Stored profile is unreadable; serving default profile")
    return DEFAULT_PROFILE


@app.put("/api/profile")
def update_profile(body: Dict[str, Any] = Body(...), db: Database = Depends(require_db)):
    data = {k: v for k, v in body.items() if k not in SERVER_FIELDS}
    try:
        update = {**Profile.model_validate(data).to_document(), "updatedAt": utcnow()}
    except ValidationError as exc:
        raise ApiError(400, "Invalid profile data", details=str(exc))
    profiles = db[Profile.collection]
    try:
        existing = profiles.find_one({})
        if existing is not None:
            profile = profiles.find_one_and_update(
                {"_id": existing["_id"]},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        else:
            inserted = profiles.insert_one(dict(update))
            profile = {**update, "_id": inserted.inserted_id}
    except PyMongoError as exc:
        logger.exception("Database error in PUT /api/profile")
        raise ApiError(500, "Failed to update profile data", details=str(exc))
    logger.info("Profile updated")
    return serialize(profile, Profile)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
