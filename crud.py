"""
Generic CRUD routes for the content collections (projects, blog posts).

``build_router`` turns a ``Resource`` description into an ``APIRouter``
with list/create/update/delete on the collection root and the
id-or-slug variants under ``/{key}``.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, get_documents, next_timestamp, require_db, utcnow
from documents import delete_by_key, find_by_key, parse_object_id, serialize, serialize_many, update_by_key
from errors import ApiError
from schemas import SERVER_FIELDS, BlogPost, Document, Project, ToggleField, ToggleRequest

logger = logging.getLogger(__name__)


class Resource:
    def __init__(
        self,
        name: str,
        plural: str,
        schema: Type[Document],
        required: Sequence[str],
        sort: Sequence[Tuple[str, int]],
        stamps_published: bool = False,
        create_defaults: Optional[Dict[str, Callable[[], Any]]] = None,
    ):
        self.name = name
        self.plural = plural
        self.label = name[:1].upper() + name[1:]
        self.schema = schema
        self.required = tuple(required)
        self.sort = list(sort)
        self.stamps_published = stamps_published
        self.create_defaults = dict(create_defaults or {})

    def collection(self, db: Database) -> Collection:
        return db[self.schema.collection]

    def missing_fields(self, body: Dict[str, Any]) -> List[str]:
        return [field for field in self.required if not body.get(field)]

    def object_id(self, value: Any):
        oid = parse_object_id(value)
        if oid is None:
            raise ApiError(400, f"Invalid {self.name} ID")
        return oid

    def coerce(self, body: Dict[str, Any]) -> dict:
        """Validate a write payload and return the fields to persist."""
        data = {k: v for k, v in body.items() if k not in SERVER_FIELDS}
        try:
            model = self.schema.model_validate(data)
        except ValidationError as exc:
            raise ApiError(400, f"Invalid {self.name} data", details=str(exc))
        doc = model.to_document()
        if self.stamps_published:
            doc["publishedAt"] = utcnow() if doc.get("published") else None
        return doc

    def defaults_for(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Values filled in at creation for fields the request left empty."""
        return {field: make() for field, make in self.create_defaults.items() if not doc.get(field)}

    @contextmanager
    def failure(self, verb: str, noun: Optional[str] = None):
        try:
            yield
        except PyMongoError as exc:
            logger.exception("Failed to %s %s", verb, noun or self.name)
            raise ApiError(500, f"Failed to {verb} {noun or self.name}", details=str(exc))


def build_router(resource: Resource) -> APIRouter:
    router = APIRouter()
    schema = resource.schema

    @router.get("")
    def list_items(db: Database = Depends(require_db)):
        with resource.failure("fetch", resource.plural):
            docs = get_documents(db, schema.collection, sort=resource.sort)
        return serialize_many(docs, schema)

    @router.post("", status_code=201)
    def create_item(body: Dict[str, Any] = Body(...), db: Database = Depends(require_db)):
        missing = resource.missing_fields(body)
        if missing:
            raise ApiError(
                400,
                "Missing required fields",
                details=f"Missing fields: {', '.join(missing)}",
                missing=missing,
            )
        doc = resource.coerce(body)
        coll = resource.collection(db)

        # An _id in the body turns create into an upsert of that document
        if body.get("_id"):
            oid = resource.object_id(body["_id"])
            now = utcnow()
            defaults = resource.defaults_for(doc)
            changes = {k: v for k, v in doc.items() if k not in defaults}
            with resource.failure("create"):
                saved = coll.find_one_and_update(
                    {"_id": oid},
                    {"$set": {**changes, "updatedAt": now}, "$setOnInsert": {**defaults, "createdAt": now}},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            logger.info("Upserted %s %s", resource.name, oid)
        else:
            with resource.failure("create"):
                new_id = create_document(db, schema.collection, {**doc, **resource.defaults_for(doc)})
                saved = coll.find_one({"_id": parse_object_id(new_id)})
            logger.info("Created %s %s (%s)", resource.name, new_id, doc.get("slug"))
        return serialize(saved, schema)

    @router.put("")
    def update_item(body: Dict[str, Any] = Body(...), db: Database = Depends(require_db)):
        if not body.get("_id"):
            raise ApiError(
                400,
                f"Missing {resource.name} ID",
                details=f"{resource.label} ID is required for updates",
            )
        oid = resource.object_id(body["_id"])
        doc = resource.coerce(body)
        with resource.failure("update"):
            saved = resource.collection(db).find_one_and_update(
                {"_id": oid},
                {"$set": {**doc, "updatedAt": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        if saved is None:
            raise ApiError(
                404,
                f"{resource.label} not found",
                details=f"Could not find {resource.name} with the provided ID",
            )
        logger.info("Updated %s %s", resource.name, oid)
        return serialize(saved, schema)

    @router.delete("")
    def delete_item(body: Optional[Dict[str, Any]] = Body(None), db: Database = Depends(require_db)):
        if not body or not body.get("_id"):
            raise ApiError(
                400,
                f"Missing {resource.name} ID",
                details=f"{resource.label} ID is required for deletion",
            )
        oid = resource.object_id(body["_id"])
        with resource.failure("delete"):
            deleted = resource.collection(db).find_one_and_delete({"_id": oid})
        if deleted is None:
            raise ApiError(404, f"{resource.label} not found")
        logger.info("Deleted %s %s", resource.name, oid)
        return {"message": f"{resource.label} deleted successfully"}

    @router.get("/slug/{slug}")
    def get_item_by_slug(slug: str, db: Database = Depends(require_db)):
        with resource.failure("fetch"):
            doc = resource.collection(db).find_one({"slug": slug})
        if doc is None:
            raise ApiError(404, f"{resource.label} not found")
        return serialize(doc, schema)

    @router.get("/{key}")
    def get_item(key: str, db: Database = Depends(require_db)):
        with resource.failure("fetch"):
            doc = find_by_key(resource.collection(db), key)
        if doc is None:
            raise ApiError(404, f"{resource.label} not found")
        return serialize(doc, schema)

    @router.put("/{key}")
    def update_item_by_key(key: str, body: Dict[str, Any] = Body(...), db: Database = Depends(require_db)):
        doc = resource.coerce(body)
        doc["updatedAt"] = utcnow()
        with resource.failure("update"):
            saved = update_by_key(resource.collection(db), key, doc)
        if saved is None:
            raise ApiError(404, f"{resource.label} not found")
        logger.info("Updated %s %s", resource.name, key)
        return serialize(saved, schema)

    @router.delete("/{key}")
    def delete_item_by_key(key: str, db: Database = Depends(require_db)):
        with resource.failure("delete"):
            deleted = delete_by_key(resource.collection(db), key)
        if deleted is None:
            raise ApiError(404, f"{resource.label} not found")
        logger.info("Deleted %s %s (%s)", resource.name, deleted["_id"], deleted.get("title"))
        return {"message": f"{resource.label} deleted successfully"}

    return router


def add_toggle_route(router: APIRouter, resource: Resource) -> None:
    """POST /toggle: flip one of the ToggleField flags on a document."""

    @router.post("/toggle")
    def toggle_property(payload: ToggleRequest, db: Database = Depends(require_db)):
        if not payload.id or not payload.property:
            raise ApiError(400, 'Missing required fields. "id" and "property" are required.')
        try:
            field = ToggleField(payload.property)
        except ValueError:
            allowed = ", ".join(f.value for f in ToggleField)
            raise ApiError(400, f"Invalid property. Must be one of: {allowed}")
        oid = resource.object_id(payload.id)

        coll = resource.collection(db)
        with resource.failure("toggle", f"{resource.name} property"):
            current = coll.find_one({"_id": oid})
            if current is None:
                raise ApiError(404, f"{resource.label} not found")
            update = {
                field.value: not current.get(field.value, False),
                "updatedAt": next_timestamp(current.get("updatedAt")),
            }
            saved = coll.find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
        if saved is None:
            raise ApiError(404, f"{resource.label} not found")
        logger.info("Toggled %s on %s %s", field.value, resource.name, oid)
        return {
            "success": True,
            "message": f"{resource.label} {field.value} toggled successfully",
            "post": serialize(saved, resource.schema),
        }


PROJECTS = Resource(
    "project",
    "projects",
    Project,
    required=("title", "slug", "description"),
    sort=[("featured", -1), ("createdAt", -1), ("_id", -1)],
)

BLOG_POSTS = Resource(
    "blog post",
    "blog posts",
    BlogPost,
    required=("title", "slug", "content", "excerpt"),
    sort=[("createdAt", -1), ("_id", -1)],
    stamps_published=True,
    create_defaults={"date": lambda: utcnow().isoformat()},
)
