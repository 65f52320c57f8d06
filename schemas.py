"""
Database Schemas for the Portfolio CMS

Each Pydantic model = one MongoDB collection (see ``collection`` below).
Models allow extra fields so anything the dashboard sends is kept, while
the declared fields get coerced: flags to bool, list fields to lists.
"""

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

FLAG_FIELDS = ("featured", "published", "addToHome")

# Owned by the server; ignored when a client sends them
SERVER_FIELDS = ("_id", "id", "createdAt", "updatedAt")


class Document(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Fields written on every create/update even when the request omits them
    always_written: ClassVar[Tuple[str, ...]] = ()

    id: Optional[str] = Field(default=None, alias="_id")
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    def to_document(self) -> dict:
        """Fields to persist: those the request set plus the always-written ones."""
        skip = {
            name
            for name in type(self).model_fields
            if name not in self.model_fields_set and name not in self.always_written
        }
        skip.update({"id", "createdAt", "updatedAt"})
        return self.model_dump(exclude=skip)

    @field_validator(*FLAG_FIELDS, mode="before", check_fields=False)
    @classmethod
    def coerce_flags(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("tags", "technologies", mode="before", check_fields=False)
    @classmethod
    def coerce_lists(cls, value: Any) -> list:
        return value if isinstance(value, list) else []


# Content
class Project(Document):
    collection: ClassVar[str] = "projects"
    always_written: ClassVar[Tuple[str, ...]] = FLAG_FIELDS + ("tags", "technologies")

    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    detailedDescription: Optional[str] = None
    content: Optional[str] = None
    imageUrl: Optional[str] = None
    imageColor: str = "bg-blue-700"
    category: str = "Data Analysis"
    tags: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    repoUrl: Optional[str] = None
    githubUrl: Optional[str] = None
    demoUrl: Optional[str] = None
    featured: bool = False
    published: bool = False
    addToHome: bool = False


class BlogPost(Document):
    """Blog post. Serves both the /api/blog and /api/blogs route families."""

    collection: ClassVar[str] = "blogposts"
    always_written: ClassVar[Tuple[str, ...]] = FLAG_FIELDS + ("tags",)

    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    author: str = "Admin"
    category: str = "General"
    date: Optional[str] = None
    readTime: str = "5 min read"
    imageUrl: Optional[str] = None
    imageColor: str = "bg-blue-700"
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    published: bool = False
    addToHome: bool = False
    publishedAt: Optional[datetime] = None


class ToggleField(str, Enum):
    FEATURED = "featured"
    PUBLISHED = "published"
    ADD_TO_HOME = "addToHome"


class ToggleRequest(BaseModel):
    id: Optional[str] = None
    property: Optional[str] = None


# Profile (singleton)
class Profile(Document):
    collection: ClassVar[str] = "profile"

    name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    imageUrl: Optional[str] = None
    skills: List[Any] = Field(default_factory=list)
    experiences: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    certifications: List[Any] = Field(default_factory=list)


DEFAULT_PROFILE = {
    "name": "Portfolio Owner",
    "title": "Data Analyst",
    "email": "owner@example.com",
    "phone": "+1 (555) 123-4567",
    "bio": "Data Analyst specializing in automation, machine learning models and data visualization.",
    "location": "Seattle, WA",
    "linkedin": "https://www.linkedin.com/in/example",
    "github": "https://github.com/example",
    "imageUrl": "/images/profile/admin-profile.jpg",
}


# Auth
class Admin(BaseModel):
    collection: ClassVar[str] = "admins"

    username: str
    hashedPassword: str
    salt: str
    lastLogin: Optional[datetime] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class PasswordChangeRequest(BaseModel):
    username: str
    currentPassword: str
    newPassword: str = ""


# Contact
class ContactMessage(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
