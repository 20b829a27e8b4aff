"""
Database Schemas

MongoDB collection schemas for the editor, defined as Pydantic models.
These schemas validate every document before it is written.

Each top-level model represents a collection in your database.
Model name is converted to lowercase for the collection name:
- User -> "user" collection
- Project -> "project" collection

Stored keys are camelCase (userId, trackItems, ...); attributes are snake_case.
Timestamps (createdAt / updatedAt) are added by database.py on write.
"""

from typing import Any, ClassVar, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

DEFAULT_PLATFORM = "instagram-reel"
DEFAULT_THEME = "light"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(CamelModel):
    """Base for collection schemas."""

    unique_fields: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def collection_name(cls) -> str:
        return cls.__name__.lower()


class Preferences(CamelModel):
    default_platform: str = Field(DEFAULT_PLATFORM, description="Platform preselected for new projects")
    theme: str = Field(DEFAULT_THEME, description="UI theme")


class User(Document):
    """
    Users collection schema
    Collection name: "user"
    """
    unique_fields: ClassVar[Tuple[str, ...]] = ("email",)

    email: EmailStr = Field(..., description="Email address (unique)")
    name: str = Field(..., min_length=1, description="Full name")
    image: Optional[str] = Field(None, description="Avatar URL")
    is_active: bool = Field(True, description="Account status")
    preferences: Preferences = Field(default_factory=Preferences)


class Size(CamelModel):
    width: Optional[float] = None
    height: Optional[float] = None


class ProjectMetadata(CamelModel):
    duration: Optional[float] = Field(None, description="Timeline duration")
    fps: Optional[float] = Field(None, description="Frames per second")


class Project(Document):
    """
    Projects collection schema
    Collection name: "project"
    """
    user_id: str = Field(..., min_length=1, description="Owner id (not enforced against user)")
    name: str = Field(..., min_length=1, description="Project name")
    platform: str = Field(..., min_length=1, description="Target platform, e.g. instagram-reel")
    # Timeline state owned by the editor client; stored as-is.
    track_items: Any = Field(default_factory=dict)
    size: Size = Field(default_factory=Size)
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)
