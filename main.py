import os
import logging
from datetime import datetime
from typing import Any, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from bson import ObjectId
from bson.errors import InvalidId

import database
from database import create_document, delete_document, get_document, get_documents, update_document
from schemas import CamelModel, Project, ProjectMetadata, Size, User

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Video Editor API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


def _object_id(value: str, kind: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid {kind} id")


# Models
class LogoutResponse(BaseModel):
    success: bool
    message: str


class UserOut(User):
    id: str
    created_at: datetime
    updated_at: datetime


class UserResponse(BaseModel):
    success: bool = True
    user: UserOut


class PreferencesUpdate(CamelModel):
    default_platform: Optional[str] = Field(None, min_length=1)
    theme: Optional[str] = Field(None, min_length=1)


class ProjectOut(Project):
    id: str
    created_at: datetime
    updated_at: datetime


class ProjectSummary(CamelModel):
    id: str
    name: str
    platform: str
    created_at: datetime
    updated_at: datetime


class ProjectResponse(BaseModel):
    success: bool = True
    project: ProjectOut


class ProjectListResponse(BaseModel):
    success: bool = True
    projects: List[ProjectSummary]


class ProjectUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    platform: Optional[str] = Field(None, min_length=1)
    track_items: Any = None
    size: Optional[Size] = None
    metadata: Optional[ProjectMetadata] = None


def _with_id(doc: dict) -> dict:
    return {**doc, "id": str(doc["_id"])}


def _user_out(doc: dict) -> UserOut:
    return UserOut.model_validate(_with_id(doc))


def _project_out(doc: dict) -> ProjectOut:
    return ProjectOut.model_validate(_with_id(doc))


# Routes
@app.get("/")
def root():
    return {"name": "Video Editor API", "version": "1.0.0"}


@app.get("/api/health")
def health():
    response = {
        "backend": "running",
        "database": "not configured",
        "database_name": None,
        "collections": [],
    }
    if database.db is None:
        return response
    response["database_name"] = database.db.name
    try:
        response["collections"] = database.db.list_collection_names()[:10]
        response["database"] = "connected"
    except PyMongoError as e:
        logger.warning("Database health check failed: %s", e)
        response["database"] = f"error: {str(e)[:50]}"
    return response


@app.post("/api/auth/logout", response_model=LogoutResponse)
def logout():
    try:
        # TODO: revoke the caller's credentials once the app issues any
        logger.info("User logout")
        return LogoutResponse(success=True, message="Logged out successfully")
    except Exception:
        logger.exception("Error during logout")
        return _server_error("Logout failed")


# Users
@app.post("/api/users", response_model=UserResponse)
def create_user(payload: User):
    try:
        doc = create_document(User, payload)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="An account with this email already exists")
    except Exception:
        logger.exception("User creation error")
        return _server_error("Failed to create account")
    return UserResponse(user=_user_out(doc))


@app.get("/api/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str):
    oid = _object_id(user_id, "user")
    try:
        doc = get_document(User, oid)
    except Exception:
        logger.exception("User fetch error")
        return _server_error("Failed to fetch user")
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse(user=_user_out(doc))


@app.patch("/api/users/{user_id}/preferences", response_model=UserResponse)
def update_preferences(user_id: str, payload: PreferencesUpdate):
    oid = _object_id(user_id, "user")
    changes = {
        f"preferences.{k}": v
        for k, v in payload.model_dump(by_alias=True, exclude_unset=True).items()
        if v is not None
    }
    try:
        doc = update_document(User, oid, changes)
    except Exception:
        logger.exception("Preferences update error")
        return _server_error("Failed to update preferences")
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse(user=_user_out(doc))


# Projects
@app.post("/api/projects", response_model=ProjectResponse)
def create_project(payload: Project):
    try:
        doc = create_document(Project, payload)
    except Exception:
        logger.exception("Project creation error")
        return _server_error("Failed to create project")
    return ProjectResponse(project=_project_out(doc))


@app.get("/api/projects", response_model=ProjectListResponse)
def list_projects(user_id: Optional[str] = Query(None, alias="userId")):
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID required")
    try:
        docs = get_documents(
            Project,
            {"userId": user_id},
            sort=[("updatedAt", -1)],
            projection={"name": 1, "platform": 1, "createdAt": 1, "updatedAt": 1},
        )
    except Exception:
        logger.exception("Project fetch error")
        return _server_error("Failed to fetch projects")
    return ProjectListResponse(projects=[ProjectSummary.model_validate(_with_id(d)) for d in docs])


@app.get("/api/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str):
    oid = _object_id(project_id, "project")
    try:
        doc = get_document(Project, oid)
    except Exception:
        logger.exception("Project fetch error")
        return _server_error("Failed to fetch project")
    if not doc:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectResponse(project=_project_out(doc))


@app.put("/api/projects/{project_id}", response_model=ProjectResponse)
def update_project(project_id: str, payload: ProjectUpdate):
    oid = _object_id(project_id, "project")
    changes = {k: v for k, v in payload.model_dump(by_alias=True, exclude_unset=True).items() if v is not None}
    try:
        doc = update_document(Project, oid, changes)
    except Exception:
        logger.exception("Project update error")
        return _server_error("Failed to update project")
    if not doc:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectResponse(project=_project_out(doc))


@app.delete("/api/projects/{project_id}")
def delete_project(project_id: str):
    oid = _object_id(project_id, "project")
    try:
        deleted = delete_document(Project, oid)
    except Exception:
        logger.exception("Project deletion error")
        return _server_error("Failed to delete project")
    if not deleted:
        raise HTTPException(status_code=404, detail="Project not found")
    return {"success": True}


@app.post("/api/projects/{project_id}/duplicate", response_model=ProjectResponse)
def duplicate_project(project_id: str):
    oid = _object_id(project_id, "project")
    try:
        source = get_document(Project, oid)
        if not source:
            raise HTTPException(status_code=404, detail="Project not found")
        doc = create_document(
            Project,
            {
                "userId": source["userId"],
                "name": f"{source['name']} (Copy)",
                "platform": source["platform"],
                "trackItems": source.get("trackItems", {}),
                "size": source.get("size") or {},
                "metadata": source.get("metadata") or {},
            },
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Project duplication error")
        return _server_error("Failed to duplicate project")
    return ProjectResponse(project=_project_out(doc))


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
