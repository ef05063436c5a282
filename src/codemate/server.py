"""FastAPI web server for codemate."""

import logging
import sqlite3
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import ChatRecord, FileRecord, Project, TreeNode
from .fallbacks import chat_fallback, code_fallback, fix_fallback
from .prompts import CHAT_SYSTEM_PROMPT, code_generation_prompt, error_fixing_prompt, fix_request
from .storage import SQLiteStorage, open_storage
from .tree import build_tree, default_project_structure, flatten_tree
from .vendor import CreditExhaustedError, VendorClient, VendorError, create_vendor_client

logger = logging.getLogger(__name__)

app = FastAPI(title="codemate", version="0.1.0")

CHAT_MAX_TOKENS = 1024
CODE_MAX_TOKENS = 1500
DEFAULT_LANGUAGE = "Java"
ROLES = ("user", "assistant")

# Lazily built on first request
_vendor: VendorClient | None = None
_storage: SQLiteStorage | None = None


def _get_vendor() -> VendorClient:
    global _vendor
    if _vendor is None:
        _vendor = create_vendor_client()
        logger.info("Vendor client ready for model %s", _vendor.model)
    return _vendor


def _get_storage() -> SQLiteStorage:
    global _storage
    if _storage is None:
        _storage = open_storage()
        logger.info("Using database at %s", _storage.db_path)
    return _storage


# ── Error envelope ───────────────────────────────────────────────


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request: " + "; ".join(problems)})


@app.exception_handler(sqlite3.Error)
async def storage_error(request: Request, exc: sqlite3.Error):
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Storage error"})


# ── Serializers ──────────────────────────────────────────────────


def _project_to_dict(project: Project) -> dict:
    return {
        "id": project.id,
        "userId": project.user_id,
        "name": project.name,
        "description": project.description,
        "created": project.created.isoformat() if project.created else None,
        "updated": project.updated.isoformat() if project.updated else None,
        "modVersion": project.mod_version,
        "minecraftVersion": project.minecraft_version,
        "neoForgeVersion": project.neoforge_version,
        "template": project.template,
    }


def _file_to_dict(rec: FileRecord) -> dict:
    return {
        "id": rec.id,
        "projectId": rec.project_id,
        "path": rec.path,
        "name": rec.name,
        "content": rec.content,
        "isFolder": rec.is_folder,
        "parentPath": rec.parent_path,
        "created": rec.created.isoformat() if rec.created else None,
        "updated": rec.updated.isoformat() if rec.updated else None,
    }


def _chat_to_dict(rec: ChatRecord) -> dict:
    return {
        "id": rec.id,
        "projectId": rec.project_id,
        "role": rec.role,
        "content": rec.content,
        "timestamp": rec.timestamp.isoformat() if rec.timestamp else None,
    }


def _node_to_dict(node: TreeNode) -> dict:
    if node.kind == "folder":
        return {
            "type": "folder",
            "name": node.name,
            "path": node.path,
            "children": [_node_to_dict(c) for c in node.children],
        }
    return {"type": "file", "name": node.name, "path": node.path, "content": node.content}


# ── Assistant routes ─────────────────────────────────────────────


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/chat")
async def chat(payload: dict[str, Any] | None = Body(None)):
    """Forward a conversation to the model and return its reply."""
    messages = (payload or {}).get("messages")
    if not messages or not isinstance(messages, list):
        raise HTTPException(status_code=400, detail="Messages array is required")

    conversation = []
    for msg in messages:
        if (not isinstance(msg, dict) or msg.get("role") not in ROLES
                or not isinstance(msg.get("content"), str)):
            raise HTTPException(
                status_code=400,
                detail="Each message needs a role of 'user' or 'assistant' and text content",
            )
        conversation.append({"role": msg["role"], "content": msg["content"]})

    try:
        text = await _get_vendor().complete(CHAT_SYSTEM_PROMPT, conversation, CHAT_MAX_TOKENS)
    except CreditExhaustedError:
        logger.warning("Vendor credit exhausted; serving canned chat reply")
        text = chat_fallback(conversation)
    except VendorError as e:
        logger.error("Error processing chat: %s", e)
        raise HTTPException(status_code=500, detail="Failed to get response from Claude")

    return {"message": {"role": "assistant", "content": text}}


@app.post("/api/generate-code")
async def generate_code(payload: dict[str, Any] | None = Body(None)):
    """Generate code for a natural language prompt."""
    payload = payload or {}
    prompt = payload.get("prompt")
    if not prompt or not isinstance(prompt, str):
        raise HTTPException(status_code=400, detail="Prompt is required")
    language = payload.get("language") or DEFAULT_LANGUAGE

    try:
        code = await _get_vendor().complete(
            code_generation_prompt(language),
            [{"role": "user", "content": prompt}],
            CODE_MAX_TOKENS,
        )
    except CreditExhaustedError:
        logger.warning("Vendor credit exhausted; serving code template")
        code = code_fallback(prompt)
    except VendorError as e:
        logger.error("Error generating code: %s", e)
        raise HTTPException(status_code=500, detail="Failed to generate code")

    return {"code": code}


@app.post("/api/fix-error")
async def fix_error(payload: dict[str, Any] | None = Body(None)):
    """Fix code given the error it produced."""
    payload = payload or {}
    code = payload.get("code")
    error_message = payload.get("errorMessage")
    if not code or not error_message or not isinstance(code, str) or not isinstance(error_message, str):
        raise HTTPException(status_code=400, detail="Code and error message are required")
    language = payload.get("language") or DEFAULT_LANGUAGE

    try:
        fixed = await _get_vendor().complete(
            error_fixing_prompt(language),
            [{"role": "user", "content": fix_request(code, error_message)}],
            CODE_MAX_TOKENS,
        )
    except CreditExhaustedError:
        logger.warning("Vendor credit exhausted; applying offline fixes")
        fixed = fix_fallback(code)
    except VendorError as e:
        logger.error("Error fixing code: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fix code")

    return {"fixedCode": fixed}


# ── Project routes ───────────────────────────────────────────────


class ProjectCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    name: str = Field(min_length=1)
    description: str | None = None
    mod_version: str = Field("1.0.0", alias="modVersion")
    minecraft_version: str = Field("1.21.5", alias="minecraftVersion")
    neoforge_version: str = Field("1.21.5", alias="neoForgeVersion")
    template: str | None = "empty"


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(None, min_length=1)
    description: str | None = None
    mod_version: str | None = Field(None, alias="modVersion")
    minecraft_version: str | None = Field(None, alias="minecraftVersion")
    neoforge_version: str | None = Field(None, alias="neoForgeVersion")
    template: str | None = None


class FileCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(min_length=1)
    name: str = Field(min_length=1)
    content: str | None = None
    is_folder: bool = Field(False, alias="isFolder")
    parent_path: str | None = Field(None, alias="parentPath")


class FileUpdate(BaseModel):
    content: str


class ChatMessageCreate(BaseModel):
    role: str
    content: str = Field(min_length=1)


def _require_project(storage: SQLiteStorage, project_id: int) -> Project:
    project = storage.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@app.get("/api/projects")
async def list_projects(userId: int = Query(..., description="Owner of the projects")):
    """Return a user's projects, most recently updated first."""
    projects = _get_storage().get_projects_by_user_id(userId)
    return [_project_to_dict(p) for p in projects]


@app.post("/api/projects", status_code=201)
async def create_project(request: ProjectCreate):
    """Create a project, seeded with the default mod skeleton unless blank."""
    storage = _get_storage()
    if not storage.get_user(request.user_id):
        raise HTTPException(status_code=404, detail="User not found")

    project = storage.create_project(
        user_id=request.user_id,
        name=request.name,
        description=request.description,
        mod_version=request.mod_version,
        minecraft_version=request.minecraft_version,
        neoforge_version=request.neoforge_version,
        template=request.template,
    )

    if request.template != "blank":
        for path, name, content, is_folder, parent_path in flatten_tree(default_project_structure()):
            storage.create_file(project.id, path, name, content, is_folder, parent_path)

    logger.info("Created project %d (%s) for user %d", project.id, project.name, project.user_id)
    return _project_to_dict(project)


@app.get("/api/projects/{project_id}")
async def get_project(project_id: int):
    return _project_to_dict(_require_project(_get_storage(), project_id))


@app.patch("/api/projects/{project_id}")
async def update_project(project_id: int, request: ProjectUpdate):
    changes = {
        k: v for k, v in request.model_dump(exclude_unset=True).items()
        if v is not None or k in ("description", "template")
    }
    project = _get_storage().update_project(project_id, **changes)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return _project_to_dict(project)


@app.delete("/api/projects/{project_id}")
async def delete_project(project_id: int):
    if not _get_storage().delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return {"deleted": True}


# ── File routes ──────────────────────────────────────────────────


@app.get("/api/projects/{project_id}/files")
async def list_files(project_id: int):
    storage = _get_storage()
    _require_project(storage, project_id)
    return [_file_to_dict(f) for f in storage.get_files_by_project_id(project_id)]


@app.get("/api/projects/{project_id}/tree")
async def get_tree(project_id: int):
    """Return the project's files nested as a folder tree."""
    storage = _get_storage()
    _require_project(storage, project_id)
    nodes = build_tree(storage.get_files_by_project_id(project_id))
    return [_node_to_dict(n) for n in nodes]


@app.post("/api/projects/{project_id}/files", status_code=201)
async def create_file(project_id: int, request: FileCreate):
    storage = _get_storage()
    _require_project(storage, project_id)
    rec = storage.create_file(
        project_id,
        path=request.path,
        name=request.name,
        content=None if request.is_folder else (request.content or ""),
        is_folder=request.is_folder,
        parent_path=request.parent_path,
    )
    return _file_to_dict(rec)


@app.put("/api/files/{file_id}")
async def update_file(file_id: int, request: FileUpdate):
    rec = _get_storage().update_file(file_id, request.content)
    if not rec:
        raise HTTPException(status_code=404, detail="File not found")
    return _file_to_dict(rec)


@app.delete("/api/files/{file_id}")
async def delete_file(file_id: int):
    if not _get_storage().delete_file(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return {"deleted": True}


# ── Chat history routes ──────────────────────────────────────────


@app.get("/api/projects/{project_id}/messages")
async def list_messages(project_id: int):
    storage = _get_storage()
    _require_project(storage, project_id)
    return [_chat_to_dict(m) for m in storage.get_chat_messages_by_project_id(project_id)]


@app.post("/api/projects/{project_id}/messages", status_code=201)
async def create_message(project_id: int, request: ChatMessageCreate):
    if request.role not in ROLES:
        raise HTTPException(status_code=400, detail="Role must be 'user' or 'assistant'")
    storage = _get_storage()
    _require_project(storage, project_id)
    rec = storage.create_chat_message(project_id, request.role, request.content)
    return _chat_to_dict(rec)
