"""FastAPI application exposing the documentation tools over HTTP."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from tgdocs.config import AppConfig
from tgdocs.index.cache import CacheEngine
from tgdocs.resources import ResourceHandler
from tgdocs.tools import ToolHandler

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="tgdocs", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_ENGINE: CacheEngine | None = None
_ENGINE_LOCK = threading.Lock()


class ToolCallPayload(BaseModel):
    arguments: Dict[str, Any] = Field(default_factory=dict)


class StatusResponse(BaseModel):
    origin: str
    document_count: int
    last_fetch_time: str | None
    is_stale: bool
    cache_dir: str


def configure_engine(engine: CacheEngine | None) -> None:
    """Install the engine shared by every request (None resets to defaults)."""
    global _ENGINE
    with _ENGINE_LOCK:
        _ENGINE = engine


def get_engine() -> CacheEngine:
    """Shared engine, built from the default config on first use."""
    global _ENGINE
    engine = _ENGINE
    if engine is not None:
        return engine
    # Sync dependencies run in a threadpool; build exactly one engine
    with _ENGINE_LOCK:
        if _ENGINE is None:
            _ENGINE = CacheEngine.from_config(AppConfig())
        return _ENGINE


def get_tool_handler(engine: CacheEngine = Depends(get_engine)) -> ToolHandler:
    return ToolHandler(engine)


def get_resource_handler(engine: CacheEngine = Depends(get_engine)) -> ResourceHandler:
    return ResourceHandler(engine)


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.get("/tools")
async def list_tools(tools: ToolHandler = Depends(get_tool_handler)) -> dict[str, List[Dict[str, Any]]]:
    return {"tools": tools.get_tools()}


@app.post("/tools/{name}")
async def call_tool(
    name: str,
    payload: ToolCallPayload | None = None,
    tools: ToolHandler = Depends(get_tool_handler),
) -> Dict[str, Any]:
    arguments = payload.arguments if payload is not None else {}
    # A cold cache may hit the network, keep that off the event loop
    return await asyncio.to_thread(tools.execute_tool, name, arguments)


@app.get("/resources")
async def list_resources(
    resources: ResourceHandler = Depends(get_resource_handler),
) -> dict[str, List[Dict[str, Any]]]:
    listed = await asyncio.to_thread(resources.list_resources)
    return {"resources": [resource.to_dict() for resource in listed]}


@app.get("/resources/read")
async def read_resource(
    uri: str,
    resources: ResourceHandler = Depends(get_resource_handler),
) -> Dict[str, Any]:
    if not uri.strip():
        raise HTTPException(status_code=400, detail="Empty resource URI")
    content = await asyncio.to_thread(resources.read_resource, uri)
    return {"contents": [content.to_dict()]}


@app.get("/status")
async def cache_status(engine: CacheEngine = Depends(get_engine)) -> StatusResponse:
    info = engine.status()
    return StatusResponse(
        origin=info.origin,
        document_count=info.document_count,
        last_fetch_time=info.last_fetch_time.isoformat() if info.last_fetch_time else None,
        is_stale=info.is_stale,
        cache_dir=str(info.cache_dir),
    )


@app.post("/refresh")
async def refresh_cache(engine: CacheEngine = Depends(get_engine)) -> dict[str, Any]:
    refreshed = await asyncio.to_thread(engine.refresh)
    if not refreshed:
        raise HTTPException(
            status_code=503,
            detail="Documentation site unavailable; still serving the existing cache.",
        )
    return {"status": "ok", "documents": engine.status().document_count}
