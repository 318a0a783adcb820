"""FastAPI application exposing the summarization pipeline."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from docscreener.client.openai_api import SummarizationClient, SummarizationError
from docscreener.config import AppConfig, ConfigError
from docscreener.ingestion.loader import load_documents
from docscreener.models import ProcessedResult
from docscreener.pipeline.orchestrator import PipelineOrchestrator, SummaryRun
from docscreener.utils.text import parse_keywords
from docscreener.workspace import Workspace

LOGGER = logging.getLogger(__name__)

router = APIRouter()


class LoadPayload(BaseModel):
    paths: List[str]


class RunPayload(BaseModel):
    keys: List[str] | None = None
    model: str | None = None
    keywords: str | None = None
    prompt: str | None = None
    max_tokens: int | None = None
    include_prompt: bool | None = None
    api_key: str | None = None


def _build_client(config: AppConfig) -> SummarizationClient:
    return SummarizationClient(config.api_key, api_base=config.api_base, timeout=config.timeout)


def _resolve_config(request: Request) -> AppConfig:
    try:
        return AppConfig.load(request.app.state.settings_path)
    except ConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _serialize(result: ProcessedResult, *, detail: bool = False) -> Dict[str, Any]:
    document = result.document
    data: Dict[str, Any] = {
        "key": document.key,
        "processing": result.processing,
        "progress": result.progress,
        "summary_generated": result.summary_generated,
    }
    if detail:
        data.update(
            {
                "path": str(document.path),
                "created_at": document.created_at.isoformat() if document.created_at else None,
                "modified_at": document.modified_at.isoformat() if document.modified_at else None,
                "text": document.text,
                "summary": result.summary,
            }
        )
    return data


@router.post("/documents/load")
async def load(payload: LoadPayload, request: Request) -> Dict[str, Any]:
    paths = [Path(p.strip()).expanduser() for p in payload.paths if p.strip()]
    if not paths:
        raise HTTPException(status_code=400, detail="No path provided")
    missing = [str(path) for path in paths if not path.exists()]
    if missing:
        raise HTTPException(status_code=404, detail=f"Path not found: {', '.join(missing)}")

    report = await asyncio.to_thread(load_documents, paths)
    workspace: Workspace = request.app.state.workspace
    workspace.add(report.documents)
    return {
        "status": "ok",
        "success_count": report.success_count,
        "failed_count": report.failed_count,
        "failed": [str(path) for path in report.failed],
    }


@router.get("/documents")
async def list_documents(request: Request) -> Dict[str, Any]:
    workspace: Workspace = request.app.state.workspace
    return {"documents": [_serialize(result) for result in workspace.sorted_results()]}


@router.get("/documents/{key}")
async def get_document(key: str, request: Request) -> Dict[str, Any]:
    workspace: Workspace = request.app.state.workspace
    result = workspace.result(key)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Document {key} not found")
    return _serialize(result, detail=True)


@router.post("/run")
async def run_analysis(payload: RunPayload, request: Request) -> Dict[str, Any]:
    config = _resolve_config(request)
    if payload.model is not None:
        config.model_id = payload.model
    if payload.keywords is not None:
        config.keywords = parse_keywords(payload.keywords)
    if payload.prompt is not None:
        config.assistant_prompt = payload.prompt
    if payload.max_tokens is not None:
        if payload.max_tokens < 1:
            raise HTTPException(status_code=400, detail="max_tokens must be positive")
        config.max_tokens = payload.max_tokens
    if payload.include_prompt is not None:
        config.include_prompt_in_output = payload.include_prompt
    if payload.api_key:
        config.api_key = payload.api_key

    if not config.model_id:
        raise HTTPException(status_code=400, detail="No model selected")
    if not config.api_key:
        raise HTTPException(status_code=400, detail="No API key configured")

    workspace: Workspace = request.app.state.workspace
    documents = workspace.documents(payload.keys)
    if not documents:
        raise HTTPException(status_code=404, detail="No documents loaded")

    busy = [doc.key for doc in documents if workspace.tracker.is_running(doc.key)]
    idle = [doc for doc in documents if doc.key not in busy]
    if not idle:
        raise HTTPException(status_code=409, detail="All selected documents are already running")

    orchestrator = PipelineOrchestrator(
        _build_client(config), tracker=workspace.tracker, on_outcome=workspace.record
    )
    run = orchestrator.start(idle, config)

    runs: List[SummaryRun] = request.app.state.runs
    runs[:] = [existing for existing in runs if not existing.done]
    runs.append(run)

    return {
        "status": "started",
        "started_at": run.started_at.isoformat(),
        "documents": run.keys,
        "rejected": busy,
    }


@router.get("/models")
async def list_models(request: Request, api_key: str | None = None) -> Dict[str, Any]:
    config = _resolve_config(request)
    if api_key:
        config.api_key = api_key
    try:
        models = await asyncio.to_thread(_build_client(config).list_models)
    except SummarizationError as exc:
        LOGGER.error("Failed to fetch models: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"models": models}


def create_app(
    workspace: Workspace | None = None, settings_path: Path | None = None
) -> FastAPI:
    """Build the API around a workspace. Settings are read from `settings_path`
    (or the default location) and never from request data."""
    application = FastAPI(title="DocScreener Web", version="0.1.0")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.state.workspace = workspace if workspace is not None else Workspace()
    application.state.settings_path = settings_path
    application.state.runs = []
    application.include_router(router)

    @application.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    return application


app = create_app()
