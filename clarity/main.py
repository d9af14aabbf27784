"""Clarity — FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from clarity.config import settings
from clarity.models.conflict import Conflict, ResolutionStatus
from clarity.models.draft import MAX_EDIT_LENGTH, ManualAction
from clarity.orchestrator.exporter import export_filename, export_json
from clarity.orchestrator.verifier import Verification, random_delay
from clarity.orchestrator.workspace import Workspace, WorkspaceMode, utcnow
from clarity.registry.loader import load_conflicts
from clarity.registry.registry import ConflictRegistry

logger = logging.getLogger(__name__)


def _verification_factory() -> Verification:
    return Verification(
        delay=random_delay(settings.verification_min_delay, settings.verification_max_delay),
        settle_delay=settings.verification_settle_delay,
    )


workspace = Workspace(ConflictRegistry(), verification_factory=_verification_factory)

# Background verification tasks, kept referenced until done
_tasks: set[asyncio.Task] = set()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    workspace.load(load_conflicts(settings.conflicts_path))
    yield
    for task in _tasks:
        task.cancel()
    await asyncio.gather(*_tasks, return_exceptions=True)


app = FastAPI(
    title="Clarity",
    description="Conflict resolution workspace for document corpora",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request models ---


class SelectRequest(BaseModel):
    conflict_id: str


class DraftUpdate(BaseModel):
    selected_temporal_id: str | None = None
    keep_history: bool = False
    selected_correct_id: str | None = None
    reasoning: str = ""


class ManualEditRequest(BaseModel):
    text: str = Field(max_length=MAX_EDIT_LENGTH)
    action: ManualAction = ManualAction.UPDATE


# --- Serialization ---


def _conflict_out(conflict: Conflict) -> dict:
    data = asdict(conflict)
    data["resolved_at"] = conflict.resolved_at.isoformat() if conflict.resolved_at else None
    return data


def _workspace_out() -> dict:
    draft = workspace.draft
    verification = workspace.verification
    return {
        "mode": workspace.mode.value,
        "selected_conflict_id": workspace.selected_conflict_id,
        "draft": asdict(draft) if draft is not None else None,
        "can_preview": workspace.can_preview(),
        "verification_log": list(verification.log) if verification else [],
        "open_count": workspace.registry.open_count(),
        "all_resolved": workspace.all_resolved,
    }


def _applied(ok: bool, action: str) -> dict:
    if not ok:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot {action} in mode {workspace.mode.value}",
        )
    return _workspace_out()


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/conflicts")
async def list_conflicts(status: ResolutionStatus | None = None):
    """List conflicts in registry order, optionally only those with ``status``."""
    return [
        _conflict_out(c)
        for c in workspace.conflicts
        if status is None or c.status is status
    ]


@app.get("/api/workspace")
async def get_workspace():
    return _workspace_out()


@app.post("/api/workspace/select")
async def select_conflict(req: SelectRequest):
    if req.conflict_id not in workspace.registry:
        raise HTTPException(status_code=404, detail="Conflict not found")
    return _applied(workspace.select(req.conflict_id), "select a conflict")


@app.post("/api/workspace/start")
async def start_resolution():
    return _applied(workspace.start_resolution(), "start resolution")


@app.post("/api/workspace/manual")
async def init_manual_draft():
    return _applied(workspace.init_manual_draft(), "start a manual edit")


@app.post("/api/workspace/cancel")
async def cancel_resolution():
    return _applied(workspace.cancel(), "cancel")


@app.patch("/api/workspace/draft")
async def update_draft(update: DraftUpdate):
    return _applied(
        workspace.update_draft(**update.model_dump(exclude_unset=True)), "update the draft"
    )


@app.put("/api/workspace/draft/edits/{mention_id}")
async def update_manual_edit(mention_id: str, req: ManualEditRequest):
    return _applied(
        workspace.update_manual_edit(mention_id, req.text, req.action), "edit a mention"
    )


@app.post("/api/workspace/preview")
async def go_to_preview():
    if workspace.mode is WorkspaceMode.RESOLVE and not workspace.can_preview():
        raise HTTPException(status_code=422, detail="Draft is incomplete")
    return _applied(workspace.go_to_preview(), "preview")


@app.get("/api/workspace/preview")
async def get_preview():
    preview = workspace.preview()
    if preview is None:
        raise HTTPException(status_code=404, detail="No draft in progress")
    return asdict(preview)


@app.post("/api/workspace/edit")
async def return_to_edit():
    return _applied(workspace.return_to_edit(), "return to edit")


@app.post("/api/workspace/submit")
async def submit_resolution():
    """Submit the previewed draft and start verification.

    Returns immediately.  Connect to the WebSocket at /ws/verification to
    stream progress messages.
    """
    verification = workspace.submit()
    if verification is None:
        raise HTTPException(
            status_code=409, detail=f"Cannot submit in mode {workspace.mode.value}"
        )
    verification.subscribe(_broadcast_step)

    # Run verification in background so the POST returns fast
    task = asyncio.create_task(_run_verification())
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return _workspace_out()


@app.post("/api/workspace/advance")
async def advance():
    return _applied(workspace.advance(), "advance")


@app.get("/api/export")
async def download_export():
    if not workspace.all_resolved:
        raise HTTPException(status_code=409, detail="Open conflicts remain")
    now = utcnow()
    return Response(
        content=export_json(workspace.conflicts, settings.operator, now),
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(now.date())}"'
        },
    )


# --- WebSocket ---

_ws_connections: list[WebSocket] = []


@app.websocket("/ws/verification")
async def verification_ws(websocket: WebSocket):
    """Stream verification progress; replays the current run's log on connect."""
    await websocket.accept()
    _ws_connections.append(websocket)
    try:
        if workspace.verification is not None:
            for step in workspace.verification.log:
                await websocket.send_json({"type": "step", "message": step})
        # Inbound messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Verification stream client disconnected")
    finally:
        if websocket in _ws_connections:
            _ws_connections.remove(websocket)


async def _broadcast(message: dict) -> None:
    """Send a message to all connected WebSocket clients."""
    for ws in list(_ws_connections):
        try:
            await ws.send_json(message)
        except Exception as exc:
            logger.debug("Dropping WebSocket client: %s", exc)
            if ws in _ws_connections:
                _ws_connections.remove(ws)


async def _broadcast_step(step: str) -> None:
    await _broadcast({"type": "step", "message": step})


# --- Verification ---


async def _run_verification() -> None:
    conflict_id = workspace.selected_conflict_id
    try:
        resolved = await workspace.verify()
        await _broadcast({
            "type": "status",
            "stage": "resolved" if resolved else "failed",
            "conflict_id": conflict_id,
        })
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Verification failed for conflict %s", conflict_id)
        await _broadcast({"type": "error", "detail": "Verification failed"})
