"""Tests for the HTTP surface."""

from __future__ import annotations

import asyncio
import json

from httpx import AsyncClient

from clarity import main
from clarity.orchestrator.workspace import Workspace
from tests.fixtures.factories import FIXED_NOW


async def _drain_verifications() -> None:
    if main._tasks:
        await asyncio.gather(*list(main._tasks))


class TestReadEndpoints:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.json() == {"status": "ok"}

    async def test_list_conflicts(self, client: AsyncClient) -> None:
        response = await client.get("/api/conflicts")
        body = response.json()
        assert [c["id"] for c in body] == ["C-001", "C-002", "C-003"]
        assert body[0]["type"] == "TEMPORAL"
        assert body[0]["status"] == "OPEN"
        assert body[0]["resolved_at"] is None
        assert body[0]["mentions"][0]["doc_name"] == "2022_Healthcare_RFP.pdf"

    async def test_workspace_state(self, client: AsyncClient) -> None:
        body = (await client.get("/api/workspace")).json()
        assert body["mode"] == "view"
        assert body["selected_conflict_id"] == "C-001"
        assert body["draft"] is None
        assert body["can_preview"] is False
        assert body["open_count"] == 3

    async def test_filter_conflicts_by_status(
        self, client: AsyncClient, workspace: Workspace
    ) -> None:
        workspace.registry.mark_resolved("C-002", FIXED_NOW)
        open_ids = [c["id"] for c in (await client.get("/api/conflicts?status=OPEN")).json()]
        assert open_ids == ["C-001", "C-003"]
        resolved = (await client.get("/api/conflicts", params={"status": "RESOLVED"})).json()
        assert [c["id"] for c in resolved] == ["C-002"]
        assert (await client.get("/api/workspace")).json()["open_count"] == 2


class TestResolutionFlow:
    """End-to-end resolution through the API."""

    async def test_contradiction_flow(self, client: AsyncClient, workspace: Workspace) -> None:
        assert (await client.post("/api/workspace/select", json={"conflict_id": "C-002"})).status_code == 200
        body = (await client.post("/api/workspace/start")).json()
        assert body["mode"] == "resolve"
        assert body["draft"]["kind"] == "contradiction"

        await client.patch(
            "/api/workspace/draft", json={"selected_correct_id": "m4", "reasoning": "ok"}
        )
        response = await client.post("/api/workspace/preview")
        assert response.status_code == 422

        await client.patch(
            "/api/workspace/draft", json={"reasoning": "Confirmed via compliance audit"}
        )
        response = await client.post("/api/workspace/preview")
        assert response.status_code == 200
        assert response.json()["mode"] == "preview"

        preview = (await client.get("/api/workspace/preview")).json()
        assert preview["verified"]["id"] == "m4"

        response = await client.post("/api/workspace/submit")
        assert response.status_code == 200
        assert response.json()["mode"] == "verifying"

        blocked = await client.post("/api/workspace/select", json={"conflict_id": "C-001"})
        assert blocked.status_code == 409

        await _drain_verifications()
        body = (await client.get("/api/workspace")).json()
        assert body["mode"] == "resolved"
        assert len(body["verification_log"]) == 5
        assert workspace.registry.get("C-002").resolved_at is not None

        body = (await client.post("/api/workspace/advance")).json()
        assert body["selected_conflict_id"] == "C-001"

    async def test_manual_edit_flow(self, client: AsyncClient) -> None:
        await client.post("/api/workspace/select", json={"conflict_id": "C-003"})
        await client.post("/api/workspace/manual")
        response = await client.put(
            "/api/workspace/draft/edits/m7",
            json={"text": "Customer will pay $50,000 monthly", "action": "CLARIFY"},
        )
        edit = response.json()["draft"]["edits"]["m7"]
        assert edit == {
            "text": "Customer will pay $50,000 monthly",
            "action": "CLARIFY",
            "is_dirty": True,
        }
        assert (await client.post("/api/workspace/preview")).status_code == 200
        preview = (await client.get("/api/workspace/preview")).json()
        spans = preview["edits"][0]["diff"]["spans"]
        assert [s["op"] for s in spans] == ["delete", "insert"]

    async def test_null_draft_fields_rejected(self, client: AsyncClient) -> None:
        await client.post("/api/workspace/select", json={"conflict_id": "C-002"})
        await client.post("/api/workspace/start")
        await client.patch("/api/workspace/draft", json={"selected_correct_id": "m4"})

        response = await client.patch("/api/workspace/draft", json={"reasoning": None})
        assert response.status_code == 422
        response = await client.patch("/api/workspace/draft", json={"keep_history": None})
        assert response.status_code == 422

        body = (await client.get("/api/workspace")).json()
        assert body["draft"]["reasoning"] == ""
        assert body["can_preview"] is False

    async def test_blank_selection_blocks_preview(self, client: AsyncClient) -> None:
        await client.post("/api/workspace/start")
        await client.patch("/api/workspace/draft", json={"selected_temporal_id": ""})
        assert (await client.post("/api/workspace/preview")).status_code == 422

    async def test_overlong_edit_rejected(self, client: AsyncClient) -> None:
        await client.post("/api/workspace/select", json={"conflict_id": "C-003"})
        await client.post("/api/workspace/manual")
        response = await client.put("/api/workspace/draft/edits/m6", json={"text": "x" * 1001})
        assert response.status_code == 422

    async def test_refused_actions_are_conflicts(self, client: AsyncClient) -> None:
        assert (await client.post("/api/workspace/cancel")).status_code == 409
        assert (await client.post("/api/workspace/submit")).status_code == 409
        assert (await client.post("/api/workspace/advance")).status_code == 409

    async def test_select_unknown(self, client: AsyncClient) -> None:
        response = await client.post("/api/workspace/select", json={"conflict_id": "C-404"})
        assert response.status_code == 404


class TestExportEndpoint:
    async def test_export_blocked_while_open(self, client: AsyncClient) -> None:
        assert (await client.get("/api/export")).status_code == 409

    async def test_export_download(self, client: AsyncClient, workspace: Workspace) -> None:
        for conflict in workspace.conflicts:
            workspace.registry.mark_resolved(conflict.id, FIXED_NOW)
        response = await client.get("/api/export")
        assert response.status_code == 200
        assert "Clarity_Resolution_Log_" in response.headers["content-disposition"]
        document = json.loads(response.content.decode("utf-8"))
        assert document["summary"] == {"totalConflicts": 3, "resolved": 3}
        assert len(document["auditLog"]) == 3
