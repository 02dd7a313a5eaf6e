"""Tests for /scenes endpoints."""

import pytest

from app.config import settings
from texel_scene import CURRENT_VERSION


def v1_payload():
    """A 3x1 version 1 scene with one non-default color."""
    black = {"r": 0, "g": 0, "b": 0}
    white = {"r": 255, "g": 255, "b": 255}
    orange = {"r": 255, "g": 165, "b": 0}
    return {
        "version": 1,
        "canvas": {"width": 3, "height": 1},
        "layers": [
            {
                "id": 0,
                "name": "base",
                "width": 3,
                "height": 1,
                "cells": [[
                    {"glyph": "a", "fg": white, "bg": black},
                    {"glyph": "b", "fg": orange, "bg": black, "styles": ["bold"]},
                    {"glyph": "c", "fg": white, "bg": black},
                ]],
            }
        ],
    }


def v3_payload():
    return {
        "version": 3,
        "canvas": {"width": 2, "height": 2},
        "layers": [
            {
                "id": 0,
                "width": 2,
                "height": 2,
                "cells": [[{"glyph": "x", "fg": 9}, {"glyph": "y", "styles": ["italic"]}], [{}, {}]],
                "labels": ["bg"],
            }
        ],
        "bookmarks": {"0": {"x": 1, "y": 1}},
        "frames": [{"layer_ids": [0], "duration_ms": 40}],
    }


class TestVersions:
    """Tests for GET /scenes/versions."""

    @pytest.mark.asyncio
    async def test_list_versions(self, client):
        response = await client.get("/scenes/versions")
        assert response.status_code == 200
        data = response.json()
        assert data["current_version"] == CURRENT_VERSION
        assert data["versions"] == [1, 2, 3]
        assert data["lossy_upgrades"] == {"1": ["selected"]}


class TestValidate:
    """Tests for POST /scenes/validate."""

    @pytest.mark.asyncio
    async def test_valid(self, client):
        response = await client.post("/scenes/validate", json=v3_payload())
        assert response.status_code == 200
        assert response.json() == {"valid": True, "version": 3, "violations": []}

    @pytest.mark.asyncio
    async def test_violations_reported(self, client):
        payload = v3_payload()
        payload["frames"][0]["layer_ids"] = [0, 4]
        response = await client.post("/scenes/validate", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is False
        assert data["violations"][0]["path"] == "/frames/0/layer_ids/1"

    @pytest.mark.asyncio
    async def test_unknown_version(self, client):
        response = await client.post("/scenes/validate", json={"version": CURRENT_VERSION + 1})
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "unknown_version"

    @pytest.mark.asyncio
    async def test_missing_tag(self, client):
        response = await client.post("/scenes/validate", json={"canvas": {"width": 1, "height": 1}})
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "decode_error"


class TestMigrate:
    """Tests for POST /scenes/migrate."""

    @pytest.mark.asyncio
    async def test_upgrade_to_current(self, client):
        response = await client.post("/scenes/migrate", json=v1_payload())
        assert response.status_code == 200

        data = response.json()
        assert data["source_version"] == 1
        assert data["target_version"] == CURRENT_VERSION
        assert data["steps"] == [{"source": 1, "target": 2}, {"source": 2, "target": 3}]
        assert data["discarded"] == []
        assert data["lossy"] is False

        scene = data["scene"]
        assert scene["version"] == 3
        assert scene["palette"][16] == {"r": 255, "g": 165, "b": 0}
        assert scene["layers"][0]["cells"][0][1]["fg"] == 16
        assert scene["layers"][0]["cells"][0][1]["styles"] == ["bold"]
        assert scene["layers"][0]["visible"] is True

    @pytest.mark.asyncio
    async def test_downgrade_reports_discarded(self, client):
        response = await client.post("/scenes/migrate", params={"target_version": 1}, json=v3_payload())
        assert response.status_code == 200

        data = response.json()
        assert data["lossy"] is True
        assert data["discarded"] == [
            "bookmarks", "frames", "italic", "labels", "palette", "visible"
        ]
        cell = data["scene"]["layers"][0]["cells"][0][0]
        assert cell["fg"] == {"r": 255, "g": 0, "b": 0}

    @pytest.mark.asyncio
    async def test_same_version(self, client):
        response = await client.post("/scenes/migrate", params={"target_version": 3}, json=v3_payload())
        assert response.status_code == 200
        data = response.json()
        assert data["steps"] == []
        assert data["lossy"] is False

    @pytest.mark.asyncio
    async def test_unknown_target(self, client):
        response = await client.post(
            "/scenes/migrate", params={"target_version": CURRENT_VERSION + 1}, json=v1_payload()
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "unknown_version"

    @pytest.mark.asyncio
    async def test_schema_violation(self, client):
        payload = v1_payload()
        payload["layers"][0]["width"] = 4
        response = await client.post("/scenes/migrate", json=payload)
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "schema_violation"
        assert detail["detail"][0]["path"] == "/layers/0/cells/0"

    @pytest.mark.asyncio
    async def test_lossy_downgrade_rejected_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "reject_lossy_downgrades", True)
        response = await client.post("/scenes/migrate", params={"target_version": 2}, json=v3_payload())
        assert response.status_code == 409
        assert response.json()["detail"]["detail"] == ["bookmarks", "frames", "labels"]

    @pytest.mark.asyncio
    async def test_lossy_upgrade_allowed_when_configured(self, client, monkeypatch):
        payload = v1_payload()
        payload["layers"][0]["selected"] = True
        monkeypatch.setattr(settings, "reject_lossy_downgrades", True)
        response = await client.post("/scenes/migrate", json=payload)
        assert response.status_code == 200
        assert response.json()["discarded"] == ["selected"]

    @pytest.mark.asyncio
    async def test_default_target_from_settings(self, client, monkeypatch):
        monkeypatch.setattr(settings, "default_target_version", 2)
        response = await client.post("/scenes/migrate", json=v1_payload())
        assert response.status_code == 200
        assert response.json()["scene"]["version"] == 2


class TestEdit:
    """Tests for POST /scenes/edit."""

    @pytest.mark.asyncio
    async def test_edit_upgrades_first(self, client):
        request = {
            "scene": v1_payload(),
            "edit_set": {
                "description": "hide and resize",
                "edits": [
                    {"op": "set_layer_visibility", "params": {"layer_id": 0, "visible": False}},
                    {"op": "resize_canvas", "params": {"width": 2, "height": 2}},
                ],
            },
        }
        response = await client.post("/scenes/edit", json=request)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["edits_applied"] == 2
        scene = data["scene"]
        assert scene["version"] == CURRENT_VERSION
        assert scene["canvas"] == {"width": 2, "height": 2}
        assert scene["layers"][0]["visible"] is False
        assert len(scene["layers"][0]["cells"]) == 2

    @pytest.mark.asyncio
    async def test_rejected_edit_set(self, client):
        request = {
            "scene": v3_payload(),
            "edit_set": {
                "edits": [
                    {"op": "add_palette_entry", "params": {"color": {"r": 1, "g": 1, "b": 1}}},
                    {"op": "remove_layer", "params": {"layer_id": 0}},
                ],
            },
        }
        response = await client.post("/scenes/edit", json=request)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is False
        assert data["edits_applied"] == 0
        assert data["scene"] is None
        assert data["errors"][0]["edit_index"] == 1
        assert data["errors"][0]["op"] == "remove_layer"

    @pytest.mark.asyncio
    async def test_invalid_scene(self, client):
        payload = v3_payload()
        payload["layers"][0]["cells"][0][0]["fg"] = 99
        response = await client.post("/scenes/edit", json={"scene": payload, "edit_set": {"edits": []}})
        assert response.status_code == 422
