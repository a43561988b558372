"""Tests for the in-memory session store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest

import audio_insight_mcp.config as cfg_mod
from audio_insight_mcp.models.session import Phase
from audio_insight_mcp.sessions import SessionStore
from tests.conftest import StubAnalyzer


class TestSessionStore:
    def test_create_session(self):
        store = SessionStore()
        session = store.create()
        assert session.session_id
        assert session.controller.state.phase is Phase.IDLE
        assert session.controller.state.csv_header_template == "名前, 電話番号, 要約"

    def test_create_with_header(self, stub_analyzer):
        store = SessionStore()
        session = store.create(csv_header_template="Name,Phone,Summary", analyzer=stub_analyzer)
        assert session.controller.state.csv_header_template == "Name,Phone,Summary"
        assert session.controller.analyzer is stub_analyzer

    def test_get_session(self):
        store = SessionStore()
        session = store.create()
        found = store.get(session.session_id)
        assert found is session

    def test_get_missing_session(self):
        store = SessionStore()
        assert store.get("nonexistent") is None

    def test_require_raises(self):
        with pytest.raises(KeyError, match="not found"):
            SessionStore().require("nonexistent")

    def test_remove(self):
        store = SessionStore()
        session = store.create()
        assert store.remove(session.session_id) is True
        assert store.remove(session.session_id) is False
        assert store.count == 0

    def test_eviction_by_max(self):
        store = SessionStore()
        cfg_mod._config = cfg_mod.ServerConfig(max_sessions=2, session_timeout_hours=24)
        first = store.create()
        store.create()
        store.create()  # Should evict oldest
        assert store.count == 2
        assert store.get(first.session_id) is None

    def test_eviction_by_timeout(self):
        store = SessionStore()
        cfg_mod._config = cfg_mod.ServerConfig(session_timeout_hours=1)
        session = store.create()
        session.last_active = datetime.now() - timedelta(hours=2)
        assert store.get(session.session_id) is None
        assert store.count == 0

    def test_processing_session_survives_timeout(self, wav_selection):
        store = SessionStore()
        cfg_mod._config = cfg_mod.ServerConfig(session_timeout_hours=1)
        session = store.create()
        ctl = session.controller
        ctl.select_file(wav_selection)
        ctl.set_api_key("key")
        ctl._state = ctl.state.model_copy(update={"is_processing": True})
        session.last_active = datetime.now() - timedelta(hours=2)
        assert store.get(session.session_id) is session

    async def test_in_flight_session_survives_capacity_eviction(self, wav_selection, taro_result):
        release = asyncio.Event()

        class BlockingAnalyzer(StubAnalyzer):
            async def analyze(self, request):
                await release.wait()
                return await super().analyze(request)

        store = SessionStore()
        cfg_mod._config = cfg_mod.ServerConfig(max_sessions=1, session_timeout_hours=24)
        busy = store.create(analyzer=BlockingAnalyzer(result=taro_result))
        busy.controller.select_file(wav_selection)
        busy.controller.set_api_key("key")
        task = asyncio.create_task(busy.controller.begin_analysis())
        await asyncio.sleep(0)
        assert busy.controller.state.is_processing

        store.create()
        assert store.get(busy.session_id) is busy
        assert store.count == 2

        release.set()
        await task
        assert store.require(busy.session_id).controller.state.phase is Phase.COMPLETED

    def test_capacity_evicts_idle_before_busy(self):
        store = SessionStore()
        cfg_mod._config = cfg_mod.ServerConfig(max_sessions=2, session_timeout_hours=24)
        busy = store.create()
        busy.controller._state = busy.controller.state.model_copy(update={"is_processing": True})
        idle = store.create()
        busy.last_active = datetime.now() - timedelta(minutes=5)
        store.create()
        assert store.get(busy.session_id) is busy
        assert store.get(idle.session_id) is None
