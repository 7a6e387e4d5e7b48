import pytest

from refgen.core.exceptions import SessionNotFound
from refgen.services.fake_generation_service import FakeGenerationService
from refgen.services.session_manager import SessionManager


@pytest.fixture
def manager():
    return SessionManager(lambda: FakeGenerationService(latency=0.0))


class TestSessionLifecycle:
    async def test_unknown_session_raises(self, manager):
        with pytest.raises(SessionNotFound):
            manager.get("missing")
        with pytest.raises(SessionNotFound):
            await manager.close_session("missing")

    async def test_sessions_share_one_arena(self, manager, png_files):
        first = manager.get(manager.create("project-1"))
        second = manager.get(manager.create("project-2"))

        handle = first.add_attachments(png_files[:1])[0]

        assert second.state.attachments.arena is manager.arena
        assert manager.get_blob(handle) == png_files[0]


class TestCloseSession:
    async def test_close_frees_submitted_attachments(self, manager, png_files):
        session_id = manager.create("project-1")
        orchestrator = manager.get(session_id)
        orchestrator.add_attachments(png_files)

        await orchestrator.submit("hello")
        orchestrator.clear(clear_history=True)
        assert len(manager.arena) == 2

        await manager.close_session(session_id)

        assert len(manager.arena) == 0

    async def test_close_leaves_other_sessions_attachments(self, manager, png_files):
        closing = manager.create("project-1")
        keeping = manager.create("project-2")
        manager.get(closing).add_attachments(png_files[:1])
        await manager.get(closing).submit("hello")
        kept = manager.get(keeping).add_attachments(png_files[1:])
        await manager.get(keeping).submit("hello")

        await manager.close_session(closing)

        assert len(manager.arena) == 1
        assert kept[0] in manager.arena

    async def test_close_all(self, manager, png_files):
        for project_id in ("project-1", "project-2"):
            orchestrator = manager.get(manager.create(project_id))
            orchestrator.add_attachments(png_files[:1])
            await orchestrator.submit("hello")

        await manager.close()

        assert len(manager.arena) == 0
        with pytest.raises(SessionNotFound):
            manager.get("project-1")
