"""Tests for the AutoReloader subsystem."""

from __future__ import annotations

import asyncio
import contextlib
import logging

import pytest

from autoreload.config.schema import WatchConfig
from autoreload.errors import MisconfigurationError, SharingViolation
from autoreload.ports import MemoryToggleHost, StaticRegistrationSource
from autoreload.reloader import AutoReloader
from tests.utils import FakeStorage, wait_for

FAST = WatchConfig(poll_interval=0.01, check_interval=0.0, enabled_by_default=True)


@pytest.fixture
def reloader(storage: FakeStorage, toggles: MemoryToggleHost) -> AutoReloader:
    return AutoReloader(config=FAST, storage=storage, toggles=toggles)


class TestStart:
    """Tests for starting the subsystem."""

    @pytest.mark.asyncio
    async def test_watches_non_empty_paths(
        self, reloader: AutoReloader, toggles: MemoryToggleHost
    ) -> None:
        source = StaticRegistrationSource(
            {"diffuse": "tex/skin_d.png", "specular": "", "normal": "tex/skin_n.png"}
        )
        assert reloader.start(source) is True
        assert reloader.is_running() is True
        assert reloader.watch_set is not None
        assert reloader.watch_set.paths == ["tex/skin_d.png", "tex/skin_n.png"]
        assert [t.label for t in toggles.toggles] == ["tex/skin_d.png", "tex/skin_n.png"]

        reloader.stop()
        await reloader.wait_stopped()

    @pytest.mark.asyncio
    async def test_shared_file_watched_once(self, reloader: AutoReloader) -> None:
        source = StaticRegistrationSource({"diffuse": "tex/a.png", "decal": "tex/./a.png"})
        reloader.start(source)
        assert reloader.watch_set is not None
        assert len(reloader.watch_set) == 1

        reloader.stop()
        await reloader.wait_stopped()

    @pytest.mark.asyncio
    async def test_rejects_unsupported_host(
        self, reloader: AutoReloader, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a host without the registration interface fails fast."""
        with caplog.at_level(logging.ERROR, logger="autoreload"):
            assert reloader.start(object()) is False
        assert reloader.is_running() is False
        assert reloader.watch_set is None
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    @pytest.mark.asyncio
    async def test_rejects_unknown_algorithm(
        self, storage: FakeStorage, caplog: pytest.LogCaptureFixture
    ) -> None:
        reloader = AutoReloader(config=WatchConfig(algorithm="nope"), storage=storage)
        with caplog.at_level(logging.ERROR, logger="autoreload"):
            assert reloader.start(StaticRegistrationSource({"a": "a.png"})) is False
        assert reloader.watch_set is None

    @pytest.mark.asyncio
    async def test_failing_source_releases_toggles(
        self, reloader: AutoReloader, toggles: MemoryToggleHost
    ) -> None:
        """Test that a source failing mid-registration leaves nothing behind."""

        class ExplodingSource(StaticRegistrationSource):
            def watch_targets(self):  # type: ignore[override]
                yield ("diffuse", "tex/a.png")
                raise RuntimeError("host went away")

        assert reloader.start(ExplodingSource({})) is False
        assert toggles.toggles == []
        assert reloader.watch_set is None

    @pytest.mark.asyncio
    async def test_start_while_running(
        self, reloader: AutoReloader, caplog: pytest.LogCaptureFixture
    ) -> None:
        source = StaticRegistrationSource({"diffuse": "tex/a.png"})
        assert reloader.start(source) is True
        with caplog.at_level(logging.WARNING, logger="autoreload"):
            assert reloader.start(source) is False
        assert any("already running" in r.getMessage() for r in caplog.records)

        reloader.stop()
        await reloader.wait_stopped()


class TestStop:
    """Tests for stopping the subsystem."""

    @pytest.mark.asyncio
    async def test_stop_releases_everything(
        self, reloader: AutoReloader, toggles: MemoryToggleHost
    ) -> None:
        reloader.start(StaticRegistrationSource({"a": "tex/a.png", "b": "tex/b.png"}))
        assert len(toggles.toggles) == 2

        reloader.stop()
        assert reloader.is_running() is False
        assert reloader.watch_set is None
        assert toggles.toggles == []
        await reloader.wait_stopped()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, reloader: AutoReloader) -> None:
        reloader.stop()
        await reloader.wait_stopped()
        assert reloader.is_running() is False

    @pytest.mark.asyncio
    async def test_restart_rebuilds_from_source(
        self, reloader: AutoReloader, toggles: MemoryToggleHost
    ) -> None:
        reloader.start(StaticRegistrationSource({"a": "tex/a.png"}))
        reloader.stop()
        reloader.start(StaticRegistrationSource({"b": "tex/b.png"}))
        assert [t.label for t in toggles.toggles] == ["tex/b.png"]

        reloader.stop()
        await reloader.wait_stopped()

    @pytest.mark.asyncio
    async def test_restart_after_cancelled_poller_releases_old_toggles(
        self, reloader: AutoReloader, storage: FakeStorage, toggles: MemoryToggleHost
    ) -> None:
        """Test that watches left by a cancelled poller task are released on restart."""
        storage.write("tex/a.png", b"v1")
        source = StaticRegistrationSource({"diffuse": "tex/a.png"})
        assert reloader.start(source) is True
        poller = reloader.poller
        assert poller is not None
        await wait_for(lambda: poller.tick_count >= 1)

        task = poller._task
        assert task is not None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        assert reloader.is_running() is False

        assert reloader.start(source) is True
        assert [t.label for t in toggles.toggles] == ["tex/a.png"]

        reloader.stop()
        await reloader.wait_stopped()
        assert toggles.toggles == []

    @pytest.mark.asyncio
    async def test_restart_after_poller_cancelled_before_first_step(
        self, reloader: AutoReloader, toggles: MemoryToggleHost
    ) -> None:
        source = StaticRegistrationSource({"diffuse": "tex/a.png"})
        assert reloader.start(source) is True
        task = reloader.poller._task  # type: ignore[union-attr]
        assert task is not None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        assert reloader.is_running() is False

        assert reloader.start(source) is True
        assert reloader.is_running() is True
        assert len(toggles.toggles) == 1

        reloader.stop()
        await reloader.wait_stopped()
        assert toggles.toggles == []


class TestChangeDispatch:
    """Tests for notifying the host about changed files."""

    @pytest.mark.asyncio
    async def test_every_matching_slot_reloaded(
        self, reloader: AutoReloader
    ) -> None:
        source = StaticRegistrationSource(
            {"diffuse": "tex/a.png", "decal": "tex/./a.png", "normal": "tex/b.png"}
        )
        reloader.start(source)

        reloader._on_file_changed("tex/a.png")
        assert source.reloads == [("diffuse", "tex/a.png"), ("decal", "tex/a.png")]

        reloader.stop()
        await reloader.wait_stopped()

    @pytest.mark.asyncio
    async def test_sink_errors_contained(
        self, reloader: AutoReloader, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a locked reload is silent and other failures are logged."""
        calls: list[str] = []

        def on_reload(name: str, path: str) -> None:
            calls.append(name)
            if name == "diffuse":
                raise SharingViolation(path)
            if name == "decal":
                raise RuntimeError("bad image data")

        source = StaticRegistrationSource(
            {"diffuse": "tex/a.png", "decal": "tex/a.png", "gloss": "tex/a.png"},
            on_reload=on_reload,
        )
        reloader.start(source)

        with caplog.at_level(logging.DEBUG, logger="autoreload"):
            reloader._on_file_changed("tex/a.png")

        assert calls == ["diffuse", "decal", "gloss"]
        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert "bad image data" in errors[0].getMessage()

        reloader.stop()
        await reloader.wait_stopped()

    @pytest.mark.asyncio
    async def test_end_to_end(self, reloader: AutoReloader, storage: FakeStorage) -> None:
        storage.write("tex/a.png", b"v1")
        source = StaticRegistrationSource({"diffuse": "tex/a.png"})

        async with reloader.watching(source) as running:
            assert running.poller is not None
            await wait_for(lambda: running.poller.tick_count >= 1)  # type: ignore[union-attr]
            assert source.reloads == []

            storage.write("tex/a.png", b"v2")
            await wait_for(lambda: source.reloads == [("diffuse", "tex/a.png")])

        assert reloader.is_running() is False
        assert reloader.watch_set is None

    @pytest.mark.asyncio
    async def test_disabled_by_default_until_toggled(
        self, storage: FakeStorage, toggles: MemoryToggleHost
    ) -> None:
        config = WatchConfig(poll_interval=0.01, check_interval=0.0)
        reloader = AutoReloader(config=config, storage=storage, toggles=toggles)
        storage.write("tex/a.png", b"v1")
        source = StaticRegistrationSource({"diffuse": "tex/a.png"})

        async with reloader.watching(source) as running:
            storage.write("tex/a.png", b"v2")
            await wait_for(lambda: running.poller.tick_count >= 3)  # type: ignore[union-attr]
            assert storage.reads == []

            toggles.set_all(True)
            await wait_for(lambda: len(storage.reads) >= 1)
            storage.write("tex/a.png", b"v3")
            await wait_for(lambda: source.reloads == [("diffuse", "tex/a.png")])


class TestWatchingContext:
    """Tests for the async context manager."""

    @pytest.mark.asyncio
    async def test_misconfiguration_raises(self, reloader: AutoReloader) -> None:
        with pytest.raises(MisconfigurationError):
            async with reloader.watching("not a source"):
                pass

    @pytest.mark.asyncio
    async def test_releases_on_error(
        self, reloader: AutoReloader, toggles: MemoryToggleHost
    ) -> None:
        source = StaticRegistrationSource({"diffuse": "tex/a.png"})
        with pytest.raises(RuntimeError):
            async with reloader.watching(source):
                assert len(toggles.toggles) == 1
                raise RuntimeError("host crashed")
        assert toggles.toggles == []
        assert reloader.is_running() is False
