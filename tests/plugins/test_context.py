"""Tests for ExportContext."""

from pathlib import Path

import pytest

from capshare.core.config_store import JsonConfigStore
from capshare.plugins.context import ExportContext


@pytest.fixture
def record(config_store: JsonConfigStore):
    return config_store.open("gif", {"quality": 75})


class TestExportContext:
    """Export option access and cancellation."""

    def test_options_accessors(self, record) -> None:
        ctx = ExportContext(
            export_options={"format": "mp4", "file_path": "/tmp/out.mp4", "fps": 60},
            plugin_name="gif",
            config=record,
        )

        assert ctx.format == "mp4"
        assert ctx.file_path == Path("/tmp/out.mp4")
        assert ctx.get("fps") == 60
        assert ctx.get("loop", True) is True

    def test_missing_format_and_path(self, record) -> None:
        ctx = ExportContext(export_options={}, plugin_name="gif", config=record)

        assert ctx.format is None
        assert ctx.file_path is None

    def test_options_copied_and_read_only(self, record) -> None:
        options = {"format": "gif"}
        ctx = ExportContext(export_options=options, plugin_name="gif", config=record)

        options["format"] = "webm"

        assert ctx.format == "gif"
        with pytest.raises(TypeError):
            ctx.export_options["format"] = "apng"  # type: ignore[index]

    def test_cancel(self, record) -> None:
        ctx = ExportContext(export_options={}, plugin_name="gif", config=record)

        assert ctx.canceled is False
        ctx.cancel()
        ctx.cancel()

        assert ctx.canceled is True
        assert ctx.error is None

    def test_config_is_the_plugin_record(self, record) -> None:
        ctx = ExportContext(export_options={}, plugin_name="gif", config=record)

        ctx.config.set("quality", 90)

        assert record.get("quality") == 90
