import io
import os
from collections.abc import Mapping, Sequence
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from typing import Any
from unittest import mock

from PIL import Image

from templateflow.engine import TemplateEngine
from templateflow.flow.binding import DataBinder
from templateflow.flow.context import RenderContext
from templateflow.render.images import ImageCache
from templateflow.render.recording import RecordingSink
from templateflow.render.sink import PageSetup

# =============================================================================
# Environment Helpers
# =============================================================================


@contextmanager
def temp_env(overrides: dict[str, str], *, clear: bool = False):
    with mock.patch.dict(os.environ, overrides, clear=clear):
        yield


@contextmanager
def suppress_output():
    stdout = io.StringIO()
    stderr = io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        yield


# =============================================================================
# Template Builders
# =============================================================================


def cell(data: str | None = None, **options: Any) -> dict[str, Any]:
    node: dict[str, Any] = {"type": "cell", "options": options}
    if data is not None:
        node["data"] = data
    return node


def text(value: str, **flags: Any) -> dict[str, Any]:
    return {"type": "text", "text": value, **flags}


def details(
    key: str,
    children: Sequence[Mapping[str, Any]],
    options: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "type": "details",
        "data": key,
        "options": dict(options or {}),
        "children": list(children),
    }


def rows(count: int, prefix: str = "r") -> list[dict[str, Any]]:
    return [{"name": f"{prefix}{idx}"} for idx in range(1, count + 1)]


# =============================================================================
# Render Helpers
# =============================================================================


def render_recorded(
    template: Sequence[Mapping[str, Any]],
    data: Mapping[str, Any] | None = None,
    *,
    copies: int = 1,
    design_mode: bool | None = None,
) -> RecordingSink:
    engine = TemplateEngine(
        list(template),
        design_mode=design_mode,
        images=mock.create_autospec(ImageCache, instance=True),
    )
    if data is not None:
        engine.set_data(data)
    engine.set_document_copies(copies)
    sink = RecordingSink()
    engine.orchestrator(sink).run()
    sink.finalize()
    return sink


def page_texts(sink: RecordingSink) -> list[list[str]]:
    return [page.texts() for page in sink.pages]


def bound_binder(
    data: Mapping[str, Any] | None = None,
    **context: Any,
) -> tuple[DataBinder, RenderContext, RecordingSink]:
    ctx = RenderContext(data=data or {}, **context)
    sink = RecordingSink()
    sink.new_page(PageSetup())
    return DataBinder(ctx, sink), ctx, sink


def png_bytes(size: tuple[int, int] = (2, 2)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()
