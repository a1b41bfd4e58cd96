"""Shared test fixtures."""

from __future__ import annotations

import io
from typing import List

import pytest
from PIL import Image

from html2scene.scene import SceneHost
from html2scene.scene_builder import StatusEvent


# Sample documents

SCENARIO_HTML = '<div style="background:#fff"><p>Hi</p></div>'

CARD_HTML = """<html><head><style>
.card { background-color: #336699; border: 2px solid #000000; width: 320px; height: 200px }
.title { font-family: 'Open Sans', sans-serif; font-size: 24px; font-weight: 700 }
</style></head>
<body><div class="card"><h1 class="title">Welcome</h1><p>Body copy</p></div></body></html>"""

FLEX_HTML = (
    '<div style="display:flex"><span>A</span><span>B</span></div>'
    '<div style="display:flex;flex-direction:column"><span>C</span><span>D</span></div>'
)

ICON_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24">'
    '<circle cx="12" cy="12" r="10"></circle>'
    "</svg>"
)


def make_png(width: int = 4, height: int = 3, color=(255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class EventLog:
    """Status sink that records every event."""

    def __init__(self):
        self.events: List[StatusEvent] = []

    def __call__(self, event: StatusEvent):
        self.events.append(event)

    @property
    def statuses(self) -> List[str]:
        return [e.status for e in self.events]

    def by_level(self, level: str) -> List[StatusEvent]:
        return [e for e in self.events if e.level == level]


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", content: bytes = b"", reason: str = "OK"):
        self.status_code = status_code
        self.text = text
        self.content = content or text.encode("utf-8")
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class FakeSession:
    """Stands in for ``requests.Session``; unknown URLs answer 404."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append((url, headers, timeout))
        return self.responses.get(url, FakeResponse(404, reason="Not Found"))


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def host() -> SceneHost:
    return SceneHost()


@pytest.fixture
def events() -> EventLog:
    return EventLog()
