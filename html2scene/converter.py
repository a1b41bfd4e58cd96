"""
End-to-end conversion: fetch -> extract -> build.

    root = convert("https://example.com")
    root = convert_html("<div style='display:flex'>...</div>")

Every step is reported to the status sink; a fatal error is reported once
as an ``error`` event and re-raised as ``ConversionError``.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import unquote, unquote_to_bytes, urljoin, urlparse

import requests

from .css_styles import DEFAULT_VIEWPORT_WIDTH, StyleResolver
from .css_values import Color
from .dom_extractor import extract_html
from .errors import ConversionError, DocumentFetchError, ImageCreationError
from .scene import SceneHost, SceneNode
from .scene_builder import SceneBuilder, StatusEvent, StatusSink, log_status
from .style_mapper import SolidPaint

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Constants
# --------------------------------------------------------------------------- #

ROOT_FRAME_NAME = "Website Convert"
ROOT_FRAME_WIDTH = 1440
ROOT_FRAME_HEIGHT = 900
DEFAULT_TIMEOUT = 30.0
REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


# --------------------------------------------------------------------------- #
# Fetching
# --------------------------------------------------------------------------- #


def _is_http(url: str) -> bool:
    return urlparse(url).scheme in ("http", "https")


def _local_path(source: str) -> Path:
    parsed = urlparse(source)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(source)


def fetch_document(
    source: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Raw HTML of an http(s) URL, a ``file://`` URL or a local path."""
    if not _is_http(source):
        path = _local_path(source)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DocumentFetchError(f"Failed to read {path}: {exc}") from exc

    http = session or requests.Session()
    try:
        response = http.get(source, headers=REQUEST_HEADERS, timeout=timeout)
    except requests.RequestException as exc:
        raise DocumentFetchError(f"Failed to fetch website: {exc}") from exc
    if not response.ok:
        raise DocumentFetchError(f"Failed to fetch website: {response.status_code} {response.reason}")
    return response.text


class ImageLoader:
    """Fetches image bytes for ``img`` sources relative to the document URL."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url
        self.session = session
        self.timeout = timeout

    def resolve(self, src: str) -> str:
        if self.base_url:
            return urljoin(self.base_url, src)
        return src

    def __call__(self, src: str) -> bytes:
        if not src:
            raise ImageCreationError("image has no src")
        if src.startswith("data:"):
            return self._decode_data_uri(src)
        url = self.resolve(src)
        if not _is_http(url):
            path = _local_path(url)
            try:
                return path.read_bytes()
            except OSError as exc:
                raise ImageCreationError(f"Failed to read image {path}: {exc}") from exc

        if self.session is None:
            self.session = requests.Session()
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ImageCreationError(f"Failed to fetch image {url}: {exc}") from exc
        if not response.ok:
            raise ImageCreationError(f"Failed to fetch image {url}: {response.status_code} {response.reason}")
        return response.content

    def _decode_data_uri(self, uri: str) -> bytes:
        header, _, payload = uri.partition(",")
        if header.endswith(";base64"):
            try:
                return base64.b64decode(payload, validate=False)
            except ValueError as exc:
                raise ImageCreationError(f"Invalid base64 data URI: {exc}") from exc
        return unquote_to_bytes(payload)


# --------------------------------------------------------------------------- #
# Conversion flow
# --------------------------------------------------------------------------- #


def create_root_frame(host: SceneHost) -> SceneNode:
    root = host.create_container()
    root.name = ROOT_FRAME_NAME
    root.resize(ROOT_FRAME_WIDTH, ROOT_FRAME_HEIGHT)
    root.fills = [SolidPaint(Color(1.0, 1.0, 1.0))]
    return root


def _run(
    load_html: Callable[[], str],
    base_url: Optional[str],
    host: Optional[SceneHost],
    sink: Optional[StatusSink],
    resolver: Optional[StyleResolver],
    root_selector: Optional[str],
    session: Optional[requests.Session],
    timeout: float,
    viewport_width: float,
    fetching: bool,
) -> SceneNode:
    sink = sink or log_status
    host = host or SceneHost()
    try:
        sink(StatusEvent("Starting conversion..."))
        root = create_root_frame(host)

        if fetching:
            sink(StatusEvent("Fetching website content..."))
        html = load_html()

        sink(StatusEvent("Parsing HTML and CSS..."))
        tree = extract_html(
            html,
            resolver=resolver,
            root_selector=root_selector,
            use_stylesheets=resolver is None,
            viewport_width=viewport_width,
        )

        sink(StatusEvent("Converting to scene nodes..."))
        builder = SceneBuilder(host, sink, ImageLoader(base_url, session, timeout))
        builder.build(tree, root)
        logger.info(
            "Built %d nodes (%d skipped, %d fallbacks)", builder.built, builder.skipped, builder.fallbacks
        )

        sink(StatusEvent("Conversion completed successfully!"))
        sink(StatusEvent("conversion-complete", level="complete"))
        return root
    except Exception as exc:
        message = f"Failed to convert website: {exc}"
        logger.error(message)
        sink(StatusEvent(message, error_detail=repr(exc), level="error"))
        raise ConversionError(message) from exc


def convert(
    source: str,
    host: Optional[SceneHost] = None,
    sink: Optional[StatusSink] = None,
    resolver: Optional[StyleResolver] = None,
    root_selector: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    viewport_width: float = DEFAULT_VIEWPORT_WIDTH,
) -> SceneNode:
    """Fetch ``source`` (URL or path) and build its scene graph under a root frame."""
    return _run(
        lambda: fetch_document(source, session, timeout),
        source,
        host,
        sink,
        resolver,
        root_selector,
        session,
        timeout,
        viewport_width,
        fetching=True,
    )


def convert_html(
    html: str,
    base_url: Optional[str] = None,
    host: Optional[SceneHost] = None,
    sink: Optional[StatusSink] = None,
    resolver: Optional[StyleResolver] = None,
    root_selector: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    viewport_width: float = DEFAULT_VIEWPORT_WIDTH,
) -> SceneNode:
    return _run(
        lambda: html,
        base_url,
        host,
        sink,
        resolver,
        root_selector,
        session,
        timeout,
        viewport_width,
        fetching=False,
    )
