"""Exception types raised across the conversion pipeline."""

from __future__ import annotations


class Html2SceneError(Exception):
    """Base class for every error raised by html2scene."""


class DocumentFetchError(Html2SceneError):
    """The source document could not be fetched or read."""


class ConversionError(Html2SceneError):
    """A conversion was aborted; the cause is chained as ``__cause__``."""


class NodeCreationError(Html2SceneError):
    pass


class VectorCreationError(NodeCreationError):
    pass


class ImageCreationError(NodeCreationError):
    pass


class FontLoadError(Html2SceneError):
    pass
