"""Exceptions raised by the bootstrap pipeline."""

from __future__ import annotations


class BootstrapError(Exception):
    """Base class for every pipeline failure."""


class FetchError(BootstrapError):
    """Raised when the remote asset cannot be refreshed."""


class MetadataUnavailable(FetchError):
    """Raised when the collection metadata cannot be read or is malformed."""


class DownloadFailed(FetchError):
    """Raised when the asset itself cannot be downloaded."""


class RenderError(BootstrapError):
    """Raised when the served document cannot be rendered."""


class TemplateNotFound(RenderError):
    """Raised when neither the template nor its backup exists."""


class TemplateInvalid(RenderError):
    """Raised when the template cannot be parsed or rendered."""


class IOFailure(BootstrapError):
    """Raised when a filesystem operation of the pipeline fails."""
