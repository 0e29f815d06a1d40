"""
Exception types raised by the Inkpress build pipeline.
"""


class InkpressError(Exception):
    """Base class for all Inkpress build errors."""


class ConfigError(InkpressError):
    """Configuration file could not be read or parsed."""


class MissingRequiredField(InkpressError):
    """A content file lacks a required metadata field (currently only ``title``)."""

    def __init__(self, field, source):
        self.field = field
        self.source = source
        super().__init__(f"Missing required field '{field}' in {source}")


class StorageAccessFailure(InkpressError):
    """Content, template or output path could not be read or written."""

    def __init__(self, path, error):
        self.path = path
        self.error = error
        super().__init__(f"Cannot access {path}: {error}")


class ManifestReadbackFailure(InkpressError):
    """The post manifest could not be re-read for sitemap generation."""


class ImageTranscodeFailure(InkpressError):
    """An image could not be retrieved or converted. Never fatal."""

    def __init__(self, source, error):
        self.source = source
        self.error = error
        super().__init__(f"Failed to transcode image {source}: {error}")
