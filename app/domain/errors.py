# app/domain/errors.py
"""Errors raised by the card template core.

Resize rejections and missing assets are absorbed silently (the resize
reverts, the layer is omitted) and therefore have no exception type.
"""


class CardTemplateError(Exception):
    """Base class for every error the template core reports to its caller."""


class InvalidFieldCreation(CardTemplateError):
    """A field could not be added; the registry is left unchanged."""


class InvalidAsset(CardTemplateError):
    """Uploaded bytes could not be decoded as a raster image."""


class ExportPrecondition(CardTemplateError):
    """Export was requested while no rendered surface is available."""
