"""
Exception types raised by the cover-letter pipeline.

Fatal stage failures (parse, synthesis, render) abort a pipeline run. Best-effort
failures (description resolution, automation) are absorbed by the stage that
raised them and turned into degraded values.
"""

from __future__ import annotations


class AutoApplyError(Exception):
    """Base class for all application errors."""


class ValidationError(AutoApplyError):
    """Malformed application request rejected at intake."""


class ResolutionError(AutoApplyError):
    """Job posting page could not be rendered or resolved."""


class ParseError(AutoApplyError):
    """CV document could not be read or contained no text."""


class InferenceError(AutoApplyError):
    """The text-generation backend failed, timed out or returned nothing."""


class SynthesisError(AutoApplyError):
    """Cover letter text could not be generated."""


class RenderError(AutoApplyError):
    """The cover letter document could not be laid out."""


class AutomationError(AutoApplyError):
    """Browser automation of the application form failed."""
