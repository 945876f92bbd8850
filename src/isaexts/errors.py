"""Exception hierarchy for isaexts."""

from __future__ import annotations


class IsaExtsError(Exception):
    """Base class for every error raised by isaexts."""


class SetupError(IsaExtsError):
    """The input could not be prepared for scanning."""


class ContainerError(SetupError):
    """The file could not be read or parsed as a known executable format."""


class DecoderSetupError(SetupError):
    """The instruction decoder could not be initialized."""


class TableConsistencyError(IsaExtsError):
    """The shipped classification or generation tables are incomplete.

    This is a defect in isaexts itself, never a property of the input file.
    """


class ConfigError(SetupError):
    """The configuration file could not be read or validated."""
