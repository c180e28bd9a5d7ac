from __future__ import annotations


class CoreError(Exception):
    """Base error type for af3query."""


class InputError(CoreError):
    """Raised when an input file or directive string is invalid."""


class DirectiveError(CoreError):
    """Raised when a PTM/ligand directive cannot be applied to the loaded inputs."""
