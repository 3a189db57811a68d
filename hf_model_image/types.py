"""Shared type definitions for hf_model_image.

This module contains enums and dataclasses shared across modules to avoid
circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class RunOutcome(str, Enum):
    """How a build run ended when it did not fail."""

    PUSHED = "pushed"
    PUSH_DECLINED = "push_declined"
    ABORTED = "aborted"


@dataclass
class BuildReport:
    """Summary of a finished build run.

    Attributes:
        image: Full image reference that was built.
        models: Model references, in input order.
        outcome: How the run ended.
        verified_folders: Model folders found by the sanity check.
    """

    image: str
    models: list[str]
    outcome: RunOutcome
    verified_folders: list[str] = field(default_factory=list)


__all__ = ["BuildReport", "RunOutcome"]
