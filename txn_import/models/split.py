from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

"""Shared-expense participant models (transient, derived from text)."""

__all__ = [
    "SplitParticipant",
    "ParticipantsResult",
]


@dataclass(frozen=True)
class SplitParticipant:
    """One decoded entry of the ``participants`` field.

    ``value`` is None for EQUAL splits; otherwise the percentage, share
    weight or exact amount, depending on the split type.
    """
    identifier: str  # participant email
    value: Decimal | None = None


@dataclass(frozen=True)
class ParticipantsResult:
    participants: list[SplitParticipant] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
