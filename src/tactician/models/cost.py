"""Pydantic V2 schema for action costs.

A cost is a tagged union of ``Actions(1..3)``, ``Reaction``, ``Free`` and
``Range(min, max)``. Ranges come only from catalog data and must be
resolved to a concrete cost before an action is accepted.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tactician.core.constants import MAX_ACTION_COST, MIN_ACTION_COST
from tactician.core.exceptions import InvalidCostError
from tactician.models.enums import CostKind


class CostValue(BaseModel):
    """An action cost.

    Attributes:
        kind: Which variant of the union this value is.
        actions: Action count for ``ACTIONS``, minimum for ``RANGE``.
        max_actions: Maximum for ``RANGE``; unset otherwise.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: CostKind = Field(description="Cost variant")
    actions: int | None = Field(default=None, description="Action count or range minimum")
    max_actions: int | None = Field(default=None, description="Range maximum")

    @model_validator(mode="after")
    def validate_shape(self) -> "CostValue":
        """Enforce the per-variant invariants.

        Raises:
            InvalidCostError: If counts are missing, extra, or out of 1..3.
        """
        if self.kind in (CostKind.REACTION, CostKind.FREE):
            if self.actions is not None or self.max_actions is not None:
                raise InvalidCostError(
                    f"{self.kind} cost carries no action count",
                    details={"actions": self.actions, "max_actions": self.max_actions},
                )
            return self

        if self.actions is None or not MIN_ACTION_COST <= self.actions <= MAX_ACTION_COST:
            raise InvalidCostError(
                f"Action count must be {MIN_ACTION_COST}-{MAX_ACTION_COST}",
                details={"actions": self.actions},
            )

        if self.kind == CostKind.ACTIONS:
            if self.max_actions is not None:
                raise InvalidCostError(
                    "Single action cost has no maximum",
                    details={"max_actions": self.max_actions},
                )
        elif self.max_actions is None or not self.actions <= self.max_actions <= MAX_ACTION_COST:
            raise InvalidCostError(
                "Range maximum must be between its minimum and 3",
                details={"actions": self.actions, "max_actions": self.max_actions},
            )
        return self

    @classmethod
    def of(cls, actions: int) -> CostValue:
        """Build an ``Actions(n)`` cost."""
        return cls(kind=CostKind.ACTIONS, actions=actions)

    @classmethod
    def reaction(cls) -> CostValue:
        """Build a ``Reaction`` cost."""
        return cls(kind=CostKind.REACTION)

    @classmethod
    def free(cls) -> CostValue:
        """Build a ``Free`` cost."""
        return cls(kind=CostKind.FREE)

    @classmethod
    def range(cls, minimum: int, maximum: int) -> CostValue:
        """Build a ``Range(minimum, maximum)`` cost.

        A degenerate range collapses to ``Actions(minimum)``.
        """
        if minimum == maximum:
            return cls.of(minimum)
        return cls(kind=CostKind.RANGE, actions=minimum, max_actions=maximum)

    @property
    def is_concrete(self) -> bool:
        """Whether the cost is ``Actions``, ``Reaction`` or ``Free``."""
        return self.kind != CostKind.RANGE

    @property
    def is_range(self) -> bool:
        return self.kind == CostKind.RANGE


__all__ = ["CostValue"]
