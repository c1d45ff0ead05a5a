"""
Ladder Strategy Configuration.

Typed, YAML-compatible constants for the ladder simulation:
- Lot sizing (fixed notional per buy)
- Base threshold and open-lot escalation table
- Lot cap and per-bar pass cap
- Recovery / falling-market reset multipliers
- ROI normalization base
"""

from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_ESCALATION_TABLE: dict[int, Decimal] = {
    3: Decimal("0.10"),
    4: Decimal("0.20"),
}


class LadderConfig(BaseModel):
    """
    Complete ladder strategy configuration.

    Defaults reproduce the canonical strategy; every value can be overridden
    from YAML.
    """

    fixed_notional: Decimal = Field(
        default=Decimal("10000"), gt=0,
        description="Cash committed per buy; shares = floor(notional / price)",
    )
    base_threshold: Decimal = Field(
        default=Decimal("0.05"), gt=0, lt=1,
        description="Buy/sell move used while fewer lots than any escalation key are open",
    )
    escalation_table: dict[int, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_ESCALATION_TABLE),
        description="Minimum open-lot count -> threshold for the next buy",
    )
    max_open_lots: int = Field(default=5, ge=1, le=100)
    max_passes_per_bar: int = Field(default=20, ge=1, le=1000)
    recovery_rally_multiplier: Decimal = Field(default=Decimal("1.05"), gt=0)
    falling_market_drop_multiplier: Decimal = Field(default=Decimal("0.80"), gt=0, lt=1)
    roi_normalization_base: Decimal = Field(default=Decimal("35000"), gt=0)
    level_tolerance: Decimal = Field(
        default=Decimal("0.01"), gt=0,
        description="Two prices closer than this are the same ladder level",
    )

    @field_validator("escalation_table")
    @classmethod
    def validate_escalation_table(cls, table: dict[int, Decimal]) -> dict[int, Decimal]:
        for lots, threshold in table.items():
            if lots < 1:
                raise ValueError("escalation_table keys must be open-lot counts >= 1")
            if not Decimal("0") < threshold < Decimal("1"):
                raise ValueError("escalation_table thresholds must be between 0 and 1")
        return dict(sorted(table.items()))

    @model_validator(mode="after")
    def validate_recovery_multiplier(self) -> "LadderConfig":
        if self.recovery_rally_multiplier < 1:
            raise ValueError("recovery_rally_multiplier must be >= 1")
        return self

    def threshold_for(self, open_lots: int) -> Decimal:
        """Threshold in effect for the next buy given the current open-lot count."""
        threshold = self.base_threshold
        for min_lots, escalated in self.escalation_table.items():
            if open_lots >= min_lots:
                threshold = escalated
        return threshold

    def to_yaml(self) -> str:
        """Serialize to YAML string."""
        data = self.model_dump(mode="json")
        data["escalation_table"] = {
            int(lots): str(threshold) for lots, threshold in self.escalation_table.items()
        }
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "LadderConfig":
        """Load from YAML string. An empty document yields the defaults."""
        data: dict[str, Any] = yaml.safe_load(yaml_str) or {}
        return cls(**data)

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> "LadderConfig":
        """Load from YAML file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
