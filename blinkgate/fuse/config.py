from __future__ import annotations
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, model_validator
from ..eye.blink import EAR_CLOSED_THRESHOLD
from ..filters.idle import IdleParams, SEED_INTERVAL

class BlinkConfig(BaseModel):
    """
    Tunables for the blink monitor. ear_threshold is calibrated against
    bbox-relative contour coordinates; retune it if the detector's
    normalization changes.
    """
    ear_threshold: float = Field(EAR_CLOSED_THRESHOLD, gt=0)
    alpha: float = Field(0.25, gt=0, le=1)
    beta: float = Field(0.25, gt=0, le=1)
    gain_k: float = Field(0.25, gt=0)
    var_weight: float = Field(0.02, ge=0)
    idle_min: float = Field(0.3, ge=0)
    idle_max: float = Field(1.0, gt=0)
    seed_interval: float = Field(SEED_INTERVAL, gt=0)
    detection_timeout: float = Field(0.4, gt=0)
    rate_window: float = Field(1.0, gt=0)
    alert_period: float = Field(10.0, gt=0)
    alert_interval: float = Field(4.5, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.idle_min > self.idle_max:
            raise ValueError(f"idle_min ({self.idle_min}) exceeds idle_max ({self.idle_max})")
        return self

    def idle_params(self) -> IdleParams:
        return IdleParams(alpha=self.alpha, beta=self.beta, gain_k=self.gain_k,
                          var_weight=self.var_weight, idle_min=self.idle_min,
                          idle_max=self.idle_max, seed_interval=self.seed_interval)

def load_config(path: Optional[str|Path]) -> BlinkConfig:
    if not path or not Path(path).exists():
        return BlinkConfig()
    with open(path, "r") as f: cfg = yaml.safe_load(f) or {}
    return BlinkConfig(**cfg.get("blink", cfg))
