"""Tunable thresholds for course awareness and shot detection.

Defaults were chosen for typical consumer GPS on a parkland course. They are
configuration rather than constants: every value can be overridden with a
``GOLF_TRACKING_<FIELD_NAME>`` environment variable (e.g.
``GOLF_TRACKING_MIN_SHOT_DISTANCE_M=15``) or by passing a config instance.
"""

import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "GOLF_TRACKING_"


class TrackingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Course awareness
    tee_box_radius_m: float = Field(20.0, gt=0)
    green_radius_m: float = Field(15.0, gt=0)
    fairway_half_width_m: float = Field(15.0, gt=0)
    rough_width_m: float = Field(40.0, gt=0)
    low_accuracy_threshold_m: float = Field(30.0, gt=0)
    hole_detection_window: int = Field(1, ge=0)
    hole_switch_radius_m: float = Field(20.0, gt=0)

    # Shot detection
    moving_speed_mps: float = Field(1.0, gt=0)
    min_moving_fixes: int = Field(3, ge=1)
    min_stationary_fixes: int = Field(2, ge=1)
    min_shot_distance_m: float = Field(10.0, ge=0)
    shot_accuracy_threshold_m: float = Field(20.0, gt=0)
    min_path_straightness: float = Field(0.8, gt=0, le=1)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "TrackingConfig":
        """Defaults overridden by any GOLF_TRACKING_* variables that are set."""
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)
        overrides = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip():
                overrides[name] = raw.strip()
        return cls(**overrides)
