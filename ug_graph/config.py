"""
Layout configuration.

Every layout knob the rendering layer can change lives on LayoutConfig.
Defaults may be overridden through UG_GRAPH_* environment variables.
"""

import os
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .models import DEFAULT_NODE_WIDTH, DEFAULT_NODE_HEIGHT


ENV_PREFIX = "UG_GRAPH_"


class Orientation(str, Enum):
    """Direction ranks flow in."""
    LR = "LR"  # left to right
    TB = "TB"  # top to bottom


class LayoutConfig(BaseModel):
    """Options recognized by the layout engine and band assigner."""
    orientation: Orientation = Orientation.LR
    node_sep: float = Field(default=80, ge=0)    # between nodes of one rank
    rank_sep: float = Field(default=140, ge=0)   # between ranks
    node_width: float = Field(default=DEFAULT_NODE_WIDTH, gt=0)
    node_height: float = Field(default=DEFAULT_NODE_HEIGHT, gt=0)
    node_margin: float = Field(default=24, ge=0)
    group_by_process: bool = True
    band_height: float = Field(default=280, gt=0)
    order_iterations: int = Field(default=24, ge=0)

    @property
    def is_horizontal(self) -> bool:
        return self.orientation == Orientation.LR

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "LayoutConfig":
        """Build a config from UG_GRAPH_* variables (e.g. UG_GRAPH_RANK_SEP)."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls.model_validate(values)
