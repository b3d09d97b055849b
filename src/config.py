"""Layout configuration: spacing, node geometry and algorithm switches."""

import copy
from dataclasses import dataclass


@dataclass(frozen=True)
class LayoutConfig:
    # Pixel geometry
    sibling_spacing: float = 140.0  # pixels per slot-unit column
    row_height: float = 160.0  # pixels per generation
    node_width: float = 80.0
    node_height: float = 80.0
    node_container_width: float = 120.0

    # Connector styling (slot units)
    leg_height: float = 0.25
    branch_style: float = 0.6  # 0 = diagonal parent link
    pconnect: float = 0.5

    # Alignment
    packed: bool = True
    align: bool = True
    width: float = 10.0
    align_penalties: tuple[float, float] = (1.5, 2.0)

    def __post_init__(self):
        for name in ("sibling_spacing", "row_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("node_width", "node_height", "node_container_width", "leg_height"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        if self.branch_style < 0:
            raise ValueError(f"branch_style must not be negative, got {self.branch_style}")
        if not 0 <= self.pconnect <= 1:
            raise ValueError(f"pconnect must be within [0, 1], got {self.pconnect}")
        if len(self.align_penalties) != 2:
            raise ValueError("align_penalties must hold exactly two values")


_LAYOUT_CONFIG = LayoutConfig()


def get_config() -> LayoutConfig:
    return copy.deepcopy(_LAYOUT_CONFIG)


def set_config(config: LayoutConfig) -> None:
    global _LAYOUT_CONFIG
    _LAYOUT_CONFIG = copy.deepcopy(config)
