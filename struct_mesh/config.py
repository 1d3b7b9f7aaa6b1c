# struct_mesh/config.py
"""
Pipeline configuration and defaults.
"""

import logging
from dataclasses import dataclass


@dataclass
class PipelineConfig:
    """Global pipeline configuration."""

    # Beam meshing: number of sub-elements per declared member
    division: int = 5

    # Surface meshing: number of 1-to-4 triangle splits after ear clipping
    surface_refinement: int = 0

    # Surface elements reuse nodes already owned by member ends
    stitch_surfaces: bool = False

    # Solver settings
    cond_limit: float = 1e12
    run_analysis: bool = True

    # Logging
    log_level: int = logging.INFO

    def __post_init__(self):
        if isinstance(self.division, bool) or not isinstance(self.division, int) or self.division < 1:
            raise ValueError(f"division must be an integer >= 1, got {self.division!r}")
        if self.surface_refinement < 0:
            raise ValueError(
                f"surface_refinement must be >= 0, got {self.surface_refinement!r}"
            )


# Global config instance
CONFIG = PipelineConfig()
