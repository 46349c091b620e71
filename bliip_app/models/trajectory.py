"""
Trajectory and Monte Carlo draw models.

Trajectory points are produced by the external integrator and are
immutable. A draw bundles one simulated flight with the provenance the
aggregator needs for per-factor attribution.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .inputs import UserInputs


class PerturbationSource(str, Enum):
    """Uncertainty source varied in a draw."""
    WIND = "wind"
    MODEL = "model"
    DATA_QUALITY = "data_quality"


class DrawStatus(str, Enum):
    """Draw-level outcome flag reported by the integrator."""
    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class TrajectoryPoint:
    """Single simulated position sample."""
    timestamp: datetime
    latitude: float
    longitude: float
    altitude: float                         # Meters above sea level
    wind_speed: Optional[float] = None      # Meters per second
    wind_direction: Optional[float] = None  # Degrees (0-360)
    temperature: Optional[float] = None     # Celsius
    pressure: Optional[float] = None        # hPa


@dataclass(frozen=True)
class LandingPoint:
    """Touchdown position of a simulated flight."""
    latitude: float
    longitude: float
    altitude: float = 0.0


@dataclass(frozen=True)
class SimulationDraw:
    """One Monte Carlo realization of a simulated flight."""
    seed: int
    inputs: UserInputs
    points: tuple[TrajectoryPoint, ...]
    landing: Optional[LandingPoint]
    flight_duration_hours: float
    source: Optional[PerturbationSource] = None
    status: DrawStatus = DrawStatus.OK
    error: Optional[str] = None
    index: Optional[int] = field(default=None, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.status == DrawStatus.OK and self.landing is not None

    @classmethod
    def failed(cls, seed: int, inputs: UserInputs, error: str,
               source: Optional[PerturbationSource] = None,
               index: Optional[int] = None) -> "SimulationDraw":
        """Build a draw carrying the draw-level error flag."""
        return cls(
            seed=seed,
            inputs=inputs,
            points=(),
            landing=None,
            flight_duration_hours=0.0,
            source=source,
            status=DrawStatus.FAILED,
            error=error,
            index=index,
        )

    def tagged(self, source: PerturbationSource, index: int) -> "SimulationDraw":
        """Return a copy carrying the perturbation provenance of its plan slot."""
        return replace(self, source=self.source or source, index=index)

    def max_altitude_point(self) -> Optional[TrajectoryPoint]:
        if not self.points:
            return None
        return max(self.points, key=lambda p: p.altitude)
