"""Pytest configuration and shared fixtures."""

import math
import random
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from bliip_app.config.defaults import default_user_inputs
from bliip_app.geo.geodesy import EARTH_RADIUS_KM
from bliip_app.models.inputs import UserInputs
from bliip_app.models.trajectory import (
    LandingPoint,
    PerturbationSource,
    SimulationDraw,
    TrajectoryPoint,
)

EVALUATION_TIME = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
KM_PER_DEGREE = math.pi * EARTH_RADIUS_KM / 180.0
DESCENT_RATE = 5.0          # m/s
WIND_SPEED = 10.0           # m/s, blowing east


def offset_position(lat: float, lon: float, north_km: float, east_km: float) -> tuple[float, float]:
    """Small-offset conversion from local kilometres to degrees."""
    return (
        lat + north_km / KM_PER_DEGREE,
        lon + east_km / (KM_PER_DEGREE * math.cos(math.radians(lat))),
    )


class FakeIntegrator:
    """
    Deterministic stand-in for the trajectory physics engine.

    The balloon rises at its ascent rate, descends at a fixed rate and drifts
    east with a constant wind; wind uncertainty adds seeded scatter.
    """

    def __init__(self, failure_rate: float = 0.0, raise_on_failure: bool = False,
                 delay_seconds: float = 0.0,
                 on_call: Optional[Callable[[int], None]] = None) -> None:
        self.failure_rate = failure_rate
        self.raise_on_failure = raise_on_failure
        self.delay_seconds = delay_seconds
        self.on_call = on_call
        self.calls = 0
        self._lock = threading.Lock()

    def simulate(self, inputs: UserInputs, seed: int) -> SimulationDraw:
        with self._lock:
            self.calls += 1
            call_number = self.calls
        if self.on_call is not None:
            self.on_call(call_number)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)

        rng = random.Random(seed)
        if rng.random() < self.failure_rate:
            if self.raise_on_failure:
                raise RuntimeError(f"integration diverged for seed {seed}")
            return SimulationDraw.failed(seed, inputs, "integration diverged")

        location = inputs.launch_location
        balloon = inputs.balloon
        ascent_s = (balloon.burst_altitude - location.altitude) / balloon.ascent_rate
        descent_s = balloon.burst_altitude / (DESCENT_RATE * (1.0 + balloon.drag_coefficient))
        duration_s = ascent_s + descent_s

        scatter = inputs.prediction.wind_uncertainty_percent / 100.0
        east_km = WIND_SPEED * duration_s / 1000.0 * (1.0 + rng.gauss(0.0, scatter))
        north_km = WIND_SPEED * duration_s / 1000.0 * rng.gauss(0.0, scatter)

        points = []
        steps = 6
        for step in range(steps + 1):
            fraction = step / steps
            elapsed = duration_s * fraction
            if elapsed <= ascent_s:
                altitude = location.altitude + balloon.ascent_rate * elapsed
            else:
                altitude = max(0.0, balloon.burst_altitude - DESCENT_RATE * (1.0 + balloon.drag_coefficient)
                               * (elapsed - ascent_s))
            lat, lon = offset_position(location.latitude, location.longitude,
                                       north_km * fraction, east_km * fraction)
            points.append(TrajectoryPoint(
                timestamp=location.launch_time + timedelta(seconds=elapsed),
                latitude=lat,
                longitude=lon,
                altitude=altitude,
                wind_speed=WIND_SPEED,
                wind_direction=270.0,
                temperature=max(-56.5, 15.0 + inputs.environment.temperature_offset - altitude * 0.0065),
                pressure=1013.25 * math.exp(-altitude / 8434.0),
            ))

        landing = points[-1]
        return SimulationDraw(
            seed=seed,
            inputs=inputs,
            points=tuple(points),
            landing=LandingPoint(latitude=landing.latitude, longitude=landing.longitude, altitude=0.0),
            flight_duration_hours=duration_s / 3600.0,
        )


@pytest.fixture
def evaluation_time() -> datetime:
    """Fixed reference instant for time-dependent rules."""
    return EVALUATION_TIME


@pytest.fixture
def default_inputs(evaluation_time) -> UserInputs:
    """Default mission parameters, launching one hour after evaluation time."""
    return default_user_inputs(evaluation_time)


@pytest.fixture
def fake_integrator() -> FakeIntegrator:
    return FakeIntegrator()


@pytest.fixture
def make_draw(default_inputs) -> Callable[..., SimulationDraw]:
    """Factory for successful draws landing at a given position."""

    def _make(latitude: float, longitude: float,
              source: Optional[PerturbationSource] = PerturbationSource.WIND,
              duration: float = 2.0, altitude: float = 0.0, seed: int = 0) -> SimulationDraw:
        return SimulationDraw(
            seed=seed,
            inputs=default_inputs,
            points=(),
            landing=LandingPoint(latitude=latitude, longitude=longitude, altitude=altitude),
            flight_duration_hours=duration,
            source=source,
        )

    return _make
