"""
Monte Carlo perturbation plan.

Each draw varies exactly one uncertainty source so that landing
dispersion can be attributed per source afterwards:

- WIND draws keep the requested wind uncertainty and leave everything
  else at the nominal value.
- MODEL draws jitter ascent rate, burst altitude and drag coefficient.
- DATA_QUALITY draws jitter the launch position, launch altitude and the
  atmosphere adjustments.

Non-wind draws run with zero wind uncertainty. Seeds are derived from a
SHA-256 digest of the canonical inputs, so the same request always
yields the same plan regardless of interpreter hash randomization.
"""

import hashlib
import random
from dataclasses import dataclass, replace
from typing import Iterator, Optional

import orjson

from ..models.inputs import UserInputs
from ..models.trajectory import PerturbationSource

SOURCE_CYCLE = (
    PerturbationSource.WIND,
    PerturbationSource.MODEL,
    PerturbationSource.DATA_QUALITY,
)

# Perturbation magnitudes (uniform, symmetric)
ASCENT_RATE_JITTER = 0.5            # m/s
BURST_ALTITUDE_JITTER = 200         # m
DRAG_COEFFICIENT_JITTER = 0.10      # Fraction of nominal
POSITION_JITTER_DEG = 0.001         # ~111 m
LAUNCH_ALTITUDE_JITTER = 50         # m
TEMPERATURE_JITTER = 1.0            # Celsius
HUMIDITY_JITTER = 5                 # Percent

_SEED_MASK = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class DrawSpec:
    """One planned draw: its slot, seed, varied source and perturbed inputs."""
    index: int
    seed: int
    source: PerturbationSource
    inputs: UserInputs


def derive_base_seed(inputs: UserInputs) -> int:
    """Deterministic 64-bit seed from the canonical input mapping."""
    canonical = orjson.dumps(inputs.to_dict(), option=orjson.OPT_SORT_KEYS)
    return int(hashlib.sha256(canonical).hexdigest()[:16], 16)


def derive_draw_seed(base_seed: int, index: int) -> int:
    digest = hashlib.sha256(f"{base_seed}:{index}".encode()).hexdigest()
    return int(digest[:16], 16) & _SEED_MASK


def _clamp(value, low, high):
    return max(low, min(high, value))


def _wrap_longitude(lon: float) -> float:
    wrapped = ((lon + 180.0) % 360.0) - 180.0
    return 180.0 if wrapped == -180.0 and lon > 0 else wrapped


def perturb_model(inputs: UserInputs, rng: random.Random) -> UserInputs:
    """Jitter balloon physics: ascent rate, burst altitude, drag."""
    balloon = inputs.balloon
    launch_altitude = inputs.launch_location.altitude

    ascent_rate = _clamp(balloon.ascent_rate + rng.uniform(-ASCENT_RATE_JITTER, ASCENT_RATE_JITTER), 1.0, 10.0)

    burst = round(balloon.burst_altitude + rng.uniform(-BURST_ALTITUDE_JITTER, BURST_ALTITUDE_JITTER))
    burst = _clamp(burst, max(1000, launch_altitude + 1), 60000)

    drag = balloon.drag_coefficient * (1.0 + rng.uniform(-DRAG_COEFFICIENT_JITTER, DRAG_COEFFICIENT_JITTER))
    drag = _clamp(drag, 0.1, 2.0)

    return replace(
        inputs,
        balloon=replace(balloon, ascent_rate=ascent_rate, burst_altitude=burst, drag_coefficient=drag),
        prediction=replace(inputs.prediction, wind_uncertainty_percent=0),
    )


def perturb_data_quality(inputs: UserInputs, rng: random.Random) -> UserInputs:
    """Jitter measured launch data and atmosphere adjustments."""
    location = inputs.launch_location
    environment = inputs.environment

    latitude = _clamp(location.latitude + rng.uniform(-POSITION_JITTER_DEG, POSITION_JITTER_DEG), -90.0, 90.0)
    longitude = _wrap_longitude(location.longitude + rng.uniform(-POSITION_JITTER_DEG, POSITION_JITTER_DEG))

    # Launch site must stay below the burst altitude
    altitude = round(location.altitude + rng.uniform(-LAUNCH_ALTITUDE_JITTER, LAUNCH_ALTITUDE_JITTER))
    altitude = _clamp(altitude, -500, min(6000, inputs.balloon.burst_altitude - 1))

    temperature = _clamp(
        environment.temperature_offset + rng.uniform(-TEMPERATURE_JITTER, TEMPERATURE_JITTER), -10.0, 10.0
    )
    humidity = _clamp(
        round(environment.humidity_factor + rng.uniform(-HUMIDITY_JITTER, HUMIDITY_JITTER)), 0, 100
    )

    return replace(
        inputs,
        launch_location=replace(location, latitude=latitude, longitude=longitude, altitude=altitude),
        environment=replace(environment, temperature_offset=temperature, humidity_factor=humidity),
        prediction=replace(inputs.prediction, wind_uncertainty_percent=0),
    )


class PerturbationPlan:
    """
    Deterministic sequence of draw specifications for one request.

    Draw ``i`` varies ``SOURCE_CYCLE[i % 3]``. Iterating the plan twice
    yields identical specs.
    """

    def __init__(self, inputs: UserInputs, monte_carlo_runs: Optional[int] = None,
                 base_seed: Optional[int] = None) -> None:
        self.inputs = inputs
        self.monte_carlo_runs = (
            monte_carlo_runs if monte_carlo_runs is not None
            else inputs.prediction.monte_carlo_runs
        )
        self.base_seed = base_seed if base_seed is not None else derive_base_seed(inputs)

    def __len__(self) -> int:
        return self.monte_carlo_runs

    def __iter__(self) -> Iterator[DrawSpec]:
        for index in range(self.monte_carlo_runs):
            yield self.draw(index)

    def draw(self, index: int) -> DrawSpec:
        seed = derive_draw_seed(self.base_seed, index)
        source = SOURCE_CYCLE[index % len(SOURCE_CYCLE)]
        rng = random.Random(seed)

        if source == PerturbationSource.MODEL:
            inputs = perturb_model(self.inputs, rng)
        elif source == PerturbationSource.DATA_QUALITY:
            inputs = perturb_data_quality(self.inputs, rng)
        else:
            inputs = self.inputs

        return DrawSpec(index=index, seed=seed, source=source, inputs=inputs)

    def nominal_inputs(self) -> UserInputs:
        """Unperturbed inputs with wind uncertainty switched off."""
        return replace(
            self.inputs,
            prediction=replace(self.inputs.prediction, wind_uncertainty_percent=0),
        )

    def nominal_seed(self) -> int:
        return self.base_seed & _SEED_MASK
