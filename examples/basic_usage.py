#!/usr/bin/env python3
"""
Basic Usage Example - BLIiP Landing Prediction Core

This script demonstrates the basic usage of the prediction engine with a
toy constant-wind integrator. It shows how to:
- Build mission parameters from the defaults and a preset
- Inspect validation errors
- Run a Monte Carlo prediction and read the landing zone
- Cancel a long-running ensemble

Run: python examples/basic_usage.py
"""

import math
import random
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from bliip_app.config.defaults import default_user_inputs, preset_inputs
from bliip_app.engine import PredictionEngine
from bliip_app.ensemble.runner import CancellationToken
from bliip_app.geo.geodesy import EARTH_RADIUS_KM
from bliip_app.logging import configure_logging
from bliip_app.models.inputs import UserInputs
from bliip_app.models.trajectory import LandingPoint, SimulationDraw, TrajectoryPoint
from bliip_app.output import to_json

DESCENT_RATE = 6.0      # m/s at sea level before drag scaling
WIND_EAST = 12.0        # m/s
WIND_NORTH = 3.0        # m/s
SAMPLE_SECONDS = 600.0


class ConstantWindIntegrator:
    """Flat-earth drift under a constant wind, with seeded gusts."""

    def simulate(self, inputs: UserInputs, seed: int) -> SimulationDraw:
        rng = random.Random(seed)
        location, balloon = inputs.launch_location, inputs.balloon
        gust = inputs.prediction.wind_uncertainty_percent / 100.0
        east = WIND_EAST * (1 + rng.gauss(0, gust))
        north = WIND_NORTH * (1 + rng.gauss(0, gust))

        ascent_s = (balloon.burst_altitude - location.altitude) / balloon.ascent_rate
        descent_rate = DESCENT_RATE * (1 + balloon.drag_coefficient)
        total_s = ascent_s + balloon.burst_altitude / descent_rate

        km_per_degree = math.pi * EARTH_RADIUS_KM / 180.0
        points = []
        elapsed = 0.0
        while True:
            elapsed = min(elapsed, total_s)
            if elapsed <= ascent_s:
                altitude = location.altitude + balloon.ascent_rate * elapsed
            else:
                altitude = max(0.0, balloon.burst_altitude - descent_rate * (elapsed - ascent_s))
            lat = location.latitude + north * elapsed / 1000.0 / km_per_degree
            lon = location.longitude + east * elapsed / 1000.0 / (
                km_per_degree * math.cos(math.radians(location.latitude)))
            points.append(TrajectoryPoint(
                timestamp=location.launch_time + timedelta(seconds=elapsed),
                latitude=lat,
                longitude=lon,
                altitude=altitude,
                wind_speed=math.hypot(east, north),
                wind_direction=(math.degrees(math.atan2(-east, -north)) + 360.0) % 360.0,
            ))
            if elapsed >= total_s:
                break
            elapsed += SAMPLE_SECONDS

        return SimulationDraw(
            seed=seed,
            inputs=inputs,
            points=tuple(points),
            landing=LandingPoint(points[-1].latitude, points[-1].longitude, 0.0),
            flight_duration_hours=total_s / 3600.0,
        )


class SlowIntegrator(ConstantWindIntegrator):
    def simulate(self, inputs: UserInputs, seed: int) -> SimulationDraw:
        threading.Event().wait(0.05)
        return super().simulate(inputs, seed)


def print_landing(response: dict) -> None:
    """Print the headline numbers of a success response."""
    landing = response["data"]["landing_prediction"]
    zone = response["data"]["uncertainty"]["landing_zone"]
    coords = landing["coordinates"]
    print(f"   Landing: {coords['latitude']:.4f}, {coords['longitude']:.4f}")
    print(f"   {landing['confidence_interval']['probability']:.0%} radius: "
          f"{landing['confidence_interval']['radius_km']} km")
    print(f"   Flight time: {landing['flight_duration_hours']} h, "
          f"lands at {landing['estimated_landing_time']}")
    if zone["factors"]:
        shares = ", ".join(f"{name} {value:.0%}" for name, value in zone["factors"].items())
        print(f"   Uncertainty: {shares}")


def main():
    """Run the basic usage demonstration."""
    print("🎈 BLIiP Prediction Core - Basic Usage Demo")
    print("=" * 50)

    configure_logging(level="WARNING")
    now = datetime.now(timezone.utc)
    engine = PredictionEngine(ConstantWindIntegrator())

    print("1. Default mission parameters:")
    inputs = default_user_inputs(now)
    print(f"   Launch: {inputs.launch_location.latitude}, {inputs.launch_location.longitude} "
          f"at {inputs.launch_location.launch_time.isoformat()}")
    print(f"   Balloon: {inputs.balloon.balloon_type.label}, burst {inputs.balloon.burst_altitude} m")
    print()

    print("2. Invalid parameters are reported, not raised:")
    bad = replace(inputs, balloon=replace(inputs.balloon, burst_altitude=500, ascent_rate=12.0))
    response = engine.predict(bad, now)
    for error in response["error"]["errors"]:
        print(f"   ❌ {error['field']}: {error['message']}")
    print()

    print("3. Prediction with default parameters:")
    response = engine.predict(inputs, now, include_conversions=True)
    print_landing(response)
    conversion = response["data"]["landing_prediction"]["coordinate_conversion"]
    if conversion:
        print(f"   UTM {conversion['utm']['zone']} {conversion['utm']['easting']}E "
              f"{conversion['utm']['northing']}N, MGRS {conversion['mgrs']['grid']}")
    print()

    print("4. High-altitude research preset, simplified trajectory:")
    research = preset_inputs("high_altitude_research", now)
    response = engine.predict(research, now, simplify=True)
    print_landing(response)
    print(f"   Trajectory points: {response['data']['trajectory']['metadata']['total_points']}")
    print(f"   JSON size: {len(to_json(response))} bytes")
    print()

    print("5. Cancelling a slow ensemble:")
    token = CancellationToken()
    threading.Timer(0.3, token.cancel).start()
    response = PredictionEngine(SlowIntegrator()).predict(inputs, now, cancel_token=token)
    if response["status"] == "success":
        mc = response["data"]["monte_carlo"]
        print(f"   Salvaged {mc['simulations']} draws (reduced confidence: {mc['reduced_confidence']})")
    else:
        print(f"   {response['error']['kind']}: {response['error']['message']}")
    print()

    print("✅ Demo completed successfully!")


if __name__ == "__main__":
    main()
