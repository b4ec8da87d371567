#!/usr/bin/env python3
"""
Satellite attitude simulation under PD control.

The body angle tracks a 15 degree square-wave reference while the
flexible panel follows through the spring coupling:
    τ = kp (θ_r - θ) - kd θ̇

Generates a time-history plot in report/figures/.
"""

import logging
import numpy as np
import os
import sys

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from models.satellite import Satellite
from controllers.pid import PIDController
from sim.signals import SignalGenerator
from sim.simulator import Simulator
from sim.plotting import plot_data, save_figure


def main():
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    print("=" * 60)
    print("SATELLITE ATTITUDE - PD CONTROL")
    print("=" * 60)

    satellite = Satellite(Satellite.default_config(Ts=0.01, scheme='RK4'), seed=0)
    print(f"\nPlant: {satellite}")

    controller = PIDController(kp=0.5, kd=2.0, Ts=satellite.Ts,
                               channel=0, rate_channel=2,
                               limit=5.0, name="PD (kp=0.5, kd=2.0)")

    reference = SignalGenerator(amplitude=15 * np.pi / 180, frequency=0.015)
    disturbance = 0.0

    sim = Simulator(satellite, controller, reference.square,
                    disturbance=disturbance, feedback='state')
    result = sim.run(t_end=100.0, t_plot=0.1)

    metrics = result.compute_metrics(channel=0)
    print(f"\nPerformance Metrics:")
    print(f"  Max tracking error: {metrics['max_error']:.4f} rad")
    print(f"  RMS tracking error: {metrics['rms_error']:.4f} rad")
    print(f"  Max torque: {metrics['max_input']:.4f} N m")

    fig, _ = plot_data(result, title="Satellite attitude (PD)")
    save_figure(fig, 'satellite_pd')
    print("\nOutputs:")
    print("  - report/figures/satellite_pd.png")

    return True


if __name__ == '__main__':
    success = main()
    sys.exit(0 if success else 1)
