"""
Run one of the pendulum demos
"""

import numpy as np

import animator
import simulator
from pendulum import Pendulum, PendulumParameters, PendulumState
from pendulum_wave import PendulumWave
from single_pendulum import SinglePendulum
from solver import Integrator

# Configuration
DEMO = 'n-pendulum'         # 'n-pendulum', 'single' or 'wave'
N = 3                       # Number of pendulum segments
LENGTHS = [1.0, 1.0, 1.0]   # Rod lengths (m)
MASSES = [1.0, 1.0, 1.0]    # Bob masses (kg)
GRAVITY = 9.81
INITIAL_ANGLES = [0.7, 0.4, -0.3]
INTEGRATOR = Integrator.RK4
DT = 0.005                  # Fixed integrator step (s)
STEPS_PER_FRAME = 3
FPS = 60
SAVE_VIDEO = False
VIDEO_SECONDS = 30


def run_n_pendulum():
    parameters = PendulumParameters.from_arrays(LENGTHS[:N], MASSES[:N], GRAVITY)
    pendulum = Pendulum(parameters, PendulumState(INITIAL_ANGLES[:N]), INTEGRATOR)

    # Short headless check of the chosen step before opening the window
    trial = Pendulum(parameters, PendulumState(INITIAL_ANGLES[:N]), INTEGRATOR)
    trajectory = simulator.simulate(trial, duration=5, dt=DT, fps=FPS, verbose=False)
    drift = simulator.energy_drift(trajectory.energy).max()
    print(f"  Energy drift over 5 s: {drift:.2e}")
    if not np.isfinite(drift) or drift > 0.05:
        print("  Warning: large energy drift, consider a smaller DT or RK4")
    print()

    animator.animate_pendulum(
        pendulum,
        dt=DT,
        steps_per_frame=STEPS_PER_FRAME,
        fps=FPS,
        save_video=SAVE_VIDEO,
        video_filename=f'{N}_pendulum.mp4',
        duration=VIDEO_SECONDS,
    )


def run_single_pendulum():
    pendulum = SinglePendulum(gravity=GRAVITY, integrator=INTEGRATOR)
    pendulum.apply_preset('Simple')
    animator.animate_single_pendulum(
        pendulum,
        fps=FPS,
        save_video=SAVE_VIDEO,
        video_filename='single_pendulum.mp4',
        duration=VIDEO_SECONDS,
    )


def run_pendulum_wave():
    animator.animate_pendulum_wave(
        PendulumWave(),
        fps=FPS,
        save_video=SAVE_VIDEO,
        video_filename='pendulum_wave.mp4',
        duration=VIDEO_SECONDS,
    )


DEMOS = {
    'n-pendulum': run_n_pendulum,
    'single': run_single_pendulum,
    'wave': run_pendulum_wave,
}


def main():
    """
    Open the demo selected in the configuration block.
    """

    print("=" * 60)
    print("PENDULUM DEMOS")
    print("=" * 60)
    print()

    if DEMO not in DEMOS:
        raise ValueError(f"Unknown demo '{DEMO}'. Use one of: {', '.join(DEMOS)}")

    print(f"Configuration:")
    print(f"  Demo: {DEMO}")
    if DEMO == 'n-pendulum':
        print(f"  N (segments): {N}")
        print(f"  Integrator: {INTEGRATOR.label}")
        print(f"  Time step: {DT} s x {STEPS_PER_FRAME} per frame")
    print(f"  Output: {'video' if SAVE_VIDEO else 'window'}")
    print("  Keys: space pause, r reset, i integrator, up/down links")
    print()

    DEMOS[DEMO]()

    print()
    print("=" * 60)
    print("COMPLETE!")
    print("=" * 60)


if __name__ == '__main__':
    main()
