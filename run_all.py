"""
Run complete N-Pendulum simulation pipeline
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

import sim_config
import function_generator
import simulator
import animator
from pendulum_types import default_system


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="N-pendulum chaotic simulation")
    p.add_argument("--links", type=int, default=len(sim_config.DEFAULT_MASSES), help="Number of pendulum segments")
    p.add_argument("--duration", type=float, default=20.0, help="Simulation time (seconds)")
    p.add_argument("--instances", type=int, default=20, help="Number of pendulum instances")
    p.add_argument("--perturbation", type=float, default=1e-6, help="Initial condition perturbation (rad)")
    p.add_argument("--method", choices=["rk4", "dop853"], default="rk4")
    p.add_argument("--singular-policy", choices=sim_config.SINGULAR_POLICIES,
                   default=sim_config.DEFAULT_SINGULAR_POLICY)
    p.add_argument("--output-dir", default=".", help="Where to write the pickled equations")
    p.add_argument("--live", action="store_true", help="Open the interactive view instead of the batch pipeline")
    p.add_argument("--steps-per-frame", type=int, default=2, help="Integrator steps per rendered frame (live view)")
    p.add_argument("--no-video", action="store_true", help="Show the animation instead of saving a video")
    p.add_argument("--video", default=None, help="Output video filename")
    return p.parse_args(argv)


def validate_args(args) -> None:
    if args.links < 0:
        print(f"ERROR: --links must be >= 0, got {args.links}", file=sys.stderr)
        sys.exit(1)
    if args.duration <= 0:
        print(f"ERROR: --duration must be > 0, got {args.duration}", file=sys.stderr)
        sys.exit(1)
    if args.instances < 1:
        print(f"ERROR: --instances must be >= 1, got {args.instances}", file=sys.stderr)
        sys.exit(1)
    if args.steps_per_frame < 1:
        print(f"ERROR: --steps-per-frame must be >= 1, got {args.steps_per_frame}", file=sys.stderr)
        sys.exit(1)


def main(argv=None):
    """
    Complete pipeline:
    1. Generate equations of motion
    2. Run numerical simulation
    3. Create animation/video
    """

    args = parse_args(argv)
    validate_args(args)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    system = default_system().resize(args.links)
    params = system.parameters

    if args.live:
        simulation = simulator.PendulumSimulation.from_system(system, singular_policy=args.singular_policy)
        animator.run_live(simulation, steps_per_frame=args.steps_per_frame)
        return

    print("=" * 60)
    print("N-PENDULUM CHAOTIC SIMULATION")
    print("=" * 60)
    print()

    print(f"Configuration:")
    print(f"  N (segments): {params.count}")
    print(f"  Masses: {np.round(params.masses, 3).tolist()}")
    print(f"  Lengths: {np.round(params.lengths, 3).tolist()}")
    print(f"  Duration: {args.duration} seconds")
    print(f"  Number of instances: {args.instances}")
    print(f"  Perturbation: {args.perturbation:.2e}")
    print(f"  Integrator: {args.method}")
    print()

    # Step 1: Generate equations
    print("STEP 1: Generating equations of motion...")
    print("-" * 60)
    function_generator.generate_pendulum_equations(params, args.output_dir, args.singular_policy)
    print()

    # Step 2: Run simulation
    print("STEP 2: Running numerical simulation...")
    print("-" * 60)
    simulator.simulate_pendulum(
        params,
        initial_state=system.state,
        T=args.duration,
        M=args.instances,
        perturbation=args.perturbation,
        method=args.method,
        singular_policy=args.singular_policy,
        equations_file=Path(args.output_dir) / f"func_N{params.count}k.pkl",
    )
    print()

    # Step 3: Create animation
    print("STEP 3: Creating animation...")
    print("-" * 60)
    animator.animate_pendulum(
        save_video=not args.no_video,
        video_filename=args.video or f'{params.count}_pendulum_{args.instances}_instances.mp4',
    )
    print()

    print("=" * 60)
    print("COMPLETE!")
    print("=" * 60)


if __name__ == '__main__':
    main()
