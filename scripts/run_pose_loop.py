"""Run the pose update loop for one robot.

Connects a PoseController to a robot and runs update cycles, printing a
summary of the fused pose. The network transport to a physical robot is
provided separately; without it this script drives the kinematic simulator,
which accepts the same address/robot-id arguments so the command line is
identical.

Requires the optional plotting dependencies: pip install -e ".[scripts]"

Usage:
    python scripts/run_pose_loop.py 192.168.1.10 1 --room 2 --cycles 200
    python scripts/run_pose_loop.py sim 1 --config robot.json --plot
"""

import argparse
import logging
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).parent.parent))

from posefusion.config import RobotConfig, load_config
from posefusion.controller import PoseController
from posefusion.sim import SimulatedRobotInterface


def build_config(args: argparse.Namespace) -> RobotConfig:
    """Load the JSON config if given, then apply command-line overrides."""
    config = load_config(args.config) if args.config else RobotConfig()
    overrides = {}
    if args.room is not None:
        overrides["room"] = args.room
    if args.fail_limit is not None:
        overrides["fail_limit"] = args.fail_limit
    if overrides:
        data = config.to_dict()
        data.update(overrides)
        config = RobotConfig.from_dict(data)
    return config


def plot_trajectory(true_xy: np.ndarray, fused_xy: np.ndarray, odom_xy: np.ndarray,
                    figs_dir: Path) -> Path:
    """Plot true, odometry and fused trajectories and save as SVG."""
    figs_dir.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(true_xy[:, 0], true_xy[:, 1], "k-", linewidth=2, label="Ground truth")
    ax.plot(odom_xy[:, 0], odom_xy[:, 1], "b--", alpha=0.7, label="Wheel odometry")
    ax.plot(fused_xy[:, 0], fused_xy[:, 1], "r-", alpha=0.8, label="Fused")
    ax.set_xlabel("x [cm]")
    ax.set_ylabel("y [cm]")
    ax.set_title("Pose fusion: wheel odometry + north star")
    ax.axis("equal")
    ax.grid(True, alpha=0.3)
    ax.legend()

    out = figs_dir / "pose_loop_trajectory.svg"
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    return out


def main():
    """Main execution with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Run the wheel odometry + north star pose fusion loop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 200 cycles in room 2 with default calibration
  python scripts/run_pose_loop.py sim 1 --room 2 --cycles 200

  # Lossy link, custom config, trajectory plot
  python scripts/run_pose_loop.py sim 2 --config robot.json --drop-rate 0.3 --plot
        """
    )
    parser.add_argument("address", help="Robot address (hostname or 'sim')")
    parser.add_argument("robot_id", type=int, help="Numeric robot identifier")
    parser.add_argument("--config", type=str, default=None,
                        help="JSON RobotConfig file")
    parser.add_argument("--room", type=int, default=None,
                        help="Room id 0-3 (overrides config)")
    parser.add_argument("--fail-limit", type=int, default=None,
                        help="Consecutive poll failures per cycle (overrides config)")
    parser.add_argument("--cycles", type=int, default=200,
                        help="Number of cycles to run; 0 runs until interrupted (default: 200)")
    parser.add_argument("--period", type=float, default=0.0,
                        help="Seconds between cycles (default: 0)")
    parser.add_argument("--drop-rate", type=float, default=0.05,
                        help="Simulated poll failure probability (default: 0.05)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Simulation random seed (default: robot_id)")
    parser.add_argument("--plot", action="store_true",
                        help="Save a trajectory plot to figs/")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except (ValueError, TypeError, FileNotFoundError) as exc:
        print(f"Error: invalid configuration: {exc}")
        sys.exit(2)

    seed = args.seed if args.seed is not None else args.robot_id
    robot = SimulatedRobotInterface(
        room=config.calibration[config.room],
        geometry=config.geometry,
        command=(2.0, 0.0, 0.01),
        drop_rate=args.drop_rate,
        seed=seed,
    )
    controller = PoseController(robot, config, initial_pose=robot.true_pose)

    print("\n" + "=" * 70)
    print(f"Pose loop: robot {args.robot_id} @ {args.address}")
    print("=" * 70)
    print(f"  Room:        {config.room}")
    print(f"  Fail limit:  {controller.fail_limit}")
    print(f"  Cycles:      {args.cycles or 'until interrupted'}\n")

    true_xy, fused_xy, odom_xy = [], [], []

    def record(result):
        true_xy.append((robot.true_pose.x, robot.true_pose.y))
        fused_xy.append((result.pose.x, result.pose.y))
        pose = controller.odometry_pose
        odom_xy.append((pose.x, pose.y))

    max_cycles = args.cycles if args.cycles > 0 else None
    successes = 0
    try:
        with tqdm(total=max_cycles, desc="Pose cycles", unit="cycle") as bar:
            def on_cycle(result):
                record(result)
                bar.update(1)

            successes = controller.run(max_cycles, period=args.period, on_cycle=on_cycle)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        successes = controller.cycles - controller.failed_cycles

    true_arr = np.array(true_xy)
    fused_arr = np.array(fused_xy)
    odom_arr = np.array(odom_xy)

    print("\n" + "=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"  Cycles run:      {controller.cycles}")
    print(f"  Successful:      {successes}")
    print(f"  Failed:          {controller.failed_cycles}")
    print(f"  Final pose:      {controller.pose}")
    print(f"  True pose:       {robot.true_pose}")
    if len(true_arr):
        fused_err = np.linalg.norm(fused_arr - true_arr, axis=1)
        odom_err = np.linalg.norm(odom_arr - true_arr, axis=1)
        print(f"  Fused RMSE:      {np.sqrt(np.mean(fused_err**2)):.2f} cm")
        print(f"  Odometry RMSE:   {np.sqrt(np.mean(odom_err**2)):.2f} cm")

    if args.plot and len(true_arr):
        out = plot_trajectory(true_arr, fused_arr, odom_arr, Path("figs"))
        print(f"\n  [OK] Saved: {out}")
    print()


if __name__ == "__main__":
    main()
