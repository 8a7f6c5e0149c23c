"""Train or evaluate the two ring fighters with tabular Q-learning.

Examples:
    python scripts/train_qlearning.py train --episodes 200 --max-steps 300 --save snapshots/run.json
    python scripts/train_qlearning.py evaluate --load snapshots/run.json --realtime
"""

# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ringfight import SimulationLoop, SimulationParameters
from ringfight.rl.qlearning import load_snapshot, save_snapshot
from ringfight.settings import settings
from ringfight.training import run_fixed_interval

logger = logging.getLogger("ringfight.cli")


def _parameters(args: argparse.Namespace, base: dict | None = None) -> SimulationParameters:
    """CLI flags over ``base`` (a loaded snapshot's parameters), over the defaults."""
    flags = {
        "learningRate": args.lr,
        "discountFactor": args.gamma,
        "explorationRate": args.epsilon,
        "explorationDecay": args.epsilon_decay,
        "minExplorationRate": args.min_epsilon,
        "discretizationMode": args.discretization,
        "numEpisodes": args.episodes,
        "maxSteps": args.max_steps,
    }
    merged = dict(base or {})
    merged.update({key: value for key, value in flags.items() if value is not None})
    return SimulationParameters.from_dict(merged)


def _snapshot_path(path: str) -> Path:
    # Absolute paths replace the base directory when joined.
    return settings.SNAPSHOT_DIR / path


def _log_events(kind: str, payload: dict) -> None:
    if kind == "episodeComplete":
        logger.debug(f"episode {payload['episodeIndex']} tally={payload['winTally']}")


def run(args: argparse.Namespace, mode: str) -> None:
    seed = args.seed if args.seed is not None else settings.SEED
    loop = SimulationLoop(seed=seed)
    loop.add_listener(_log_events)

    base = None
    if args.load:
        load_path = _snapshot_path(args.load)
        snapshot = load_snapshot(load_path)
        loop.import_snapshot(snapshot)
        base = snapshot["parameters"]
        print(f"loaded {load_path}")
    params = _parameters(args, base)

    loop.start(params, mode)
    interval = settings.TICK_INTERVAL_S if args.realtime else 0.0
    ticks = run_fixed_interval(loop, interval_s=interval)

    stats = loop.stats.to_dict()
    print(json.dumps({"mode": mode, "ticks": ticks, "finalStats": stats}, indent=2))

    if args.save:
        save_path = _snapshot_path(args.save)
        save_snapshot(save_path, loop.export_snapshot())
        print(f"wrote {save_path}")


def cmd_train(args: argparse.Namespace) -> None:
    run(args, "train")


def cmd_evaluate(args: argparse.Namespace) -> None:
    run(args, "evaluate")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--episodes", type=int, default=None)
    p.add_argument("--max-steps", type=int, default=None)
    p.add_argument("--lr", type=float, default=None)
    p.add_argument("--gamma", type=float, default=None)
    p.add_argument("--epsilon", type=float, default=None)
    p.add_argument("--epsilon-decay", type=float, default=None)
    p.add_argument("--min-epsilon", type=float, default=None)
    p.add_argument("--discretization", choices=["coarse", "full"], default=None)
    p.add_argument("--load", type=str, default=None, help="Snapshot to start from, relative to RINGFIGHT_SNAPSHOT_DIR")
    p.add_argument("--save", type=str, default=None, help="Snapshot path, relative to RINGFIGHT_SNAPSHOT_DIR")
    p.add_argument("--realtime", action="store_true", help="Tick at RINGFIGHT_TICK_INTERVAL_S instead of flat out")


def main() -> None:
    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument("--log-level", type=str, default=settings.LOG_LEVEL)
    sub = p.add_subparsers(dest="cmd", required=True)

    p_train = sub.add_parser("train")
    _add_common(p_train)
    p_train.set_defaults(func=cmd_train)

    p_eval = sub.add_parser("evaluate")
    _add_common(p_eval)
    p_eval.set_defaults(func=cmd_evaluate)

    args = p.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    args.func(args)


if __name__ == "__main__":
    main()
