"""
Command-line table simulator.

Plays computer-only rounds at one table and prints a summary table.

Example usage:
    python -m dagunzi.simulate
    python -m dagunzi.simulate --rounds 5 --seed 7
    python -m dagunzi.simulate --difficulty hard easy hard easy --budget 0.5
    python -m dagunzi.simulate --config table.json --log-level DEBUG
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from dagunzi.config import DIFFICULTIES, GameConfig
from dagunzi.game.constants import NUM_PLAYERS
from dagunzi.session import GameSession, RoundSummary


def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = None):
    """
    Setup logging (console and optional file).

    Args:
        log_level: Logging level name
        log_file: Optional path of a log file
    """
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=log_format,
        datefmt=date_format,
        handlers=handlers,
        force=True,
    )


def build_summary_table(summaries: List[RoundSummary]) -> Table:
    """Rich table with one row per round."""
    table = Table(title="Round results")
    table.add_column("Round", style="cyan", justify="right")
    table.add_column("Trump", style="magenta")
    table.add_column("Dealer", justify="right")
    table.add_column("Declared by")
    table.add_column("Defender pts", justify="right")
    table.add_column("Winner", style="green")
    table.add_column("Levels +", justify="right")
    table.add_column("Tribute", justify="right")
    table.add_column("Team levels", style="white")

    for summary in summaries:
        result = summary.result
        winner = "declarers" if result.declarer_wins else "defenders"
        table.add_row(
            str(summary.round_number),
            summary.trump,
            str(summary.dealer),
            summary.declaration,
            str(result.defender_points),
            f"team {result.winning_team} ({winner})",
            str(result.level_change),
            str(result.tribute_count),
            " / ".join(summary.team_levels),
        )
    return table


def build_config(args: argparse.Namespace) -> GameConfig:
    """Config from an optional JSON file, overridden by command-line flags."""
    config = GameConfig.from_file(args.config) if args.config else GameConfig()
    if args.rounds is not None:
        config.num_rounds = args.rounds
    if args.difficulty is not None:
        config.difficulties = list(args.difficulty)
    if args.seed is not None:
        config.seed = args.seed
    if args.workers is not None:
        config.num_workers = args.workers
    if args.budget is not None:
        config.time_budget_seconds = args.budget
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_file is not None:
        config.log_file = args.log_file
    config.human_seats = []
    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Simulate Dalian Dagunzi rounds between computer players",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  python -m dagunzi.simulate --rounds 3
  python -m dagunzi.simulate --difficulty easy medium hard medium --seed 42
        """
    )

    parser.add_argument(
        '--rounds',
        type=int,
        default=None,
        help='Number of rounds to play (default: config num_rounds)'
    )

    parser.add_argument(
        '--difficulty',
        nargs=NUM_PLAYERS,
        type=str.lower,
        choices=DIFFICULTIES,
        default=None,
        metavar='LEVEL',
        help=f'Difficulty of each seat, one of {", ".join(DIFFICULTIES)} (four values)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducible deals'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to JSON config file'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='Threads for the hard AI search (capped at core count)'
    )

    parser.add_argument(
        '--budget',
        type=float,
        default=None,
        help='Seconds the hard AI may search per decision'
    )

    parser.add_argument(
        '--log-level',
        type=str.upper,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: config log_level)'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write logs to this file'
    )

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level, config.log_file)
    logger = logging.getLogger(__name__)
    logger.info(f"\n{config}")

    console = Console()
    session = GameSession(config)
    start = time.time()
    summaries = session.play_game(config.num_rounds)
    elapsed = time.time() - start

    console.print(build_summary_table(summaries))
    console.print(f"Played {len(summaries)} round(s) in {elapsed:.1f}s")
    return 0


if __name__ == '__main__':
    sys.exit(main())
