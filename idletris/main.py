#!/usr/bin/env python3
"""
Idletris: multi-board falling-block simulator with heuristic agents.
Command-line interface for headless demos and benchmarks.
"""

import argparse
import logging
import time
from typing import List, Optional

from .ai.planner import HeuristicPlanner
from .core.board import create_grid
from .core.pieces import PieceType, create_piece
from .session import GameSession, SessionConfig


class SimulatedClock:
    """Millisecond clock advanced by hand, so a demo runs faster than real time."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now

    def __call__(self) -> float:
        return self.now


def build_demo_session(boards: int, seed: Optional[int], hard_drop: bool,
                       speed_level: int, clock: SimulatedClock) -> GameSession:
    """
    Create a session where every board is run by a hired agent.

    A board only unlocks once the one before it is maxed out, so every board
    but the last runs at the top agent speed; ``speed_level`` applies to the last.
    """
    config = SessionConfig(random_seed=seed, max_boards=max(boards, 1))
    session = GameSession(config, clock=clock)
    for _ in range(boards - 1):
        index = session.active_board_index
        session.hire_agent(index)
        session.set_ai_hard_drop(index)
        while session.upgrade_ai_speed(index):
            pass
        session.add_board()
    for index in range(len(session.engines)):
        session.hire_agent(index)
        session.set_ai_hard_drop(index, hard_drop)
        for _ in range(speed_level):
            session.upgrade_ai_speed(index)
    return session


def print_boards(session: GameSession):
    rows: List[str] = []
    boards = session.boards
    lines = [str(board).split("\n") for board in boards]
    for row in range(session.config.height):
        rows.append("  ".join(board_lines[row] for board_lines in lines))
    print("\n".join(rows))
    print("  ".join(f"#{b.index + 1} L{b.lines_cleared}".ljust(b.width) for b in boards))


def demo(args):
    """Run autonomous boards on a simulated clock."""
    print("Idletris Demo")
    print("=" * 50)

    clock = SimulatedClock()
    session = build_demo_session(args.boards, args.seed, not args.no_hard_drop,
                                 args.speed_level, clock)

    start_time = time.time()
    for tick in range(1, args.ticks + 1):
        session.tick(clock.advance(args.tick_ms))
        if args.show_every and tick % args.show_every == 0:
            print(f"\nTick {tick} ({clock.now / 1000:.1f}s simulated)")
            print_boards(session)
        if all(board.is_game_over for board in session.boards):
            break
    duration = time.time() - start_time

    print("\n" + "=" * 50)
    print_boards(session)
    print(f"Simulated time: {clock.now / 1000:.1f}s")
    print(f"Wall time: {duration:.2f}s")
    print(f"Total lines cleared: {session.total_lines_cleared}")
    for board in session.boards:
        status = "lost" if board.is_game_over else "playing"
        print(f"Board {board.index + 1}: {board.lines_cleared} lines, "
              f"{board.pieces_locked} pieces, {status}")


def benchmark(args):
    """Time placement searches on an empty grid."""
    print("Idletris Planner Benchmark")
    print("=" * 50)

    planner = HeuristicPlanner()
    grid = create_grid()
    for piece_type in PieceType:
        piece = create_piece(piece_type, grid.shape[1])
        start_time = time.time()
        for _ in range(args.iterations):
            planner.plan_best_placement(piece, grid)
        elapsed = time.time() - start_time
        rate = args.iterations / elapsed if elapsed > 0 else 0.0
        print(f"{piece_type.name}: {args.iterations} searches in {elapsed:.3f}s "
              f"({rate:.0f} searches/s)")


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Idletris: multi-board falling-block simulator")
    parser.add_argument('--log-level', default='WARNING', help='Logging level')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    demo_parser = subparsers.add_parser('demo', help='Run autonomous boards headlessly')
    demo_parser.add_argument('--boards', type=int, default=3, help='Number of boards')
    demo_parser.add_argument('--ticks', type=int, default=5000, help='Ticks to simulate')
    demo_parser.add_argument('--tick-ms', type=float, default=16.0, help='Simulated ms per tick')
    demo_parser.add_argument('--seed', type=int, default=None, help='Random seed')
    demo_parser.add_argument('--speed-level', type=int, default=0, help='Agent speed upgrades')
    demo_parser.add_argument('--no-hard-drop', action='store_true', help='Agents soft drop only')
    demo_parser.add_argument('--show-every', type=int, default=0, help='Print boards every N ticks')

    benchmark_parser = subparsers.add_parser('benchmark', help='Benchmark the placement planner')
    benchmark_parser.add_argument('--iterations', type=int, default=200, help='Searches per piece')

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format='[IDLETRIS] %(asctime)s - %(message)s')

    if args.command == 'demo':
        demo(args)
    elif args.command == 'benchmark':
        benchmark(args)
    else:
        parser.print_help()
        print("\nFor a quick demo, run: idletris demo")


if __name__ == "__main__":
    main()
