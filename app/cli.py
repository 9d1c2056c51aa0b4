"""Command-line interface for recording replays and session history."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from app.context import build_context, build_recording_stack
from app.services.recorder import GpsSessionRecorder
from app.services.storage import JsonLocalStore
from capture import GpxReplaySource, ReplayClock, SimulatedDescentSource, replay
from configs.settings import AppConfig, load_config
from exceptions import ConfigError, StorageError, TrackImportError


def _load_config(args) -> AppConfig:
    config = load_config(Path(args.config)) if args.config else load_config()
    if args.sessions_dir:
        config = dataclasses.replace(
            config,
            storage=dataclasses.replace(config.storage, sessions_dir=args.sessions_dir),
        )
    return config


def _format_time(epoch: float) -> str:
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M")


def _format_duration(seconds: int) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:d}:{minutes:02d}:{secs:02d}"


def replay_command(args) -> int:
    """Handle replay command.

    Records a GPX track (or a simulated run) through the recording
    controller, prints the summary and saves the session.
    """
    config = _load_config(args)
    context = build_context(config)

    if args.simulate:
        source = SimulatedDescentSource()
    elif args.track:
        source = GpxReplaySource(args.track)
    else:
        print("Error: give a GPX track or --simulate", file=sys.stderr)
        return 1

    try:
        first_fix = next(source.fixes(), None)
    except TrackImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if first_fix is None:
        print("Error: track has no points", file=sys.stderr)
        return 1

    clock = ReplayClock(first_fix.timestamp)
    recorder = GpsSessionRecorder(config.recorder, clock=clock, wall_clock=clock)
    stack = build_recording_stack(context, recorder=recorder)
    controller = stack.controller

    try:
        controller.start(resort_id=args.resort)
        accepted = replay(source, clock.feeding(recorder.ingest), pace=args.pace)
        result = controller.stop_and_summarize()
    finally:
        clean = stack.shutdown()

    if result is None:
        print("Error: recording did not start", file=sys.stderr)
        return 1

    summary, session = result
    print(f"\n✓ Session {session.id} recorded ({accepted} points)")
    if session.resort_id is not None:
        print(f"  Resort: {session.resort_id}")
    print(f"  Distance: {summary.distance_km:.2f} km")
    print(f"  Duration: {_format_duration(summary.duration_sec)}")
    print(f"  Average speed: {summary.avg_speed_kmh:.1f} km/h")
    print(f"  Top speed: {summary.top_speed_kmh:.1f} km/h")
    if summary.elevation_drop_m is not None:
        print(f"  Vertical drop: {summary.elevation_drop_m:.0f} m")

    if stack.persister.get_stats()["failed"]:
        print("Warning: session could not be saved, see logs", file=sys.stderr)
        return 1
    if not clean:
        print("Warning: session save did not finish before shutdown, see logs", file=sys.stderr)
        return 1

    print(f"\n  Saved to: {Path(config.storage.sessions_dir) / (session.id + '.json')}")
    return 0


def history_command(args) -> int:
    """Handle history command."""
    config = _load_config(args)
    store = JsonLocalStore(config.storage.sessions_dir, min_free_mb=config.storage.min_free_mb)
    sessions = store.load_sessions()

    if not sessions:
        print("No recorded sessions found.")
        return 0

    shown = sessions[: args.limit] if args.limit else sessions
    print(f"Found {len(sessions)} session(s):")
    for session in shown:
        resort = f"resort {session.resort_id}" if session.resort_id is not None else "no resort"
        print(
            f"  {_format_time(session.ended_at)}  {session.id[:8]}  "
            f"{session.distance_km:6.2f} km  {_format_duration(session.duration_sec)}  "
            f"top {session.top_speed_kmh:5.1f} km/h  ({resort})"
        )
    return 0


def prune_command(args) -> int:
    """Handle prune command."""
    config = _load_config(args)
    store = JsonLocalStore(config.storage.sessions_dir, min_free_mb=config.storage.min_free_mb)
    limit = args.max if args.max is not None else config.storage.max_sessions

    try:
        removed = store.prune_to_limit(limit)
    except (StorageError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Removed {removed} session(s), keeping at most {limit}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gosnow",
        description="GoSnow ski run recorder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Record a GPX track as a session at resort 42
  gosnow replay tracks/niseko.gpx --resort 42

  # Record a simulated run
  gosnow replay --simulate

  # Show the ten most recent sessions
  gosnow history --limit 10

  # Keep only the newest 50 sessions
  gosnow prune --max 50
        """
    )
    parser.add_argument('--config', help='Path to configuration YAML (default: bundled default.yaml)')
    parser.add_argument('--sessions-dir', help='Override storage.sessions_dir')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    replay_parser = subparsers.add_parser('replay', help='Record a GPX track as a session')
    replay_parser.add_argument('track', nargs='?', help='GPX file to replay')
    replay_parser.add_argument('--simulate', action='store_true', help='Replay a simulated descent instead')
    replay_parser.add_argument('--resort', type=int, help='Resort id to scope the session to')
    replay_parser.add_argument(
        '--pace',
        type=float,
        default=0.0,
        help='Real-time factor (1.0 = recorded speed, 0 = as fast as possible)'
    )

    history_parser = subparsers.add_parser('history', help='List recorded sessions')
    history_parser.add_argument('--limit', type=int, help='Show at most this many sessions')

    prune_parser = subparsers.add_parser('prune', help='Trim session history')
    prune_parser.add_argument('--max', type=int, help='Sessions to keep (default: storage.max_sessions)')

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'replay':
            return replay_command(args)
        elif args.command == 'history':
            return history_command(args)
        elif args.command == 'prune':
            return prune_command(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    return 1


if __name__ == '__main__':
    sys.exit(main())
