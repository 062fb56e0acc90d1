"""
Command-line interface for the Neura Token Backend.

Provides CLI commands for server management:
- init-store: Create the snapshot file if it does not exist
- run: Start the API server
- sweep: Remove sessions inactive beyond the retention window, once
- stats: Print the aggregate statistics as JSON

Usage:
    neura-server init-store
    neura-server run [--host HOST] [--port PORT]
    neura-server sweep
    neura-server stats

Environment Variables:
    NEURA_HOST: Host to bind the API server (default: 0.0.0.0)
    NEURA_PORT / PORT: Port for the API server (default: 3000)
    NEURA_STORE_PATH: Snapshot file location (default: data/database.json)
"""

import argparse
import json
import sys


def cmd_init_store(args: argparse.Namespace) -> int:
    """
    Create an empty snapshot file if none exists.

    Returns:
        0 on success, 1 on error
    """
    from neura_server.config import config
    from neura_server.ledger.errors import StoreError
    from neura_server.ledger.persistence import PersistentStore

    store = PersistentStore(config.store.absolute_path, fail_open=config.store.fail_open)
    try:
        created = store.initialize()
    except StoreError as e:
        print(f"Error initializing store: {e}", file=sys.stderr)
        return 1

    if created:
        print(f"Store initialized at {store.path}")
    else:
        print(f"Store already exists at {store.path}")
    return 0


def cmd_sweep(args: argparse.Namespace) -> int:
    """
    Run one retention sweep.

    Returns:
        0 on success, 1 on error
    """
    from neura_server.ledger import LedgerService, StoreError

    try:
        with LedgerService.from_config() as service:
            result = service.sweep_expired_sessions()
    except StoreError as e:
        print(f"Error sweeping sessions: {e}", file=sys.stderr)
        return 1

    print(f"Removed {len(result['removed'])} inactive session(s).")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """
    Print aggregate statistics as JSON.

    Returns:
        0 on success, 1 on error
    """
    from neura_server.ledger import LedgerService, StoreError

    try:
        with LedgerService.from_config() as service:
            stats = service.get_stats()
    except StoreError as e:
        print(f"Error reading stats: {e}", file=sys.stderr)
        return 1

    print(json.dumps(stats, indent=2, sort_keys=True))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the API server until interrupted.

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on startup error
    """
    from neura_server.api.server import start_server

    try:
        start_server(host=getattr(args, "host", None), port=getattr(args, "port", None))
        return 0
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="neura-server",
        description="Neura Token Backend - mining game ledger server",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser(
        "init-store",
        help="Create the snapshot file",
        description="Create an empty snapshot file at the configured store path.",
    )
    init_parser.set_defaults(func=cmd_init_store)

    run_parser = subparsers.add_parser(
        "run",
        help="Run the API server",
        description="Start the FastAPI server and the periodic retention sweep.",
    )
    run_parser.add_argument("--host", type=str, default=None, help="Host to bind")
    run_parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    run_parser.set_defaults(func=cmd_run)

    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Remove inactive sessions once",
        description="Remove sessions inactive beyond retention.max_age_hours.",
    )
    sweep_parser.set_defaults(func=cmd_sweep)

    stats_parser = subparsers.add_parser(
        "stats",
        help="Print aggregate statistics",
        description="Print the same statistics served at /api/stats.",
    )
    stats_parser.set_defaults(func=cmd_stats)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
