#!/usr/bin/env python3
"""
AMC - Main Entry Point
Run the Agent Management Console terminal UI
"""
import argparse
import logging
import sys

from AMC.config import AUTO_START_KEY, load_settings, setup_logging
from AMC.database.database import SettingsStore
from AMC.UI import run_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="amc", description="Agent Management Console")
    parser.add_argument("--log-file", help="Service log file to monitor (default: AMC_LOG_FILE)")
    parser.add_argument("--follow", action="store_true",
                        help="Start live log monitoring as soon as the console opens")
    parser.add_argument("--debug", action="store_true", help="Verbose console diagnostics")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.log_file)
    setup_logging(settings, debug=args.debug)
    logger = logging.getLogger("AMC")

    store = SettingsStore(settings.state_db)
    if args.follow:
        store.set(AUTO_START_KEY, "true")

    print("Starting AMC Terminal UI...")
    print("Press 'q' to quit, 's' to start/stop streaming, 'r' to reload, '/' to search")
    print("-" * 80)

    try:
        run_app(settings, store=store)
    except KeyboardInterrupt:
        print("\nAMC terminated by user")
    except Exception as e:
        logger.exception("Console crashed")
        print(f"\nError running AMC: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
