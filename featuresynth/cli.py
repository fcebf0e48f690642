#!/usr/bin/env python3
"""featuresynth CLI entrypoint."""

import argparse
import logging
import sys
from pathlib import Path

from featuresynth.commands import classify as cmd_classify_module
from featuresynth.commands import epics as cmd_epics_module
from featuresynth.commands import show as cmd_show_module
from featuresynth.lib.config import load_engine_config


def get_engine_config(args):
    """Load engine config from --config-dir, or defaults."""
    config_dir = Path(args.config_dir) if args.config_dir else None
    if config_dir is not None and not config_dir.is_dir():
        print(f"ERROR: Config directory not found: {config_dir}")
        sys.exit(2)
    try:
        return load_engine_config(config_dir)
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        sys.exit(2)


def configure_logging(args, level_name: str) -> None:
    level = logging.DEBUG if args.verbose else getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def cmd_epics(args):
    return cmd_epics_module.cmd_epics(args)


def cmd_show(args):
    config = get_engine_config(args)
    configure_logging(args, config.log_level)
    return cmd_show_module.cmd_show(args, config)


def cmd_classify(args):
    return cmd_classify_module.cmd_classify(args)


def main(argv=None):
    parser = argparse.ArgumentParser(prog='featuresynth', description='Synthesize features from epics')
    parser.add_argument('--config-dir', '-c', help='Directory holding featuresynth.env and services.yaml')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # featuresynth epics
    p_epics = subparsers.add_parser('epics', help='List epics in a document')
    p_epics.add_argument('file', help='JSON or YAML epic document')
    p_epics.set_defaults(func=cmd_epics)

    # featuresynth show
    p_show = subparsers.add_parser('show', help='Compose and render the features of an epic')
    p_show.add_argument('file', help='JSON or YAML epic document')
    p_show.add_argument('slug', help='Epic slug (see: featuresynth epics)')
    p_show.add_argument('--json', action='store_true', help='Print rendered features as JSON')
    p_show.set_defaults(func=cmd_show)

    # featuresynth classify
    p_classify = subparsers.add_parser('classify', help='Classify a task description')
    p_classify.add_argument('text', nargs='+', help='Task title and description')
    p_classify.set_defaults(func=cmd_classify)

    args = parser.parse_args(argv)
    if args.func is not cmd_show:
        configure_logging(args, "WARNING")
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main() or 0)
