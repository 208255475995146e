"""Headless action replay - CLI entry point.

Loads a design JSON file, replays a JSON list of editor actions through the
reducer (exactly as the canvas would dispatch them) and writes the resulting
design.

Usage:
    python editor/src/headless.py <design_file> <actions_file> [-o OUTPUT] [--catalog CATALOG]

Examples:
    python editor/src/headless.py plan.json session.json -o plan_after.json
    python editor/src/headless.py plan.json session.json --catalog catalog.json -v
"""

import sys
import os
import argparse
import json
import logging

# Add editor/src to path so imports work
_src_dir = os.path.dirname(os.path.abspath(__file__))
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

logger = logging.getLogger('headless')


def load_catalog(path):
    """Load a catalog JSON file.

    Accepts a list of item objects ({"key", "footprintFt": {"length", "width"}, ...}) or legacy
    catalog rows carrying a "schemaJson" block.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a JSON list
    """
    from models.catalog import Catalog

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Catalog {path} must be a JSON list")
    if data and isinstance(data[0], dict) and 'schemaJson' in data[0]:
        return Catalog.from_entries(data)
    return Catalog.from_list(data)


def load_actions(path):
    """Read a JSON list of actions and convert each entry.

    Raises:
        ValueError: If the file is not a list or an entry is not a valid action
    """
    from actions.editor_actions import action_from_dict

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Actions file {path} must be a JSON list")
    return [action_from_dict(entry) for entry in data]


def replay(design, actions, catalog, observer=None):
    """Run actions against a fresh session and return it"""
    from services.session import EditorSession

    session = EditorSession(design, catalog, observer=observer)
    session.dispatch_all(actions)
    return session


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Replay editor actions against a floor plan design (headless).',
    )
    parser.add_argument(
        'design_file',
        help='Path to the design JSON file.',
    )
    parser.add_argument(
        'actions_file',
        help='Path to a JSON list of editor actions.',
    )
    parser.add_argument(
        '-o', '--output',
        default=None,
        help='Where to write the resulting design (default: <design>_out.json).',
    )
    parser.add_argument(
        '-c', '--catalog',
        default=None,
        help='Catalog JSON file (default: built-in catalog).',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging.',
    )
    args = parser.parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    from models.catalog import default_catalog
    from services.persistence import load_design_from_file, save_design_to_file
    from utils.logger import LoggingObserver

    design_path = os.path.abspath(args.design_file)
    output_path = os.path.abspath(args.output or os.path.splitext(design_path)[0] + '_out.json')

    try:
        design = load_design_from_file(design_path)
        actions = load_actions(os.path.abspath(args.actions_file))
        catalog = load_catalog(args.catalog) if args.catalog else default_catalog()
    except (OSError, ValueError, KeyError, TypeError) as e:
        print(f"Error: {e}")
        return 1

    print(f"Replaying {len(actions)} action(s) against {design_path} ...")
    observer = LoggingObserver(logger)
    session = replay(design, actions, catalog, observer)
    state = session.state

    try:
        save_design_to_file(state.design, output_path)
    except OSError as e:
        print(f"Error: could not write {output_path}: {e}")
        return 1

    print(f"Fixtures: {len(state.design.fixtures)}, zones: {len(state.design.zones)}, "
          f"annotations: {len(state.design.annotations)}")
    print(f"History depth: {len(state.history)}, redo depth: {len(state.future)}")
    if observer.counts.get('rejected') or observer.counts.get('error'):
        print(f"Ignored actions: {observer.counts.get('rejected', 0)} rejected, "
              f"{observer.counts.get('error', 0)} malformed")
    print(f"Design written to {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
