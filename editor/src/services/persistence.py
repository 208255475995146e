"""
Fixture Layout Editor - Persistence Ports

The session host snapshots the design through a port with save(design) and
load() -> design. The engine never touches storage itself.
"""

import json
import logging
import os

from models.design import Design

logger = logging.getLogger(__name__)


def save_design_to_file(design, filename):
    """Save a design as JSON

    Args:
        design: Design to write
        filename: Path to save file

    Raises:
        OSError: If file write fails
    """
    directory = os.path.dirname(os.path.abspath(filename))
    os.makedirs(directory, exist_ok=True)
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(design.to_dict(), f, indent=2)
    logger.debug(f"Design saved to {filename}")


def load_design_from_file(filename):
    """Load a design from JSON

    Returns:
        Design

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a valid design document
    """
    with open(filename, 'r', encoding='utf-8') as f:
        data = json.load(f)
    design = Design.from_dict(data)
    logger.debug(f"Design loaded from {filename}")
    return design


class JsonFilePersistence:
    """Persistence port backed by a single JSON file"""

    def __init__(self, path):
        self.path = path

    def save(self, design):
        save_design_to_file(design, self.path)

    def load(self):
        return load_design_from_file(self.path)


class MemoryPersistence:
    """Persistence port keeping saved designs in memory (tests, previews)"""

    def __init__(self, design=None):
        self.saved = [] if design is None else [design]

    def save(self, design):
        self.saved.append(design)

    def load(self):
        if not self.saved:
            raise LookupError("Nothing has been saved")
        return self.saved[-1]
