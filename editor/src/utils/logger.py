"""Global logging and error handling utilities"""
import logging
import sys
import traceback
from PyQt5.QtWidgets import QMessageBox

# Detect debug mode - True if running from source, False if packaged
DEBUG_MODE = not getattr(sys, 'frozen', False)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_main_window = None

def set_main_window(window):
    """Set the main window reference for showing popups"""
    global _main_window
    _main_window = window

def configure_logging(verbose=False):
    """Configure root logging for the editor and the headless tools"""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)

def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Handle exceptions with optional popup in release mode

    Args:
        e: The exception to handle
        user_message: User-friendly message to show in popup (optional)
        title: Title for the popup dialog

    In DEBUG_MODE:
        - Just raises the exception (shows full traceback)

    In RELEASE_MODE:
        - Shows popup with user message or exception string
        - Logs the full traceback
        - Then raises the exception
    """
    if DEBUG_MODE:
        raise e

    tb = traceback.format_exc()
    logging.getLogger(__name__).error(f"{user_message or title}: {tb}")

    message = user_message if user_message else str(e)
    if _main_window:
        QMessageBox.critical(_main_window, title, message)
    else:
        print(f"ERROR POPUP (no window): {title} - {message}", file=sys.stderr)

    raise e


class LoggingObserver:
    """Reducer observer that forwards events to a logger

    'rejected' and 'error' events are warnings, commits are info and
    everything else is debug output.
    """

    LEVELS = {
        'rejected': logging.WARNING,
        'error': logging.WARNING,
        'commit': logging.INFO,
    }

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger('editor')
        self.counts = {}

    def on_event(self, kind, message, data):
        self.counts[kind] = self.counts.get(kind, 0) + 1
        level = self.LEVELS.get(kind, logging.DEBUG)
        if data:
            self.logger.log(level, f"[{kind}] {message} {data}")
        else:
            self.logger.log(level, f"[{kind}] {message}")
