import sys
import os
import logging

# Configure logging
logging.basicConfig(
    level=logging.WARNING,  # Only show warnings and errors
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)  # Output to console
    ]
)

# Add editor/src to path so imports work when running directly
if __name__ == "__main__":
    current_dir = os.path.dirname(os.path.abspath(__file__))
    if current_dir not in sys.path:
        sys.path.insert(0, current_dir)

# PyQt5 import/s
from PyQt5 import QtWidgets
from PyQt5.QtWidgets import QMainWindow, QFileDialog, QMessageBox, QLabel
from PyQt5.QtCore import Qt
from PyQt5.QtGui import QPalette, QColor

# Component imports
from components.plan_canvas import PlanCanvasWidget

# Model imports
from models.catalog import default_catalog
from models.design import empty_design
from models.editor_state import Tool

# Service imports
from services.persistence import JsonFilePersistence, load_design_from_file, save_design_to_file
from services.session import EditorSession
from actions.editor_actions import LoadDesign, SetTool, SetZoneEditMode

# Utility imports
from utils.config import load_config, save_config, DEFAULT_CONFIG_DIR
from utils.logger import loggerRaise, set_main_window, LoggingObserver
from version import get_version


class FixtureLayoutEditor(QMainWindow):
    """Host window: plan canvas, menus, status bar, config and autosave"""

    def __init__(self, config_dir=None):
        super().__init__()
        self.setWindowTitle(f"Fixture Layout Editor {get_version()}")
        self.resize(1280, 720)

        # Initialize global logger with main window reference
        set_main_window(self)

        # Settings and autosave target
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config = load_config(self.config_dir)
        self.autosave_file = os.path.join(self.config_dir, "autosave.json")

        # Track current file
        self.current_file_path = None

        self.session = EditorSession(
            empty_design(),
            default_catalog(),
            persistence=JsonFilePersistence(self.autosave_file),
            observer=LoggingObserver(logging.getLogger('editor.reducer')),
            config=self.config,
        )
        self.session.history.add_listener(self._on_history_changed)

        self.canvas = PlanCanvasWidget(self.session, self)
        self.canvas.stateChanged.connect(self._update_status)
        self.setCentralWidget(self.canvas)

        self.status_label = QLabel()
        self.statusBar().addWidget(self.status_label)

        self._setup_menus()
        self._update_status(self.session.state)

    # ========================================
    # Menus
    # ========================================

    def _setup_menus(self):
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        new_action = file_menu.addAction("&New")
        new_action.setShortcut("Ctrl+N")
        new_action.triggered.connect(self.new_design)

        open_action = file_menu.addAction("&Open...")
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self.open_design)

        self.recent_menu = file_menu.addMenu("Open &Recent")
        self._update_recent_files_menu()

        save_action = file_menu.addAction("&Save")
        save_action.setShortcut("Ctrl+S")
        save_action.triggered.connect(self.save_design)

        save_as_action = file_menu.addAction("Save &As...")
        save_as_action.setShortcut("Ctrl+Shift+S")
        save_as_action.triggered.connect(self.save_design_as)

        file_menu.addSeparator()
        exit_action = file_menu.addAction("E&xit")
        exit_action.triggered.connect(self.close)

        # Editing shortcuts are handled by the canvas key bindings, so the
        # menu entries only trigger the same logical commands
        self.edit_menu = menubar.addMenu("&Edit")
        self.undo_action = self.edit_menu.addAction("&Undo")
        self.undo_action.triggered.connect(lambda: self.canvas.commands.run('undo'))
        self.undo_action.setEnabled(False)
        self.redo_action = self.edit_menu.addAction("&Redo")
        self.redo_action.triggered.connect(lambda: self.canvas.commands.run('redo'))
        self.redo_action.setEnabled(False)
        self.edit_menu.addSeparator()
        for label, command in (("&Delete", 'delete-selection'), ("Rotate", 'rotate-selection'),
                               ("Select &All", 'select-all')):
            action = self.edit_menu.addAction(label)
            action.triggered.connect(lambda checked, c=command: self.canvas.commands.run(c))

        tools_menu = menubar.addMenu("&Tools")
        for tool in Tool:
            action = tools_menu.addAction(tool.value.capitalize())
            action.triggered.connect(lambda checked, t=tool: self.session.dispatch(SetTool(t)))
        tools_menu.addSeparator()
        self.zone_edit_action = tools_menu.addAction("Edit &Zones")
        self.zone_edit_action.setCheckable(True)
        self.zone_edit_action.toggled.connect(lambda enabled: self.session.dispatch(SetZoneEditMode(enabled)))

    def _update_recent_files_menu(self):
        """Update the Recent Files submenu"""
        self.recent_menu.clear()
        if not self.config.recent_files:
            no_recent = self.recent_menu.addAction("No recent files")
            no_recent.setEnabled(False)
            return
        for filepath in self.config.recent_files:
            action = self.recent_menu.addAction(os.path.basename(filepath))
            action.setToolTip(filepath)
            action.triggered.connect(lambda checked, f=filepath: self._open_file(f))

    def _add_to_recent_files(self, filepath):
        self.config.add_recent_file(filepath)
        self._update_recent_files_menu()
        save_config(self.config, self.config_dir)

    # ========================================
    # Status
    # ========================================

    def _on_history_changed(self, can_undo, can_redo):
        """Enable/disable the undo and redo menu entries"""
        self.undo_action.setEnabled(can_undo)
        self.redo_action.setEnabled(can_redo)

    def _update_status(self, state):
        overlays = self.session.overlays()
        parts = [
            f"Tool: {state.tool.value}",
            f"Zoom: {state.viewport.scale * 100:.0f}%",
            f"Snap: {state.snap_increment}ft",
            f"Selected: {len(state.live_selected_ids())}",
        ]
        if overlays.collisions:
            parts.append(f"Collisions: {len(overlays.collisions)}")
        if overlays.measure_distance_ft is not None:
            parts.append(f"Distance: {overlays.measure_distance_ft:.2f}ft")
        self.status_label.setText("  |  ".join(parts))

    # ========================================
    # File operations
    # ========================================

    def new_design(self):
        self.current_file_path = None
        self.session.dispatch(LoadDesign(empty_design()))

    def open_design(self):
        filepath, _ = QFileDialog.getOpenFileName(self, "Open Design", "", "Design Files (*.json);;All Files (*)")
        if filepath:
            self._open_file(filepath)

    def _open_file(self, filepath):
        if not os.path.exists(filepath):
            QMessageBox.warning(self, "File Not Found", f"The file no longer exists:\n{filepath}")
            return
        try:
            design = load_design_from_file(filepath)
        except (OSError, ValueError) as e:
            loggerRaise(e, f"Could not open {filepath}")
            return
        self.session.dispatch(LoadDesign(design))
        self.current_file_path = filepath
        self._add_to_recent_files(filepath)

    def save_design(self):
        if self.current_file_path is None:
            self.save_design_as()
            return
        try:
            save_design_to_file(self.session.state.design, self.current_file_path)
        except OSError as e:
            loggerRaise(e, f"Could not save {self.current_file_path}")
            return
        self.statusBar().showMessage(f"Saved {self.current_file_path}", 3000)

    def save_design_as(self):
        filepath, _ = QFileDialog.getSaveFileName(self, "Save Design", "", "Design Files (*.json);;All Files (*)")
        if not filepath:
            return
        self.current_file_path = filepath
        self.save_design()
        self._add_to_recent_files(filepath)

    def closeEvent(self, event):
        save_config(self.config, self.config_dir)
        super().closeEvent(event)


def main():
    """Main entry point for the Fixture Layout Editor application"""
    app = QtWidgets.QApplication([])

    # Use Fusion style with dark palette
    app.setStyle("Fusion")

    dark_palette = QPalette()
    dark_palette.setColor(QPalette.Window, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.WindowText, Qt.white)
    dark_palette.setColor(QPalette.Base, QColor(25, 25, 25))
    dark_palette.setColor(QPalette.AlternateBase, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.Text, Qt.white)
    dark_palette.setColor(QPalette.Button, QColor(53, 53, 53))
    dark_palette.setColor(QPalette.ButtonText, Qt.white)
    dark_palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
    dark_palette.setColor(QPalette.HighlightedText, Qt.black)

    app.setPalette(dark_palette)

    window = FixtureLayoutEditor()
    window.show()
    app.exec_()


if __name__ == "__main__":
    main()
