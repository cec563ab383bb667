#!/usr/bin/env python3
"""
Main window for Pixel Studio
Separated UI panels around the canvas; all state lives in the controller
"""

# Standard library imports
from typing import Optional

# Third-party imports
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QAction, QKeyEvent, QKeySequence
from PyQt6.QtWidgets import (
    QButtonGroup,
    QComboBox,
    QDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QRadioButton,
    QScrollArea,
    QSlider,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from .pixel_studio_constants import (
    BRUSH_SIZE_MAX,
    BRUSH_SIZE_MIN,
    LEFT_PANEL_MAX_WIDTH,
    MAIN_WINDOW_HEIGHT,
    MAIN_WINDOW_WIDTH,
    PALETTE_SWATCH_COLUMNS,
    PALETTE_SWATCH_SIZE,
    ZOOM_MAX,
    ZOOM_MIN,
)
from .pixel_studio_canvas import PixelCanvas
from .pixel_studio_controller import PixelStudioController
from .pixel_studio_dialogs import ArtworkBrowserDialog, NewArtworkDialog, PaletteEditorDialog
from .pixel_studio_managers import ToolType
from .pixel_studio_models import ColorPalette
from .pixel_studio_utils import debug_log

TOOL_LABELS = {
    ToolType.BRUSH: "Brush",
    ToolType.ERASER: "Eraser",
    ToolType.BUCKET: "Bucket",
    ToolType.EYEDROPPER: "Eyedropper",
    ToolType.RECTANGLE: "Rectangle",
    ToolType.CIRCLE: "Circle",
}


class ToolPanel(QWidget):
    """Panel for tool selection and brush size"""

    # Signals
    toolChanged = pyqtSignal(str)  # Emits tool name when changed
    brushSizeChanged = pyqtSignal(int)  # Emits brush size when changed

    def __init__(self, parent=None):
        super().__init__(parent)
        self.tool_buttons: dict[str, QRadioButton] = {}
        self.init_ui()

    def init_ui(self):
        """Initialize the tool panel UI"""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        tool_group = QGroupBox("Tools")
        tool_layout = QGridLayout()
        self.tool_group = QButtonGroup(self)

        for index, (tool_type, label) in enumerate(TOOL_LABELS.items()):
            button = QRadioButton(label)
            self.tool_group.addButton(button, index)
            self.tool_buttons[tool_type.value] = button
            tool_layout.addWidget(button, index // 2, index % 2)
        self.tool_buttons[ToolType.BRUSH.value].setChecked(True)

        tool_group.setLayout(tool_layout)
        self.tool_group.buttonClicked.connect(self._on_tool_clicked)
        layout.addWidget(tool_group)

        brush_group = QGroupBox("Brush Size")
        brush_layout = QHBoxLayout()
        self.brush_size_slider = QSlider(Qt.Orientation.Horizontal)
        self.brush_size_slider.setRange(BRUSH_SIZE_MIN, BRUSH_SIZE_MAX)
        self.brush_size_slider.setValue(BRUSH_SIZE_MIN)
        self.brush_size_slider.setToolTip("Brush size in pixels")
        self.brush_size_label = QLabel(str(BRUSH_SIZE_MIN))
        self.brush_size_slider.valueChanged.connect(self._on_brush_size_changed)
        brush_layout.addWidget(self.brush_size_slider)
        brush_layout.addWidget(self.brush_size_label)
        brush_group.setLayout(brush_layout)
        layout.addWidget(brush_group)

    def _on_tool_clicked(self, button):
        for name, tool_button in self.tool_buttons.items():
            if tool_button is button:
                self.toolChanged.emit(name)
                return

    def _on_brush_size_changed(self, size: int):
        self.brush_size_label.setText(str(size))
        self.brushSizeChanged.emit(size)

    def set_tool(self, tool_name: str):
        """Check the button of a tool without re-emitting"""
        button = self.tool_buttons.get(tool_name)
        if button is not None:
            button.setChecked(True)

    def set_brush_size(self, size: int):
        self.brush_size_slider.setValue(size)


class PalettePanel(QWidget):
    """Palette chooser, color field and swatches of the selected palette"""

    colorSelected = pyqtSignal(str)
    paletteSelected = pyqtSignal(str)  # palette id

    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        group = QGroupBox("Color")
        group_layout = QVBoxLayout()

        self.palette_combo = QComboBox()
        self.palette_combo.setPlaceholderText("No palette")
        self.palette_combo.activated.connect(self._on_palette_activated)
        group_layout.addWidget(self.palette_combo)

        self.color_edit = QLineEdit()
        self.color_edit.setPlaceholderText("#rrggbb")
        self.color_edit.editingFinished.connect(
            lambda: self.colorSelected.emit(self.color_edit.text().strip())
        )
        group_layout.addWidget(self.color_edit)

        self.swatch_layout = QGridLayout()
        self.swatch_layout.setSpacing(2)
        group_layout.addLayout(self.swatch_layout)

        group.setLayout(group_layout)
        layout.addWidget(group)

    def set_current_color(self, color: str):
        self.color_edit.setText(color)

    def _on_palette_activated(self, index: int):
        palette_id = self.palette_combo.itemData(index)
        if palette_id:
            self.paletteSelected.emit(palette_id)

    def set_palettes(self, palettes: list[ColorPalette], selected: Optional[ColorPalette]):
        """Refill the chooser and rebuild the swatch grid"""
        self.palette_combo.blockSignals(True)
        self.palette_combo.clear()
        for palette in palettes:
            self.palette_combo.addItem(palette.name, palette.id)
        self.palette_combo.setCurrentIndex(
            self.palette_combo.findData(selected.id) if selected else -1
        )
        self.palette_combo.blockSignals(False)
        self._set_swatches(list(selected.colors) if selected else [])

    def _set_swatches(self, colors: list[str]):
        while self.swatch_layout.count():
            item = self.swatch_layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        for index, color in enumerate(colors):
            swatch = QPushButton()
            swatch.setFixedSize(PALETTE_SWATCH_SIZE, PALETTE_SWATCH_SIZE)
            swatch.setToolTip(color)
            swatch.setStyleSheet(f"background-color: {color}; border: 1px solid #9ca3af;")
            swatch.clicked.connect(lambda _checked, c=color: self.colorSelected.emit(c))
            self.swatch_layout.addWidget(
                swatch, index // PALETTE_SWATCH_COLUMNS, index % PALETTE_SWATCH_COLUMNS
            )


class PixelStudioWindow(QMainWindow):
    """Main window for the pixel studio editor"""

    def __init__(self, controller: PixelStudioController):
        super().__init__()

        self.controller = controller

        # Initialize UI
        self.init_ui()

        # Connect controller signals
        self._connect_controller_signals()

    def _connect_controller_signals(self):
        """Connect all controller signals to UI updates"""
        self.controller.paletteChanged.connect(self._on_palette_changed)
        self.controller.layersChanged.connect(self._on_layers_changed)
        self.controller.titleChanged.connect(self.setWindowTitle)
        self.controller.statusMessage.connect(self._show_status_message)
        self.controller.error.connect(self._show_error)
        self.controller.toolChanged.connect(self.tool_panel.set_tool)
        self.controller.colorChanged.connect(self.palette_panel.set_current_color)
        self.controller.zoomChanged.connect(self._on_zoom_changed)
        self.controller.brushSizeChanged.connect(self.tool_panel.set_brush_size)
        self.controller.saveStateChanged.connect(self._on_save_state_changed)

    def init_ui(self):
        """Initialize the user interface"""
        self.setWindowTitle("Pixel Studio")
        self.resize(MAIN_WINDOW_WIDTH, MAIN_WINDOW_HEIGHT)

        self.create_menu_bar()

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QHBoxLayout(central_widget)

        layout.addWidget(self._create_left_panel())
        layout.addWidget(self._create_right_panel(), 1)

        # Status bar
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.save_state_label = QLabel("Saved")
        self.zoom_label = QLabel(f"Zoom: {self.controller.zoom}x")
        self.status_bar.addPermanentWidget(self.save_state_label)
        self.status_bar.addPermanentWidget(self.zoom_label)

        self.palette_panel.set_current_color(self.controller.tool_manager.current_color)
        self.tool_panel.set_brush_size(self.controller.tool_manager.current_brush_size)

    def create_menu_bar(self):
        """Create the menu bar"""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("File")

        new_action = QAction("New Artwork...", self)
        new_action.setShortcut(QKeySequence.StandardKey.New)
        new_action.triggered.connect(self.new_artwork)

        open_action = QAction("Open Artwork...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_artwork)

        # Ctrl+S is handled in keyPressEvent
        save_action = QAction("Save", self)
        save_action.triggered.connect(self.controller.save_now)

        delete_action = QAction("Delete Artwork", self)
        delete_action.triggered.connect(self.delete_artwork)

        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)

        file_menu.addAction(new_action)
        file_menu.addAction(open_action)
        file_menu.addSeparator()
        file_menu.addAction(save_action)
        file_menu.addAction(delete_action)
        file_menu.addSeparator()
        file_menu.addAction(quit_action)

        # Palette menu
        palette_menu = menubar.addMenu("Palette")

        new_palette_action = QAction("New Palette...", self)
        new_palette_action.triggered.connect(self.new_palette)

        self.edit_palette_action = QAction("Edit Palette...", self)
        self.edit_palette_action.triggered.connect(self.edit_palette)
        self.edit_palette_action.setEnabled(False)

        self.delete_palette_action = QAction("Delete Palette", self)
        self.delete_palette_action.triggered.connect(self.delete_palette)
        self.delete_palette_action.setEnabled(False)

        palette_menu.addAction(new_palette_action)
        palette_menu.addAction(self.edit_palette_action)
        palette_menu.addAction(self.delete_palette_action)

    def _create_left_panel(self) -> QWidget:
        """Create the left panel with tools, colors, view options and layers"""
        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)
        left_panel.setMaximumWidth(LEFT_PANEL_MAX_WIDTH)

        self.tool_panel = ToolPanel()
        self.tool_panel.toolChanged.connect(self.controller.set_tool)
        self.tool_panel.brushSizeChanged.connect(self.controller.set_brush_size)
        left_layout.addWidget(self.tool_panel)

        self.palette_panel = PalettePanel()
        self.palette_panel.colorSelected.connect(self.controller.set_color)
        self.palette_panel.paletteSelected.connect(self.controller.select_palette)
        left_layout.addWidget(self.palette_panel)

        # Zoom
        zoom_group = QGroupBox("Zoom")
        zoom_layout = QHBoxLayout()
        self.zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self.zoom_slider.setRange(ZOOM_MIN, ZOOM_MAX)
        self.zoom_slider.setValue(self.controller.zoom)
        self.zoom_slider.valueChanged.connect(self.controller.set_zoom)
        zoom_layout.addWidget(self.zoom_slider)
        zoom_group.setLayout(zoom_layout)
        left_layout.addWidget(zoom_group)

        # Actions
        action_layout = QHBoxLayout()
        self.save_button = QPushButton("Save")
        self.save_button.clicked.connect(self.controller.save_now)
        self.clear_button = QPushButton("Clear")
        self.clear_button.clicked.connect(self._confirm_clear)
        action_layout.addWidget(self.save_button)
        action_layout.addWidget(self.clear_button)
        left_layout.addLayout(action_layout)

        # Layers
        layer_group = QGroupBox("Layers")
        layer_layout = QVBoxLayout()
        self.layer_list = QListWidget()
        self.layer_list.itemChanged.connect(self._on_layer_item_changed)
        layer_layout.addWidget(self.layer_list)
        layer_buttons = QHBoxLayout()
        self.add_layer_button = QPushButton("Add")
        self.add_layer_button.clicked.connect(self._add_layer)
        self.remove_layer_button = QPushButton("Remove")
        self.remove_layer_button.clicked.connect(self._remove_layer)
        layer_buttons.addWidget(self.add_layer_button)
        layer_buttons.addWidget(self.remove_layer_button)
        layer_layout.addLayout(layer_buttons)
        layer_group.setLayout(layer_layout)
        left_layout.addWidget(layer_group)

        left_layout.addStretch()
        return left_panel

    def _create_right_panel(self) -> QWidget:
        """Create the right panel with the canvas"""
        scroll_area = QScrollArea()
        self.canvas = PixelCanvas(self.controller)
        scroll_area.setWidget(self.canvas)
        scroll_area.setWidgetResizable(False)
        scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        return scroll_area

    # Controller updates

    def _on_palette_changed(self):
        manager = self.controller.palette_manager
        self.palette_panel.set_palettes(manager.palettes, manager.selected)
        has_palette = manager.selected is not None
        self.edit_palette_action.setEnabled(has_palette)
        self.delete_palette_action.setEnabled(has_palette)

    def _on_layers_changed(self):
        layers = self.controller.layers
        shown_ids = [
            self.layer_list.item(row).data(Qt.ItemDataRole.UserRole)
            for row in range(self.layer_list.count())
        ]
        self.layer_list.blockSignals(True)
        try:
            if shown_ids == [layer.id for layer in layers]:
                # Same layers, only flags changed; items stay in place
                for row, layer in enumerate(layers):
                    item = self.layer_list.item(row)
                    item.setText(layer.name)
                    item.setCheckState(
                        Qt.CheckState.Checked if layer.is_visible else Qt.CheckState.Unchecked
                    )
                return
            self.layer_list.clear()
            for layer in layers:
                item = QListWidgetItem(layer.name)
                item.setData(Qt.ItemDataRole.UserRole, layer.id)
                item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
                item.setCheckState(
                    Qt.CheckState.Checked if layer.is_visible else Qt.CheckState.Unchecked
                )
                self.layer_list.addItem(item)
        finally:
            self.layer_list.blockSignals(False)

    def _on_zoom_changed(self, zoom: int):
        self.zoom_label.setText(f"Zoom: {zoom}x")
        if self.zoom_slider.value() != zoom:
            self.zoom_slider.setValue(zoom)

    def _on_save_state_changed(self, state: str):
        labels = {"idle": "Saved", "dirty": "Unsaved changes", "saving": "Saving..."}
        self.save_state_label.setText(labels.get(state, state))

    def _show_status_message(self, message: str, timeout: int):
        self.status_bar.showMessage(message, timeout)

    def _show_error(self, message: str):
        debug_log("WINDOW", f"Error shown to user: {message}", "ERROR")
        QMessageBox.critical(self, "Error", message)

    # User actions

    def new_artwork(self):
        dialog = NewArtworkDialog(self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.controller.new_artwork(**dialog.get_values())

    def open_artwork(self):
        dialog = ArtworkBrowserDialog(
            self.controller.list_artworks(), self.controller.list_public_artworks(), self
        )
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        artwork_id = dialog.get_selected_artwork_id()
        if artwork_id:
            self.controller.open_artwork(artwork_id)

    def delete_artwork(self):
        artwork = self.controller.artwork
        if artwork is None:
            return
        reply = QMessageBox.question(
            self,
            "Delete Artwork",
            f"Delete {artwork.title} and all of its layers?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.controller.delete_artwork(artwork.id)

    def new_palette(self):
        dialog = PaletteEditorDialog(parent=self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.controller.create_palette(**dialog.get_values())

    def edit_palette(self):
        palette: Optional[ColorPalette] = self.controller.palette_manager.selected
        if palette is None:
            return
        dialog = PaletteEditorDialog(palette, self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.controller.update_palette(palette.id, **dialog.get_values())

    def delete_palette(self):
        palette = self.controller.palette_manager.selected
        if palette is None:
            return
        reply = QMessageBox.question(
            self,
            "Delete Palette",
            f"Delete palette {palette.name}?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.controller.delete_palette(palette.id)

    def _confirm_clear(self):
        reply = QMessageBox.question(
            self,
            "Clear Canvas",
            "Erase every pixel of this artwork?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.controller.clear_canvas()

    def _add_layer(self):
        name, ok = QInputDialog.getText(self, "New Layer", "Layer name:")
        if ok and name.strip():
            self.controller.create_layer(name.strip())

    def _remove_layer(self):
        item = self.layer_list.currentItem()
        if item is not None:
            self.controller.delete_layer(item.data(Qt.ItemDataRole.UserRole))

    def _on_layer_item_changed(self, item: QListWidgetItem):
        self.controller.set_layer_visibility(
            item.data(Qt.ItemDataRole.UserRole),
            item.checkState() == Qt.CheckState.Checked,
        )

    def keyPressEvent(self, event: QKeyEvent):
        """Handle keyboard shortcuts"""
        shortcuts = {
            Qt.Key.Key_B: ToolType.BRUSH.value,
            Qt.Key.Key_E: ToolType.ERASER.value,
            Qt.Key.Key_G: ToolType.BUCKET.value,
            Qt.Key.Key_I: ToolType.EYEDROPPER.value,
        }
        if (
            event.key() == Qt.Key.Key_S
            and event.modifiers() == Qt.KeyboardModifier.ControlModifier
        ):
            self.controller.save_now()
        elif (
            event.key() in shortcuts
            and event.modifiers() == Qt.KeyboardModifier.NoModifier
        ):
            self.controller.set_tool(shortcuts[event.key()])
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event):
        """Close the artwork, saving pending edits, before the window goes away"""
        self.controller.close_artwork()
        super().closeEvent(event)
