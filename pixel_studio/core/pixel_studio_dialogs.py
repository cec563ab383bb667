#!/usr/bin/env python3
"""
Dialogs for creating and opening artworks and editing color palettes
"""

# Standard library imports
from typing import Any, Optional

# Third-party imports
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import (
    QCheckBox,
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QSpinBox,
    QTabWidget,
    QVBoxLayout,
)

from .pixel_studio_constants import (
    ARTWORK_TITLE_MAX_LENGTH,
    DEFAULT_ARTWORK_HEIGHT,
    DEFAULT_ARTWORK_WIDTH,
    MAX_ARTWORK_SIZE,
    MIN_ARTWORK_SIZE,
    PALETTE_MAX_COLORS,
    PALETTE_MIN_COLORS,
    PALETTE_NAME_MAX_LENGTH,
    STARTER_PALETTE_COLORS,
)
from .pixel_studio_models import Artwork, ColorPalette
from .pixel_studio_utils import is_valid_hex_color


def _add_button_row(dialog: QDialog, layout: QVBoxLayout) -> QPushButton:
    """OK and Cancel buttons; returns the OK button"""
    button_layout = QHBoxLayout()
    ok_button = QPushButton("OK")
    ok_button.clicked.connect(dialog.accept)
    cancel_button = QPushButton("Cancel")
    cancel_button.clicked.connect(dialog.reject)
    button_layout.addWidget(ok_button)
    button_layout.addWidget(cancel_button)
    layout.addLayout(button_layout)
    return ok_button


class NewArtworkDialog(QDialog):
    """Dialog asking for the title, size and visibility of a new artwork"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.init_ui()

    def init_ui(self):
        self.setWindowTitle("New Artwork")
        self.setModal(True)

        layout = QVBoxLayout()
        form = QFormLayout()

        self.title_edit = QLineEdit("Untitled")
        self.title_edit.setMaxLength(ARTWORK_TITLE_MAX_LENGTH)
        form.addRow("Title:", self.title_edit)

        self.description_edit = QLineEdit()
        form.addRow("Description:", self.description_edit)

        self.width_spin = QSpinBox()
        self.width_spin.setRange(MIN_ARTWORK_SIZE, MAX_ARTWORK_SIZE)
        self.width_spin.setValue(DEFAULT_ARTWORK_WIDTH)
        form.addRow("Width:", self.width_spin)

        self.height_spin = QSpinBox()
        self.height_spin.setRange(MIN_ARTWORK_SIZE, MAX_ARTWORK_SIZE)
        self.height_spin.setValue(DEFAULT_ARTWORK_HEIGHT)
        form.addRow("Height:", self.height_spin)

        self.public_check = QCheckBox("Show in the public gallery")
        form.addRow(self.public_check)

        layout.addLayout(form)
        self.ok_button = _add_button_row(self, layout)
        self.title_edit.textChanged.connect(
            lambda text: self.ok_button.setEnabled(bool(text.strip()))
        )
        self.setLayout(layout)

    def get_values(self) -> dict[str, Any]:
        """Keyword arguments for PixelStudioController.new_artwork"""
        description = self.description_edit.text().strip()
        return {
            "title": self.title_edit.text().strip(),
            "width": self.width_spin.value(),
            "height": self.height_spin.value(),
            "description": description or None,
            "is_public": self.public_check.isChecked(),
        }


class ArtworkBrowserDialog(QDialog):
    """Dialog listing the user's artworks and the public gallery"""

    def __init__(self, own: list[Artwork], public: list[Artwork], parent=None):
        super().__init__(parent)
        self.own = own
        self.public = public
        self.init_ui()

    def init_ui(self):
        self.setWindowTitle("Open Artwork")
        self.setModal(True)
        self.resize(400, 450)

        layout = QVBoxLayout()
        self.tabs = QTabWidget()
        self.own_list = self._create_list(self.own, show_owner=False)
        self.public_list = self._create_list(self.public, show_owner=True)
        self.tabs.addTab(self.own_list, "My Artworks")
        self.tabs.addTab(self.public_list, "Public Gallery")
        layout.addWidget(self.tabs)

        if not self.own and not self.public:
            layout.addWidget(QLabel("No artworks yet"))

        _add_button_row(self, layout)
        self.setLayout(layout)

    def _create_list(self, artworks: list[Artwork], show_owner: bool) -> QListWidget:
        artwork_list = QListWidget()
        for artwork in artworks:
            text = f"{artwork.title} ({artwork.width}x{artwork.height})"
            if show_owner:
                text += f" by {artwork.owner_id}"
            else:
                text += " - Public" if artwork.is_public else " - Private"
            item = QListWidgetItem(text)
            item.setData(Qt.ItemDataRole.UserRole, artwork.id)
            artwork_list.addItem(item)
        if artwork_list.count():
            artwork_list.setCurrentRow(0)
        artwork_list.itemDoubleClicked.connect(self.accept)
        return artwork_list

    def get_selected_artwork_id(self) -> Optional[str]:
        """Id of the highlighted artwork on the visible tab"""
        current = self.tabs.currentWidget().currentItem()
        if current:
            return current.data(Qt.ItemDataRole.UserRole)
        return None


class PaletteEditorDialog(QDialog):
    """Dialog for creating a palette or editing an existing one"""

    def __init__(self, palette: Optional[ColorPalette] = None, parent=None):
        super().__init__(parent)
        self.palette = palette
        self.colors = list(palette.colors) if palette else list(STARTER_PALETTE_COLORS)
        self.init_ui()

    def init_ui(self):
        self.setWindowTitle("Edit Palette" if self.palette else "New Palette")
        self.setModal(True)
        self.resize(300, 400)

        layout = QVBoxLayout()
        form = QFormLayout()
        self.name_edit = QLineEdit(self.palette.name if self.palette else "")
        self.name_edit.setMaxLength(PALETTE_NAME_MAX_LENGTH)
        form.addRow("Name:", self.name_edit)
        layout.addLayout(form)

        self.color_list = QListWidget()
        layout.addWidget(self.color_list)

        add_layout = QHBoxLayout()
        self.color_edit = QLineEdit()
        self.color_edit.setPlaceholderText("#rrggbb")
        self.add_button = QPushButton("Add Color")
        self.add_button.clicked.connect(self.add_color)
        self.remove_button = QPushButton("Remove")
        self.remove_button.clicked.connect(self.remove_selected_color)
        add_layout.addWidget(self.color_edit)
        add_layout.addWidget(self.add_button)
        add_layout.addWidget(self.remove_button)
        layout.addLayout(add_layout)

        self.default_check = QCheckBox("Use as default palette")
        self.default_check.setChecked(bool(self.palette and self.palette.is_default))
        layout.addWidget(self.default_check)

        self.ok_button = _add_button_row(self, layout)
        self.name_edit.textChanged.connect(self._update_buttons)
        self.setLayout(layout)
        self._refresh_colors()

    def _refresh_colors(self):
        self.color_list.clear()
        for color in self.colors:
            item = QListWidgetItem(color)
            item.setBackground(QColor(color))
            self.color_list.addItem(item)
        self._update_buttons()

    def _update_buttons(self):
        self.add_button.setEnabled(len(self.colors) < PALETTE_MAX_COLORS)
        self.remove_button.setEnabled(len(self.colors) > PALETTE_MIN_COLORS)
        self.ok_button.setEnabled(bool(self.name_edit.text().strip()))

    def add_color(self) -> bool:
        """Append the color typed in the color field"""
        color = self.color_edit.text().strip().lower()
        if not is_valid_hex_color(color) or len(self.colors) >= PALETTE_MAX_COLORS:
            return False
        self.colors.append(color)
        self.color_edit.clear()
        self._refresh_colors()
        return True

    def remove_selected_color(self) -> bool:
        """Drop the highlighted color, always keeping one"""
        row = self.color_list.currentRow()
        if row < 0 or len(self.colors) <= PALETTE_MIN_COLORS:
            return False
        del self.colors[row]
        self._refresh_colors()
        return True

    def get_values(self) -> dict[str, Any]:
        return {
            "name": self.name_edit.text().strip(),
            "colors": list(self.colors),
            "is_default": self.default_check.isChecked(),
        }
