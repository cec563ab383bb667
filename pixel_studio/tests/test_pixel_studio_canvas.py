#!/usr/bin/env python3
"""
Widget tests for the canvas and main window
"""

import pytest
from PyQt6.QtCore import QEvent, QPoint, QPointF, Qt
from PyQt6.QtGui import QMouseEvent
from PyQt6.QtWidgets import QDialog, QMessageBox

from pixel_studio.core.pixel_studio_canvas import PixelCanvas
from pixel_studio.core.pixel_studio_controller import PixelStudioController
from pixel_studio.core.pixel_studio_dialogs import (
    ArtworkBrowserDialog,
    NewArtworkDialog,
    PaletteEditorDialog,
)
from pixel_studio.core.pixel_studio_window import PixelStudioWindow

pytestmark = pytest.mark.gui


@pytest.fixture
def controller(qapp, store, artwork, settings, fake_clock, worker_factory):
    controller = PixelStudioController(
        store, "alice", settings=settings, clock=fake_clock, worker_factory=worker_factory
    )
    controller.open_artwork(artwork.id)
    yield controller
    controller.close_artwork()


@pytest.fixture
def canvas(qtbot, controller):
    widget = PixelCanvas(controller)
    qtbot.addWidget(widget)
    widget.show()
    return widget


@pytest.fixture
def errors(monkeypatch):
    """Capture error dialogs instead of blocking on them"""
    shown = []
    monkeypatch.setattr(
        QMessageBox, "critical", lambda parent, title, message: shown.append(message)
    )
    return shown


@pytest.fixture
def window(qtbot, controller, errors):
    widget = PixelStudioWindow(controller)
    qtbot.addWidget(widget)
    widget.show()
    return widget


def cell_center(controller, x, y):
    zoom = controller.zoom
    return QPoint(x * zoom + zoom // 2, y * zoom + zoom // 2)


def send_move(widget, point):
    event = QMouseEvent(
        QEvent.Type.MouseMove,
        QPointF(point),
        QPointF(widget.mapToGlobal(point)),
        Qt.MouseButton.NoButton,
        Qt.MouseButton.LeftButton,
        Qt.KeyboardModifier.NoModifier,
    )
    widget.mouseMoveEvent(event)


class TestPixelCanvas:
    """Test mouse input mapping"""

    def test_size_follows_zoom(self, canvas, controller):
        assert canvas.width() == 8 * 10 + 1
        controller.set_zoom(4)
        assert (canvas.width(), canvas.height()) == (33, 33)

    def test_click_paints_cell(self, qtbot, canvas, controller):
        qtbot.mouseClick(
            canvas, Qt.MouseButton.LeftButton, pos=cell_center(controller, 2, 3)
        )
        assert controller.buffer.get_pixel(2, 3) == "#000000"
        assert controller.buffer.pixel_count() == 1
        assert not canvas.drawing

    def test_click_on_cell_zero(self, qtbot, canvas, controller):
        qtbot.mouseClick(canvas, Qt.MouseButton.LeftButton, pos=QPoint(0, 0))
        assert controller.buffer.get_pixel(0, 0) == "#000000"

    def test_drag_paints_line(self, qtbot, canvas, controller):
        qtbot.mousePress(canvas, Qt.MouseButton.LeftButton, pos=cell_center(controller, 0, 0))
        send_move(canvas, cell_center(controller, 4, 0))
        qtbot.mouseRelease(
            canvas, Qt.MouseButton.LeftButton, pos=cell_center(controller, 4, 0)
        )
        assert [controller.buffer.get_pixel(x, 0) for x in range(5)] == ["#000000"] * 5

    def test_move_without_press_ignored(self, canvas, controller):
        send_move(canvas, cell_center(controller, 1, 1))
        assert controller.buffer.pixel_count() == 0

    def test_click_outside_grid_ignored(self, qtbot, canvas, controller):
        canvas.setFixedSize(200, 200)
        qtbot.mouseClick(canvas, Qt.MouseButton.LeftButton, pos=QPoint(150, 150))
        assert controller.buffer.pixel_count() == 0
        assert not canvas.drawing

    def test_right_click_picks_and_restores_tool(self, qtbot, canvas, controller):
        controller.buffer.set_pixel(1, 1, "#336699")
        controller.set_tool("eraser")
        qtbot.mouseClick(
            canvas, Qt.MouseButton.RightButton, pos=cell_center(controller, 1, 1)
        )
        assert controller.tool_manager.current_color == "#336699"
        assert controller.get_current_tool_name() == "eraser"
        assert not canvas.temporary_picker

    def test_leave_ends_stroke(self, qtbot, canvas, controller):
        qtbot.mousePress(canvas, Qt.MouseButton.LeftButton, pos=cell_center(controller, 0, 0))
        canvas.leaveEvent(QEvent(QEvent.Type.Leave))
        assert not canvas.drawing
        assert not controller.tool_manager.pressed
        send_move(canvas, cell_center(controller, 3, 3))
        assert controller.buffer.get_pixel(3, 3) is None

    def test_paint_event_renders(self, canvas, controller):
        controller.buffer.set_pixel(0, 0, "#ff0000")
        image = canvas.grab().toImage()
        assert image.pixelColor(5, 5).name() == "#ff0000"
        assert image.pixelColor(15, 15).name() == "#ffffff"


class TestPixelStudioWindow:
    """Smoke tests for the main window"""

    def test_title_and_state_label(self, window, controller, fake_clock, worker_factory):
        controller.open_artwork(controller.artwork.id)
        assert window.windowTitle() == "Pixel Studio - Test Artwork"
        controller.pointer_press(0, 0)
        assert window.save_state_label.text() == "Unsaved changes"
        controller.save_now()
        assert window.save_state_label.text() == "Saving..."
        worker_factory.last.succeed()
        assert window.save_state_label.text() == "Saved"

    def test_ctrl_s_saves(self, qtbot, window, worker_factory):
        qtbot.keyClick(window, Qt.Key.Key_S, Qt.KeyboardModifier.ControlModifier)
        assert len(worker_factory.workers) == 1

    def test_tool_shortcuts(self, qtbot, window, controller):
        qtbot.keyClick(window, Qt.Key.Key_G)
        assert controller.get_current_tool_name() == "bucket"
        assert window.tool_panel.tool_buttons["bucket"].isChecked()

    def test_tool_button(self, window, controller):
        window.tool_panel.tool_buttons["eraser"].click()
        assert controller.get_current_tool_name() == "eraser"

    def test_zoom_slider(self, window, controller):
        window.zoom_slider.setValue(20)
        assert controller.zoom == 20
        assert window.zoom_label.text() == "Zoom: 20x"

    def test_invalid_color_shows_error(self, window, controller, errors):
        window.palette_panel.color_edit.setText("nope")
        window.palette_panel.color_edit.editingFinished.emit()
        assert len(errors) == 1
        assert controller.tool_manager.current_color == "#000000"

    def test_palette_swatches(self, window, controller):
        controller.ensure_starter_palette()
        assert window.palette_panel.palette_combo.currentText() == "Default"
        assert window.palette_panel.swatch_layout.count() == 2

    def test_layer_list(self, window, controller):
        layer = controller.create_layer("Background")
        assert window.layer_list.count() == 1
        window.layer_list.item(0).setCheckState(Qt.CheckState.Unchecked)
        assert controller.layers[0].id == layer.id
        assert controller.layers[0].is_visible is False

    def test_close_stops_autosave(self, window, controller):
        window.close()
        assert not controller.has_artwork()

    def test_close_saves_pending_edits_once(self, window, controller, worker_factory):
        controller.pointer_press(0, 0)
        window.close()
        assert len(worker_factory.workers) == 1
        assert worker_factory.last.started

    def test_palette_chooser_switches_palette(self, window, controller, store):
        controller.ensure_starter_palette()
        warm = controller.create_palette("Warm", ["#ff0000"])
        combo = window.palette_panel.palette_combo
        assert combo.count() == 2
        assert combo.currentText() == "Warm"

        index = combo.findText("Default")
        combo.setCurrentIndex(index)
        combo.activated.emit(index)

        assert controller.palette_manager.selected.name == "Default"
        assert controller.palette_manager.selected.id != warm.id
        assert window.palette_panel.swatch_layout.count() == 2

    def test_new_artwork_menu(self, window, controller, monkeypatch):
        monkeypatch.setattr(NewArtworkDialog, "exec", lambda self: QDialog.DialogCode.Accepted)
        monkeypatch.setattr(
            NewArtworkDialog,
            "get_values",
            lambda self: {
                "title": "Sprite",
                "width": 16,
                "height": 16,
                "description": None,
                "is_public": False,
            },
        )
        window.new_artwork()
        assert controller.artwork.title == "Sprite"
        assert window.windowTitle() == "Pixel Studio - Sprite"

    def test_open_artwork_menu(self, window, controller, store, monkeypatch):
        shared = store.create_artwork("bob", "Shared", 8, 8, is_public=True)
        monkeypatch.setattr(ArtworkBrowserDialog, "exec", lambda self: QDialog.DialogCode.Accepted)
        monkeypatch.setattr(
            ArtworkBrowserDialog, "get_selected_artwork_id", lambda self: shared.id
        )
        window.open_artwork()
        assert controller.artwork.id == shared.id

    def test_open_artwork_cancelled(self, window, controller, artwork, monkeypatch):
        monkeypatch.setattr(ArtworkBrowserDialog, "exec", lambda self: QDialog.DialogCode.Rejected)
        window.open_artwork()
        assert controller.artwork.id == artwork.id

    def test_delete_artwork_menu(self, window, controller, store, artwork, monkeypatch):
        monkeypatch.setattr(
            QMessageBox, "question", lambda *args: QMessageBox.StandardButton.Yes
        )
        window.delete_artwork()
        assert not controller.has_artwork()
        assert window.windowTitle() == "Pixel Studio"
        assert store.get_artwork_by_id(artwork.id, "alice") is None

    def test_new_palette_menu(self, window, controller, monkeypatch):
        monkeypatch.setattr(PaletteEditorDialog, "exec", lambda self: QDialog.DialogCode.Accepted)
        monkeypatch.setattr(
            PaletteEditorDialog,
            "get_values",
            lambda self: {"name": "Cool", "colors": ["#0000ff"], "is_default": False},
        )
        window.new_palette()
        assert window.palette_panel.palette_combo.currentText() == "Cool"
        assert window.edit_palette_action.isEnabled()
