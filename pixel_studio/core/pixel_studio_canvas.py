#!/usr/bin/env python3
"""
Canvas widget for Pixel Studio
Paints the controller's draw instructions and turns mouse input into grid events
"""

# Standard library imports
from typing import Optional

# Third-party imports
from PyQt6.QtCore import QPoint, Qt, pyqtSignal
from PyQt6.QtGui import QColor, QMouseEvent, QPainter, QPen, QWheelEvent
from PyQt6.QtWidgets import QWidget

from .pixel_studio_constants import CANVAS_MIN_SIZE
from .pixel_studio_renderer import FillRect, Line, canvas_to_grid
from .pixel_studio_utils import debug_log


class PixelCanvas(QWidget):
    """Canvas that delegates all state to the controller"""

    # Signals
    pixelPressed = pyqtSignal(int, int)  # x, y in grid space
    pixelMoved = pyqtSignal(int, int)  # x, y in grid space
    pixelReleased = pyqtSignal()

    def __init__(self, controller, parent=None):
        super().__init__(parent)

        # Store controller reference
        self.controller = controller

        # Interaction state
        self.drawing = False
        self.temporary_picker = False
        self.previous_tool: Optional[str] = None

        self._qcolor_cache: dict[str, QColor] = {}

        # Setup
        self.setMouseTracking(True)
        self.setMinimumSize(CANVAS_MIN_SIZE, CANVAS_MIN_SIZE)

        self.pixelPressed.connect(self.controller.pointer_press)
        self.pixelMoved.connect(self.controller.pointer_move)
        self.pixelReleased.connect(self.controller.pointer_release)

        # Connect to controller signals
        self.controller.imageChanged.connect(self._on_image_changed)
        self.controller.zoomChanged.connect(lambda _zoom: self._update_size())
        self.controller.toolChanged.connect(self._update_cursor_for_tool)

        self._update_cursor_for_tool(self.controller.get_current_tool_name())
        self._update_size()

    def _on_image_changed(self):
        """Handle image change from controller"""
        self._update_size()
        self.update()

    def _update_cursor_for_tool(self, tool_name: str):
        """Update cursor based on the current tool"""
        if tool_name in ("brush", "eraser", "rectangle", "circle"):
            self.setCursor(Qt.CursorShape.CrossCursor)
        elif tool_name == "bucket":
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        elif tool_name == "eyedropper":
            # Qt has no eyedropper cursor
            self.setCursor(Qt.CursorShape.WhatsThisCursor)
        else:
            self.setCursor(Qt.CursorShape.ArrowCursor)

    def _update_size(self):
        """Update widget size based on artwork and zoom"""
        buffer = self.controller.buffer
        if buffer is None:
            return
        zoom = self.controller.zoom
        # One extra pixel so the closing grid lines stay visible
        self.setFixedSize(buffer.width * zoom + 1, buffer.height * zoom + 1)

    def _qcolor(self, color: str) -> QColor:
        qcolor = self._qcolor_cache.get(color)
        if qcolor is None:
            qcolor = QColor(color)
            self._qcolor_cache[color] = qcolor
        return qcolor

    def paintEvent(self, event):
        """Replay the projected draw instructions"""
        instructions = self.controller.render_instructions()
        if not instructions:
            return

        painter = QPainter(self)
        try:
            for op in instructions:
                if isinstance(op, FillRect):
                    painter.fillRect(op.x, op.y, op.width, op.height, self._qcolor(op.color))
                elif isinstance(op, Line):
                    painter.setPen(QPen(self._qcolor(op.color), op.width))
                    painter.drawLine(op.x0, op.y0, op.x1, op.y1)
        finally:
            painter.end()

    def mousePressEvent(self, event: QMouseEvent):
        """Handle mouse press"""
        if event.button() == Qt.MouseButton.LeftButton:
            pos = self._get_pixel_pos(event.position())
            if pos is not None:
                self.drawing = True
                self.pixelPressed.emit(pos.x(), pos.y())

        elif event.button() == Qt.MouseButton.RightButton:
            # Temporary color picker
            pos = self._get_pixel_pos(event.position())
            if pos is not None:
                self.previous_tool = self.controller.get_current_tool_name()
                self.temporary_picker = True
                self.controller.set_tool("eyedropper")
                self.pixelPressed.emit(pos.x(), pos.y())

    def mouseMoveEvent(self, event: QMouseEvent):
        """Handle mouse move; cells outside the grid are ignored"""
        if not (self.drawing or self.temporary_picker):
            return
        pos = self._get_pixel_pos(event.position())
        if pos is not None:
            self.pixelMoved.emit(pos.x(), pos.y())

    def mouseReleaseEvent(self, event: QMouseEvent):
        """Handle mouse release"""
        if event.button() == Qt.MouseButton.LeftButton and self.drawing:
            self.drawing = False
            self.pixelReleased.emit()

        elif event.button() == Qt.MouseButton.RightButton and self.temporary_picker:
            self.pixelReleased.emit()
            self._restore_tool()

    def wheelEvent(self, event: QWheelEvent):
        """Handle mouse wheel for zooming one step at a time"""
        delta = event.angleDelta().y()
        if delta:
            step = 1 if delta > 0 else -1
            self.controller.set_zoom(self.controller.zoom + step)
        event.accept()

    def leaveEvent(self, event):
        """Leaving the canvas ends the stroke"""
        if self.drawing or self.temporary_picker:
            debug_log("CANVAS", "Pointer left canvas, ending stroke", "DEBUG")
            self.drawing = False
            self.pixelReleased.emit()
            if self.temporary_picker:
                self._restore_tool()
        super().leaveEvent(event)

    def enterEvent(self, event):
        """Show tooltip on enter"""
        self.setToolTip("Left click: Draw • Right click: Pick color • Wheel: Zoom")
        super().enterEvent(event)

    def _restore_tool(self):
        if self.previous_tool:
            self.controller.set_tool(self.previous_tool)
        self.temporary_picker = False
        self.previous_tool = None

    def _get_pixel_pos(self, pos) -> Optional[QPoint]:
        """Convert mouse position to grid coordinates"""
        buffer = self.controller.buffer
        if buffer is None:
            return None
        cell = canvas_to_grid(pos.x(), pos.y(), self.controller.zoom, buffer.width, buffer.height)
        if cell is None:
            return None
        return QPoint(cell[0], cell[1])
