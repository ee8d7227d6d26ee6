"""
PyQt5 viewer for the radial blur.
Opens an image, blurs it on a background thread and shows the result.
"""

import sys
from typing import Optional

import numpy as np
from PyQt5.QtWidgets import (QApplication, QMainWindow, QWidget, QVBoxLayout,
                             QHBoxLayout, QLabel, QPushButton, QSpinBox,
                             QFileDialog, QMessageBox, QStatusBar, QCheckBox)
from PyQt5.QtCore import Qt, QThread, pyqtSignal
from PyQt5.QtGui import QPixmap, QImage

from blur_processor import BlurProcessor
from preferences import PreferencesManager
from utils.image_loader import load_image, save_image


class ImageDisplayWidget(QLabel):
    """Shows an RGBA pixel buffer scaled to the widget, keeping aspect ratio."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAlignment(Qt.AlignCenter)
        self.setMinimumSize(320, 240)
        self.setStyleSheet("border: 2px solid #0066cc; background-color: #f0f0f0;")
        self._pixmap = None

    def set_image(self, image_array: Optional[np.ndarray]):
        if image_array is None:
            self._pixmap = None
            self.clear()
            return

        image_array = np.ascontiguousarray(image_array)
        height, width = image_array.shape[:2]
        qimage = QImage(image_array.data, width, height, 4 * width, QImage.Format_RGBA8888)
        # copy() detaches the QImage from the numpy buffer
        self._pixmap = QPixmap.fromImage(qimage.copy())
        self._update_scaled()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._update_scaled()

    def _update_scaled(self):
        if self._pixmap is None:
            return
        # Working-resolution results are tiny; scale up without smoothing
        self.setPixmap(self._pixmap.scaled(self.size(), Qt.KeepAspectRatio,
                                           Qt.FastTransformation))


class ProcessingThread(QThread):
    """Thread for radial blur processing."""

    # Emitted once per request with the blurred buffer, or None
    blur_completed = pyqtSignal(object)

    def __init__(self, blur_processor: BlurProcessor, parent=None):
        super().__init__(parent)
        self.blur_processor = blur_processor
        self.current_image = None
        self.blur_size = 1

    def apply_blur(self, image_array: np.ndarray, blur_size: int):
        """Start blurring an image; ignored while a request is running."""
        if self.isRunning():
            print("⏳ Blur already running, request ignored")
            return False

        self.current_image = image_array
        self.blur_size = blur_size
        self.start()
        return True

    def run(self):
        """Main thread execution."""
        result = None
        try:
            result = self.blur_processor.blur(self.current_image, self.blur_size)
        except Exception as e:
            print(f"Error in ProcessingThread.run(): {e}")
        self.blur_completed.emit(result)


class RadialBlurApp(QMainWindow):
    """Main application window."""

    def __init__(self, preferences: PreferencesManager):
        super().__init__()
        self.preferences = preferences
        self.current_image = None
        self.blurred_image = None
        self.blur_processor = BlurProcessor.from_preferences(preferences)
        self.processing_thread = ProcessingThread(self.blur_processor)
        self.processing_thread.blur_completed.connect(self.on_blur_completed)

        self.init_ui()

    def init_ui(self):
        self.setWindowTitle("Radial Blur")
        self.resize(900, 500)

        central = QWidget()
        layout = QVBoxLayout(central)

        displays = QHBoxLayout()
        self.original_display = ImageDisplayWidget()
        self.preview_display = ImageDisplayWidget()
        displays.addWidget(self.original_display)
        displays.addWidget(self.preview_display)
        layout.addLayout(displays)

        controls = QHBoxLayout()
        open_button = QPushButton("Open...")
        open_button.clicked.connect(self.open_image)
        controls.addWidget(open_button)

        controls.addWidget(QLabel("Blur size:"))
        self.size_spin = QSpinBox()
        self.size_spin.setRange(0, 51)
        self.size_spin.setValue(int(self.preferences.get_preference('blur', 'blur_size', 13)))
        controls.addWidget(self.size_spin)

        self.clamp_check = QCheckBox("Clamp channels")
        self.clamp_check.setChecked(self.blur_processor.convolver.clamp_channels)
        self.clamp_check.toggled.connect(self.on_clamp_toggled)
        controls.addWidget(self.clamp_check)

        self.blur_button = QPushButton("Blur")
        self.blur_button.clicked.connect(self.apply_blur)
        controls.addWidget(self.blur_button)

        self.save_button = QPushButton("Save...")
        self.save_button.setEnabled(False)
        self.save_button.clicked.connect(self.save_image)
        controls.addWidget(self.save_button)
        layout.addLayout(controls)

        self.setCentralWidget(central)
        self.setStatusBar(QStatusBar())
        self.statusBar().showMessage("Open an image to begin")

    def open_image(self):
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", "", "Images (*.png *.jpg *.jpeg *.bmp)")
        if file_path:
            self.load_image(file_path)

    def load_image(self, file_path: str):
        image, error = load_image(file_path)
        if error:
            QMessageBox.warning(self, "Error", error)
            return

        self.current_image = image
        self.blurred_image = None
        self.original_display.set_image(image)
        self.preview_display.set_image(None)
        self.save_button.setEnabled(False)
        height, width = image.shape[:2]
        self.statusBar().showMessage(f"Loaded {width}x{height} image")

    def apply_blur(self):
        if self.current_image is None:
            return
        blur_size = self.size_spin.value()
        if self.processing_thread.apply_blur(self.current_image, blur_size):
            self.blur_button.setEnabled(False)
            self.statusBar().showMessage(f"Blurring with size {blur_size}...")

    def on_clamp_toggled(self, checked: bool):
        self.blur_processor.convolver.clamp_channels = checked
        self.preferences.set_preference('blur', 'clamp_channels', checked)

    def on_blur_completed(self, blurred_image):
        self.blur_button.setEnabled(True)
        if blurred_image is None:
            self.statusBar().showMessage("Blur failed")
            return

        self.blurred_image = blurred_image
        self.preview_display.set_image(blurred_image)
        self.save_button.setEnabled(True)
        height, width = blurred_image.shape[:2]
        self.statusBar().showMessage(f"Blurred at working resolution {width}x{height}")

    def save_image(self):
        if self.blurred_image is None:
            return
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Image", "", "PNG (*.png);;JPEG (*.jpg *.jpeg)")
        if not file_path:
            return
        error = save_image(self.blurred_image, file_path)
        if error:
            QMessageBox.warning(self, "Error", error)
        else:
            self.statusBar().showMessage(f"Saved {file_path}")

    def closeEvent(self, event):
        """Handle application close."""
        self.processing_thread.wait()
        self.blur_processor.cleanup()
        self.preferences.set_preference('blur', 'blur_size', self.size_spin.value())
        self.preferences.save_preferences(self.preferences.get_all_preferences())
        event.accept()


def exception_handler(exc_type, exc_value, exc_traceback):
    """Global exception handler for debugging."""
    print(f"Uncaught exception: {exc_type.__name__}: {exc_value}")
    import traceback
    traceback.print_exception(exc_type, exc_value, exc_traceback)


def run_viewer(preferences: PreferencesManager) -> int:
    """Start the viewer and run the Qt event loop."""
    sys.excepthook = exception_handler

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Radial Blur")

    window = RadialBlurApp(preferences)
    window.show()
    return app.exec_()
