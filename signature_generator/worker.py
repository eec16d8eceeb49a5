"""
Background helpers for backend calls made from the Qt surfaces.

Settings fetches and uploads can block on the network, so the windows run
them through ``BackendCallThread`` and get the result back as a signal.
Short calls that the user has to wait for anyway (saving, verifying the
password) run inline under ``busy_cursor()``.
"""

from contextlib import contextmanager

from PyQt6.QtCore import Qt, QThread, pyqtSignal
from PyQt6.QtWidgets import QApplication

from signature_generator.errors import SignatureError


class BackendCallThread(QThread):
    """Run one backend call off the UI thread and report its result."""
    succeeded = pyqtSignal(object)
    failed = pyqtSignal(str)

    def __init__(self, func, *args, parent=None):
        super().__init__(parent)
        self._func = func
        self._args = args

    def run(self):
        try:
            self.succeeded.emit(self._func(*self._args))
        except SignatureError as e:
            self.failed.emit(str(e))


@contextmanager
def busy_cursor():
    """Show the wait cursor while a blocking backend call runs."""
    QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
    try:
        yield
    finally:
        QApplication.restoreOverrideCursor()
