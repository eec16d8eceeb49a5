"""
Main application window.

Orchestrates the signature form, photo loading and cropping, the live
preview, clipboard copy, and the admin dialog.  Backend calls (settings
fetch, photo upload) run on background threads so the UI never blocks on
the network.
"""

import logging
from pathlib import Path

from PIL import Image
from PyQt6.QtWidgets import (
    QApplication, QFileDialog, QFormLayout, QGroupBox, QHBoxLayout, QLabel,
    QLineEdit, QMainWindow, QMessageBox, QPushButton, QSplitter, QStatusBar,
    QTextBrowser, QToolBar, QVBoxLayout, QWidget,
)
from PyQt6.QtCore import QMimeData, Qt, QThread
from PyQt6.QtGui import QAction, QKeySequence, QPixmap, QShortcut

from signature_generator.admin_dialog import AdminDialog, ask_admin_password
from signature_generator.config import IMAGE_EXTENSIONS, NOTICE_TIMEOUT_MS, SIGNATURE_PHOTO_SIZE
from signature_generator.crop_widget import CropDialog, ImageLoaderThread, pil_to_qpixmap
from signature_generator.errors import SignatureError
from signature_generator.image_io import is_supported_image, save_png, to_data_url
from signature_generator.models import SignatureFields, SignatureSettings
from signature_generator.settings_store import make_backend
from signature_generator.signature import render_signature, render_signature_text
from signature_generator.worker import BackendCallThread

logger = logging.getLogger(__name__)

_IMAGE_FILTER = "Images ({})".format(" ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS)))

# (attribute on SignatureFields, label, placeholder)
_FORM_FIELDS = [
    ("full_name", "Full name", "Jane Doe"),
    ("job_title", "Job title", "Event Manager"),
    ("email", "Email", "jane@revent.store"),
    ("phone", "Phone", "+1 555 123 4567"),
    ("website", "Website", "https://revent.store"),
    ("linkedin", "LinkedIn", "https://linkedin.com/in/…"),
    ("twitter", "Twitter / X", "https://x.com/…"),
]


class MainWindow(QMainWindow):
    def __init__(self, backend=None):
        super().__init__()
        self.setWindowTitle("Email Signature Generator")
        self.setMinimumSize(900, 560)

        self._backend = backend if backend is not None else make_backend()
        self._settings = SignatureSettings()
        self._photo_image: Image.Image | None = None
        self._photo_url = ""
        self._photo_token = 0  # bumps on every photo change; stale uploads are ignored
        self._loader: ImageLoaderThread | None = None
        self._threads: list[QThread] = []
        self._inputs: dict[str, QLineEdit] = {}

        self._build_ui()
        self._update_photo_controls()
        self._update_preview()
        self._load_settings()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        main_layout.addWidget(splitter)
        splitter.addWidget(self._build_form_panel())
        splitter.addWidget(self._build_preview_panel())
        splitter.setSizes([340, 640])

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Fill in your details to build your signature.")

        QShortcut(QKeySequence("Ctrl+Shift+C"), self, self._copy_signature)
        QShortcut(QKeySequence("Ctrl+Shift+H"), self, self._copy_html)

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_copy = QAction("📋 Copy Signature", self)
        act_copy.triggered.connect(self._copy_signature)
        toolbar.addAction(act_copy)

        act_copy_html = QAction("</> Copy HTML", self)
        act_copy_html.triggered.connect(self._copy_html)
        toolbar.addAction(act_copy_html)

        toolbar.addSeparator()

        act_save_photo = QAction("💾 Save Photo…", self)
        act_save_photo.triggered.connect(self._save_photo)
        toolbar.addAction(act_save_photo)
        self._act_save_photo = act_save_photo

        toolbar.addSeparator()

        act_admin = QAction("⚙️ Admin…", self)
        act_admin.triggered.connect(self._open_admin)
        toolbar.addAction(act_admin)

    def _build_form_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        layout.addWidget(self._build_photo_group())

        details = QGroupBox("Your Details")
        form = QFormLayout(details)
        for attr, label, placeholder in _FORM_FIELDS:
            edit = QLineEdit()
            edit.setPlaceholderText(placeholder)
            edit.textChanged.connect(self._update_preview)
            form.addRow(f"{label}:", edit)
            self._inputs[attr] = edit
        layout.addWidget(details)

        layout.addStretch()
        return panel

    def _build_photo_group(self) -> QGroupBox:
        group = QGroupBox("Profile Photo")
        layout = QHBoxLayout(group)

        self._photo_label = QLabel()
        self._photo_label.setFixedSize(SIGNATURE_PHOTO_SIZE, SIGNATURE_PHOTO_SIZE)
        self._photo_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._photo_label.setStyleSheet("border: 1px dashed #555; border-radius: 42px; color: #888;")
        layout.addWidget(self._photo_label)

        buttons = QVBoxLayout()
        btn_upload = QPushButton("📷 Upload Photo…")
        btn_upload.clicked.connect(self._select_photo)
        buttons.addWidget(btn_upload)

        btn_remove = QPushButton("🗑 Remove Photo")
        btn_remove.clicked.connect(self._remove_photo)
        buttons.addWidget(btn_remove)
        self._btn_remove_photo = btn_remove

        buttons.addStretch()
        layout.addLayout(buttons, stretch=1)
        return group

    def _build_preview_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)

        layout.addWidget(QLabel("Preview:"))
        self._preview = QTextBrowser()
        self._preview.setOpenExternalLinks(False)
        self._preview.setStyleSheet("QTextBrowser { background: #ffffff; color: #1e293b; }")
        layout.addWidget(self._preview, stretch=1)

        btn_row = QHBoxLayout()
        btn_copy = QPushButton("📋 Copy Signature")
        btn_copy.clicked.connect(self._copy_signature)
        btn_row.addWidget(btn_copy)
        btn_copy_html = QPushButton("</> Copy HTML")
        btn_copy_html.clicked.connect(self._copy_html)
        btn_row.addWidget(btn_copy_html)
        btn_row.addStretch()
        layout.addLayout(btn_row)
        return panel

    # =========================================================================
    # Notices / threads
    # =========================================================================

    def _notify(self, message: str):
        self._status.showMessage(message, NOTICE_TIMEOUT_MS)

    def _start(self, thread: QThread):
        """Keep a reference until the thread finishes."""
        self._threads.append(thread)
        thread.finished.connect(lambda t=thread: self._threads.remove(t) if t in self._threads else None)
        thread.start()

    # =========================================================================
    # Settings
    # =========================================================================

    def _load_settings(self):
        thread = BackendCallThread(self._backend.get_settings, parent=self)
        thread.succeeded.connect(self._on_settings_loaded)
        thread.failed.connect(self._on_settings_failed)
        self._start(thread)

    def _on_settings_loaded(self, settings: SignatureSettings):
        self._settings = settings
        self._update_preview()

    def _on_settings_failed(self, error: str):
        logger.warning("Could not load settings: %s", error)
        self._notify("Could not load company settings, using defaults.")

    def _open_admin(self):
        password = ask_admin_password(self._backend, self)
        if password is None:
            return
        dlg = AdminDialog(self._backend, password, self._settings, parent=self)
        if dlg.exec() != AdminDialog.DialogCode.Accepted:
            return
        saved = dlg.get_settings()
        if saved is not None:
            self._settings = saved
            self._update_preview()
            self._notify("Settings updated successfully.")

    # =========================================================================
    # Photo
    # =========================================================================

    def _select_photo(self):
        path, _ = QFileDialog.getOpenFileName(self, "Select Photo", str(Path.home()), _IMAGE_FILTER)
        if not path:
            return
        path = Path(path)
        if not is_supported_image(path):
            self._notify("Please select an image file.")
            return

        # Drop any previous loader's result
        if self._loader is not None:
            try:
                self._loader.loaded.disconnect()
                self._loader.error.disconnect()
            except (TypeError, RuntimeError):
                pass  # Already disconnected or destroyed

        self._status.showMessage(f"Loading {path.name}…")
        self._loader = ImageLoaderThread(path, self)
        self._loader.loaded.connect(self._on_photo_loaded)
        self._loader.error.connect(self._on_photo_load_error)
        self._start(self._loader)

    def _on_photo_loaded(self, image: Image.Image):
        self._status.clearMessage()
        try:
            dlg = CropDialog(image, parent=self)
        except SignatureError as exc:
            self._notify(f"Cannot crop this image: {exc}")
            return
        if dlg.exec() != CropDialog.DialogCode.Accepted:
            return
        raster = dlg.cropped_image()
        if raster is not None:
            self._set_photo(raster)

    def _on_photo_load_error(self, error: str):
        self._notify(f"Failed to load image: {error}")

    def _set_photo(self, raster: Image.Image):
        self._photo_token += 1
        token = self._photo_token
        self._photo_image = raster
        self._photo_url = to_data_url(raster)
        self._update_photo_controls()
        self._update_preview()

        thread = BackendCallThread(self._backend.upload_photo, self._photo_url, parent=self)
        thread.succeeded.connect(lambda url, t=token: self._on_photo_uploaded(t, url))
        thread.failed.connect(lambda error, t=token: self._on_photo_upload_failed(t, error))
        self._start(thread)

    def _on_photo_uploaded(self, token: int, url: str):
        if token != self._photo_token:
            return  # photo replaced or removed meanwhile
        self._photo_url = url
        if url.startswith("data:"):
            self._notify("Photo embedded inline; it may not display in every email client.")
        else:
            self._notify("Photo uploaded.")
        self._update_preview()

    def _on_photo_upload_failed(self, token: int, error: str):
        if token != self._photo_token:
            return
        logger.warning("Photo upload failed: %s", error)
        self._notify("Photo upload failed; using an embedded copy.")

    def _remove_photo(self):
        self._photo_token += 1
        self._photo_image = None
        self._photo_url = ""
        self._update_photo_controls()
        self._update_preview()

    def _save_photo(self):
        if self._photo_image is None:
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Photo", str(Path.home() / "signature-photo.png"), "PNG (*.png)",
        )
        if not path:
            return
        try:
            written = save_png(self._photo_image, Path(path))
        except OSError as exc:
            QMessageBox.warning(self, "Save Failed", f"Could not save photo:\n{exc}")
            return
        self._notify(f"Saved {written.name}")

    def _update_photo_controls(self):
        has_photo = self._photo_image is not None
        if has_photo:
            pixmap: QPixmap = pil_to_qpixmap(self._photo_image).scaled(
                SIGNATURE_PHOTO_SIZE, SIGNATURE_PHOTO_SIZE,
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
            self._photo_label.setPixmap(pixmap)
        else:
            self._photo_label.clear()
            self._photo_label.setText("No photo")
        self._btn_remove_photo.setEnabled(has_photo)
        self._act_save_photo.setEnabled(has_photo)

    # =========================================================================
    # Signature
    # =========================================================================

    def _fields(self) -> SignatureFields:
        values = {attr: edit.text() for attr, edit in self._inputs.items()}
        return SignatureFields(photo_url=self._photo_url, **values)

    def _update_preview(self, *args):
        self._preview.setHtml(render_signature(self._fields(), self._settings))

    def _copy_signature(self):
        """Copy as rich text (HTML) with a plain-text fallback flavour."""
        fields = self._fields()
        mime = QMimeData()
        mime.setHtml(render_signature(fields, self._settings))
        mime.setText(render_signature_text(fields, self._settings))
        QApplication.clipboard().setMimeData(mime)
        self._notify("Signature copied! Paste into your email client.")

    def _copy_html(self):
        QApplication.clipboard().setText(render_signature(self._fields(), self._settings))
        self._notify("HTML copied to clipboard!")

    def closeEvent(self, event):
        for thread in list(self._threads):
            thread.wait(2000)
        super().closeEvent(event)
