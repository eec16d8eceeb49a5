"""
Admin dialog for the shared signature settings.

Guarded by the admin password (verified against the active backend before
the dialog opens).  Edits the award badge list, company tagline and logo
URL; badge and logo files are uploaded through the backend and stored by
URL.  On accept the settings are saved with ``update_settings`` and the
saved snapshot is available via ``get_settings()``.
"""

import logging
from pathlib import Path

from PyQt6.QtWidgets import (
    QAbstractItemView, QDialog, QDialogButtonBox, QFileDialog, QGroupBox, QHBoxLayout,
    QInputDialog, QLabel, QLineEdit, QListWidget, QMessageBox, QPushButton,
    QVBoxLayout, QWidget,
)
from PyQt6.QtCore import Qt

from signature_generator.config import IMAGE_EXTENSIONS, MAX_AWARDS, MAX_TAGLINE_LENGTH
from signature_generator.errors import AuthorizationError, SignatureError
from signature_generator.image_io import file_to_data_url
from signature_generator.models import SignatureSettings, StorageStatus
from signature_generator.settings_store import validate_settings
from signature_generator.worker import BackendCallThread, busy_cursor

logger = logging.getLogger(__name__)

_STYLE_ERROR = "border: 2px solid #d32f2f;"
_STYLE_NORMAL = ""

_IMAGE_FILTER = "Images ({})".format(" ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS)))


def ask_admin_password(backend, parent: QWidget | None = None) -> str | None:
    """Prompt for the admin password; return it if the backend accepts it."""
    password, ok = QInputDialog.getText(
        parent, "Admin Access", "Admin password:", QLineEdit.EchoMode.Password,
    )
    if not ok or not password:
        return None
    try:
        with busy_cursor():
            valid = backend.verify_password(password)
    except SignatureError as exc:
        QMessageBox.warning(parent, "Admin Access", f"Could not verify password:\n{exc}")
        return None
    if not valid:
        QMessageBox.warning(parent, "Admin Access", "Invalid admin password.")
        return None
    return password


class AdminDialog(QDialog):
    """Editor for awards, tagline and logo shared by every signature."""

    def __init__(self, backend, password: str, settings: SignatureSettings,
                 parent: QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle("Signature Admin")
        self.setMinimumSize(560, 480)

        self._backend = backend
        self._password = password
        self._awards: list[str] = list(settings.awards)
        self._saved: SignatureSettings | None = None
        # Hosted images removed from the list; deleted only once the change is saved
        self._removed: list[str] = []
        self._status_thread: BackendCallThread | None = None

        self._build_ui(settings)
        self._populate_awards()
        self._validate()

    # -----------------------------------------------------------------
    # UI construction
    # -----------------------------------------------------------------
    def _build_ui(self, settings: SignatureSettings):
        layout = QVBoxLayout(self)

        layout.addWidget(self._build_awards_group())
        layout.addWidget(self._build_branding_group(settings))

        self._storage_label = QLabel("")
        self._storage_label.setStyleSheet("color: #888; font-size: 8pt;")
        self._storage_label.setWordWrap(True)
        layout.addWidget(self._storage_label)
        self._load_storage_status()

        # Error label
        self._error_label = QLabel("")
        self._error_label.setStyleSheet("color: #d32f2f;")
        self._error_label.setWordWrap(True)
        layout.addWidget(self._error_label)

        # Save / Cancel
        self._button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel
        )
        self._button_box.accepted.connect(self.accept)
        self._button_box.rejected.connect(self.reject)
        layout.addWidget(self._button_box)

    def _build_awards_group(self) -> QWidget:
        group_box = QGroupBox("Award Badges")
        layout = QVBoxLayout(group_box)

        self._award_list = QListWidget()
        self._award_list.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self._award_list.setTextElideMode(Qt.TextElideMode.ElideMiddle)
        layout.addWidget(self._award_list)

        btn_row = QHBoxLayout()

        btn_add = QPushButton("➕ Add Badge…")
        btn_add.clicked.connect(self._on_add_award)
        btn_row.addWidget(btn_add)
        self._btn_add_award = btn_add

        btn_remove = QPushButton("🗑 Remove")
        btn_remove.clicked.connect(self._on_remove_award)
        btn_row.addWidget(btn_remove)

        btn_row.addStretch()

        btn_up = QPushButton("⬆ Up")
        btn_up.clicked.connect(lambda: self._move_award(-1))
        btn_row.addWidget(btn_up)

        btn_down = QPushButton("⬇ Down")
        btn_down.clicked.connect(lambda: self._move_award(1))
        btn_row.addWidget(btn_down)

        layout.addLayout(btn_row)
        return group_box

    def _build_branding_group(self, settings: SignatureSettings) -> QWidget:
        group_box = QGroupBox("Branding")
        layout = QVBoxLayout(group_box)

        layout.addWidget(QLabel("Company tagline:"))
        self._tagline_input = QLineEdit(settings.company_tagline)
        self._tagline_input.setMaxLength(MAX_TAGLINE_LENGTH)
        self._tagline_input.setPlaceholderText("Shown in italics under the signature")
        self._tagline_input.textChanged.connect(self._validate)
        layout.addWidget(self._tagline_input)

        layout.addWidget(QLabel("Logo URL (empty = text logo):"))
        logo_row = QHBoxLayout()
        self._logo_input = QLineEdit(settings.logo_url)
        self._logo_input.setPlaceholderText("https://…/logo.png")
        self._logo_input.textChanged.connect(self._validate)
        logo_row.addWidget(self._logo_input, stretch=1)

        btn_upload_logo = QPushButton("Upload…")
        btn_upload_logo.clicked.connect(self._on_upload_logo)
        logo_row.addWidget(btn_upload_logo)
        layout.addLayout(logo_row)

        return group_box

    def _load_storage_status(self):
        self._storage_label.setText("Checking image storage…")
        thread = BackendCallThread(self._backend.storage_status, parent=self)
        thread.succeeded.connect(self._on_storage_status)
        thread.failed.connect(self._on_storage_status_failed)
        self._status_thread = thread
        thread.start()

    def _on_storage_status(self, status: StorageStatus):
        provider = f" ({status.provider})" if status.provider else ""
        self._storage_label.setText(f"{status.message}{provider}")

    def _on_storage_status_failed(self, error: str):
        self._storage_label.setText(f"Storage status unavailable: {error}")

    # -----------------------------------------------------------------
    # Awards
    # -----------------------------------------------------------------
    def _populate_awards(self):
        row = self._award_list.currentRow()
        self._award_list.clear()
        for url in self._awards:
            label = "[embedded image]" if url.startswith("data:") else url
            self._award_list.addItem(label)
        if self._awards:
            self._award_list.setCurrentRow(max(0, min(row, len(self._awards) - 1)))
        self._btn_add_award.setEnabled(len(self._awards) < MAX_AWARDS)

    def _pick_image(self, title: str) -> Path | None:
        path, _ = QFileDialog.getOpenFileName(self, title, str(Path.home()), _IMAGE_FILTER)
        return Path(path) if path else None

    def _upload(self, path: Path) -> str | None:
        """Upload an image file through the backend; report failures."""
        try:
            with busy_cursor():
                return self._backend.upload_award(self._password, file_to_data_url(path))
        except AuthorizationError as exc:
            QMessageBox.warning(self, "Upload Failed", f"Not authorized:\n{exc}")
        except SignatureError as exc:
            QMessageBox.warning(self, "Upload Failed", f"Could not upload {path.name}:\n{exc}")
        return None

    def _on_add_award(self):
        path = self._pick_image("Select Award Badge")
        if path is None:
            return
        url = self._upload(path)
        if url:
            self._awards.append(url)
            self._populate_awards()
            self._award_list.setCurrentRow(len(self._awards) - 1)
            self._validate()

    def _on_remove_award(self):
        row = self._award_list.currentRow()
        if row < 0:
            return
        self._removed.append(self._awards.pop(row))
        self._populate_awards()
        self._validate()

    def _delete_removed(self, saved: SignatureSettings):
        """Delete hosted images of removed badges that the saved settings no longer use."""
        in_use = set(saved.awards) | {saved.logo_url}
        for url in self._removed:
            if url in in_use:
                continue
            try:
                self._backend.delete_image(self._password, url)
            except SignatureError as exc:
                # The settings are already saved; the hosted file is only orphaned
                logger.warning("Could not delete award image %s: %s", url, exc)
        self._removed.clear()

    def _move_award(self, delta: int):
        row = self._award_list.currentRow()
        target = row + delta
        if row < 0 or not 0 <= target < len(self._awards):
            return
        self._awards[row], self._awards[target] = self._awards[target], self._awards[row]
        self._populate_awards()
        self._award_list.setCurrentRow(target)

    def _on_upload_logo(self):
        path = self._pick_image("Select Logo")
        if path is None:
            return
        url = self._upload(path)
        if url:
            self._logo_input.setText(url)

    # -----------------------------------------------------------------
    # Validation / accept
    # -----------------------------------------------------------------
    def _current_data(self) -> dict:
        return {
            "awards": list(self._awards),
            "companyTagline": self._tagline_input.text().strip(),
            "logoUrl": self._logo_input.text().strip(),
        }

    def _validate(self) -> bool:
        errors = validate_settings(self._current_data())
        logo_bad = any(e.startswith("logoUrl") for e in errors)
        self._logo_input.setStyleSheet(_STYLE_ERROR if logo_bad else _STYLE_NORMAL)
        self._error_label.setText("\n".join(errors))
        self._button_box.button(QDialogButtonBox.StandardButton.Save).setEnabled(not errors)
        return not errors

    def accept(self):
        if not self._validate():
            return
        data = self._current_data()
        try:
            with busy_cursor():
                self._saved = self._backend.update_settings(
                    self._password,
                    awards=data["awards"],
                    company_tagline=data["companyTagline"],
                    logo_url=data["logoUrl"],
                )
        except AuthorizationError as exc:
            QMessageBox.warning(self, "Save Failed", f"Not authorized:\n{exc}")
            return
        except (SignatureError, ValueError) as exc:
            QMessageBox.warning(self, "Save Failed", f"Could not save settings:\n{exc}")
            return
        with busy_cursor():
            self._delete_removed(self._saved)
        super().accept()

    def done(self, result: int):
        if self._status_thread is not None:
            self._status_thread.wait(2000)
        super().done(result)

    def get_settings(self) -> SignatureSettings | None:
        """Settings as saved by the backend, or None if the dialog was cancelled."""
        return self._saved
