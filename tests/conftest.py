import os

import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point config_dir() at a temporary directory for every test."""
    home = tmp_path / "config-home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    monkeypatch.setenv("APPDATA", str(home))
    return home


@pytest.fixture
def split_image():
    """200×200 image: left half red, right half blue."""
    img = Image.new("RGB", (200, 200), (255, 0, 0))
    img.paste((0, 0, 255), (100, 0, 200, 200))
    return img


@pytest.fixture(scope="session")
def qapp():
    """Offscreen QApplication for widget tests."""
    pytest.importorskip("PyQt6.QtWidgets", reason="Qt widgets not available", exc_type=ImportError)
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
