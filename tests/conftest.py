import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from PySide6.QtCore import QCoreApplication

from dataio.configuration import Config
from models import Dataset


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def config(tmp_path):
    return Config(config_folder=str(tmp_path / "config"))


@pytest.fixture
def line_dataset():
    """y = 2x + 1 with a little noise, plus one non-numeric row."""
    rows = [
        {"x": 1.0, "y": 3.1, "z": 10.0},
        {"x": 2.0, "y": 4.9, "z": 20.0},
        {"x": 3.0, "y": 7.2, "z": 30.0},
        {"x": 4.0, "y": 8.8, "z": 40.0},
        {"x": 5.0, "y": 11.1, "z": 50.0},
        {"x": "n/a", "y": 6.0, "z": 60.0},
    ]
    return Dataset(rows, ["x", "y", "z"])
