"""Shared fixtures; puts the project root on sys.path and runs Qt offscreen."""
import itertools
import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _root_dir not in sys.path:
    sys.path.insert(0, _root_dir)

from field_editor.config import EditorSettings  # noqa: E402
from field_editor.state.session import EditorSession  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def settings():
    return EditorSettings(_env_file=None)


@pytest.fixture
def session(settings):
    session = EditorSession(settings)
    session.load([], page_count=3)
    return session


@pytest.fixture
def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"f{next(counter)}"
