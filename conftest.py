import sys
from pathlib import Path

import pytest

# Make the ``src`` layout importable without installing the package
SRC_DIR = Path(__file__).resolve().parent / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture(autouse=True)
def _fresh_manager():
    from pymetabox.manager import reset_manager

    reset_manager()
    yield
    reset_manager()
