import signal
import sys
from pathlib import Path

import pytest

# Ensure src/ is in the python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from graceterm.cli.formatter import OutputFormatter


@pytest.fixture(autouse=True)
def restore_sigterm_handler():
    """The supervisor never re-arms SIGTERM; put pytest's handler back after each test."""
    previous = signal.getsignal(signal.SIGTERM)
    yield
    signal.signal(signal.SIGTERM, previous)
    OutputFormatter.close()


@pytest.fixture
def src_dir():
    return src_path
