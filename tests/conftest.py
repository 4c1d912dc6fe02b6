import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Allow running from a checkout without installing; tools/ holds the bridge app.
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "tools"))

from WTSE.SGM.wavetable import WaveTable


@pytest.fixture
def sine_table():
    table = WaveTable()
    table.sine()
    return table
