"""
Root conftest - makes app/, core/, domain/ and utils/ importable when
pytest runs from the repository root without an installed package.
"""
import sys
from pathlib import Path

_root = Path(__file__).resolve().parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))
