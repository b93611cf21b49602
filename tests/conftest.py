import sys
from pathlib import Path

# Import box_shadow_widths from the src layout without installing it first.
_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))
