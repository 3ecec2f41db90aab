from __future__ import annotations

import sys
from pathlib import Path

# Allow running as a script without requiring `PYTHONPATH=.`.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stakewall.server import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main())
