from __future__ import annotations

import sys
from pathlib import Path

try:
    from .app import run  # type: ignore[attr-defined]
except ImportError:
    # run as a plain script: the package directory's parent must be importable
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    from arithmetic_drill.app import run  # type: ignore[attr-defined]


def main() -> int:
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
