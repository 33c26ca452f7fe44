from __future__ import annotations

import sys
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend = Path(__file__).resolve().parents[1] / "backend"
    backend_str = str(backend)
    if backend_str not in sys.path:
        sys.path.insert(0, backend_str)

    # Shared fakes live under `tests/unit/`.
    unit_root = Path(__file__).resolve().parent / "unit"
    unit_root_str = str(unit_root)
    if unit_root.is_dir() and unit_root_str not in sys.path:
        sys.path.insert(0, unit_root_str)


_ensure_backend_on_path()
