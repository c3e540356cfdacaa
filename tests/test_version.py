"""Simple version check for the package.

Verifies that ``__version__`` matches the release declared in
``pyproject.toml`` and that the entry points are importable."""

import importlib
import re
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

scale_soloist = importlib.import_module("scale_soloist")


def test_version_matches():
    """Ensure ``scale_soloist.__version__`` exposes the release version."""

    pyproject = (ROOT / "pyproject.toml").read_text(encoding="utf-8")
    declared = re.search(r'^version\s*=\s*"([^"]+)"', pyproject, re.MULTILINE).group(1)
    assert scale_soloist.__version__ == declared


def test_module_entry_point_importable():
    main_module = importlib.import_module("scale_soloist.__main__")
    assert main_module.main is scale_soloist.main
