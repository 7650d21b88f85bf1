"""
Root-level conftest.py for gadget container tests.

Sets up the import path and environment before any test collection occurs.
"""

import os
import sys
from pathlib import Path

# Ensure project root is on sys.path for all test imports
_project_root = str(Path(__file__).parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

# Tests must never pick up an operator's config override
os.environ.pop("GADGET_CONTAINER_CONFIG", None)
