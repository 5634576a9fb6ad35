"""Pytest configuration for framecue tests.

This file is automatically loaded by pytest before running tests.
It configures the Python path so that the framecue package can be imported
without installing it.
"""

import sys
from pathlib import Path

# Add the repository root to Python path
# This allows `from framecue.core import ...` to work
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))
