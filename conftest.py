"""
Root conftest to ensure proper import paths.

This file exists at the project root so that the project directory is in
sys.path before pytest starts collecting tests, and so that structured
logs go to stderr (at debug level, to exercise every log call) instead of
mixing with command output captured on stdout.
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from sqlpilot._logging import configure_logging  # noqa: E402

configure_logging("DEBUG")
