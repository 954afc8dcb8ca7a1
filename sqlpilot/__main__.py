import sys

from sqlpilot.cli import main

sys.exit(main())
