"""Allow ``python -m whitted``."""

import sys

from whitted.cli import main

sys.exit(main())
