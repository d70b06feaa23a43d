"""Allow ``python -m pocketprefs``."""

import sys

from pocketprefs.cli import main

sys.exit(main())
