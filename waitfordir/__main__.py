"""Allow running as ``python -m waitfordir``."""

import sys

from waitfordir.main import main

sys.exit(main())
