"""Allow ``python -m kickstart``."""

import sys

from kickstart.cli import main

sys.exit(main())
