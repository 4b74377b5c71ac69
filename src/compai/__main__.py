"""Allow ``python -m compai``."""

import sys

from compai.cli import main

sys.exit(main())
