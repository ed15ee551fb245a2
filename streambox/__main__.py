"""Allow ``python -m streambox``."""

import sys

from .cli import main

sys.exit(main())
