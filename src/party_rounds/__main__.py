"""Allow ``python -m party_rounds``."""

import sys

from .cli import main

sys.exit(main())
