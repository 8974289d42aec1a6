"""Allow running as python -m swapfc."""

import sys

from swapfc.cli import main

sys.exit(main())
