"""Allow ``python -m quickvm``."""

import sys

from quickvm.cli import main

sys.exit(main())
