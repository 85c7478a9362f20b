"""Allow ``python -m socketmail``."""

import sys

from socketmail.cli.cli import main

sys.exit(main())
