"""Allow ``python -m testoutput``."""

import sys

from testoutput.main import main

sys.exit(main())
