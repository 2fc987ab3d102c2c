"""camctl – monitor and control NZXT Kraken X liquid coolers.

Copyright Jonas Malaco and contributors
SPDX-License-Identifier: GPL-3.0-or-later
"""

# uses the psf/black style

import sys
from camctl.cli import main

if __name__ == "__main__":
    sys.exit(main())
