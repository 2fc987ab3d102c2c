"""Monitor and control NZXT Kraken X liquid coolers.

camctl provides facilities for monitoring and controlling the third generation
NZXT Kraken X (X42, X52, X62 and X72) in Python:

    from camctl import find_camctl_device

    # Locate the cooler; raises NotFound if it is not connected.
    dev = find_camctl_device()

    # Each operation opens the device, claims it and releases it again; the
    # context manager only frees the resources PyUSB allocated for it.
    with dev.connect():
        status = dev.read_status()
        print(f'liquid at {status.liquid_temperature} °C')
        print(f'fan at {status.fan_speed} rpm, pump at {status.pump_speed} rpm')

        # Set the fan to 75% and the pump to 100%.
        dev.set_fan(75)
        dev.set_pump(100)

A command-line interface is also available:

    $ python -m camctl --help

Once the camctl package is installed, a `camctl` executable should also be
available:

    $ camctl --help

Copyright 2018–2023 Jonas Malaco and contributors

Incorporates work by leaty.  This is mentioned in the module docstring, along
with appropriate additional copyright notices.

SPDX-License-Identifier: GPL-3.0-or-later
"""

# uses the psf/black style

from camctl.driver import find_camctl_device, locate
from camctl.error import *
from camctl.version import __version__
