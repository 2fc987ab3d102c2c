"""Drivers package for camctl.

The typical use case of scripts and interfaces – including the camctl CLI – is
to locate the cooler and bind the driver to it in a single step.

    from camctl.driver import find_camctl_device
    dev = find_camctl_device()
    print(dev.description)

It is also possible to locate the USB device first and bind the driver
manually.

    from camctl.driver.kraken import KrakenX
    from camctl.driver.usb import locate
    dev = KrakenX(locate(0x1e71, 0x170e), 'NZXT Kraken X')

Copyright (C) 2018–2021  Jonas Malaco and contributors
SPDX-License-Identifier: GPL-3.0-or-later
"""

from camctl.driver.kraken import KrakenX, SpeedResult, StatusFrame
from camctl.driver.usb import locate


def find_camctl_device(**kwargs):
    """Locate the cooler and instantiate the corresponding camctl driver.

    Filter conditions (`vendor`, `product`) and driver options (`interface`,
    `timeout`) can be passed via `**kwargs`.  Raises `NotFound` if no device
    matches, or `DiscoveryError` if the USB devices could not be enumerated.
    """
    return KrakenX.find_supported_devices(**kwargs)


__all__ = [
    'find_camctl_device',
    'locate',
    'KrakenX',
    'SpeedResult',
    'StatusFrame',
]
