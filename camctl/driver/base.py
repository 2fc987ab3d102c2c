"""Base driver API.

Copyright (C) 2018–2019  Jonas Malaco and contributors
SPDX-License-Identifier: GPL-3.0-or-later
"""


class BaseDriver:
    """Base driver API.

    Drivers implement the context manager protocol, which frees whatever the
    driver still holds on the device when the block exits.  Cooler operations
    open and close the device on their own, so the block is optional.

    Example:

        dev = find_camctl_device()
        with dev.connect():
            print(dev.get_status())
            dev.set_fixed_speed('fan', 42)

    """

    def connect(self, **kwargs):
        """Prepare the driver for use.

        Returns `self`.
        """
        raise NotImplementedError()

    def disconnect(self, **kwargs):
        """Free any resources still held on the device."""
        raise NotImplementedError()

    def get_status(self, **kwargs):
        """Get a status report.

        Returns a list of `(property, value, unit)` tuples, ready for the CLI
        status tree and its JSON output.
        """
        raise NotImplementedError()

    def set_fixed_speed(self, channel, duty, **kwargs):
        """Set `channel` ('fan' or 'pump') to a fixed `duty` percentage."""
        raise NotImplementedError()

    @property
    def description(self):
        """Human readable name of the cooler."""
        raise NotImplementedError()

    @property
    def vendor_id(self):
        """USB vendor ID of the cooler."""
        raise NotImplementedError()

    @property
    def product_id(self):
        """USB product ID of the cooler."""
        raise NotImplementedError()

    @property
    def release_number(self):
        """The cooler's bcdDevice, or None if N/A."""
        raise NotImplementedError()

    @property
    def serial_number(self):
        """Serial number reported by the cooler, or None if N/A."""
        raise NotImplementedError()

    @property
    def bus(self):
        """USB bus the cooler is connected to, as `usb<n>`."""
        raise NotImplementedError()

    @property
    def address(self):
        """Address of the cooler on its bus; changes when it is re-enumerated."""
        raise NotImplementedError()

    @property
    def port(self):
        """Tuple of USB port numbers, from the root hub to the cooler."""
        raise NotImplementedError()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.disconnect()
