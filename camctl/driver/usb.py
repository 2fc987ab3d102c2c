"""USB device discovery and the PyUSB device wrapper.

UsbDriver
└── device: PyUsbDevice
    ├── uses PyUSB
    └── backed by (in order of priority)
        ├── libusb-1.0
        ├── libusb-0.1
        └── OpenUSB

Drivers do not generally care about reads, writes or other low level
operations; these are placed in <driver>.device.  The session logic (kernel
driver hand-off, interface claims and transfers) lives in the driver, and
PyUsbDevice only forwards those requests to PyUSB, one call at a time.

Devices are found with `locate`, which walks the host's device list once, in
enumeration order, and returns the first device with the requested vendor and
product IDs.

Copyright (C) 2019–2022  Jonas Malaco and contributors
SPDX-License-Identifier: GPL-3.0-or-later
"""

import logging
import sys

import usb.core
import usb.util

from camctl.driver.base import BaseDriver
from camctl.error import DiscoveryError, NotFound
from camctl.util import LazyHexRepr

_LOGGER = logging.getLogger(__name__)


def locate(vendor_id, product_id):
    """Find the first USB device with `vendor_id` and `product_id`.

    The device list is obtained and walked exactly once, without caching.
    Raises `NotFound` if no device matches, or `DiscoveryError` if the device
    list could not be obtained.
    """
    _LOGGER.debug('searching for %04x:%04x', vendor_id, product_id)
    try:
        for handle in PyUsbDevice.enumerate():
            _LOGGER.debug('USB device: %04x:%04x', handle.vendor_id, handle.product_id)
            if handle.vendor_id == vendor_id and handle.product_id == product_id:
                return handle
    except (usb.core.USBError, usb.core.NoBackendError) as err:
        raise DiscoveryError() from err
    raise NotFound(vendor_id, product_id)


class UsbDriver(BaseDriver):
    """Base driver class for regular USB devices.

    Each driver should provide its own list of SUPPORTED_DEVICES, consisting of
    (vendor id, product id, None (reserved), description, and extra kwargs)
    tuples.
    """

    SUPPORTED_DEVICES = []

    @classmethod
    def find_supported_devices(cls, **kwargs):
        """Locate the first supported device and bind a driver to it.

        Returns a driver instance; raises `NotFound` if no supported device is
        connected.  `vendor` and `product` override the IDs that are searched
        for.
        """
        vendor = kwargs.pop('vendor', None)
        product = kwargs.pop('product', None)
        for vid, pid, _, desc, devargs in cls.SUPPORTED_DEVICES:
            vid = vendor or vid
            pid = product or pid
            try:
                handle = locate(vid, pid)
            except NotFound:
                continue
            consargs = devargs.copy()
            consargs.update(kwargs)
            _LOGGER.debug('found %s: %s', cls.__name__, desc)
            return cls(handle, desc, **consargs)
        vid, pid, _, _, _ = cls.SUPPORTED_DEVICES[0]
        raise NotFound(vendor or vid, product or pid)

    def __init__(self, device, description, **kwargs):
        self.device = device
        self._description = description

    def connect(self, **kwargs):
        """Connect to the device.

        Each operation opens and claims the device on its own, so there is
        nothing to set up here.
        """
        return self

    def disconnect(self, **kwargs):
        """Disconnect from the device."""
        self.device.close()

    @property
    def description(self):
        """Human readable description of the corresponding device."""
        return self._description

    @property
    def vendor_id(self):
        """16-bit numeric vendor identifier."""
        return self.device.vendor_id

    @property
    def product_id(self):
        """16-bit numeric product identifier."""
        return self.device.product_id

    @property
    def release_number(self):
        """16-bit BCD device versioning number."""
        return self.device.release_number

    @property
    def serial_number(self):
        """Serial number reported by the device, or None if N/A."""
        return self.device.serial_number

    @property
    def bus(self):
        """Bus the device is connected to, or None if N/A."""
        return self.device.bus

    @property
    def address(self):
        """Address of the device on the corresponding bus, or None if N/A.

        Dependendent on bus enumeration order.
        """
        return self.device.address

    @property
    def port(self):
        """Physical location of the device, or None if N/A.

        Tuple of USB port numbers, from the root hub to this device.  Not
        dependendent on bus enumeration order.
        """
        return self.device.port


class PyUsbDevice:
    """A PyUSB backed device.

    PyUSB will automatically pick the first available backend (at runtime).
    The supported backends are:

     - libusb-1.0
     - libusb-0.1
     - OpenUSB

    Kernel driver hand-off is only available on Linux; on other platforms no
    kernel driver is ever reported as active, and attaching one is a NOOP.
    """

    def __init__(self, usbdev):
        self.usbdev = usbdev

    def open(self):
        """Open the device.

        Ensure the device is configured; we assume there is only one
        configuration, or the first one is desired.
        """
        try:
            self.usbdev.get_active_configuration()
        except usb.core.USBError as err:
            if err.strerror == 'Configuration not set':
                _LOGGER.debug('setting the (first) configuration')
                self.usbdev.set_configuration()
            else:
                raise

    def is_kernel_driver_active(self, interface):
        if not sys.platform.startswith('linux'):
            return False
        return self.usbdev.is_kernel_driver_active(interface)

    def detach_kernel_driver(self, interface):
        _LOGGER.debug('replacing stock kernel driver with libusb')
        self.usbdev.detach_kernel_driver(interface)

    def attach_kernel_driver(self, interface):
        """Give the interface back to the kernel; returns False if unsupported."""
        if not sys.platform.startswith('linux'):
            return False
        _LOGGER.debug('restoring stock kernel driver')
        self.usbdev.attach_kernel_driver(interface)
        return True

    def claim(self, interface):
        """Explicitly claim the interface from other programs."""
        _LOGGER.debug('explicitly claim interface %d', interface)
        usb.util.claim_interface(self.usbdev, interface)

    def release(self, interface):
        """Release the interface to other programs."""
        _LOGGER.debug('explicitly release interface %d', interface)
        usb.util.release_interface(self.usbdev, interface)

    def close(self):
        """Free all resources PyUSB allocated for the device."""
        usb.util.dispose_resources(self.usbdev)

    def read(self, endpoint, length, timeout=None):
        """Read from endpoint."""
        data = self.usbdev.read(endpoint, length, timeout=timeout)
        _LOGGER.debug('read %d bytes: %r', len(data), LazyHexRepr(data))
        return data

    def write(self, endpoint, data, timeout=None):
        """Write to endpoint."""
        _LOGGER.debug('writting %d bytes: %r', len(data), LazyHexRepr(data))
        return self.usbdev.write(endpoint, data, timeout=timeout)

    @classmethod
    def enumerate(cls):
        for handle in usb.core.find(find_all=True):
            yield cls(handle)

    @property
    def vendor_id(self):
        return self.usbdev.idVendor

    @property
    def product_id(self):
        return self.usbdev.idProduct

    @property
    def release_number(self):
        return self.usbdev.bcdDevice

    @property
    def serial_number(self):
        return self.usbdev.serial_number

    @property
    def bus(self):
        return f'usb{self.usbdev.bus}'  # follow Linux model

    @property
    def address(self):
        return self.usbdev.address

    @property
    def port(self):
        return self.usbdev.port_numbers

    def __eq__(self, other):
        return type(self) == type(other) and self.bus == other.bus and self.address == other.address
