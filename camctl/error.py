"""camctl errors types.

Copyright Jonas Malaco and contributors
SPDX-License-Identifier: GPL-3.0-or-later
"""

# uses the psf/black style


class CamctlError(Exception):
    """Unspecified camctl error."""

    def __str__(self) -> str:
        return "unspecified camctl error"


class DiscoveryError(CamctlError):
    """The list of USB devices could not be obtained."""

    def __str__(self) -> str:
        if self.__cause__:
            return f"could not enumerate USB devices: {self.__cause__}"
        return "could not enumerate USB devices"


class NotFound(DiscoveryError):
    """No device matches the requested vendor and product IDs."""

    def __init__(self, vendor_id: int, product_id: int) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id

    def __str__(self) -> str:
        return f"no device found with ID {self.vendor_id:04x}:{self.product_id:04x}"


class SessionSetupError(CamctlError):
    """Could not open, detach the kernel driver from, or claim the device.

    The underlying PyUSB error is available in `__cause__`.
    """

    def __init__(self, step: str, interface: int) -> None:
        self.step = step
        self.interface = interface

    def __str__(self) -> str:
        msg = f"could not {self.step} (interface {self.interface})"
        if self.__cause__:
            msg += f": {self.__cause__}"
        return msg


class TransferError(CamctlError):
    """A bulk transfer failed or timed out.

    Unstable.
    """

    def __init__(self, endpoint: int, errno=None) -> None:
        self.endpoint = endpoint
        self.errno = errno

    def __str__(self) -> str:
        msg = f"transfer on endpoint {self.endpoint:#04x} failed"
        if self.__cause__:
            msg += f": {self.__cause__}"
        return msg
