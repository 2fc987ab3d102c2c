"""camctl driver for third generation NZXT Kraken X liquid coolers.

Kraken X (X42, X52, X62 and X72)
--------------------------------

These coolers house 5-th generation Asetek pumps with additional PCBs for
advanced control.  The driver sets fixed fan and pump duties and reads the
liquid temperature and the fan and pump speeds.

Every operation is a self-contained session: the device is opened, the stock
kernel driver is replaced (writes only), interface 0 is claimed, the bulk
transfer is performed, the kernel driver and interface are restored and the
device is closed before returning.  Transfer failures are logged and reported
through the return value, never raised; only failures to set up a session are
raised.

Copyright (C) 2018–2022  Jonas Malaco and contributors

Incorporates work by leaty.

SPDX-License-Identifier: GPL-3.0-or-later
"""

import errno
import logging
from collections import namedtuple
from contextlib import contextmanager
from enum import Enum, unique

import usb.core

from camctl.driver.usb import UsbDriver
from camctl.error import SessionSetupError, TransferError
from camctl.util import rpadlist, u16be_from

_LOGGER = logging.getLogger(__name__)

_SPEED_CHANNELS = {  # sub-command selector
    'fan':   0x00,
    'pump':  0x40,
}

_REPORT_TYPE = 0x02
_CMD_FIXED_SPEED = 0x4d

_MIN_DUTY = 0
_MAX_DUTY = 100

_INTERFACE = 0
_READ_ENDPOINT = 0x81
_READ_LENGTH = 17
_WRITE_ENDPOINT = 0x1
_WRITE_LENGTH = 24
_TRANSFER_TIMEOUT = 10000  # milliseconds

# fields that must be present in a response for it to be decoded
_STATUS_LENGTH = 7

_STATUS_TEMPERATURE = 'Liquid temperature'
_STATUS_FAN_SPEED = 'Fan speed'
_STATUS_PUMP_SPEED = 'Pump speed'

StatusFrame = namedtuple('StatusFrame',
                         ['liquid_temperature', 'fan_speed', 'pump_speed', 'confirmed'])


@unique
class SpeedResult(Enum):
    """Outcome of a fixed speed request."""

    APPLIED = 'applied'
    UNCONFIRMED = 'unconfirmed'
    IGNORED = 'ignored'

    def __str__(self):
        return self.value


def build_speed_payload(channel, duty):
    """Build the message that sets `channel` to a fixed `duty`.

    >>> build_speed_payload('pump', 60)[:6]
    [2, 77, 64, 0, 60, 0]
    >>> len(build_speed_payload('fan', 25))
    24
    """
    return rpadlist([_REPORT_TYPE, _CMD_FIXED_SPEED, _SPEED_CHANNELS[channel], 0x00, duty],
                    _WRITE_LENGTH)


def decode_status(msg, confirmed=True):
    """Decode a status message.

    >>> decode_status([0, 20, 5, 0, 150, 0, 90] + [0] * 10)
    StatusFrame(liquid_temperature=20.5, fan_speed=150, pump_speed=90, confirmed=True)
    """
    return StatusFrame(
        liquid_temperature=msg[1] + msg[2] / 10,
        fan_speed=u16be_from(msg, offset=3),
        pump_speed=u16be_from(msg, offset=5),
        confirmed=confirmed,
    )


class KrakenX(UsbDriver):
    """Third generation NZXT Kraken X liquid cooler."""

    SUPPORTED_DEVICES = [
        (0x1e71, 0x170e, None, 'NZXT Kraken X (X42, X52, X62 or X72)', {}),
    ]

    def __init__(self, device, description, interface=_INTERFACE,
                 timeout=_TRANSFER_TIMEOUT, **kwargs):
        super().__init__(device, description, **kwargs)
        self._interface = interface
        self._timeout = timeout

    def set_fan(self, duty):
        """Set the fan to a fixed duty (0–100%)."""
        return self.set_speed('fan', duty)

    def set_pump(self, duty):
        """Set the pump to a fixed duty (0–100%)."""
        return self.set_speed('pump', duty)

    def set_speed(self, channel, duty):
        """Set `channel` to a fixed `duty`.

        Duties outside of [0, 100] are ignored with a warning, and no session
        with the device is started.

        Returns a `SpeedResult`: `APPLIED` if the message was written,
        `UNCONFIRMED` if writing it failed (the failure is logged), or
        `IGNORED` for an out of range duty.  Failures to open, detach the
        kernel driver from, or claim the device raise `SessionSetupError`;
        an unknown channel or a non-integer duty raise `ValueError`.
        """

        if channel not in _SPEED_CHANNELS:
            raise ValueError(f'unknown channel: {channel}')
        if not isinstance(duty, int) or isinstance(duty, bool):
            raise ValueError(f'duty must be an integer, got {duty!r}')
        if duty < _MIN_DUTY or duty > _MAX_DUTY:
            _LOGGER.warning('ignoring %s duty of %s%%, must be between %d and %d',
                            channel, duty, _MIN_DUTY, _MAX_DUTY)
            return SpeedResult.IGNORED

        _LOGGER.info('setting %s duty to %d%%', channel, duty)
        payload = build_speed_payload(channel, duty)
        with self._claimed_session():
            try:
                self._write(payload)
            except TransferError as err:
                if err.errno == errno.EIO:
                    _LOGGER.warning('write failed: %s', err)
                else:
                    _LOGGER.error('unexpected error while writing: %s', err)
                return SpeedResult.UNCONFIRMED
        return SpeedResult.APPLIED

    def set_fixed_speed(self, channel, duty, **kwargs):
        """Set channel to a fixed speed duty."""
        return self.set_speed(channel, duty)

    def read_status(self):
        """Read and decode a status message.

        A failure to claim the interface is logged and the read still
        attempted.  If the read fails, or returns too little data, the
        zero-filled buffer is decoded and returned with `confirmed=False`.
        The device is closed again before returning.
        """

        self._open()
        buf = bytearray(_READ_LENGTH)
        confirmed = True
        try:
            claimed = self._try_claim()
            try:
                data = self._read()
                buf[:len(data)] = data
                if len(data) < _STATUS_LENGTH:
                    _LOGGER.warning('short read of %d bytes, status may be incomplete',
                                    len(data))
                    confirmed = False
            except TransferError as err:
                _LOGGER.warning('read failed, status may be stale: %s', err)
                confirmed = False
            finally:
                if claimed:
                    self._release_interface()
        finally:
            self._close()

        return decode_status(buf, confirmed=confirmed)

    def get_status(self, **kwargs):
        """Get a status report.

        Returns a list of `(property, value, unit)` tuples.
        """

        status = self.read_status()
        return [
            (_STATUS_TEMPERATURE, status.liquid_temperature, '°C'),
            (_STATUS_FAN_SPEED, status.fan_speed, 'rpm'),
            (_STATUS_PUMP_SPEED, status.pump_speed, 'rpm'),
        ]

    @contextmanager
    def _claimed_session(self):
        """Replace the kernel driver and claim the interface for one session.

        Whatever happens inside the block, a kernel driver is reattached (if
        none is active) and the interface released on the way out; the device
        is closed even if the session could not be set up.
        """

        self._open()
        try:
            step = 'query the kernel driver'
            detached = False
            try:
                if self.device.is_kernel_driver_active(self._interface):
                    step = 'detach the kernel driver'
                    _LOGGER.debug('detaching kernel driver from interface %d', self._interface)
                    self.device.detach_kernel_driver(self._interface)
                    detached = True
                step = 'claim the interface'
                self.device.claim(self._interface)
            except usb.core.USBError as err:
                if detached:
                    self._reattach_kernel_driver()
                raise SessionSetupError(step, self._interface) from err

            try:
                yield
            finally:
                self._reattach_kernel_driver()
                self._release_interface()
        finally:
            self._close()

    def _open(self):
        try:
            self.device.open()
        except usb.core.USBError as err:
            raise SessionSetupError('open the device', self._interface) from err

    def _close(self):
        try:
            self.device.close()
        except usb.core.USBError as err:
            _LOGGER.warning('unable to close the device: %s', err)

    def _try_claim(self):
        try:
            self.device.claim(self._interface)
        except usb.core.USBError as err:
            _LOGGER.warning('could not claim interface %d, reading anyway: %s',
                            self._interface, err)
            return False
        return True

    def _reattach_kernel_driver(self):
        try:
            if self.device.is_kernel_driver_active(self._interface):
                return
            attached = self.device.attach_kernel_driver(self._interface)
        except usb.core.USBError as err:
            _LOGGER.warning('kernel driver could not be reattached: %s', err)
            return
        if attached:
            _LOGGER.info('kernel driver reattached')
        else:
            _LOGGER.debug('no kernel driver to reattach on this platform')

    def _release_interface(self):
        try:
            self.device.release(self._interface)
        except usb.core.USBError as err:
            _LOGGER.warning('unable to release interface %d: %s', self._interface, err)
        else:
            _LOGGER.info('interface %d released', self._interface)

    def _read(self):
        try:
            return self.device.read(_READ_ENDPOINT, _READ_LENGTH, self._timeout)
        except usb.core.USBError as err:
            raise TransferError(_READ_ENDPOINT, errno=err.errno) from err

    def _write(self, data):
        try:
            self.device.write(_WRITE_ENDPOINT, data, self._timeout)
        except usb.core.USBError as err:
            raise TransferError(_WRITE_ENDPOINT, errno=err.errno) from err
