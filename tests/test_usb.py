import sys
from types import SimpleNamespace

import pytest
import usb.core
import usb.util

from camctl.driver import find_camctl_device
from camctl.driver.kraken import KrakenX
from camctl.driver.usb import PyUsbDevice, UsbDriver, locate
from camctl.error import DiscoveryError, NotFound


def _usbdev(vid, pid, bus=1, address=1):
    return SimpleNamespace(idVendor=vid, idProduct=pid, bcdDevice=0x0100,
                           bus=bus, address=address, port_numbers=(address,))


@pytest.fixture
def usb_bus(monkeypatch):
    """Replace the host's device list; returns (devices, calls to find)."""
    devices = []
    calls = []

    def find(find_all=False, **kwargs):
        calls.append((find_all, kwargs))
        return iter(devices)

    monkeypatch.setattr(usb.core, 'find', find)
    return devices, calls


def test_locate_returns_first_match(usb_bus):
    devices, calls = usb_bus
    devices.extend([
        _usbdev(0x1e71, 0x1715, address=2),
        _usbdev(0x1e71, 0x170e, address=3),
        _usbdev(0x1e71, 0x170e, address=5),
    ])

    handle = locate(0x1e71, 0x170e)

    assert isinstance(handle, PyUsbDevice)
    assert handle.usbdev is devices[1]
    assert handle.address == 3
    assert handle.bus == 'usb1'
    assert calls == [(True, {})]


def test_locate_requires_both_ids_to_match(usb_bus):
    devices, _ = usb_bus
    devices.extend([
        _usbdev(0x170e, 0x1e71),
        _usbdev(0x1e71, 0x0001),
        _usbdev(0x0001, 0x170e),
    ])

    with pytest.raises(NotFound):
        locate(0x1e71, 0x170e)


def test_locate_reenumerates_on_every_call(usb_bus):
    devices, calls = usb_bus

    with pytest.raises(NotFound) as excinfo:
        locate(0x1e71, 0x170e)

    assert isinstance(excinfo.value, DiscoveryError)
    assert str(excinfo.value) == 'no device found with ID 1e71:170e'

    devices.append(_usbdev(0x1e71, 0x170e))

    assert locate(0x1e71, 0x170e).usbdev is devices[0]
    assert len(calls) == 2


def test_locate_without_backend(monkeypatch):
    def find(**kwargs):
        raise usb.core.NoBackendError('No backend available')

    monkeypatch.setattr(usb.core, 'find', find)

    with pytest.raises(DiscoveryError) as excinfo:
        locate(0x1e71, 0x170e)

    assert not isinstance(excinfo.value, NotFound)
    assert isinstance(excinfo.value.__cause__, usb.core.NoBackendError)


def test_locate_with_enumeration_error(monkeypatch):
    def find(**kwargs):
        raise usb.core.USBError('Other error')

    monkeypatch.setattr(usb.core, 'find', find)

    with pytest.raises(DiscoveryError) as excinfo:
        locate(0x1e71, 0x170e)

    assert 'could not enumerate USB devices' in str(excinfo.value)


def test_find_camctl_device_binds_kraken(usb_bus):
    devices, _ = usb_bus
    devices.append(_usbdev(0x1e71, 0x170e, address=7))

    dev = find_camctl_device(timeout=500)

    assert isinstance(dev, KrakenX)
    assert dev.description == 'NZXT Kraken X (X42, X52, X62 or X72)'
    assert dev.address == 7
    assert dev.vendor_id == 0x1e71
    assert dev.product_id == 0x170e
    assert dev._timeout == 500


def test_find_camctl_device_with_other_ids(usb_bus):
    devices, _ = usb_bus
    devices.extend([
        _usbdev(0x1e71, 0x170e, address=1),
        _usbdev(0x1234, 0xabcd, address=2),
    ])

    dev = find_camctl_device(vendor=0x1234, product=0xabcd)

    assert dev.address == 2


def test_find_camctl_device_not_found(usb_bus):
    with pytest.raises(NotFound) as excinfo:
        find_camctl_device(vendor=0x1234)

    assert excinfo.value.vendor_id == 0x1234
    assert excinfo.value.product_id == 0x170e


class _FakeUsbDevice:
    """Minimal `usb.core.Device` that records the calls it receives."""

    def __init__(self, configured=True):
        self.idVendor = 0x1e71
        self.idProduct = 0x170e
        self.calls = []
        self._configured = configured

    def get_active_configuration(self):
        self.calls.append('get_active_configuration')
        if not self._configured:
            raise usb.core.USBError('Configuration not set')

    def set_configuration(self):
        self.calls.append('set_configuration')
        self._configured = True

    def is_kernel_driver_active(self, interface):
        self.calls.append(('is_kernel_driver_active', interface))
        return True

    def detach_kernel_driver(self, interface):
        self.calls.append(('detach_kernel_driver', interface))

    def attach_kernel_driver(self, interface):
        self.calls.append(('attach_kernel_driver', interface))

    def read(self, endpoint, length, timeout=None):
        self.calls.append(('read', endpoint, length, timeout))
        return bytearray(length)

    def write(self, endpoint, data, timeout=None):
        self.calls.append(('write', endpoint, list(data), timeout))
        return len(data)


@pytest.fixture
def usb_util_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(usb.util, 'claim_interface',
                        lambda dev, intf: calls.append(('claim', dev, intf)))
    monkeypatch.setattr(usb.util, 'release_interface',
                        lambda dev, intf: calls.append(('release', dev, intf)))
    monkeypatch.setattr(usb.util, 'dispose_resources',
                        lambda dev: calls.append(('dispose', dev)))
    return calls


def test_pyusb_open_configured_device():
    usbdev = _FakeUsbDevice()

    PyUsbDevice(usbdev).open()

    assert usbdev.calls == ['get_active_configuration']


def test_pyusb_open_sets_missing_configuration():
    usbdev = _FakeUsbDevice(configured=False)

    PyUsbDevice(usbdev).open()

    assert usbdev.calls == ['get_active_configuration', 'set_configuration']


def test_pyusb_open_propagates_other_errors():
    usbdev = _FakeUsbDevice()

    def get_active_configuration():
        raise usb.core.USBError('Access denied (insufficient permissions)', errno=13)

    usbdev.get_active_configuration = get_active_configuration

    with pytest.raises(usb.core.USBError):
        PyUsbDevice(usbdev).open()


def test_pyusb_kernel_driver_on_linux(monkeypatch):
    monkeypatch.setattr(sys, 'platform', 'linux')
    usbdev = _FakeUsbDevice()
    handle = PyUsbDevice(usbdev)

    assert handle.is_kernel_driver_active(0)
    handle.detach_kernel_driver(0)
    assert handle.attach_kernel_driver(0)

    assert usbdev.calls == [
        ('is_kernel_driver_active', 0),
        ('detach_kernel_driver', 0),
        ('attach_kernel_driver', 0),
    ]


@pytest.mark.parametrize('platform', ['win32', 'darwin'])
def test_pyusb_kernel_driver_elsewhere(monkeypatch, platform):
    monkeypatch.setattr(sys, 'platform', platform)
    usbdev = _FakeUsbDevice()
    handle = PyUsbDevice(usbdev)

    assert not handle.is_kernel_driver_active(0)
    assert not handle.attach_kernel_driver(0)
    assert usbdev.calls == []


def test_pyusb_claim_release_and_close(usb_util_calls):
    usbdev = _FakeUsbDevice()
    handle = PyUsbDevice(usbdev)

    handle.claim(0)
    handle.release(0)
    handle.close()

    assert usb_util_calls == [
        ('claim', usbdev, 0),
        ('release', usbdev, 0),
        ('dispose', usbdev),
    ]


def test_pyusb_transfers_forward_timeout():
    usbdev = _FakeUsbDevice()
    handle = PyUsbDevice(usbdev)

    assert handle.write(0x1, [2, 77, 0, 0, 50], timeout=10000) == 5
    assert len(handle.read(0x81, 17, timeout=500)) == 17

    assert usbdev.calls == [
        ('write', 0x1, [2, 77, 0, 0, 50], 10000),
        ('read', 0x81, 17, 500),
    ]


def test_kraken_session_disposes_pyusb_resources(monkeypatch, usb_util_calls):
    monkeypatch.setattr(sys, 'platform', 'linux')
    usbdev = _FakeUsbDevice()
    dev = KrakenX(PyUsbDevice(usbdev), 'NZXT Kraken X')

    dev.set_fan(50)
    dev.read_status()

    assert [call[0] for call in usb_util_calls] == [
        'claim', 'release', 'dispose',
        'claim', 'release', 'dispose',
    ]


def test_usb_disconnect():
    closed = False

    class _Handle:
        def close(self):
            nonlocal closed
            closed = True

    dev = UsbDriver(_Handle(), 'Test')

    with dev.connect() as cm:
        assert cm == dev
        assert not closed

    assert closed
