import pytest
from _testutils import MockKrakenDevice

import camctl.driver.usb
from camctl.driver.kraken import KrakenX, SpeedResult


@pytest.fixture
def mock_bus(monkeypatch):
    """Make `locate` return a mock Kraken X handle."""
    handle = MockKrakenDevice()
    monkeypatch.setattr(camctl.driver.usb, 'locate', lambda vid, pid: handle)
    return handle


def test_disconnects_with_context_manager():
    dev = KrakenX(MockKrakenDevice(), 'Mock Kraken X')

    with pytest.raises(RuntimeError):
        with dev.connect():
            raise RuntimeError()

    assert dev.device.calls == ['close']


def test_public_api_is_exported():
    import camctl

    assert callable(camctl.find_camctl_device)
    assert callable(camctl.locate)
    assert issubclass(camctl.NotFound, camctl.DiscoveryError)
    assert issubclass(camctl.SessionSetupError, camctl.CamctlError)
    assert camctl.__version__


def test_modified_readme_example(mock_bus, capsys):
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
        fan = dev.set_fan(75)
        pump = dev.set_pump(100)

    # end of modified example; check that it more or less did what it should

    out, _ = capsys.readouterr()
    assert 'liquid at 30.9 °C' in out
    assert 'fan at 1499 rpm, pump at 2702 rpm' in out
    assert fan == pump == SpeedResult.APPLIED
    assert [x.data[4] for x in mock_bus.writes] == [75, 100]
    assert mock_bus.calls[-1] == 'close'
