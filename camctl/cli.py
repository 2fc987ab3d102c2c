"""camctl – monitor and control NZXT Kraken X liquid coolers.

Usage:
  camctl [options] list
  camctl [options] status
  camctl [options] set <channel> speed <percentage>
  camctl [options] apply
  camctl --help
  camctl --version

Device selection options:
  --vendor <id>                  Hexadecimal vendor ID (default: 1e71)
  --product <id>                 Hexadecimal product ID (default: 170e)

Other device options:
  --interface <number>           USB interface to claim (default: 0)
  --timeout <ms>                 Transfer timeout in milliseconds (default: 10000)

Configuration options:
  --config <file>                Read settings from this TOML file first
  --ignore-config                Do not read any configuration file

Other interface options:
  -v, --verbose                  Output additional information
  -g, --debug                    Show debug information on stderr
  --json                         JSON output (list/status)
  --log-file <file>              Also write debug information to a file
  --version                      Display the version number
  --help                         Show this message

Channels: fan, pump.  Percentages outside of 0–100 are ignored.  The `apply`
command sets the duties listed in the [cooling] table of the configuration
file.

Copyright (C) 2018–2022  Jonas Malaco and contributors

camctl incorporates work by leaty.

SPDX-License-Identifier: GPL-3.0-or-later

This program is distributed in the hope that it will be useful, but WITHOUT ANY
WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR A
PARTICULAR PURPOSE.  See the GNU General Public License for more details.
"""

import errno
import json
import logging
import os
import platform
import sys

import colorlog
from docopt import docopt

from camctl import __version__
from camctl.config.load import filter_config_files, get_config_files, load_config_file
from camctl.config.validation import validate_config
from camctl.driver import *
from camctl.error import DiscoveryError, NotFound, SessionSetupError
from camctl.util import parse_hex_id


# conversion from CLI arg to internal option; options without a value are not
# forwarded, so that configuration file values can fill them in
_PARSE_ARG = {
    '--vendor': parse_hex_id,
    '--product': parse_hex_id,
    '--interface': int,
    '--timeout': int,
}

# options read from the [device] table of the configuration file
_DEVICE_CONFIG_OPTIONS = ['vendor', 'product', 'interface', 'timeout']

# custom number formats for values of select units
_VALUE_FORMATS = {
    '%': '.0f',
    'rpm': '.0f',
    '°C': '.1f',
}

_LOGGER = logging.getLogger(__name__)


def _list_devices_objs(devices):
    return [
        {
            'description': dev.description,
            'vendor_id': dev.vendor_id,
            'product_id': dev.product_id,
            'release_number': dev.release_number,
            'bus': dev.bus,
            'address': dev.address,
            'port': dev.port,
            'driver': type(dev).__name__,
        }
        for dev in devices
    ]


def _list_devices_human(devices, *, verbose, **opts):
    for i, dev in enumerate(devices):
        print(f'Device #{i}: {dev.description}')
        if not verbose:
            continue

        if dev.vendor_id:
            print(f'├── Vendor ID: {dev.vendor_id:#06x}')
        if dev.product_id:
            print(f'├── Product ID: {dev.product_id:#06x}')
        if dev.release_number:
            print(f'├── Release number: {dev.release_number:#06x}')
        print(f'├── Bus: {dev.bus}')
        print(f'├── Address: {dev.address}')
        if dev.port:
            port = '.'.join(map(str, dev.port))
            print(f'├── Port: {port}')
        print(f'└── Driver: {type(dev).__name__}')
        print('')


def _dev_status_obj(dev, status):
    return {
        'bus': dev.bus,
        'address': dev.address,
        'description': dev.description,
        'status': [{'key': k, 'value': v, 'unit': u} for k, v, u in status]
    }


def _print_dev_status(dev, status):
    if not status:
        return
    print(dev.description)
    tmp = []
    kcols, vcols = 0, 0
    for k, v, u in status:
        if isinstance(v, bool):
            v = 'Yes' if v else 'No'
        elif v is None:
            v = 'N/A'
        else:
            valfmt = _VALUE_FORMATS.get(u, '')
            v = f'{v:{valfmt}}'
        kcols = max(kcols, len(k))
        vcols = max(vcols, len(v))
        tmp.append((k, v, u))
    for k, v, u in tmp[:-1]:
        print(f'├── {k:<{kcols}}    {v:>{vcols}}  {u}')
    k, v, u = tmp[-1]
    print(f'└── {k:<{kcols}}    {v:>{vcols}}  {u}')
    print('')


def _device_set_speed(dev, channel, duty):
    result = dev.set_fixed_speed(channel.lower(), duty)
    if result == SpeedResult.UNCONFIRMED:
        _LOGGER.warning('%s duty of %d%% could not be confirmed', channel, duty)
    return result


def _make_opts(args):
    opts = {}
    for arg, val in args.items():
        if val is not None and arg in _PARSE_ARG:
            opt = arg.replace('--', '').replace('-', '_')
            opts[opt] = _PARSE_ARG[arg](val)
    return opts


def _load_config(args, errors):
    """Find, load and validate the configuration file.

    Returns the configuration (possibly empty), or None if it is invalid.
    """
    files = get_config_files(file=args['--config'])
    file = filter_config_files(files, ignore_config=args['--ignore-config'])
    if args['--config'] and file != args['--config']:
        errors.log(f'configuration file not found: {args["--config"]}')
        return None
    if not file:
        _LOGGER.debug('no configuration file found')
        return {}

    config = load_config_file(file)
    if config is None or not validate_config(config):
        errors.log(f'invalid configuration file: {file}')
        return None
    return config


def _setup_logging(args):
    if args['--debug']:
        args['--verbose'] = True
        log_fmt = '%(log_color)s[%(levelname)s] (%(module)s) (%(funcName)s): %(message)s'
        log_level = logging.DEBUG
    elif args['--verbose']:
        log_fmt = '%(log_color)s%(levelname)s: %(message)s'
        log_level = logging.INFO
    else:
        log_fmt = '%(log_color)s%(levelname)s: %(message)s'
        log_level = logging.WARNING
        sys.tracebacklimit = 0

    log_colors = {
        'DEBUG': 'blue',
        'INFO': 'purple',
        'WARNING': 'yellow,bold',
        'ERROR': 'red,bold',
        'CRITICAL': 'red,bold,bg_white',
    }

    log_fmtter = colorlog.TTYColoredFormatter(fmt=log_fmt, stream=sys.stderr,
                                              log_colors=log_colors)

    log_handler = logging.StreamHandler()
    log_handler.setFormatter(log_fmtter)
    log_handler.setLevel(log_level)
    handlers = [log_handler]

    if args['--log-file']:
        file_handler = logging.FileHandler(args['--log-file'], encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] (%(name)s) (%(funcName)s): %(message)s'))
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)
        log_level = logging.DEBUG

    logging.basicConfig(level=log_level, handlers=handlers, force=True)


class _ErrorAcc:
    __slots__ = ['_errors']

    def __init__(self):
        self._errors = 0

    def log(self, msg, *args, err=None, show_err=False):
        self._errors += 1
        if err:
            # log the err with traceback before reporting it properly, this time
            # without traceback; this puts error messages are at the bottom of the
            # output, where most users first look for them
            _LOGGER.info('detailed error: %s: %r', msg, err, *args, exc_info=True)

        if show_err and err:
            _LOGGER.error('%s: %s', msg, err, *args)
        else:
            _LOGGER.error(msg, *args)

    def exit_code(self):
        return 0 if self.is_empty() else 1

    def is_empty(self):
        return not bool(self._errors)


def _is_permission_error(err):
    cause = err.__cause__
    return isinstance(cause, OSError) and cause.errno in [errno.EACCES, errno.EPERM]


def main():
    args = docopt(__doc__)

    if args['--version']:
        print(f'camctl v{__version__} ({platform.platform()})')
        sys.exit(0)

    _setup_logging(args)

    _LOGGER.debug('camctl: %s', __version__)
    _LOGGER.debug('platform: %s', platform.platform())
    _LOGGER.debug('python: %s', sys.version)

    errors = _ErrorAcc()

    # unlike humans, machines want to know everything; imply verbose everywhere
    # other than when setting default logging level and format (which are
    # inherently for human consumption)
    if args['--json']:
        args['--verbose'] = True

    config = _load_config(args, errors)
    if config is None:
        return errors.exit_code()

    opts = {}
    device_config = config.get('device', {})
    for key in _DEVICE_CONFIG_OPTIONS:
        if key in device_config:
            opts[key] = int(device_config[key])
    try:
        opts.update(_make_opts(args))
    except ValueError as err:
        errors.log('invalid option', err=err, show_err=True)
        return errors.exit_code()

    try:
        dev = find_camctl_device(**opts)
    except NotFound as err:
        errors.log('no device matches available drivers and selection criteria', err=err)
        return errors.exit_code()
    except DiscoveryError as err:
        errors.log('could not search for devices', err=err, show_err=True)
        return errors.exit_code()

    if args['list']:
        if args['--json']:
            objs = _list_devices_objs([dev])
            print(json.dumps(objs, ensure_ascii=(os.getenv('LANG', None) == 'C')))
        else:
            _list_devices_human([dev], verbose=args['--verbose'])
        return errors.exit_code()

    _LOGGER.debug('device: %s', dev.description)
    try:
        with dev.connect():
            if args['status']:
                status = dev.get_status()
                if args['--json']:
                    print(json.dumps([_dev_status_obj(dev, status)],
                                     ensure_ascii=(os.getenv('LANG', None) == 'C')))
                else:
                    _print_dev_status(dev, status)
            elif args['set'] and args['speed']:
                _device_set_speed(dev, args['<channel>'], int(args['<percentage>']))
            elif args['apply']:
                cooling = config.get('cooling', {})
                if not cooling:
                    _LOGGER.warning('nothing to apply, no [cooling] table in the configuration')
                for channel, duty in cooling.items():
                    _device_set_speed(dev, channel, int(duty))
            else:
                assert False, 'unreachable'
    except SessionSetupError as err:
        if _is_permission_error(err):
            errors.log(f'insufficient permissions to access {dev.description}', err=err)
        else:
            errors.log(f'could not start a session with {dev.description}', err=err,
                       show_err=True)
    except ValueError as err:
        errors.log(f'invalid request for {dev.description}', err=err, show_err=True)
    except Exception as err:
        errors.log(f'unexpected error with {dev.description}', err=err, show_err=True)

    return errors.exit_code()


if __name__ == '__main__':
    sys.exit(main())
