import logging
import os
import sys

from tomlkit import parse
from tomlkit.exceptions import ParseError

_LOGGER = logging.getLogger(__name__)


def get_config_files(file=None, appname='camctl', **kwargs):
    """
    This will get all the potential file paths on the system for where the config file
    can be

    This will also handle the --config overrides
    """
    files = []
    if file:
        files.append(file)

    if sys.platform == 'win32':
        files.append(os.path.join(os.getenv('APPDATA'), appname, 'config.toml'))
        files.append(os.path.join(os.getenv('LOCALAPPDATA'), appname, 'config.toml'))
        files.append(os.path.join(os.getenv('PROGRAMDATA'), appname, 'config.toml'))
    elif sys.platform == 'darwin':
        files.append(os.path.expanduser(os.path.join('~', f'.{appname}.toml')))
        files.append(os.path.expanduser(os.path.join('~/Library/Application Support', appname, 'config.toml')))
        files.append(os.path.expanduser(os.path.join('/Library/Application Support', appname, 'config.toml')))
    elif sys.platform == 'linux':
        XDG_CONFIG_HOME = os.getenv('XDG_CONFIG_HOME', os.path.expanduser(os.path.join('~', '.config')))
        XDG_CONFIG_DIRS = os.getenv('XDG_CONFIG_DIRS', '/etc/xdg')

        files.append(os.path.expanduser(os.path.join('~', f'.{appname}.toml')))
        files.append(os.path.join(XDG_CONFIG_HOME, appname, 'config.toml'))
        files.append(os.path.join(XDG_CONFIG_DIRS, appname, 'config.toml'))
    else:
        # treat all other platforms as *nix
        files.append(os.path.expanduser(os.path.join('~', f'.{appname}.toml')))

    return files


def filter_config_files(files=[], ignore_config=False, **kwargs):
    """
    This will take a list of file paths and return the first one that exists from the list.
    If the ignore config option is set then it will return None even if files do exist.
    """
    if ignore_config:
        return None

    file = None
    for f in files:
        if os.path.isfile(f):
            file = f
            break

    return file


def load_config_file(file):
    """
    Parse the TOML file at `file`.

    Returns the parsed document, or None if it is not valid TOML.
    """
    with open(file, 'r') as f:
        read_data = f.read()
    try:
        data = parse(read_data)
    except ParseError as e:
        _LOGGER.error('failed to parse the toml file, got error: %s', e)
        return None

    _LOGGER.debug('loaded configuration from %s', file)
    return data
