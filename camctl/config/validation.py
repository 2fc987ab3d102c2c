import logging

_LOGGER = logging.getLogger(__name__)

_KNOWN_SECTIONS = ['device', 'cooling']
_COOLING_CHANNELS = ['fan', 'pump']

####################################################################
#    helpers
####################################################################


def _is_int(value):
    # tomlkit integers subclass int; booleans also do, but are not accepted
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_range(block, key, low, high=None):
    value = block.get(key)
    if value is None:
        return True

    if not _is_int(value) or value < low or (high is not None and value > high):
        if high is None:
            _LOGGER.warning('%s must be a number greater than or equal to %d', key, low)
        else:
            _LOGGER.warning('%s must be a number in the range %d-%d', key, low, high)
        return False
    return True

####################################################################
#    section validation
####################################################################


def _validate_device(block):
    """
    This will validate the `device` block.
    It will print any of the errors at the `warning` level
    It will return True if it is valid and False if there are any issues.
    """
    isValid = True

    for key in block:
        if key not in ['vendor', 'product', 'interface', 'timeout']:
            _LOGGER.warning('unknown device option `%s`', key)
            isValid = False

    isValid &= _validate_range(block, 'vendor', 0, 0xffff)
    isValid &= _validate_range(block, 'product', 0, 0xffff)
    isValid &= _validate_range(block, 'interface', 0)
    isValid &= _validate_range(block, 'timeout', 1)

    return isValid


def _validate_cooling(block):
    isValid = True

    for key in block:
        if key not in _COOLING_CHANNELS:
            _LOGGER.warning('unknown cooling channel `%s`', key)
            isValid = False

    for channel in _COOLING_CHANNELS:
        isValid &= _validate_range(block, channel, 0, 100)

    return isValid

####################################################################
#    file validation
####################################################################


def validate_config(data):
    """
    Validate a whole configuration document.

    Every problem found is logged at the `warning` level; returns True if the
    document is valid.
    """
    isValid = True

    for section in data:
        if section not in _KNOWN_SECTIONS:
            _LOGGER.warning('unknown section `%s`', section)
            isValid = False
        elif not isinstance(data[section], dict):
            _LOGGER.warning('`%s` must be a table', section)
            isValid = False

    if not isValid:
        return False

    if 'device' in data:
        isValid &= _validate_device(data['device'])
    if 'cooling' in data:
        isValid &= _validate_cooling(data['cooling'])

    return bool(isValid)
