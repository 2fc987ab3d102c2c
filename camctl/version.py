"""Interfaces to read the camctl version."""

# uses the psf/black style

# the version number only changes when releases are made
__version__ = "0.1.0"

version = __version__
