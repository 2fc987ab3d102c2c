import setuptools


def get_static_version():
    """Read manually attributed version number.

    Note: the version number only changes when releases are made."""
    with open('camctl/version.py', 'r') as fv:
        vals = {}
        exec(fv.read(), vals)
    return vals['__version__']


def make_pypi_long_description():
    """Generate custom long description for PyPI."""
    with open('README.md', 'r', encoding='utf-8') as fh:
        long_description = fh.read().split('<!-- stop here for PyPI -->', 1)[0]
    return long_description


VERSION = get_static_version()

install_requires = ['docopt', 'pyusb', 'colorlog', 'tomlkit']

setuptools.setup(
    name='camctl',
    version=VERSION,
    author='Jonas Malaco and contributors',
    description='Tool and driver for NZXT Kraken X liquid coolers',
    long_description=make_pypi_long_description(),
    long_description_content_type='text/markdown',
    packages=setuptools.find_packages(include=['camctl', 'camctl.*']),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: End Users/Desktop',
        'Intended Audience :: Developers',
        'Topic :: System :: Hardware :: Hardware Drivers',
        'Operating System :: POSIX :: Linux',
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Programming Language :: Python :: 3',
    ],
    keywords='cli driver nzxt kraken liquid-cooler fan-controller pump usb',
    install_requires=install_requires,
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'camctl=camctl.cli:main',
        ],
    },
)
