"""
pennant: GNU-style command-line flags with typed values and rich diagnostics.

    from pennant import FlagSet

    fs = FlagSet("serve")
    port = fs.int("port", "p", 8080, "listen `port`")
    fs.parse(["-p", "9000", "static/"])
    port.get(), fs.args()  # (9000, ['static/'])

`pennant.commandline` holds a process-wide FlagSet; `pennant.reflect`
declares flags from dataclasses.
"""
__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'pennant'
__author__ = 'Pennant contributors'
__license__ = 'MIT'

from collections import namedtuple

from . import faults, flags, policy, values
from .faults import *
from .flags import *
from .policy import *
from .values import *

VersionInfo = namedtuple("VersionInfo", "major minor micro releaselevel serial metadata")

# bumped at release time
version_info = VersionInfo(0, 0, 0, "final", 0, "")
__version__ = "%d.%d.%d" % version_info[:3]

__all__ = ("__title__", "__author__", "__license__", "__version__", "version_info")
for _module in (faults, flags, policy, values):
    __all__ += _module.__all__
del _module, namedtuple
