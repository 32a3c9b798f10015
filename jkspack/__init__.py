# vim: set et ai ts=4 sts=4 sw=4:
import logging

from .util import *
from .jks import *
from .keys import KeyAlgorithm, KEY_ALGORITHMS
from .sun_crypto import jks_pkey_encrypt, jks_pkey_decrypt, jks_store_digest

__version_info__ = (0,1,0)
__version__ = ".".join(str(x) for x in __version_info__)

logging.getLogger(__name__).addHandler(logging.NullHandler())
