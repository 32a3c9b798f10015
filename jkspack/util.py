# vim: set et ai ts=4 sts=4 sw=4:
import struct

from pyasn1.codec.ber import decoder
from pyasn1.error import PyAsn1Error

b8 = struct.Struct('>Q')
b4 = struct.Struct('>L') # unsigned
b2 = struct.Struct('>H')

RSA_ENCRYPTION_OID = (1,2,840,113549,1,1,1)
DER_NULL = b"\x05\x00" # AlgorithmIdentifier parameters for RSA and the JKS key protector

class KeystoreException(Exception):
    """
    Superclass for all jkspack exceptions.

    ``alias`` is the alias of the keystore entry that was being written when the error occurred, if known.
    """
    def __init__(self, *args, **kwargs):
        self.alias = kwargs.pop("alias", None)
        super(KeystoreException, self).__init__(*args, **kwargs)
class KeystoreSignatureException(KeystoreException):
    """Signifies that the supplied password for a keystore integrity check is incorrect."""
    pass
class BadKeystoreFormatException(KeystoreException):
    """Signifies that a structural error was encountered in keystore data."""
    pass
class BadDataLengthException(KeystoreException):
    """Signifies that given input data was of wrong or unexpected length."""
    pass
class EncodingTooLongException(BadDataLengthException):
    """
    Signifies that a text field does not fit in its 2-byte length prefix, i.e. its UTF-8 encoding is longer than 65535 bytes.

    ``kind`` names the field that failed (e.g. ``"entry alias"``), ``alias`` the entry it belongs to, if known.
    """
    def __init__(self, message, kind=None, alias=None):
        super(EncodingTooLongException, self).__init__(message, alias=alias)
        self.kind = kind
class BadTextEncodingException(KeystoreException):
    """
    Signifies that a text field cannot be encoded as UTF-8, e.g. because it contains a lone surrogate.

    ``kind`` and ``alias`` are as for :class:`EncodingTooLongException`.
    """
    def __init__(self, message, kind=None, alias=None):
        super(BadTextEncodingException, self).__init__(message, alias=alias)
        self.kind = kind
class BadHashCheckException(KeystoreException):
    """Signifies that a hash computation did not match an expected value."""
    pass
class BadKeyEncodingException(KeystoreException):
    """Signifies that a key that was declared to be encoded in a particular format could not be interpreted as such"""
    pass
class StructureMarshalException(KeystoreException):
    """Signifies that an ASN.1 structure (e.g. a private key) could not be DER-encoded."""
    pass
class EncryptionFailureException(KeystoreException):
    """Signifies failure to encrypt a value."""
    pass
class UnsupportedKeyAlgorithmException(KeystoreException):
    """Signifies that a private key uses an algorithm the keystore writer has no encoding for (currently anything but RSA)."""
    pass
class UnsupportedKeystoreEntryTypeException(KeystoreException):
    """Signifies that the keystore entry was an unsupported type."""
    pass
class UnsupportedKeyFormatException(KeystoreException):
    """Signifies that the key format was an unsupported type."""
    pass

def xor_bytearrays(a, b):
    return bytearray([x^y for x,y in zip(a,b)])

def short_repr(text, limit=40):
    """Returns a repr() of ``text`` suitable for exception messages, cut off after ``limit`` characters."""
    if len(text) <= limit:
        return repr(text)
    return "%r... (%d characters)" % (text[:limit], len(text))

def asn1_checked_decode(asn1_bytes, asn1Spec):
    """
    Decodes the input ASN.1 byte sequence and returns it as an object of the given spec if it could be successfully decoded as such,
    or raises a PyAsn1Error otherwise.
    """
    obj, remainder = decoder.decode(asn1_bytes, asn1Spec=asn1Spec)
    # Note: despite the asn1Spec parameter to decoder.decode, you can still get an object of a different type, on which the remainder of the operations
    # you might want to do on those (like accessing members) raises a TypeError.
    # Motivating use case is feeding b"\x00\x00" to decoder.decode(); regardless of asn1Spec, you'll get an EndOfOctets() object.
    if not isinstance(obj, asn1Spec.__class__):
        raise PyAsn1Error("Not a valid %s structure" % (asn1Spec.__class__.__name__, ))
    if remainder:
        raise PyAsn1Error("Trailing data after %s structure" % (asn1Spec.__class__.__name__, ))
    return obj
