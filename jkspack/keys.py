# vim: set et ai ts=4 sts=4 sw=4:
"""
Private key algorithms the keystore writer knows how to encode.

Every private key written to a JKS keystore is stored as a PKCS#8 PrivateKeyInfo structure; the only
algorithm-specific parts are the algorithm OID (plus parameters) and the inner encoding of the key itself.
:data:`KEY_ALGORITHMS` lists the algorithms for which those are known. Supporting another algorithm
(e.g. DSA, OID 1.2.840.10040.4.1) means adding a :class:`KeyAlgorithm` for it to that tuple.
"""
from pyasn1.codec.der import encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc2437, rfc5208, rfc2459

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .util import *

class KeyAlgorithm(object):
    def __init__(self, name, oid, key_class, encode_key):
        self.name = name            #: Algorithm name, as Java knows it (e.g. ``RSA``).
        self.oid = oid              #: Algorithm OID used in the PrivateKeyInfo's AlgorithmIdentifier.
        self.key_class = key_class  #: ``cryptography`` private key interface for keys of this algorithm.
        self._encode_key = encode_key

    def encode_key(self, key):
        """Returns the algorithm-specific DER encoding of the given ``cryptography`` private key object."""
        return self._encode_key(key)

    def algorithm_identifier(self):
        a = rfc2459.AlgorithmIdentifier()
        a.setComponentByName('algorithm', self.oid)
        a.setComponentByName('parameters', univ.Any(DER_NULL))
        return a

    def __repr__(self):
        return "<KeyAlgorithm %s (%s)>" % (self.name, ".".join(str(x) for x in self.oid))

def _rsa_private_key_der(key):
    # PKCS#1 RSAPrivateKey, see RFC 3447 appendix A.1.2
    return key.private_bytes(serialization.Encoding.DER,
                             serialization.PrivateFormat.TraditionalOpenSSL,
                             serialization.NoEncryption())

RSA = KeyAlgorithm("RSA", RSA_ENCRYPTION_OID, rsa.RSAPrivateKey, _rsa_private_key_der)

KEY_ALGORITHMS = (RSA,)

def find_key_algorithm(key):
    """
    Returns the :class:`KeyAlgorithm` for the given ``cryptography`` private key object.

    :raises UnsupportedKeyAlgorithmException: If the key is of an algorithm without an entry in :data:`KEY_ALGORITHMS`.
    """
    for algorithm in KEY_ALGORITHMS:
        if isinstance(key, algorithm.key_class):
            return algorithm
    raise UnsupportedKeyAlgorithmException("Unsupported private key type %s; supported algorithms: %s" % (type(key).__name__, _supported_names()))

def find_key_algorithm_by_oid(oid):
    for algorithm in KEY_ALGORITHMS:
        if algorithm.oid == tuple(oid):
            return algorithm
    raise UnsupportedKeyAlgorithmException("Unsupported private key algorithm %s; supported algorithms: %s" % (".".join(str(x) for x in oid), _supported_names()))

def encode_private_key_info(key, key_format=None):
    """
    Produces the DER-encoded PKCS#8 PrivateKeyInfo for a private key, in any of the forms a
    :class:`~jkspack.jks.PrivateKeyEntry` accepts:

      - ``key_format=None``: ``key`` is a ``cryptography`` private key object;
      - ``key_format='pkcs8'``: ``key`` already is a DER-encoded PrivateKeyInfo, returned as-is once its algorithm is checked;
      - ``key_format='rsa_raw'``: ``key`` is a DER-encoded PKCS#1 RSAPrivateKey, wrapped with the RSA algorithm identifier.

    :raises UnsupportedKeyAlgorithmException: If the key's algorithm is not in :data:`KEY_ALGORITHMS`.
    :raises BadKeyEncodingException: If ``pkcs8`` or ``rsa_raw`` input cannot be parsed as a PrivateKeyInfo or RSAPrivateKey.
    :raises StructureMarshalException: If the PrivateKeyInfo structure cannot be DER-encoded.
    """
    if key_format == 'pkcs8':
        try:
            private_key_info = asn1_checked_decode(key, asn1Spec=rfc5208.PrivateKeyInfo())
        except PyAsn1Error as e:
            raise BadKeyEncodingException("Failed to parse provided key as a PKCS#8 PrivateKeyInfo structure", e) from e
        find_key_algorithm_by_oid(private_key_info['privateKeyAlgorithm']['algorithm'].asTuple())
        return bytes(key)

    if key_format == 'rsa_raw':
        try:
            asn1_checked_decode(key, asn1Spec=rfc2437.RSAPrivateKey())
        except PyAsn1Error as e:
            raise BadKeyEncodingException("Failed to parse provided key as a PKCS#1 RSAPrivateKey structure", e) from e
        algorithm, key_der = RSA, bytes(key)
    elif key_format is None:
        algorithm = find_key_algorithm(key)
        try:
            key_der = algorithm.encode_key(key)
        except (ValueError, TypeError) as e:
            raise StructureMarshalException("Failed to encode %s private key: %s" % (algorithm.name, e), e) from e
    else:
        raise UnsupportedKeyFormatException("Key Format '%s' is not supported" % key_format)

    private_key_info = rfc5208.PrivateKeyInfo()
    private_key_info.setComponentByName('version', 'v1')
    private_key_info.setComponentByName('privateKeyAlgorithm', algorithm.algorithm_identifier())
    private_key_info.setComponentByName('privateKey', key_der)
    try:
        return encoder.encode(private_key_info)
    except PyAsn1Error as e:
        raise StructureMarshalException("Failed to DER-encode PKCS#8 PrivateKeyInfo: %s" % (e,), e) from e

def _supported_names():
    return ", ".join(a.name for a in KEY_ALGORITHMS)
