# vim: set et ai ts=4 sts=4 sw=4:
"""JKS keystore file format encoder. Build a :class:`KeyStore` from
certificates and private keys held in memory (raw DER, or objects from the
``cryptography`` package) and serialize it to a file that Java's
``keytool``/``java.security.KeyStore`` can load.

A JKS file is laid out as follows (all integers big-endian):

  - the magic number FEEDFEED, the format version (2) and the number of entries;
  - every trusted certificate entry, in order, followed by every private key entry, in order;
  - a 20-byte SHA-1 digest over the store password and all of the above.

Private keys are protected with Sun's proprietary JKS key protection
algorithm (see :mod:`jkspack.sun_crypto`), using either the store
password or a per-entry password.
"""

import logging

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from pyasn1.codec.der import encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc5208, rfc2459

from . import keys
from . import sun_crypto
from .base import *
from .util import *

log = logging.getLogger(__name__)

MAGIC_NUMBER_JKS = b4.pack(0xFEEDFEED)
STORE_VERSION = 2
CERT_TYPE_X509 = "X.509"


class TrustedCertEntry(AbstractKeystoreEntry):
    """Represents a trusted certificate entry in a JKS keystore."""

    def __init__(self, **kwargs):
        super(TrustedCertEntry, self).__init__(**kwargs)
        self.cert = kwargs.get("cert")
        """A byte string containing the DER-encoded X.509 representation of the certificate."""

    @classmethod
    def new(cls, alias, cert, timestamp=None):
        """
        Helper function to create a new TrustedCertEntry.

        :param str alias: The alias for the Trusted Cert Entry
        :param cert: The certificate, as a DER byte string or a :class:`cryptography.x509.Certificate`.
        :param timestamp: Creation date of the entry, in milliseconds since the UNIX epoch or as a
          :class:`datetime.datetime`. If left unset, the time at which the keystore gets saved is used.

        :returns: A loaded :class:`TrustedCertEntry` instance, ready
          to be placed in a keystore.
        """
        return cls(timestamp=timestamp,
                   alias=alias,
                   cert=_cert_der(cert))

class PrivateKeyEntry(AbstractKeystoreEntry):
    """Represents a private key entry in a JKS keystore, together with its certificate chain."""

    def __init__(self, **kwargs):
        super(PrivateKeyEntry, self).__init__(**kwargs)
        self.cert_chain = kwargs.get("cert_chain") or []
        """
        A list of DER-encoded X.509 certificates, the first one belonging to the private key and the
        remaining ones forming the rest of its chain (in order).
        """
        self.pkey = kwargs.get("pkey")
        """The private key; either a ``cryptography`` private key object or a byte string in the format named by :attr:`key_format`."""
        self.key_format = kwargs.get("key_format")

    @classmethod
    def new(cls, alias, certs, key, key_format=None, timestamp=None):
        """
        Helper function to create a new PrivateKeyEntry.

        :param str alias: The alias for the Private Key Entry
        :param list certs: A list of certificates, as DER byte strings or
          :class:`cryptography.x509.Certificate` objects.
          The first one should be the one belonging to the private key,
          the others the chain (in correct order).
        :param key: The private key. Either a ``cryptography`` private key
          object (``key_format=None``), or a byte string in the format
          specified in the key_format parameter.
        :param str key_format: ``None`` for key objects, or the encoding of
          a byte string key: ``pkcs8`` (DER PrivateKeyInfo) or ``rsa_raw``
          (DER PKCS#1 RSAPrivateKey).
        :param timestamp: See :meth:`TrustedCertEntry.new`.

        :returns: A loaded :class:`PrivateKeyEntry` instance, ready
          to be placed in a keystore.

        :raises UnsupportedKeyFormatException: If the key format is
          unsupported.
        """
        if key_format not in (None, 'pkcs8', 'rsa_raw'):
            raise UnsupportedKeyFormatException("Key Format '%s' is not supported" % key_format)

        return cls(timestamp=timestamp,
                   alias=alias,
                   cert_chain=[_cert_der(c) for c in certs],
                   pkey=key,
                   key_format=key_format)

    def _encrypt_for(self, key_password):
        """
        Encrypts the private key with the JKS key protection algorithm, so that it can be saved to a keystore.
        Returns the DER-encoded PKCS#8 EncryptedPrivateKeyInfo structure. The entry itself is not modified.

        :param str key_password: The password to encrypt the entry with.
        :raises UnsupportedKeyAlgorithmException: If the key is not an RSA key.
        :raises StructureMarshalException: If the key or the resulting structure cannot be DER-encoded.
        :raises EncryptionFailureException: If the key protection algorithm fails.
        """
        pkey_pkcs8 = keys.encode_private_key_info(self.pkey, self.key_format)
        ciphertext = sun_crypto.jks_pkey_encrypt(pkey_pkcs8, key_password)

        a = rfc2459.AlgorithmIdentifier()
        a.setComponentByName('algorithm', sun_crypto.SUN_JKS_ALGO_ID)
        a.setComponentByName('parameters', univ.Any(DER_NULL))

        epki = rfc5208.EncryptedPrivateKeyInfo()
        epki.setComponentByName('encryptionAlgorithm', a)
        epki.setComponentByName('encryptedData', ciphertext)

        try:
            return encoder.encode(epki)
        except PyAsn1Error as e:
            raise StructureMarshalException("Failed to DER-encode PKCS#8 EncryptedPrivateKeyInfo: %s" % (e,), e) from e

class Options(object):
    """
    Passwords used to save a :class:`KeyStore`.

    :param str password: The store password. Used for the store's integrity digest, and for encrypting
      every private key that has no password of its own in ``key_passwords``.
    :param dict key_passwords: Optional mapping of entry alias to the password to encrypt that entry's private key with.
    """
    def __init__(self, password, key_passwords=None):
        self.password = password
        self.key_passwords = dict(key_passwords or {})

    def key_password_for(self, alias):
        return self.key_passwords.get(alias, self.password)

# --------------------------------------------------------------------------

class KeyStore(AbstractKeystore):
    """
    Represents a JKS keystore to be written out.

    Entries are kept in two ordered lists, :attr:`certs` and :attr:`private_keys`. When saved, all
    certificates are written before all private keys, each list in its own order. Aliases are not
    checked for uniqueness; a store with duplicate aliases is written as-is.
    """
    ENTRY_TYPE_PRIVATE_KEY = 1
    ENTRY_TYPE_CERTIFICATE = 2

    def __init__(self, certs=None, private_keys=None):
        self.certs = list(certs or [])               #: :class:`TrustedCertEntry` objects, in write order.
        self.private_keys = list(private_keys or []) #: :class:`PrivateKeyEntry` objects, in write order.

    @classmethod
    def new(cls, store_entries):
        """
        Helper function to create a new KeyStore.

        :param list store_entries: Entries that should be added to the keystore,
          in any mix of :class:`TrustedCertEntry` and :class:`PrivateKeyEntry`.
          The relative order of each kind is preserved.

        :returns: A :class:`KeyStore` instance with the specified entries.

        :raises UnsupportedKeystoreEntryTypeException: If some
          of the keystore entries are unsupported
        """
        certs = []
        private_keys = []
        for entry in store_entries:
            if isinstance(entry, TrustedCertEntry):
                certs.append(entry)
            elif isinstance(entry, PrivateKeyEntry):
                private_keys.append(entry)
            else:
                raise UnsupportedKeystoreEntryTypeException("Entries must be a TrustedCertEntry or PrivateKeyEntry, not %s" % type(entry).__name__)

        return cls(certs, private_keys)

    @property
    def entries(self):
        """All entries, in the order in which they are written."""
        return self.certs + self.private_keys

    def pack(self, options):
        """
        Serializes the keystore.

        :param Options options: Store password and optional per-entry key passwords.

        :returns: A byte string representation of the keystore.

        :raises EncodingTooLongException: If an alias does not fit in 65535 bytes of UTF-8
        :raises BadTextEncodingException: If an alias cannot be encoded as UTF-8
        :raises BadKeyEncodingException: If a private key given as bytes cannot be parsed in its declared format
        :raises UnsupportedKeyAlgorithmException: If a private key is not an RSA key
        :raises StructureMarshalException: If a private key cannot be DER-encoded
        :raises EncryptionFailureException: If the SHA-1 digest is unavailable

        Errors raised while encoding a private key entry name the entry in their message and carry it in their ``alias`` attribute.
        """
        log.debug("Packing JKS keystore with %d certificate(s) and %d private key(s)", len(self.certs), len(self.private_keys))

        keystore = MAGIC_NUMBER_JKS
        keystore += self._write_uint32(STORE_VERSION)
        keystore += self._write_uint32(len(self.certs) + len(self.private_keys))

        for item in self.certs:
            keystore += self._write_trusted_cert(item)

        for item in self.private_keys:
            keystore += self._write_private_key(item, options.key_password_for(item.alias))

        keystore += sun_crypto.jks_store_digest(keystore, options.password)

        log.debug("Packed JKS keystore: %d bytes", len(keystore))
        return keystore

    def saves(self, store_password, entry_passwords=None):
        """
        Saves the keystore so that it can be read by other applications.

        Private keys are encrypted with the password given for their alias
        in ``entry_passwords``, or with the store password otherwise.

        :param str store_password: Password for the created keystore
          (and for any keys without an entry password)
        :param dict entry_passwords: Optional mapping of alias to key password.

        :returns: A byte string representation of the keystore.
        """
        return self.pack(Options(store_password, entry_passwords))

    @classmethod
    def _write_private_key(cls, item, key_password):
        log.debug("Writing private key entry %s", short_repr(item.alias))
        private_key_entry = cls._write_uint32(cls.ENTRY_TYPE_PRIVATE_KEY)
        private_key_entry += cls._write_utf(item.alias, kind="entry alias", alias=item.alias)
        private_key_entry += cls._write_timestamp(item.timestamp)
        try:
            encrypted_key = item._encrypt_for(key_password)
        except (UnsupportedKeyAlgorithmException, BadKeyEncodingException, StructureMarshalException, EncryptionFailureException) as e:
            message = e.args[0] if e.args else type(e).__name__
            raise type(e)("%s (entry alias %s)" % (message, short_repr(item.alias)), *e.args[1:], alias=item.alias) from e
        private_key_entry += cls._write_data(encrypted_key)

        private_key_entry += cls._write_uint32(len(item.cert_chain))
        for cert in item.cert_chain:
            private_key_entry += cls._write_utf(CERT_TYPE_X509, kind="certificate type", alias=item.alias)
            private_key_entry += cls._write_data(cert)

        return private_key_entry

    @classmethod
    def _write_trusted_cert(cls, item):
        log.debug("Writing trusted certificate entry %s", short_repr(item.alias))
        trusted_cert = cls._write_uint32(cls.ENTRY_TYPE_CERTIFICATE)
        trusted_cert += cls._write_utf(item.alias, kind="entry alias", alias=item.alias)
        trusted_cert += cls._write_timestamp(item.timestamp)
        trusted_cert += cls._write_utf(CERT_TYPE_X509, kind="certificate type", alias=item.alias)
        trusted_cert += cls._write_data(item.cert)
        return trusted_cert

def verify_store_digest(data, store_password):
    """
    Checks the integrity digest at the end of a serialized JKS keystore against the given store password.
    Only the trailing digest is checked; the entries themselves are not parsed.

    :raises BadKeystoreFormatException: If the data is too short to be a keystore
    :raises KeystoreSignatureException: If the digest does not match; wrong password or corrupted data
    """
    header_size = len(MAGIC_NUMBER_JKS) + 8
    if len(data) < header_size + sun_crypto.JKS_DIGEST_SIZE:
        tmpl = "Keystore data too short; found %d bytes, expected at least %d"
        raise BadKeystoreFormatException(tmpl % (len(data), header_size + sun_crypto.JKS_DIGEST_SIZE))
    if data[:4] != MAGIC_NUMBER_JKS:
        raise BadKeystoreFormatException("Not a JKS keystore (magic number wrong; expected FEEDFEED)")

    body, found_hash = data[:-sun_crypto.JKS_DIGEST_SIZE], data[-sun_crypto.JKS_DIGEST_SIZE:]
    if sun_crypto.jks_store_digest(body, store_password) != found_hash:
        raise KeystoreSignatureException("Hash mismatch; incorrect keystore password?")

def _cert_der(cert):
    if isinstance(cert, x509.Certificate):
        return cert.public_bytes(serialization.Encoding.DER)
    return bytes(cert)
