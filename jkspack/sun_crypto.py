# vim: set et ai ts=4 sts=4 sw=4:
import hashlib
import itertools
import os

from .util import *

SUN_JKS_ALGO_ID = (1,3,6,1,4,1,42,2,17,1,1) # JavaSoft proprietary key-protection algorithm
SIGNATURE_WHITENING = b"Mighty Aphrodite"

JKS_SALT_SIZE = 20
JKS_DIGEST_SIZE = 20

def jks_pkey_encrypt(key, password_str):
    """
    Encrypts a private key with the private key password protection algorithm used by JKS keystores.

    This is not a PKCS#5 scheme: the keystream is built by chaining SHA-1 over the password and the
    previous digest (starting from a random 20-byte salt), and the trailing check value is a SHA-1 over the
    password and the *plaintext* key. The result is laid out as ``salt || (key XOR keystream) || check``.
    See sun/security/provider/KeyProtector.java in the JDK sources.
    """
    password_bytes = _password_bytes(password_str)
    iv = os.urandom(JKS_SALT_SIZE)

    key = bytearray(key)
    keystream = bytearray(itertools.islice(_jks_keystream(iv, password_bytes), len(key)))
    data = xor_bytearrays(key, keystream)
    check = _sha1(password_bytes + bytes(key))

    return bytes(iv + data + check)

def jks_pkey_decrypt(data, password_str):
    """
    Decrypts the private key password protection algorithm used by JKS keystores.
    The JDK sources state that 'the password is expected to be in printable ASCII', though this does not appear to be enforced;
    the password is converted into bytes simply by taking each individual Java char and appending its raw 2-byte representation.
    See sun/security/provider/KeyProtector.java in the JDK sources.
    """
    if len(data) < JKS_SALT_SIZE + JKS_DIGEST_SIZE:
        raise BadDataLengthException("Protected key data too short; expected at least %d bytes, found %d" % (JKS_SALT_SIZE + JKS_DIGEST_SIZE, len(data)))
    password_bytes = _password_bytes(password_str)

    data = bytearray(data)
    iv, data, check = data[:20], data[20:-20], data[-20:]
    xoring = zip(data, _jks_keystream(iv, password_bytes))
    key = bytearray([d^k for d,k in xoring])

    if _sha1(password_bytes + bytes(key)) != check:
        raise BadHashCheckException("Bad hash check on private key; wrong password?")
    key = bytes(key)
    return key

def jks_store_digest(data, password_str):
    """
    Computes the integrity digest that terminates a JKS keystore: SHA-1 over the UTF-16BE store password,
    the fixed string 'Mighty Aphrodite' and every byte of the store that precedes the digest.
    """
    return _sha1(_password_bytes(password_str) + SIGNATURE_WHITENING + bytes(data))

def _jks_keystream(iv, password):
    """Helper keystream generator for jks_pkey_encrypt/jks_pkey_decrypt"""
    cur = bytes(iv)
    while 1:
        cur = _sha1(password + cur)
        for byte in bytearray(cur):
            yield byte

def _password_bytes(password_str):
    if not isinstance(password_str, str):
        raise ValueError("Password must be a string, not %s" % type(password_str).__name__)
    return password_str.encode("utf-16be", "surrogatepass") # Java chars are UTF-16BE code units

def _sha1(data):
    # OpenSSL builds restricted to FIPS mode may refuse SHA-1 outright
    try:
        return hashlib.sha1(data).digest()
    except ValueError as e:
        raise EncryptionFailureException("SHA-1 digest unavailable: %s" % (e,), e) from e
