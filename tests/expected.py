# vim: set ai et ts=4 sw=4 sts=4:
"""
Key and certificate material for the test cases, generated once per test run.
"""
import datetime

from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa, ec

_cache = {}

def _name(cn):
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, cn)])

def _issue(subject_cn, subject_key, issuer_cn, issuer_key):
    cert = x509.CertificateBuilder() \
        .subject_name(_name(subject_cn)) \
        .issuer_name(_name(issuer_cn)) \
        .public_key(subject_key.public_key()) \
        .serial_number(x509.random_serial_number()) \
        .not_valid_before(datetime.datetime(2020, 1, 1)) \
        .not_valid_after(datetime.datetime(2040, 1, 1)) \
        .sign(issuer_key, hashes.SHA256())
    return cert

class KeyMaterial(object):
    def __init__(self, key, cert_objects):
        self.key = key
        self.cert_objects = cert_objects
        self.certs = [c.public_bytes(serialization.Encoding.DER) for c in cert_objects]
        self.private_key = key.private_bytes(serialization.Encoding.DER,
                                             serialization.PrivateFormat.PKCS8,
                                             serialization.NoEncryption())
        self.raw_private_key = key.private_bytes(serialization.Encoding.DER,
                                                 serialization.PrivateFormat.TraditionalOpenSSL,
                                                 serialization.NoEncryption())

def rsa_2048_3certs():
    """An RSA key with a leaf certificate, an intermediate CA and a self-signed root CA (leaf first)."""
    if "RSA2048_3certs" not in _cache:
        root_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        ca_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        leaf_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        root = _issue(u"Test Root CA", root_key, u"Test Root CA", root_key)
        ca = _issue(u"Test Intermediate CA", ca_key, u"Test Root CA", root_key)
        leaf = _issue(u"leaf.example.com", leaf_key, u"Test Intermediate CA", ca_key)
        _cache["RSA2048_3certs"] = KeyMaterial(leaf_key, [leaf, ca, root])
    return _cache["RSA2048_3certs"]

def rsa_1024():
    """A self-signed RSA 1024 key/certificate pair."""
    if "RSA1024" not in _cache:
        key = rsa.generate_private_key(public_exponent=65537, key_size=1024)
        cert = _issue(u"mykey", key, u"mykey", key)
        _cache["RSA1024"] = KeyMaterial(key, [cert])
    return _cache["RSA1024"]

def ec_p256():
    """A self-signed EC (P-256) key/certificate pair; not an algorithm the keystore writer supports."""
    if "EC_P256" not in _cache:
        key = ec.generate_private_key(ec.SECP256R1())
        cert = _issue(u"eckey", key, u"eckey", key)
        _cache["EC_P256"] = KeyMaterial(key, [cert])
    return _cache["EC_P256"]
