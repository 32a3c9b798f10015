# vim: set et ai ts=4 sts=4 sw=4:
import calendar
import datetime
import time

from .util import *

class AbstractKeystore(object):
    """
    Abstract superclass for keystores.

    The ``_write_*`` helpers are the primitive field encoders shared by all entry types. Each one returns the
    encoded bytes for the caller to append to its output, and raises before producing anything if the value
    does not fit its field.
    """
    def save(self, filename, store_password, entry_passwords=None):
        """
        Convenience wrapper function; calls the :func:`saves`
        and saves the content to a file.

        The file is only opened once the keystore has been fully serialized, so an encoding error
        leaves an existing file untouched.
        """
        keystore_bytes = self.saves(store_password, entry_passwords=entry_passwords)
        with open(filename, 'wb') as file:
            file.write(keystore_bytes)

    def saves(self, store_password, entry_passwords=None):
        raise NotImplementedError("Abstract method")

    @classmethod
    def _write_uint32(cls, value):
        if value < 0 or value > 0xFFFFFFFF:
            raise BadDataLengthException("Cannot write %d as an unsigned 32-bit integer" % value)
        return b4.pack(value)

    @classmethod
    def _write_uint64(cls, value):
        if value < 0 or value > 0xFFFFFFFFFFFFFFFF:
            raise BadDataLengthException("Cannot write %d as an unsigned 64-bit integer" % value)
        return b8.pack(value)

    @classmethod
    def _write_timestamp(cls, timestamp):
        """
        :param timestamp: Milliseconds since the UNIX epoch (int), a :class:`datetime.datetime`, or ``None``/``0`` for the current time.
        """
        return cls._write_uint64(to_millis(timestamp))

    @classmethod
    def _write_utf(cls, text, kind=None, alias=None):
        """
        :param kind: Optional; a human-friendly identifier for the kind of text we're writing (e.g. is it a keystore alias? a certificate type?).
                     Used to construct more informative exception messages when the text does not fit.
        :param alias: Optional; alias of the entry being written, attached to the raised exception.
        """
        what = kind or "UTF-8 data"
        where = "" if alias is None else " (entry alias %s)" % short_repr(alias)
        try:
            encoded_text = text.encode('utf-8')
        except UnicodeEncodeError as e:
            raise BadTextEncodingException("Cannot write %s; not encodable as UTF-8: %s%s" % (what, e.reason, where), kind=kind, alias=alias) from e
        size = len(encoded_text)
        if size > 0xFFFF:
            message = "Cannot write %s; UTF-8 encoding is %d bytes, maximum is 65535%s" % (what, size, where)
            raise EncodingTooLongException(message, kind=kind, alias=alias)
        result = b2.pack(size)
        result += encoded_text
        return result

    @classmethod
    def _write_data(cls, data):
        size = len(data)
        if size > 0xFFFFFFFF:
            raise BadDataLengthException("Cannot write binary data; length exceeds maximum size")
        result = b4.pack(size)
        result += data
        return result

class AbstractKeystoreEntry(object):
    """Abstract superclass for keystore entries."""
    def __init__(self, **kwargs):
        super(AbstractKeystoreEntry, self).__init__()
        self.alias = kwargs.get("alias")
        self.timestamp = kwargs.get("timestamp")

    @classmethod
    def new(cls, alias):
        """
        Helper function to create a new KeyStoreEntry.
        """
        raise NotImplementedError("Abstract method")

    def _encrypt_for(self, key_password):
        """
        Produces the protected form of the entry's secret material, ready to be written to a keystore.

        :param str key_password: The password to encrypt the entry with.
        """
        raise NotImplementedError("Abstract method")

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

def to_millis(timestamp):
    """
    Converts an entry timestamp to milliseconds since the UNIX epoch.

    ``None`` and ``0`` mean the timestamp was never set; those are replaced by the current time, so
    saving the same store twice produces different bytes unless the caller sets timestamps explicitly.
    Naive datetimes are taken to be in UTC. Sub-millisecond precision is truncated.
    """
    if not timestamp:
        return int(time.time() * 1000)
    if isinstance(timestamp, datetime.datetime):
        if timestamp.tzinfo is None:
            seconds = calendar.timegm(timestamp.timetuple())
            return seconds * 1000 + timestamp.microsecond // 1000
        return (timestamp - _EPOCH) // datetime.timedelta(milliseconds=1)
    return int(timestamp)
