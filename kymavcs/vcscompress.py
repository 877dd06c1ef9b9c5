#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# File: kymavcs/vcscompress.py
# <pep8 compliant>
"""Compression schemes of /vcs blob payloads.

Kyma compresses large /vcs blobs with deflate, but depending on the
sender generation the payload can be:

- a raw deflate stream (gzip header and trailer stripped),
- the same raw deflate stream, prefixed with a ``?`` marker byte,
- a complete gzip stream (header + deflate stream + trailer),
- the records data, not compressed at all.

Nothing in the OSC message tells which one is used, so the decoder
tries the schemes in a fixed order, see :data:`DECODING_ORDER`.
Each scheme is a :class:`VCSCompression` with its name and its
encoding / decoding functions.

Scheme decoding functions signature is ``decode(payload, oob)``, they
return the decompressed bytes, or None when the payload is not for
that scheme (try next one), or raise a :class:`VCSCompressionError`
when the payload is for that scheme but cannot be decompressed.

.. warning::
    Raw deflate is tried first. A non compressed payload which
    happens to be a complete valid raw deflate stream is decoded as
    compressed. This comes from the protocol ambiguity, the marker byte
    convention is not used consistently by senders.
"""

from collections import namedtuple
import gzip
import logging
import zlib

from .vcserrors import (VCSEmptyBlobError, VCSDecompressionError,
                        VCSInvalidGzipError, VCSUnknownCompressionError)

__all__ = [
    "VCSCompression",
    "RAW_DEFLATE",
    "MARKED_DEFLATE",
    "GZIP",
    "PLAIN",
    "DECODING_ORDER",
    "SCHEMES",
    "get_scheme",
    "resolve_blob",
    "compress_blob",
    ]

# Marker byte put by some Kyma versions before raw deflate data.
DEFLATE_MARKER = b'?'
GZIP_MAGIC = b'\x1f\x8b'
# Negative wbits: raw stream, no zlib header nor checksum.
RAW_WBITS = -zlib.MAX_WBITS
DEFAULT_LEVEL = 6


class VCSCompression(namedtuple('VCSCompression', 'name encode decode')):
    """
    :code:`VCSCompression(name, encode, decode)` → named tuple

    :ivar str name: identification of the scheme.
    :ivar encode: function(data, level) → compressed bytes.
    :ivar decode: function(payload, oob) → bytes or None.
    """
    def __repr__(self):
        return "VCSCompression({!r})".format(self.name)


def _inflate_raw(data):
    """Inflate a complete raw deflate stream.

    The stream must reach its final block and use all input bytes, else
    a zlib.error is raised.
    """
    decomp = zlib.decompressobj(RAW_WBITS)
    result = decomp.decompress(data)
    result += decomp.flush()
    if not decomp.eof:
        raise zlib.error("incomplete or truncated raw deflate stream")
    if decomp.unused_data:
        raise zlib.error("{} bytes after end of raw deflate "
                         "stream".format(len(decomp.unused_data)))
    return result


def _deflate_raw(data, level):
    comp = zlib.compressobj(level, zlib.DEFLATED, RAW_WBITS)
    return comp.compress(data) + comp.flush()


#========================= SCHEMES DECODE / ENCODE ==========================
def _decode_raw_deflate(payload, oob):
    try:
        return _inflate_raw(payload)
    except zlib.error:
        # Not a deflate stream - other schemes will be tried.
        return None


def _encode_raw_deflate(data, level):
    return _deflate_raw(data, level)


def _decode_marked_deflate(payload, oob):
    if bytes(payload[:1]) != DEFLATE_MARKER:
        return None
    try:
        return _inflate_raw(payload[1:])
    except zlib.error as e:
        raise VCSDecompressionError("VCS headerless deflate decompression "
                    "after '?' marker failed: {}".format(e)) from e


def _encode_marked_deflate(data, level):
    return DEFLATE_MARKER + _deflate_raw(data, level)


def _decode_gzip(payload, oob):
    if bytes(payload[:2]) != GZIP_MAGIC:
        return None
    try:
        return gzip.decompress(bytes(payload))
    except (OSError, EOFError, zlib.error) as e:
        # Gzip magic number, so it must be gzip - never use it as raw data.
        raise VCSInvalidGzipError("VCS invalid gzip data: {}".format(e)) from e


def _encode_gzip(data, level):
    # Fixed mtime to produce same bytes for same data.
    return gzip.compress(data, compresslevel=level, mtime=0)


def _decode_plain(payload, oob):
    return bytes(payload)


def _encode_plain(data, level):
    return bytes(data)


RAW_DEFLATE = VCSCompression("deflate", _encode_raw_deflate,
                             _decode_raw_deflate)
MARKED_DEFLATE = VCSCompression("marked", _encode_marked_deflate,
                                _decode_marked_deflate)
GZIP = VCSCompression("gzip", _encode_gzip, _decode_gzip)
PLAIN = VCSCompression("plain", _encode_plain, _decode_plain)

# Order matters: changing it changes results on ambiguous payloads.
# PLAIN must stay last, it accepts anything.
DECODING_ORDER = (RAW_DEFLATE, MARKED_DEFLATE, GZIP, PLAIN)

SCHEMES = {scheme.name: scheme for scheme in DECODING_ORDER}


def get_scheme(scheme):
    """Retrieve a compression scheme from its name.

    :param scheme: scheme or its name, None for plain (no compression).
    :type scheme: VCSCompression or str or None
    :return: the compression scheme
    :rtype: VCSCompression
    """
    if scheme is None:
        return PLAIN
    if isinstance(scheme, VCSCompression):
        return scheme
    try:
        return SCHEMES[scheme]
    except (KeyError, TypeError):
        raise VCSUnknownCompressionError("VCS unknown compression scheme "
                    "{!r}, use one of {}".format(scheme,
                    ", ".join(sorted(SCHEMES))))


def resolve_blob(payload, oob=None):
    """Find compression scheme of a blob payload and decompress it.

    Schemes are tried following :data:`DECODING_ORDER`.

    :param payload: blob payload extracted from the /vcs message.
    :type payload: bytes or memoryview
    :param oob: out of band extra parameters / options
    :type oob: dict
    :return: scheme used, records data
    :rtype: VCSCompression, bytes
    """
    if oob is None:
        oob = {}

    if len(payload) == 0:
        raise VCSEmptyBlobError("VCS empty blob payload, a value change "
                                "notification has at least one record")

    for scheme in DECODING_ORDER:
        data = scheme.decode(payload, oob)
        if data is not None:
            break

    logger = oob.get('logger', None)
    if logger is not None and logger.isEnabledFor(logging.DEBUG):
        logger.debug("VCS blob of %d bytes resolved with %s scheme to "
                     "%d bytes", len(payload), scheme.name, len(data))

    return scheme, data


def compress_blob(data, scheme=None, oob=None):
    """Build a blob payload from records data with a compression scheme.

    :param data: records data to put in the blob.
    :type data: bytes or bytearray
    :param scheme: compression to use, default to plain.
    :type scheme: VCSCompression or str or None
    :param oob: out of band extra parameters / options
    :type oob: dict
    :return: blob payload
    :rtype: bytes
    """
    if oob is None:
        oob = {}
    scheme = get_scheme(scheme)
    return scheme.encode(bytes(data), oob.get('compress_level', DEFAULT_LEVEL))
