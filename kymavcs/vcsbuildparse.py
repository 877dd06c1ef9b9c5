#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# File: kymavcs/vcsbuildparse.py
# <pep8 compliant>
"""Support for building (encoding) and parsing (decoding) Kyma /vcs packets.

:Licence: CECILL V2 (GPL-like licence from and for french research community -
see http://www.cecill.info/licences.en.html )

When "Optimize Kyma Control Communication" is turned on in Kyma
Performance Preferences, and VCS notifications are turned on, the APU
sends a ``/vcs`` OSC message with a single blob argument each time one
or more VCS widgets change value.

The blob argument contains big-endian data::

    int_id0 float_value0 int_id1 float_value1 ...

byteCount / 8 is the number of EventID/value pairs in the blob.
The blob may be compressed, see :mod:`kymavcs.vcscompress`.

This module only translate /vcs packets from/to Python values, it is not a
general OSC decoder (no other address pattern, no other type tags, no
bundle). It only depends on Python3 standard modules.

Raw packet layout
-----------------

=========  ================================================
 Offset     Content
=========  ================================================
 0          ``/vcs`` + zero, padded to 4 bytes (8 bytes)
 8          ``,b`` + zero, padded to 4 bytes (4 bytes)
 12         blob length, uint32 big-endian
 16         blob payload
=========  ================================================


Out Of Band
-----------

Like for OSC packets, a collection of options can be transmitted to modify
some processing or activate dumps, via an ``oob`` dictionary parameter
given optionally in top-level functions and transmitted to other functions
while processing.

=============================  ==============================================
 Key                            Use
=============================  ==============================================
 ``str_decode``                 (codec, errors) for address, default
                                ``('utf-8', 'strict')``
 ``compress_level``             zlib level when encoding, default 6
 ``logger``                     logging.Logger to receive debug traces
 ``decode_packet_dumpraw``      hex dump of raw packet to decode
 ``decode_packet_dumpevents``   print decoded events
 ``encode_packet_dumpraw``      hex dump of encoded raw packet
 ``dumpfile``                   file for dumps, default sys.stdout
=============================  ==============================================
"""

# Note: raw data is processed via memoryview objects, so the envelope
# extraction never copy the blob payload.
# Careful: with memoryview of bytes, mv[n] is an int, mv[a:b] is a subview.

from collections import namedtuple
import logging
import struct
import sys

from .vcserrors import *
from .vcserrors import __all__ as _errors_all
from . import vcscompress

__all__ = [
    # Main functions for users.
    "encode_packet",
    "decode_packet",
    # Lower level parts.
    "extract_blob",
    "decode_records",
    "encode_records",
    # Data.
    "VCSEvent",
    # Constants.
    "VCS_ADDRPATTERN",
    "VCS_TYPETAGS",
    "RECORD_SIZE",
    "MIN_PACKET_SIZE",
    # Other functions.
    "dumphex_buffer",
    ] + _errors_all

VCS_ADDRPATTERN = "/vcs"
# Type tags with their zero padding to 4 bytes.
VCS_TYPETAGS = b',b\000\000'
# Shortest address (4 bytes, with its zero) + type tags + blob length.
MIN_PACKET_SIZE = 12

RECORD_FORMAT = ">if"
RECORD_SIZE = struct.calcsize(RECORD_FORMAT)
BLOBLENGTH_FORMAT = ">I"
BLOBLENGTH_SIZE = struct.calcsize(BLOBLENGTH_FORMAT)

# Bytes for padding to fill 4 bytes alignment.
padding = {}
for i in range(0, 4):
    padding[i] = b'\000' * i


class VCSEvent(namedtuple('VCSEvent', 'event_id value')):
    """
    :code:`VCSEvent(event_id, value)` → named tuple

    Default to :code:`VCSEvent(0, 0.0)`.

    :ivar int event_id: Kyma EventID of the widget, int32.
    :ivar float value: new value of the widget, from a float32.
    """
    __slots__ = ()

    def __new__(cls, event_id=0, value=0.0):
        return super().__new__(cls, event_id, value)

    def __str__(self):
        return "VCSEvent {{ event_id: {}, value: {} }}".format(
                            self.event_id, self.value)


#============================ ENVELOPE PARSING ==============================
def extract_blob(rawvcsdata, oob):
    """Check /vcs message envelope and return the blob payload.

    Trailing bytes after the blob payload (padding or others) are ignored,
    they are the transport business.

    :param rawvcsdata: raw /vcs message data
    :type rawvcsdata: memoryview
    :param oob: out of band extra parameters / options
    :type oob: dict
    :return: blob payload (a subview, no copy)
    :rtype: memoryview
    """
    size = len(rawvcsdata)
    if size < MIN_PACKET_SIZE:
        raise VCSTooShortError("VCS packet too short ({} bytes, need at "
                    "least {}): {}".format(size, MIN_PACKET_SIZE,
                    _dumpmv(rawvcsdata)))

    # Search first zero byte.
    for zeroindex, char in enumerate(rawvcsdata):
        if char == 0:
            break
    else:
        raise VCSMalformedAddressError("VCS non terminated address pattern "
                    "in raw data: {}".format(_dumpmv(rawvcsdata)))

    strcodec, error = oob.get('str_decode', ('utf-8', 'strict'))
    try:
        address = bytes(rawvcsdata[:zeroindex]).decode(strcodec, error)
    except UnicodeDecodeError as e:
        raise VCSUnexpectedAddressError("VCS address pattern not decodable "
                    "with {}: {}".format(strcodec, _dumpmv(rawvcsdata)),
                    None) from e
    if address != VCS_ADDRPATTERN:
        raise VCSUnexpectedAddressError("VCS unexpected address pattern "
                    "{!r} (expected {!r})".format(address, VCS_ADDRPATTERN),
                    address)

    # Zero terminator counts in the length before 4 bytes alignment.
    offset = (zeroindex + 4) & ~3

    typetags = bytes(rawvcsdata[offset:offset + len(VCS_TYPETAGS)])
    if typetags != VCS_TYPETAGS:
        raise VCSInvalidTypeTagError("VCS invalid type tags {!r}, expected "
                    "{!r}".format(typetags, VCS_TYPETAGS))
    offset += len(VCS_TYPETAGS)

    if offset + BLOBLENGTH_SIZE > size:
        raise VCSTruncatedLengthError("VCS packet too short for blob length "
                    "at offset {}: {}".format(offset, _dumpmv(rawvcsdata)))
    bloblength, = struct.unpack(BLOBLENGTH_FORMAT,
                               rawvcsdata[offset:offset + BLOBLENGTH_SIZE])
    offset += BLOBLENGTH_SIZE

    if offset + bloblength > size:
        raise VCSTruncatedBlobError("VCS packet too short for blob data, "
                    "declared {} bytes, {} available".format(bloblength,
                    size - offset))

    return rawvcsdata[offset:offset + bloblength]


#============================ RECORDS DATA ==================================
def decode_records(data, oob):
    """Decode records data into VCSEvent values.

    Values are not filtered, NaN or infinite float are returned as is.

    :param data: decompressed blob payload
    :type data: bytes or memoryview
    :param oob: out of band extra parameters / options
    :type oob: dict
    :return: events in data order
    :rtype: [ VCSEvent ]
    """
    if len(data) % RECORD_SIZE != 0:
        raise VCSMisalignedRecordError("VCS records data length {} is not "
                    "a multiple of {}: {}".format(len(data), RECORD_SIZE,
                    _dumpmv(data)))
    return [VCSEvent(event_id, value) for event_id, value in
                                struct.iter_unpack(RECORD_FORMAT, data)]


def encode_records(events, oob):
    """Encode events into records data.

    :param events: events to encode, VCSEvent or (event_id, value) tuples.
    :type events: iterable
    :param oob: out of band extra parameters / options
    :type oob: dict
    :return: records data
    :rtype: bytearray
    """
    tobuffer = bytearray()
    for event in events:
        event_id, value = event
        try:
            tobuffer.extend(struct.pack(RECORD_FORMAT, event_id, value))
        except (struct.error, OverflowError) as e:
            raise VCSInvalidDataError("VCS cannot encode event {!r}: "
                                      "{}".format(event, e)) from e
    return tobuffer


#============================== TOP LEVEL ===================================
def decode_packet(rawvcsdata, oob=None):
    """From a raw /vcs packet, extract the list of VCSEvent.

    Generally the packet come from an OSC channel reader (UDP, TCP...),
    which must provide a complete packet.

    :param rawvcsdata: content of packet data to decode.
    :type rawvcsdata: bytes or bytearray or memoryview (indexable bytes)
    :param oob: out of band extra parameters (see module documentation).
    :type oob: dict
    :return: decoded events from the packet, in blob order.
    :rtype: [ VCSEvent ]
    """
    rawvcsdata = memoryview(rawvcsdata)
    if rawvcsdata.format != 'B':
        raise VCSInvalidRawError("VCS packet base type must be bytes.")

    if oob is None:
        oob = {}

    if oob.get('decode_packet_dumpraw', False):
        print("VCS decoding packet:", file=oob.get('dumpfile', sys.stdout))
        dumphex_buffer(rawvcsdata, oob.get('dumpfile', None))

    payload = extract_blob(rawvcsdata, oob)

    if len(payload) == 0:
        # Valid, just no event.
        events = []
    else:
        scheme, data = vcscompress.resolve_blob(payload, oob)
        events = decode_records(data, oob)

    logger = oob.get('logger', None)
    if logger is not None and logger.isEnabledFor(logging.DEBUG):
        logger.debug("VCS packet of %d bytes decoded to %d events",
                     len(rawvcsdata), len(events))

    if oob.get('decode_packet_dumpevents', False):
        print("VCS decoded events:", file=oob.get('dumpfile', sys.stdout))
        for event in events:
            print(event, file=oob.get('dumpfile', sys.stdout))

    return events


def encode_packet(events, compression=None, oob=None):
    """From VCSEvent values, build a /vcs raw packet.

    The blob is followed by zero padding to a 4 bytes boundary.

    :param events: events to encode, VCSEvent or (event_id, value) tuples.
    :type events: iterable
    :param compression: compression scheme of the blob payload, default to
        no compression.
    :type compression: VCSCompression or str or None
    :param oob: out of band extra parameters (see module documentation).
    :type oob: dict
    :return: raw representation of the packet
    :rtype: bytearray
    """
    if oob is None:
        oob = {}

    compression = vcscompress.get_scheme(compression)
    records = encode_records(events, oob)
    if records:
        payload = vcscompress.compress_blob(records, compression, oob)
    else:
        # No blob content to compress.
        payload = b''

    tobuffer = bytearray()
    address = VCS_ADDRPATTERN.encode('ascii')
    tobuffer.extend(address)
    # Address zero terminator and its padding.
    tobuffer.extend(b'\000' * (4 - len(address) % 4))
    tobuffer.extend(VCS_TYPETAGS)
    tobuffer.extend(struct.pack(BLOBLENGTH_FORMAT, len(payload)))
    tobuffer.extend(payload)
    tobuffer.extend(padding[(4 - len(payload) % 4) % 4])

    if oob.get('encode_packet_dumpraw', False):
        print("VCS encoded packet:", file=oob.get('dumpfile', sys.stdout))
        dumphex_buffer(tobuffer, oob.get('dumpfile', None))

    return tobuffer


#============================== EXTRA TOOLS =================================
def _dumpmv(data, length=20):
    """Return printable version of a memoryview sequence of bytes.

    This function is called everywhere we raise an error and wants to
    attach part of raw data to the exception.

    :param data: some raw data to format.
    :type data: bytes or memoryview
    :param length: how many bytes to dump, length<=0 to dump all bytes.
        Default to 20 bytes.
    :type length: int
    """
    if length <= 0 or length > len(data):
        length = len(data)
    data = bytes(data[:length])
    linetext = []
    linetext.append("({} bytes) ".format(length))
    linetext.extend(("{:02x} ".format(v) for v in data))
    linetext.append('   ')
    for v in data:
        if 32 <= v <= 126:
            linetext.append(chr(v))
        else:
            linetext.append('.')
    return "".join(linetext)


def dumphex_buffer(rawdata, tofile=None):
    """Dump hexa codes of /vcs stream, group by 4 bytes to identify parts.

    :param rawdata: some raw data to format.
    :type rawdata: bytes
    :param tofile: output stream to receive dump
    :type tofile: file (or file-like)
    """
    if tofile is None:
        tofile = sys.stdout

    linebytes = []
    linetext = []
    ofs = 0
    for i, v in enumerate(bytes(rawdata)):
        linebytes.append("{:02x}".format(v))
        if 32 <= v <= 126:
            linetext.append(chr(v))
        else:
            linetext.append('.')
        if (i + 1) % 16 == 0 or i == len(rawdata) - 1:
            print("{:03d}:{:40s}{}".format(ofs, ''.join(linebytes),
                                           ''.join(linetext)), file=tofile)
            linetext = []
            linebytes = []
            ofs = i + 1     # Index of *next* value.
        elif (i + 1) % 4 == 0:
            linebytes.append(' ')
            linetext.append(' ')
