#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# File: kymavcs/tests/test_buildparse.py
# <pep8 compliant>

import sys
from os.path import abspath, dirname
# Make kymavcs available.
PACKAGE_PATH = dirname(dirname(dirname(abspath(__file__))))
if PACKAGE_PATH not in sys.path:
    sys.path.insert(0, PACKAGE_PATH)

import io
import logging
import math
import struct

import pytest

from kymavcs.vcsbuildparse import *
from testslogger import logger


def f32(value):
    """Value as it comes back from a float32 round trip."""
    return struct.unpack(">f", struct.pack(">f", value))[0]


def build_packet(blob, address=b"/vcs", typetags=b",b\0\0"):
    """Build raw packet by hand, blob is used as is (no padding)."""
    raw = bytearray(address)
    raw.extend(b"\0" * (4 - len(address) % 4))
    raw.extend(typetags)
    raw.extend(struct.pack(">I", len(blob)))
    raw.extend(blob)
    return bytes(raw)


def records(*pairs):
    return b"".join(struct.pack(">if", i, v) for i, v in pairs)


#=============================== DECODING ===================================
def test_decode_single_event():
    raw = b"/vcs\0\0\0\0" + b",b\0\0" + struct.pack(">I", 8) + \
          struct.pack(">i", 42) + struct.pack(">f", 3.14)
    events = decode_packet(raw)
    assert events == [VCSEvent(42, f32(3.14))]
    assert events[0].value == pytest.approx(3.14, abs=1e-6)


def test_decode_empty_blob():
    raw = b"/vcs\0\0\0\0" + b",b\0\0" + struct.pack(">I", 0)
    assert decode_packet(raw) == []


def test_decode_minimal_packet():
    assert decode_packet(b"/vcs\0\0\0\0,b\0\0\0\0\0\0") == []


def test_decode_keeps_order_and_duplicates():
    blob = records((5, 1.0), (3, -2.5), (5, 0.25), (-7, 1e10))
    events = decode_packet(build_packet(blob))
    assert [ev.event_id for ev in events] == [5, 3, 5, -7]
    assert [ev.value for ev in events] == [1.0, -2.5, 0.25, f32(1e10)]


def test_decode_special_floats_pass_through():
    blob = records((1, float('nan')), (2, float('inf')), (3, -float('inf')))
    events = decode_packet(build_packet(blob))
    assert math.isnan(events[0].value)
    assert events[1].value == float('inf')
    assert events[2].value == -float('inf')


def test_decode_int32_limits():
    blob = records((2 ** 31 - 1, 0.0), (-2 ** 31, 0.0))
    events = decode_packet(build_packet(blob))
    assert [ev.event_id for ev in events] == [2 ** 31 - 1, -2 ** 31]


def test_decode_accepts_bytearray_and_memoryview():
    raw = build_packet(records((1, 2.0)))
    assert decode_packet(bytearray(raw)) == [VCSEvent(1, 2.0)]
    assert decode_packet(memoryview(raw)) == [VCSEvent(1, 2.0)]


def test_decode_ignores_trailing_bytes():
    raw = build_packet(records((1, 2.0))) + b"\0\0\0\0extra"
    assert decode_packet(raw) == [VCSEvent(1, 2.0)]


def test_decode_rejects_non_bytes_memoryview():
    raw = memoryview(build_packet(records((1, 2.0)))).cast('I')
    with pytest.raises(VCSInvalidRawError):
        decode_packet(raw)


def test_round_trip_plain():
    for count in (0, 1, 2, 17):
        events = [VCSEvent(i, f32(i / 3.0)) for i in range(count)]
        assert decode_packet(encode_packet(events)) == events


#=============================== ERRORS =====================================
def test_too_short():
    with pytest.raises(VCSTooShortError) as excinfo:
        decode_packet(b"/vcs\0\0\0\0,b\0")
    assert excinfo.value.kind == "TooShort"


def test_malformed_address():
    with pytest.raises(VCSMalformedAddressError) as excinfo:
        decode_packet(b"/vcsabcdefghijkl")
    assert excinfo.value.kind == "MalformedAddress"


def test_unexpected_address():
    raw = build_packet(records((1, 2.0)), address=b"/other")
    with pytest.raises(VCSUnexpectedAddressError) as excinfo:
        decode_packet(raw)
    assert excinfo.value.kind == "UnexpectedAddress"
    assert excinfo.value.address == "/other"


def test_unexpected_address_with_bad_blob():
    # Address is checked before anything about the blob.
    raw = b"/other\0\0,x\0\0\0\0\0\xff"
    with pytest.raises(VCSUnexpectedAddressError):
        decode_packet(raw)


def test_unexpected_address_prefix():
    with pytest.raises(VCSUnexpectedAddressError):
        decode_packet(build_packet(b"", address=b"/vcsx"))


def test_undecodable_address():
    raw = b"\xff\xfe\0\0,b\0\0\0\0\0\0"
    with pytest.raises(VCSUnexpectedAddressError) as excinfo:
        decode_packet(raw)
    assert excinfo.value.address is None


def test_address_codec_option():
    raw = b"\xff\xfe\0\0,b\0\0\0\0\0\0"
    with pytest.raises(VCSUnexpectedAddressError) as excinfo:
        decode_packet(raw, {'str_decode': ('latin-1', 'strict')})
    assert excinfo.value.address == "\xff\xfe"


def test_invalid_typetags():
    with pytest.raises(VCSInvalidTypeTagError) as excinfo:
        decode_packet(build_packet(b"", typetags=b",i\0\0"))
    assert excinfo.value.kind == "InvalidTypeTag"
    with pytest.raises(VCSInvalidTypeTagError):
        decode_packet(build_packet(b"", typetags=b",bx\0"))
    with pytest.raises(VCSInvalidTypeTagError):
        decode_packet(build_packet(b"", typetags=b",bb\0"))


def test_truncated_length():
    with pytest.raises(VCSTruncatedLengthError) as excinfo:
        decode_packet(b"/vcs\0\0\0\0,b\0\0")
    assert excinfo.value.kind == "TruncatedLength"
    with pytest.raises(VCSTruncatedLengthError):
        decode_packet(b"/vcs\0\0\0\0,b\0\0\0\0")


def test_truncated_blob():
    raw = b"/vcs\0\0\0\0,b\0\0" + struct.pack(">I", 16) + records((1, 2.0))
    with pytest.raises(VCSTruncatedBlobError) as excinfo:
        decode_packet(raw)
    assert excinfo.value.kind == "TruncatedBlob"


def test_misaligned_records():
    raw = build_packet(bytes([0, 1, 2, 3, 4, 5, 6]))
    with pytest.raises(VCSMisalignedRecordError) as excinfo:
        decode_packet(raw)
    assert excinfo.value.kind == "MisalignedRecordData"


def test_errors_hierarchy():
    for kind, cls in ERROR_KINDS.items():
        assert cls.kind == kind
        assert issubclass(cls, VCSError)
    assert issubclass(VCSInvalidGzipError, VCSInvalidRawError)
    assert ERROR_KINDS["EmptyBlob"] is VCSEmptyBlobError


#============================ LOWER LEVEL PARTS =============================
def test_extract_blob_is_a_view():
    raw = bytearray(build_packet(records((1, 2.0))) + b"\0\0")
    blob = extract_blob(memoryview(raw), {})
    assert isinstance(blob, memoryview)
    assert len(blob) == 8
    raw[16] = 0x7f
    assert blob[0] == 0x7f


def test_decode_records_empty():
    assert decode_records(b"", {}) == []


def test_encode_records_invalid_values():
    with pytest.raises(VCSInvalidDataError):
        encode_records([(2 ** 31, 1.0)], {})
    with pytest.raises(VCSInvalidDataError):
        encode_records([(1, 1e300)], {})
    with pytest.raises(VCSInvalidDataError) as excinfo:
        encode_packet([(1.5, 1.0)])
    assert excinfo.value.kind == "InvalidData"


#=============================== ENCODING ===================================
def test_encode_layout():
    raw = encode_packet([VCSEvent(42, 3.14)])
    assert raw[:12] == b"/vcs\0\0\0\0,b\0\0"
    assert raw[12:16] == struct.pack(">I", 8)
    assert raw[16:] == records((42, 3.14))


def test_encode_empty():
    assert encode_packet([]) == bytearray(b"/vcs\0\0\0\0,b\0\0\0\0\0\0")


def test_encode_pads_compressed_blob():
    raw = encode_packet([VCSEvent(i, 1.0) for i in range(10)], "marked")
    assert len(raw) % 4 == 0
    bloblength, = struct.unpack(">I", raw[12:16])
    assert len(raw) - 16 - bloblength < 4


def test_encode_accepts_tuples():
    assert encode_packet([(1, 2.0)]) == encode_packet([VCSEvent(1, 2.0)])


#================================ EVENTS ====================================
def test_event_defaults_and_display():
    assert VCSEvent() == (0, 0.0)
    assert str(VCSEvent(42, 0.5)) == "VCSEvent { event_id: 42, value: 0.5 }"
    assert VCSEvent(1, 2.0)._asdict() == {'event_id': 1, 'value': 2.0}


#============================== OOB OPTIONS =================================
def test_dump_options():
    out = io.StringIO()
    raw = encode_packet([VCSEvent(42, 0.5)],
                        oob={'encode_packet_dumpraw': True, 'dumpfile': out})
    decode_packet(raw, {'decode_packet_dumpraw': True,
                        'decode_packet_dumpevents': True,
                        'dumpfile': out})
    text = out.getvalue()
    assert "VCS encoded packet:" in text
    assert "VCS decoding packet:" in text
    assert "000:2f766373 00000000 2c620000 00000008" in text
    assert "VCSEvent { event_id: 42, value: 0.5 }" in text


def test_logger_option(caplog):
    raw = encode_packet([VCSEvent(1, 2.0), VCSEvent(2, 3.0)], "gzip")
    with caplog.at_level(logging.DEBUG, logger="vcs"):
        decode_packet(raw, {'logger': logger})
    assert "resolved with gzip scheme" in caplog.text
    assert "decoded to 2 events" in caplog.text


def test_dumphex_buffer():
    out = io.StringIO()
    dumphex_buffer(b"/vcs\0\0\0\0,b\0\0\0\0\0\0\x01", out)
    lines = out.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("000:2f766373 00000000 2c620000 00000000")
    assert lines[0].endswith("/vcs .... ,b.. ....")
    assert lines[1].startswith("016:01")
