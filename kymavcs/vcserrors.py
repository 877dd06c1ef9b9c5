#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# File: kymavcs/vcserrors.py
# <pep8 compliant>
"""Hierarchy of errors raised when decoding / encoding /vcs packets.

Each error class has a ``kind`` class attribute, a short name of the
failure, so that callers can select on the kind without matching
classes or message texts::

    try:
        events = decode_packet(raw)
    except VCSError as e:
        if e.kind == "UnexpectedAddress":
            pass    # Not for us.
        else:
            logger.warning("Bad /vcs packet (%s): %s", e.kind, e)

Decoding errors all derive from :class:`VCSInvalidRawError`, errors
in compressed blob payloads from :class:`VCSCompressionError`.
"""

__all__ = [
    "VCSError",
    "VCSInvalidRawError",
    "VCSTooShortError",
    "VCSMalformedAddressError",
    "VCSUnexpectedAddressError",
    "VCSInvalidTypeTagError",
    "VCSTruncatedLengthError",
    "VCSTruncatedBlobError",
    "VCSEmptyBlobError",
    "VCSMisalignedRecordError",
    "VCSCompressionError",
    "VCSDecompressionError",
    "VCSInvalidGzipError",
    "VCSInvalidDataError",
    "VCSUnknownCompressionError",
    "ERROR_KINDS",
    ]


class VCSError(Exception):
    """Parent class for /vcs errors.
    """
    kind = "Error"


class VCSInvalidRawError(VCSError):
    """Problem detected in raw /vcs input decoding.
    """
    kind = "InvalidRaw"


class VCSTooShortError(VCSInvalidRawError):
    """Buffer shorter than the minimum fixed envelope.
    """
    kind = "TooShort"


class VCSMalformedAddressError(VCSInvalidRawError):
    """No zero terminator found for the address pattern.
    """
    kind = "MalformedAddress"


class VCSUnexpectedAddressError(VCSInvalidRawError):
    """Address pattern present but not exactly ``/vcs``.

    :ivar address: decoded address pattern, or None if its bytes
        could not be decoded as text.
    :type address: str or None
    """
    kind = "UnexpectedAddress"

    def __init__(self, message, address=None):
        super().__init__(message)
        self.address = address


class VCSInvalidTypeTagError(VCSInvalidRawError):
    """Type tags field is not ``,b``.
    """
    kind = "InvalidTypeTag"


class VCSTruncatedLengthError(VCSInvalidRawError):
    """Buffer ends before the blob length field.
    """
    kind = "TruncatedLength"


class VCSTruncatedBlobError(VCSInvalidRawError):
    """Buffer ends before the declared blob length is satisfied.
    """
    kind = "TruncatedBlob"


class VCSEmptyBlobError(VCSInvalidRawError):
    """Zero length blob payload given to compression resolution.
    """
    kind = "EmptyBlob"


class VCSMisalignedRecordError(VCSInvalidRawError):
    """Records data length is not a multiple of 8 bytes.
    """
    kind = "MisalignedRecordData"


class VCSCompressionError(VCSInvalidRawError):
    """Parent class for errors in compressed blob payloads.
    """
    kind = "Compression"


class VCSDecompressionError(VCSCompressionError):
    """Headerless deflate stream after ``?`` marker failed to inflate.
    """
    kind = "DecompressionFailed"


class VCSInvalidGzipError(VCSCompressionError):
    """Payload starts with gzip magic number but is not valid gzip.
    """
    kind = "InvalidGzip"


class VCSInvalidDataError(VCSError):
    """Problem detected in /vcs data encoding.
    """
    kind = "InvalidData"


class VCSUnknownCompressionError(VCSError):
    """Compression scheme name not known.
    """
    kind = "UnknownCompression"


# Map kind names to classes, for callers receiving kinds as strings
# (ex. from configuration of which errors to ignore).
ERROR_KINDS = {cls.kind: cls for cls in (
    VCSTooShortError,
    VCSMalformedAddressError,
    VCSUnexpectedAddressError,
    VCSInvalidTypeTagError,
    VCSTruncatedLengthError,
    VCSTruncatedBlobError,
    VCSEmptyBlobError,
    VCSMisalignedRecordError,
    VCSDecompressionError,
    VCSInvalidGzipError,
    VCSInvalidDataError,
    VCSUnknownCompressionError,
    )}
