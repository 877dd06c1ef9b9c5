#!/usr/bin/env python3
# -*- encoding: utf-8 -*-
# File: kymavcs/demos/rundemo.py
# <pep8 compliant>
help = """
Demo script - decode /vcs packets like a Kyma client would.

Usage: ./rundemo.py
            Decode the minimal /vcs packet, then sample packets built
            with each blob compression scheme.
   or  ./rundemo.py nolog
            Same, without the debugging logger.
"""

import sys

if "-h" in sys.argv[1:] or "--help" in sys.argv[1:]:
    print(help)
    sys.exit()

# Make kymavcs available.
from os.path import abspath, dirname
PACKAGE_PATH = dirname(dirname(dirname(abspath(__file__))))
if PACKAGE_PATH not in sys.path:
    sys.path.insert(0, PACKAGE_PATH)

from kymavcs import vcsbuildparse
from kymavcs import vcscompress

# Logging for test/debug.
if "nolog" in sys.argv[1:]:
    logger = None
else:
    from demoslogger import logger

oob = {'logger': logger}

# Minimal valid data: /vcs with an empty blob.
MINIMAL_PACKET = b"/vcs\0\0\0\0,b\0\0\0\0\0\0"

SAMPLE_EVENTS = [
    vcsbuildparse.VCSEvent(42, 3.14),
    vcsbuildparse.VCSEvent(123, -1.23),
    vcsbuildparse.VCSEvent(7, 0.5),
    ]


def rundecode(raw):
    vcsbuildparse.dumphex_buffer(raw)
    try:
        events = vcsbuildparse.decode_packet(raw, oob)
    except vcsbuildparse.VCSError as e:
        print("Error decoding packet ({}): {}".format(e.kind, e))
    else:
        print("Decoded successfully: [{}]".format(
                                ", ".join(str(ev) for ev in events)))


print("=" * 80)
print("\nMINIMAL PACKET\n")
rundecode(MINIMAL_PACKET)

for scheme in vcscompress.DECODING_ORDER:
    print("=" * 80)
    print("\nPACKET WITH {} BLOB\n".format(scheme.name.upper()))
    rundecode(vcsbuildparse.encode_packet(SAMPLE_EVENTS, scheme, oob))

print("=" * 80)
print("\nINVALID PACKETS\n")
for raw in [
        # Not a /vcs message.
        b"/other\0\0,b\0\0\0\0\0\0",
        # Blob with 7 bytes, records need 8.
        b"/vcs\0\0\0\0,b\0\0\0\0\0\x07\0\1\2\3\4\5\6\0",
        # Gzip magic number, but no gzip data.
        b"/vcs\0\0\0\0,b\0\0\0\0\0\x0a\x1f\x8b\0\1\2\3\4\5\6\7\0\0",
        ]:
    print('-' * 80)
    rundecode(raw)
