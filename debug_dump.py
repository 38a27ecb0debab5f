#!/usr/bin/env python3
"""Debug script: build a fake recycle bin in a temp folder and dump it to stdout"""

import os
import struct
import sys
import tempfile

from pyrecycle.cli import main as cli_main

DELETED_AT = 133_000_000_000_000_000


def write_record(root, suffix, version, size, path):
    raw = path.encode('utf-16le')
    head = struct.pack('<QQQ', version, size, DELETED_AT)
    if version == 1:
        body = raw.ljust(520, b'\x00')
    else:
        body = struct.pack('<I', len(raw) // 2) + raw
    with open(os.path.join(root, f"$I{suffix}"), 'wb') as f:
        f.write(head + body)


def build_fake_bin(root):
    # single file, V2
    write_record(root, "K3J9Q2.txt", 2, 100, r"C:\Users\a\doc.txt")
    with open(os.path.join(root, "$RK3J9Q2.txt"), 'wb') as f:
        f.write(b"x" * 100)

    # folder, V1
    write_record(root, "F0LDER", 1, 8, r"C:\Users\a\Projects")
    folder = os.path.join(root, "$RF0LDER")
    os.makedirs(os.path.join(folder, "sub"))
    for rel, data in [("a.txt", b"abc"), ("b.txt", b"de"), (os.path.join("sub", "c.txt"), b"fgh")]:
        with open(os.path.join(folder, rel), 'wb') as f:
            f.write(data)

    # payload already purged
    write_record(root, "GONE01.pdf", 2, 5000, r"C:\Users\a\gone.pdf")

    # broken record
    with open(os.path.join(root, "$IBROKEN"), 'wb') as f:
        f.write(b"\x02\x00\x00")


def main():
    with tempfile.TemporaryDirectory() as tmp:
        root = os.path.join(tmp, "S-1-5-21-1851798247-1933540348-1582327844-1001")
        os.makedirs(root)
        build_fake_bin(root)
        print(f"=== Fake recycle bin: {root} ===", file=sys.stderr)
        return cli_main([root, "-v"])


if __name__ == "__main__":
    sys.exit(main())
