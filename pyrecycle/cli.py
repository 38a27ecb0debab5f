from __future__ import annotations
import argparse
import contextlib
import io
import logging
import sys
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, TextIO

from .report.rows import RowEmitter, csv_sink
from .scan.dump import DumpStats, RecycleBinDumper

logger = logging.getLogger('pyrecycle')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# undecodable names (lone surrogates) must not end the dump
OUTPUT_ERRORS = 'backslashreplace'


@dataclass
class DumpOptions:
    roots: List[str]
    output: Optional[str] = None
    encoding: str = 'utf-8'
    single_header: bool = False
    absolute_paths: bool = False
    trailing_separator: bool = True


def setup_logging(verbosity: int = 0, log_file: Optional[str] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    formatter = logging.Formatter(LOG_FORMAT)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # stdout carries the table
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file, encoding='utf-8', errors=OUTPUT_ERRORS)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)


@contextlib.contextmanager
def _open_output(path: Optional[str], encoding: str) -> Iterator[TextIO]:
    if path:
        with open(path, 'w', encoding=encoding, newline='', errors=OUTPUT_ERRORS) as f:
            yield f
        return
    out = io.TextIOWrapper(sys.stdout.buffer, encoding=encoding, newline='', errors=OUTPUT_ERRORS)
    try:
        yield out
    finally:
        out.flush()
        out.detach()


def run_dump(opts: DumpOptions, stream: TextIO) -> List[DumpStats]:
    emitter = RowEmitter(csv_sink(stream, trailing_separator=opts.trailing_separator))
    dumper = RecycleBinDumper(emitter, absolute_paths=opts.absolute_paths)
    results = []
    for i, root in enumerate(opts.roots):
        if i == 0 or not opts.single_header:
            emitter.header()
        results.append(dumper.dump(root))
    return results


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog='pyrecycle',
        description='Dump the contents of Windows Recycle Bin folders as CSV',
    )
    ap.add_argument('roots', nargs='+', metavar='ROOT',
                    help=r'recycle bin folder, e.g. C:\$Recycle.Bin\S-1-5-21-...-1001')
    ap.add_argument('-o', '--output', default=None, help='write CSV here instead of stdout')
    ap.add_argument('--encoding', default='utf-8', help='output encoding (utf-8, utf-16, ...)')
    ap.add_argument('--single-header', action='store_true',
                    help='print the header once instead of once per ROOT')
    ap.add_argument('--absolute-paths', action='store_true',
                    help='print full paths for $I/$R entries instead of paths relative to ROOT')
    ap.add_argument('--no-trailing-separator', dest='trailing_separator', action='store_false',
                    help='do not end each line with a comma')
    ap.add_argument('-v', '--verbose', action='count', default=0)
    ap.add_argument('--log-file', default=None)
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    opts = DumpOptions(
        roots=list(args.roots),
        output=args.output,
        encoding=args.encoding,
        single_header=args.single_header,
        absolute_paths=args.absolute_paths,
        trailing_separator=args.trailing_separator,
    )
    with _open_output(opts.output, opts.encoding) as stream:
        results = run_dump(opts, stream)

    skipped = sum(r.skipped for r in results)
    if skipped:
        logger.warning("%d record(s) could not be decoded", skipped)
    return 0


if __name__ == '__main__':
    sys.exit(main())
