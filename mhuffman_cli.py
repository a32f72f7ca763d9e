#!/usr/bin/env python3
"""
Command-line front end for the M-ary Huffman codec.

    mhuffman encode "aabbbccccc" -m 3
    mhuffman encode --input notes.txt -m 4 --output notes.mhuff.json
    mhuffman decode notes.mhuff.json --output notes.txt
    mhuffman inspect "hello world" -m 2
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from mhuffman_core import tree_to_dict
from mhuffman_errors import MHuffmanError
from mhuffman_service import CodecSettings, ExportRecord, HuffmanService, display_symbol

logger = logging.getLogger(__name__)


def read_input(args):
    """Return (text, origin filename) from the positional text or --input."""
    if args.input:
        path = Path(args.input)
        return path.read_text(encoding=args.encoding), path.name
    if args.text is not None:
        return args.text, ""
    return sys.stdin.read(), "<stdin>"


def print_code_table(codes):
    print(f"Code table (m={codes.arity}):")
    for symbol, code in codes.pairs():
        print(f"  {display_symbol(symbol):>4}  {code}")


def print_stats(stats):
    print(f"Original size:   {stats.original_bits} bits")
    print(f"Compressed size: {stats.encoded_digits} digits")
    print(f"Ratio:           {stats.ratio:.2f}%")


def cmd_encode(service, args):
    text, origin = read_input(args)
    result = service.encode(text)
    if not text:
        print("[info] Empty input, nothing to encode.")
    print_code_table(result.codes)
    print("Encoded:")
    print(result.payload)
    print_stats(result.stats)
    if args.output:
        path = service.export(result, origin).write(args.output)
        print(f"\nExport saved to: {path}")
    return 0


def cmd_decode(service, args):
    record = ExportRecord.read(args.record)
    text = service.decode_text(record.payload, record.code_table())
    if args.output:
        Path(args.output).write_text(text, encoding=args.encoding)
        print(f"Decoded {len(text)} symbols to {args.output}")
    else:
        print(text)
    return 0


def cmd_inspect(service, args):
    text, _ = read_input(args)
    analysis = service.analyze(text)
    for row in service.report_rows(analysis):
        print(f"{row.label:>4}  freq {row.frequency:<6} code {row.code}")
    print(json.dumps(tree_to_dict(analysis.tree), indent=2, ensure_ascii=False))
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="mhuffman", description="M-ary Huffman encoder/decoder.")
    parser.add_argument("-v", "--verbose", action="store_true", help="log tree construction steps")
    parser.add_argument("--encoding", default="utf-8", help="text encoding for files (default: utf-8)")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("encode", "encode text and print the code table"),
                            ("inspect", "print symbol frequencies, codes and the tree")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("text", nargs="?", default=None, help="text to encode (default: stdin)")
        p.add_argument("--input", default=None, help="read text from this file")
        p.add_argument("-m", "--arity", type=int, default=CodecSettings.arity,
                       help="tree branching factor, 2-5 (default: %(default)s)")
        p.add_argument("--bits-per-symbol", type=int, default=CodecSettings.bits_per_symbol,
                       help="fixed cost of one input symbol (default: %(default)s)")
        if name == "encode":
            p.add_argument("--output", default=None, help="write an export record to this path")

    p = sub.add_parser("decode", help="decode an export record")
    p.add_argument("record", help="export record written by 'encode --output'")
    p.add_argument("--output", default=None, help="write decoded text here instead of stdout")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {"encode": cmd_encode, "decode": cmd_decode, "inspect": cmd_inspect}
    try:
        settings = CodecSettings(
            arity=getattr(args, "arity", CodecSettings.arity),
            bits_per_symbol=getattr(args, "bits_per_symbol", CodecSettings.bits_per_symbol),
        )
        service = HuffmanService(settings)
        return handlers[args.command](service, args)
    except (MHuffmanError, OSError, UnicodeError, LookupError) as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
