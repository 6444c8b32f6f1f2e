#!/bin/env python3

import argparse
import sys
from typing import List, Optional

from loguru import logger

from . import AXMLPrinter, ResParserError, decode

LOG_FORMAT = "{line: >4}:{level}:\t{message}"


def setup_logging(verbose: bool) -> None:
    logger.remove()  # All configured handlers are removed
    logger.add(sys.stderr, format=LOG_FORMAT, level="DEBUG" if verbose else "WARNING")
    logger.enable("axmldecoder")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axmldecoder",
        description="Decode a binary AndroidManifest.xml into readable XML.",
    )
    parser.add_argument("file", help="binary AXML file, e.g. AndroidManifest.xml")
    parser.add_argument("-o", "--output", help="write the XML here instead of stdout")
    parser.add_argument(
        "--no-pretty", action="store_true", help="do not indent the output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log every chunk that is read"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    with open(args.file, "rb") as fp:
        raw = fp.read()

    try:
        document = decode(raw)
    except ResParserError as e:
        logger.error("Could not decode {}: {}: {}".format(args.file, type(e).__name__, e))
        return 1

    xml = AXMLPrinter(document).get_xml(pretty=not args.no_pretty, xml_declaration=True)

    if args.output:
        with open(args.output, "wb") as fp:
            fp.write(xml)
    else:
        sys.stdout.buffer.write(xml)
        sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
