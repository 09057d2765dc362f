#!/usr/bin/python3
import argparse
import logging
import os

from dotenv import load_dotenv

from pagecodecs.constants import ImpVar
from pagecodecs.errors import PageDecoderError
from pagecodecs.main import main


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else getattr(logging, ImpVar.LOG_LEVEL.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve the page urls of an obfuscated manga chapter.")

    parser.add_argument('--site', '-s', default=None, help='Site or profile to use, found from the url when not given. Needed with --payload.')
    parser.add_argument('--payload', '-p', action='store_true', help='The id is a file holding an already extracted payload to decode offline.')
    parser.add_argument('--context', '-c', action='append', default=[], help='Value found next to the payload, e.g. chapter_id=1234. Can be repeated.')
    parser.add_argument('--profiles', default=None, help='Json file with extra cipher profiles.')
    parser.add_argument('--output', '-o', default=None, help='Save the page lists to this json file instead of printing them.')
    parser.add_argument('--debug', action='store_true', help=argparse.SUPPRESS)
    parser.add_argument('id', help='Chapter url, file of chapter urls, or payload file with --payload.')
    return parser


if __name__ == "__main__":

    os.system("")
    load_dotenv()

    args = build_parser().parse_args()
    setup_logging(args.debug)

    try:
        main(vars(args))
    except PageDecoderError as e:
        print(e)
    except KeyboardInterrupt:
        print('\nDecoder stopped!')
