#!/usr/bin/env python3
"""
Entry point to print PINs from a keyed or resumable sequence.

Run:
    python3 -m pinseq.generator --count 5
    python3 -m pinseq.generator --count 3 --state-dir ~/.pinseq --slot door
"""

from __future__ import annotations
import argparse
import itertools
import logging
import sys
from dataclasses import fields

from .cipher import CIPHERS
from .config import PinConfig, build
from .errors import PinseqError

logger = logging.getLogger(__name__)


def setup_logging(verbosity: int) -> None:
    level = logging.INFO
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity < 0:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Generate non-obvious PINs from a format-preserving encrypted sequence.")
    p.add_argument("--config", type=str, default=None, help="JSON file with PinConfig settings")
    p.add_argument("--count", type=int, default=None)
    p.add_argument("--length", type=int, default=None)
    p.add_argument("--charset", dest="character_set", type=str, default=None, help="Ordered, distinct PIN symbols")
    p.add_argument("--start", dest="starting_index", type=int, default=None)
    p.add_argument("--key", type=str, default=None, help="Hex AES key (None=random key)")
    p.add_argument("--cipher", choices=CIPHERS, default=None)
    p.add_argument("--state-dir", type=str, default=None, help="Persist key and position here and resume from it")
    p.add_argument("--slot", type=str, default=None)
    noise = p.add_mutually_exclusive_group()
    noise.add_argument("-v", "--verbose", action="count", default=1)
    noise.add_argument("-q", "--quiet", action="store_true")
    return p.parse_args(argv)


def load_config(args) -> PinConfig:
    cfg = PinConfig.from_json(args.config) if args.config else PinConfig()
    # Flags given on the command line override the file
    for f in fields(PinConfig):
        value = getattr(args, f.name, None)
        if value is not None:
            setattr(cfg, f.name, value)
    return cfg.validate()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(-1 if args.quiet else args.verbose)
    try:
        cfg = load_config(args)
        pins = build(cfg)
        for pin in itertools.islice(pins, cfg.count):
            print(pin)
    except PinseqError as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
