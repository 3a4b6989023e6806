#!/usr/bin/env python3
"""
slot-finder: storage slot math for Uniswap V4 style contracts

  slot-finder slot 6 bytes32:0x2b12...382e
  slot-finder slot 1 address:0xAlice address:0xBob
  slot-finder pool-id 0x7793... 0xfb4c... 8388608 60 --hooks 0x70Fe...
  slot-finder decode 0x0000...ff54 --layout v4-slot0
  slot-finder find-slot 0x2b12...382e 0x0000...ff54 --max 20
  slot-finder read-pool 0x2b12...382e
  slot-finder read-slot --count 10

Network commands take RPC_URL, POOL_MANAGER_ADDRESS etc. from the
environment or a .env file.
"""

import argparse
import json
import logging
import sys

from .config import load_settings
from .encoding import encode_abi, parse_type
from .errors import ReaderFailure, SlotFinderError, SlotNotFound
from .hashing import as_word, int_to_word, to_hex, word_to_int
from .packed import LAYOUTS, Layout, decode
from .pool_id import ZERO_ADDRESS, compute_pool_id, sort_currencies
from .pool_reader import PoolStateReader
from .prober import inclusive_range, probe_all
from .slots import MappingKey, mapping_slot, nested_mapping_slot


def parse_key(text: str) -> MappingKey:
    """'int24:-100', 'address:0xabc...', 'bytes32:0x...'"""
    if ':' not in text:
        raise argparse.ArgumentTypeError(f"key must look like type:value, got {text!r}")
    abi_type, value = text.split(':', 1)
    try:
        kind, _ = parse_type(abi_type)
    except SlotFinderError as e:
        raise argparse.ArgumentTypeError(str(e))
    if kind in ('uint', 'int'):
        try:
            value = int(value, 0)
        except ValueError:
            raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    return MappingKey(abi_type, value)


def parse_int(text: str) -> int:
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")


def cmd_slot(args) -> int:
    print(f"Base storage slot: {args.base}")
    print()

    # Show the calculation step by step
    base = args.base
    for key in args.keys:
        encoded = encode_abi([key.abi_type, 'uint256'], [key.value, base])
        slot = mapping_slot(base, key)
        print(f"Key ({key.abi_type}): {key.value}")
        print(f"  abi.encode(key, base): {encoded.hex()}")
        print(f"  keccak256:             {to_hex(slot)}")
        base = word_to_int(slot)

    print()
    print(f"Storage slot: {to_hex(nested_mapping_slot(args.base, *args.keys))}")
    return 0


def cmd_pool_id(args) -> int:
    currency0, currency1 = sort_currencies(args.currency_a, args.currency_b)
    pool_id = compute_pool_id(currency0, currency1, args.fee, args.tick_spacing, args.hooks)
    print(f"currency0:   {currency0}")
    print(f"currency1:   {currency1}")
    print(f"fee:         {args.fee}")
    print(f"tickSpacing: {args.tick_spacing}")
    print(f"hooks:       {args.hooks}")
    print(f"Pool ID: {to_hex(pool_id)}")
    return 0


def cmd_decode(args) -> int:
    layout = Layout.from_spec(args.fields) if args.fields else LAYOUTS[args.layout]
    fields = decode(args.word, layout)
    if args.json:
        print(json.dumps(fields, indent=2))
        return 0
    for spec in layout:
        print(f"{spec.describe():<40} = {fields[spec.name]}")
    return 0


def cmd_find_slot(args) -> int:
    settings = load_settings(args.env_file)
    last = settings.probe_max_slot if args.max is None else args.max
    candidates = inclusive_range(args.min, last)
    key = MappingKey('bytes32', args.pool_id)
    expected = as_word(args.expected)
    reader = settings.make_reader()

    print(f"Contract: {settings.pool_manager}")
    print(f"Pool ID: {args.pool_id}")
    print(f"Expected data: {to_hex(expected)}")
    print(f"Testing base slots {args.min}..{last}")
    print()

    for hit in probe_all(key, candidates, reader):
        if hit.raw == expected:
            print(f"Slot {hit.index}: MATCH {to_hex(hit.slot)}")
            print()
            print(f"The mapping is at storage slot {hit.index}")
            return 0
        status = "empty" if hit.is_empty else f"non-zero {to_hex(hit.raw)}"
        print(f"Slot {hit.index}: {status}")

    raise SlotNotFound(candidates, expected)


def cmd_read_slot(args) -> int:
    if args.slots and args.count is not None:
        raise ValueError("give slots or --count, not both")
    if args.slots:
        indices = args.slots
    elif args.count is not None:
        indices = range(args.count)
    else:
        raise ValueError("give at least one slot, or --count N")

    settings = load_settings(args.env_file)
    reader = settings.make_reader()
    print(f"Contract: {settings.pool_manager}")
    for index in indices:
        raw = as_word(reader(int_to_word(index)))
        status = "empty" if word_to_int(raw) == 0 else to_hex(raw)
        print(f"Slot {index}: {status}")
    return 0


def cmd_read_pool(args) -> int:
    settings = load_settings(args.env_file)
    pools_slot = settings.pools_slot if args.pools_slot is None else args.pools_slot
    pool_reader = PoolStateReader(settings.make_reader(), pools_slot=pools_slot)
    results = pool_reader.read_pools(args.pool_ids)
    print(json.dumps(results, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="slot-finder",
        description="Derive storage slots, pool ids and packed fields of Uniswap V4 style contracts.",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log each storage read")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("slot", help="Storage slot of a (nested) mapping entry")
    p.add_argument("base", type=parse_int, help="Base slot of the mapping")
    p.add_argument("keys", type=parse_key, nargs="+", help="Keys as type:value, outermost first")
    p.set_defaults(func=cmd_slot)

    p = sub.add_parser("pool-id", help="PoolId of a pool key")
    p.add_argument("currency_a")
    p.add_argument("currency_b")
    p.add_argument("fee", type=parse_int)
    p.add_argument("tick_spacing", type=parse_int)
    p.add_argument("--hooks", default=ZERO_ADDRESS)
    p.set_defaults(func=cmd_pool_id)

    p = sub.add_parser("decode", help="Decode a packed storage word")
    p.add_argument("word", help="Raw 32-byte word (hex)")
    p.add_argument("--layout", choices=sorted(LAYOUTS), default="v4-slot0")
    p.add_argument("--fields", help="Inline layout: name:width@offset[:signed],...")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser("find-slot", help="Probe for the base slot of the _pools mapping")
    p.add_argument("pool_id")
    p.add_argument("expected", help="Known slot0 word of the pool")
    p.add_argument("--min", type=parse_int, default=0)
    p.add_argument("--max", type=parse_int, default=None, help="Last candidate (default PROBE_MAX_SLOT)")
    p.add_argument("--env-file", default=None)
    p.set_defaults(func=cmd_find_slot)

    p = sub.add_parser("read-slot", help="Read raw words at plain storage indices")
    p.add_argument("slots", type=parse_int, nargs="*", help="Slot indices or 32-byte slots (hex)")
    p.add_argument("--count", type=parse_int, default=None, help="Read slots 0..N-1")
    p.add_argument("--env-file", default=None)
    p.set_defaults(func=cmd_read_slot)

    p = sub.add_parser("read-pool", help="Read and decode pool state")
    p.add_argument("pool_ids", nargs="+")
    p.add_argument("--pools-slot", type=parse_int, default=None)
    p.add_argument("--env-file", default=None)
    p.set_defaults(func=cmd_read_pool)

    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except SlotNotFound as e:
        print(f"❌ {e}")
        return 1
    except ReaderFailure as e:
        print(f"❌ Storage read failed: {e}")
        return 1
    except (SlotFinderError, ValueError) as e:
        print(f"❌ {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
