"""CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from promptable.chain import Chain, build_chain
from promptable.chain_registry import ChainRegistry
from promptable.io_utils import dump_json, load_inputs


async def run_chain(chain: Chain, inputs: dict[str, Any]) -> dict[str, Any]:
    return await chain.run(inputs)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--chains-dir", type=str, default="chains")
    parser.add_argument("--list", action="store_true", help="List available chain ids and exit")
    parser.add_argument("--chain", type=str)
    input_group = parser.add_mutually_exclusive_group()
    input_group.add_argument("--input", type=str, help="Path to a JSON object or text file")
    input_group.add_argument("--input-text", type=str, help="Raw input text")
    parser.add_argument("--trace", action="store_true", help="Print the per-step call trace")
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    registry = ChainRegistry([Path(args.chains_dir)])
    if args.list:
        for chain_id in registry.list_chains():
            print(f"{chain_id}\t{registry.get(chain_id).spec.description}".rstrip())
        return

    if args.chain is None:
        parser.error("--chain is required unless --list is given")
    if args.input is None and args.input_text is None:
        parser.error("one of --input or --input-text is required")

    chain = build_chain(registry.get(args.chain))

    if args.input_text is not None:
        inputs: dict[str, Any] = {"text": args.input_text}
    else:
        inputs = load_inputs(Path(args.input))

    # Async entrypoint
    import anyio

    out = anyio.run(run_chain, chain, inputs)
    print(dump_json(out))
    if args.trace:
        print(dump_json(chain.trace()))
