"""
Command-line entry point.

    ethereum-batch run --node ethereum --params params.json --items items.json
    ethereum-batch operations

The wallet credential is read from ``ETHEREUM_BATCH_PRIVATE_KEY``; ``ETHEREUM_BATCH_RPC_URL``
supplies rpcUrl when neither the params file nor ``--rpc-url`` does.
"""
import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from typing import Any, List, Optional

from .config import NetworkConfig
from .context import StaticNodeContext
from .exceptions import EthereumBatchError
from .nodes import NODES
from .operations import OPERATIONS
from .version import __version__

PRIVATE_KEY_ENV = "ETHEREUM_BATCH_PRIVATE_KEY"
RPC_URL_ENV = "ETHEREUM_BATCH_RPC_URL"


def _load_json(path: Optional[str], default: Any) -> Any:
    if not path:
        return default
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _load_items(path: Optional[str]) -> List[dict]:
    data = _load_json(path, [])
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError("Items file must contain a JSON object or an array of objects")
    # accept both bare records and {"json": {...}} wrappers
    return [item["json"] if set(item) == {"json"} and isinstance(item["json"], dict) else item for item in data]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ethereum-batch", description="Batched Ethereum account operations")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Execute one node over a batch of items")
    run.add_argument("--node", choices=sorted(NODES), default="ethereum", help="Node to run")
    run.add_argument("--params", help="JSON file with node parameters")
    run.add_argument("--items", help="JSON file with input items ('-' for stdin)")
    run.add_argument("--network", help="Named network supplying rpcUrl and chainId")
    run.add_argument("--rpc-url", help="Override the rpcUrl parameter")
    run.add_argument("--operation", help="Override the operation parameter")

    sub.add_parser("operations", help="List operations and their requirements")
    return parser


def _run(args: argparse.Namespace) -> List[dict]:
    params = _load_json(args.params, {})
    if not isinstance(params, dict):
        raise ValueError("Params file must contain a JSON object")
    if args.network:
        network = NetworkConfig.get_network(args.network)
        params.setdefault("chainId", network["chainId"])
        params.setdefault("rpcUrl", NetworkConfig.get_rpc_url(args.network))
    if args.rpc_url:
        params["rpcUrl"] = args.rpc_url
    elif not params.get("rpcUrl") and os.environ.get(RPC_URL_ENV):
        params["rpcUrl"] = os.environ[RPC_URL_ENV]
    if args.operation:
        params["operation"] = args.operation

    private_key = os.environ.get(PRIVATE_KEY_ENV)
    credentials = {"privateKey": private_key} if private_key else None
    context = StaticNodeContext(params, _load_items(args.items), credentials)

    node = NODES[args.node]()
    return [item.to_dict() for item in node.execute(context)]


def _operations() -> List[dict]:
    rows = []
    for spec in OPERATIONS.values():
        row = asdict(spec)
        row["kind"] = spec.kind.value
        row["cardinality"] = spec.cardinality.value
        row["nodes"] = sorted(name for name, node in NODES.items() if spec.kind in node.operations)
        rows.append(row)
    return rows


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "operations":
            output = _operations()
        else:
            output = _run(args)
    except EthereumBatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0
