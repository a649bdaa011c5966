"""
Command-line interface for the Order Request Engine.
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from . import __version__
from .order_request.service import OrderRequestService
from .utils.logging import get_logger, setup_logging

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Order Request Engine - canonicalize and validate client order requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  order-engine --version
  order-engine check-order --client-id CLIENT-1042 --env production
  order-engine check-file snapshots/client-1042.json --json
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Order Request Engine {__version__}",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--log-file",
        help="Log file path",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    order_parser = subparsers.add_parser(
        "check-order",
        help="Load a client's order request from MongoDB and validate it",
    )
    order_parser.add_argument(
        "--client-id",
        type=str,
        required=True,
        help="ID of the client whose order request is checked",
    )
    order_parser.add_argument(
        "--env",
        type=str,
        choices=["staging", "production", "stg", "prod"],
        default="staging",
        help="Database environment (default: staging)",
    )
    order_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the canonical draft and validation result as JSON",
    )

    file_parser = subparsers.add_parser(
        "check-file",
        help="Validate an order request snapshot stored as JSON",
    )
    file_parser.add_argument(
        "path",
        help="Snapshot file with client, catalog, confirmedOrders, orderHistory, boxOrders",
    )
    file_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the canonical draft and validation result as JSON",
    )

    return parser


def resolve_environment(environment: str) -> Tuple[Optional[str], str]:
    """Map an environment alias to its database name and connection-URL variable."""
    env_map = {
        "staging": "stg",
        "stg": "stg",
        "production": "prod",
        "prod": "prod",
    }
    env_key = env_map.get(environment.lower(), "stg")

    db_configs = {
        "stg": {
            "db_name_key": "DB_NAME_STG",
            "connection_url": "DB_CONNECTION_URL_STG",
        },
        "prod": {
            "db_name_key": "DB_NAME_PROD",
            "connection_url": "DB_CONNECTION_URL_PROD",
        },
    }
    config = db_configs[env_key]
    db_name = os.getenv(config["db_name_key"]) or os.getenv("DB_NAME")
    return db_name, config["connection_url"]


def _print_box(lines: List[Tuple[str, Any]]) -> None:
    label_width = max(len(lbl) for lbl, _ in lines)
    inner_width = max(len(f" {lbl.ljust(label_width)} : {val}") for lbl, val in lines)
    print("┌" + "─" * inner_width + "┐")
    for lbl, val in lines:
        line = f" {lbl.ljust(label_width)} : {val}"
        print(f"│{line + ' ' * (inner_width - len(line))}│")
    print("└" + "─" * inner_width + "┘")


def _draft_summary(draft: Dict[str, Any]) -> List[str]:
    service_type = draft.get("serviceType")
    lines = []
    if service_type == "Food":
        day_orders = draft.get("deliveryDayOrders")
        if day_orders:
            for day, order in day_orders.items():
                for sel in order.get("vendorSelections", []):
                    lines.append(f"{day:<10} vendor={sel.get('vendorId') or '-'} items={sel.get('items')}")
        else:
            for sel in draft.get("vendorSelections", []):
                lines.append(f"{'single':<10} vendor={sel.get('vendorId') or '-'} items={sel.get('items')}")
    elif service_type == "Boxes":
        for index, box in enumerate(draft.get("boxOrders", []), start=1):
            lines.append(
                f"Box #{index}: type={box.get('boxTypeId') or '-'} vendor={box.get('vendorId') or '-'} "
                f"qty={box.get('quantity')} items={box.get('items')}"
            )
    elif service_type == "Custom":
        lines.append(f"vendor={draft.get('vendorId') or '-'}")
        for index, item in enumerate(draft.get("customItems", []), start=1):
            if isinstance(item, dict):
                lines.append(f"Item #{index}: {item.get('name')} x{item.get('quantity')} @ {item.get('price')}")
    elif service_type == "Produce":
        lines.append(f"billAmount={draft.get('billAmount')}")
    return lines


def render_report(outcome: Dict[str, Any], source: str, as_json: bool = False) -> int:
    """Print a load-cycle outcome and return the matching exit code."""
    result = outcome["result"]

    if as_json:
        print(json.dumps({"draft": outcome["draft"], "validation": result.to_dict()}, indent=2, default=str))
        return EXIT_OK if result.valid else EXIT_INVALID

    _print_box([
        ("Source", source),
        ("Client ID", outcome["client_id"] or "-"),
        ("Service Type", outcome["service_type"]),
        ("Confirmed Merge", "applied" if outcome["merged"] else "not applied"),
    ])

    print("\nORDER REQUEST:")
    print("=" * 60)
    for line in _draft_summary(outcome["draft"]) or ["(empty)"]:
        print(f"  {line}")

    print("\nVALIDATION:")
    print("=" * 60)
    if result.valid:
        print("  ✅ Order request is valid")
        return EXIT_OK
    for issue in result.issues:
        print(f"  ❌ [{issue.kind}] {issue.message}")
    return EXIT_INVALID


def check_order(client_id: str, environment: str = "staging", as_json: bool = False) -> int:
    """
    Load a client's order request from MongoDB and report its validation.

    Args:
        client_id: ID of the client to check
        environment: Database environment ("staging", "production", "stg", "prod")
        as_json: Print machine-readable output instead of the report

    Returns:
        Exit code
    """
    logger = get_logger("cli")
    logger.info(f"Checking order request for client: {client_id} in {environment} environment")

    load_dotenv(".env")
    db_name, connection_url_env_key = resolve_environment(environment)

    service = OrderRequestService(db_name=db_name, connection_url_env_key=connection_url_env_key)
    outcome = service.load_order_request(client_id)
    return render_report(outcome, f"{environment.upper()} / {db_name or 'default database'}", as_json)


def check_file(path: str, as_json: bool = False) -> int:
    """Validate a JSON snapshot file; see OrderRequestService.check_snapshot for its layout."""
    with open(path, encoding="utf-8") as handle:
        snapshot = json.load(handle)
    outcome = OrderRequestService.check_snapshot(snapshot)
    return render_report(outcome, path, as_json)


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    log_level = "DEBUG" if parsed_args.verbose else "INFO"
    logger = setup_logging(level=log_level, log_file=parsed_args.log_file)

    try:
        if parsed_args.command == "check-order":
            return check_order(
                client_id=parsed_args.client_id,
                environment=parsed_args.env,
                as_json=getattr(parsed_args, "json", False),
            )

        elif parsed_args.command == "check-file":
            return check_file(parsed_args.path, as_json=getattr(parsed_args, "json", False))

        elif not parsed_args.command:
            parser.print_help()
            return EXIT_ERROR

    except Exception as e:
        logger.error(f"Error: {e}")
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
