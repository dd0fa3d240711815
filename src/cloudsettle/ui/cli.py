from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cloudsettle.app import (
    add_route,
    allocate_floating_ip_from_pool,
    delete_cluster,
    remove_route,
    update_cluster,
    wait_cluster_running,
)
from cloudsettle.config import configure_logging
from cloudsettle.domain.cluster import ClusterChange
from cloudsettle.domain.states import ClusterStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_SWITCHES = {"on": True, "true": True, "yes": True, "off": False, "false": False, "no": False}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive cloud resources to a settled state")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every observed status while polling",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    cluster = subparsers.add_parser("cluster", help="Managed Kubernetes cluster commands")
    cluster_sub = cluster.add_subparsers(dest="cluster_command", required=True)

    cluster_wait = cluster_sub.add_parser("wait", help="Wait for a new cluster to run")
    cluster_wait.add_argument("cluster_id", type=str, help="Cluster UUID")

    cluster_update = cluster_sub.add_parser("update", help="Update a cluster phase by phase")
    cluster_update.add_argument("cluster_id", type=str, help="Cluster UUID")
    cluster_update.add_argument(
        "--template-id",
        type=str,
        help="Cluster template to upgrade to",
    )
    cluster_update.add_argument(
        "--master-flavor",
        type=str,
        help="Flavor id to resize the master nodes to",
    )
    cluster_update.add_argument(
        "--label",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Label to set; may be repeated and is merged into the existing labels",
    )
    cluster_update.add_argument(
        "--security-policy-sync",
        type=str,
        help="Enable or disable security policy sync (on/off)",
    )
    cluster_update.add_argument(
        "--status",
        type=str,
        choices=[str(ClusterStatus.RUNNING), str(ClusterStatus.SHUTOFF)],
        help="Power state the cluster should end up in",
    )

    cluster_delete = cluster_sub.add_parser("delete", help="Delete a cluster and wait")
    cluster_delete.add_argument("cluster_id", type=str, help="Cluster UUID")

    route = subparsers.add_parser("route", help="Static route commands")
    route_sub = route.add_subparsers(dest="route_command", required=True)
    for name, help_text in (
        ("add", "Add a static route to a router"),
        ("remove", "Remove a static route from a router"),
    ):
        route_cmd = route_sub.add_parser(name, help=help_text)
        route_cmd.add_argument("router_id", type=str, help="Router UUID")
        route_cmd.add_argument(
            "--destination",
            type=str,
            required=True,
            help="Destination CIDR",
        )
        route_cmd.add_argument(
            "--next-hop",
            type=str,
            required=True,
            help="Next hop IP address",
        )

    fip = subparsers.add_parser("floatingip", help="Floating IP commands")
    fip_sub = fip.add_subparsers(dest="floatingip_command", required=True)
    fip_allocate = fip_sub.add_parser("allocate", help="Allocate a floating IP")
    fip_allocate.add_argument(
        "--pool-id",
        type=str,
        required=True,
        help="External network to allocate from",
    )
    fip_allocate.add_argument(
        "--subnet-id",
        action="append",
        default=[],
        help="Candidate subnet; may be repeated and is tried in order",
    )
    fip_allocate.add_argument(
        "--port-id",
        type=str,
        help="Optional port to associate the address with",
    )
    fip_allocate.add_argument(
        "--description",
        type=str,
        help="Optional description",
    )

    return parser.parse_args(list(argv))


def _parse_labels(values: Sequence[str]) -> dict[str, str] | None:
    if not values:
        return None
    labels: dict[str, str] = {}
    for value in values:
        key, sep, label = value.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid label (expected KEY=VALUE): {value}")
        labels[key.strip()] = label
    return labels


def _parse_switch(value: str | None) -> bool | None:
    if value is None:
        return None
    try:
        return _SWITCHES[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Invalid switch value: {value}") from None


def _build_change(args: argparse.Namespace) -> ClusterChange:
    return ClusterChange(
        cluster_template_id=args.template_id,
        master_flavor=args.master_flavor,
        labels=_parse_labels(args.label),
        security_policy_sync=_parse_switch(args.security_policy_sync),
        status=ClusterStatus(args.status) if args.status else None,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    configure_logging()
    parsed_args: argparse.Namespace
    change: ClusterChange | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)
        if parsed_args.command == "cluster" and parsed_args.cluster_command == "update":
            change = _build_change(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "cluster":
            if parsed_args.cluster_command == "wait":
                wait_cluster_running(parsed_args.cluster_id)
            elif parsed_args.cluster_command == "update" and change is not None:
                update_cluster(parsed_args.cluster_id, change)
            elif parsed_args.cluster_command == "delete":
                delete_cluster(parsed_args.cluster_id)
            else:
                command = parsed_args.cluster_command
                raise ValueError(f"Unsupported cluster command: {command}")  # noqa: TRY301
        elif parsed_args.command == "route":
            route_action = add_route if parsed_args.route_command == "add" else remove_route
            router = route_action(
                parsed_args.router_id,
                parsed_args.destination,
                parsed_args.next_hop,
            )
            log.info("Router %s now has %d routes", router.id, len(router.routes))
        elif parsed_args.command == "floatingip" and parsed_args.floatingip_command == "allocate":
            allocate_floating_ip_from_pool(
                parsed_args.pool_id,
                subnet_ids=parsed_args.subnet_id,
                port_id=parsed_args.port_id,
                description=parsed_args.description,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
