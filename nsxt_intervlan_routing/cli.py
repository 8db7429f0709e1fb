"""
Command-line host for the NSX-T segment port provider.

Drives the provider, the segment_port resource and the segment_ports data
source directly against an NSX Manager, one lifecycle call per command.

USAGE:
    # Check a configuration file without touching NSX
    nsxt-intervlan-routing validate --config ports.yaml

    # Create or update every port in a configuration file
    nsxt-intervlan-routing apply --config ports.yaml

    # Inspect, import and delete single ports
    nsxt-intervlan-routing get --segment-id SEG --port-id PORT
    nsxt-intervlan-routing import --segment-id SEG PORT
    nsxt-intervlan-routing delete --segment-id SEG --port-id PORT

    # List or export every port on a segment
    nsxt-intervlan-routing list --segment-id SEG
    nsxt-intervlan-routing export --segment-id SEG --output data/ --generate-imports

CONFIGURATION FILE:
    provider:
      host: nsx-manager.example.com
      username: admin
      insecure: true
    segment_ports:
      - segment_id: 4d4c0f0a-6c50-420b-90f1-68fb7585cda4
        port_id: 060af2c2-e9ff-4686-866c-c0daab1748d6
        segment_port:
          id: 060af2c2-e9ff-4686-866c-c0daab1748d6
          display_name: web-01
          resource_type: SegmentPort
          admin_state: UP
          attachment:
            id: c3d4e5f6-vif-parent
            type: PARENT
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from nsxt_intervlan_routing import __version__
from nsxt_intervlan_routing.config import ProviderConfig
from nsxt_intervlan_routing.export import export_segment_ports
from nsxt_intervlan_routing.framework import Diagnostics
from nsxt_intervlan_routing.provider import NsxtIntervlanRoutingProvider
from nsxt_intervlan_routing.schemas import validate_config_document
from nsxt_intervlan_routing.segment_port_resource import SegmentPortResource, SegmentPortResourceModel
from nsxt_intervlan_routing.segment_ports_data_source import SegmentPortsDataSource

LOG = logging.getLogger(__name__)

EPILOG = """
Environment Variables:
    NSXT_HOSTNAME  NSX Manager hostname (alternative to --host)
    NSXT_USERNAME  API username (alternative to --username)
    NSXT_PASSWORD  API password (alternative to --password)
    NSXT_INSECURE  Skip TLS verification (alternative to --insecure)

Precedence: command-line flag > provider block in --config > environment > default
"""


# =============================================================================
# HELPERS
# =============================================================================

def load_yaml_file(file_path: Path) -> Optional[Dict[str, Any]]:
    """Load and parse a YAML file; prints the problem and returns None on failure."""
    try:
        with open(file_path, "r") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        print(f"ERROR: Failed to parse YAML file {file_path}: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        print(f"ERROR: File not found: {file_path}", file=sys.stderr)
        return None


def dump_yaml(data: Any) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True, width=120)


def provider_config_from_args(args: argparse.Namespace, document: Optional[Dict[str, Any]] = None) -> ProviderConfig:
    config = ProviderConfig.from_dict((document or {}).get("provider"))

    if args.host:
        config.host = args.host
    if args.username:
        config.username = args.username
    if args.password_file:
        # Read from file (best for passwords with special characters like !)
        config.password = args.password_file.read_text().strip()
    elif args.password:
        config.password = args.password
    if args.insecure is not None:
        config.insecure = args.insecure

    return config


def report(diags: Diagnostics) -> bool:
    """Print diagnostics to stderr; returns True when there were no errors."""
    diags.print_results(file=sys.stderr)
    return not diags.has_error()


def configure_provider(args: argparse.Namespace, document: Optional[Dict[str, Any]] = None):
    provider = NsxtIntervlanRoutingProvider(version=__version__)
    configured = provider.configure(provider_config_from_args(args, document))
    if not report(configured.diagnostics):
        return None
    return configured.provider_data


def _resource(client) -> SegmentPortResource:
    resource = SegmentPortResource()
    resource.configure(client)
    return resource


def _data_source(client) -> SegmentPortsDataSource:
    data_source = SegmentPortsDataSource()
    data_source.configure(client)
    return data_source


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_validate(args: argparse.Namespace) -> int:
    print(f"Validating {args.config}")
    document = load_yaml_file(args.config)
    diags = validate_config_document(document, args.config.name)

    if report(diags):
        count = len((document or {}).get("segment_ports") or [])
        print(f"\n[OK] Validation passed ({count} segment port(s))")
        return 0
    print(f"\n[FAIL] Validation failed with {len(diags.errors)} error(s)")
    return 1


def cmd_apply(args: argparse.Namespace) -> int:
    document = load_yaml_file(args.config)
    diags = validate_config_document(document, args.config.name)
    if not report(diags):
        return 1

    client = configure_provider(args, document)
    if client is None:
        return 1
    resource = _resource(client)

    failures = 0
    entries: List[Dict[str, Any]] = document.get("segment_ports") or []
    for entry in entries:
        plan = SegmentPortResourceModel.from_dict(entry)
        label = f"{plan.segment_id}/{plan.port_id}"

        current = resource.read(plan)
        if current.diagnostics.has_error():
            report(current.diagnostics)
            failures += 1
            continue

        if current.removed:
            result = resource.create(plan)
            action = "Created"
        else:
            result = resource.update(plan, current.state)
            action = "Updated"

        if report(result.diagnostics):
            print(f"  {action} {label}")
        else:
            failures += 1

    print()
    print(f"Applied {len(entries) - failures} of {len(entries)} segment port(s)")
    return 0 if failures == 0 else 1


def cmd_get(args: argparse.Namespace) -> int:
    client = configure_provider(args)
    if client is None:
        return 1

    result = _resource(client).read(SegmentPortResourceModel(segment_id=args.segment_id, port_id=args.port_id))
    if not report(result.diagnostics):
        return 1
    if result.removed:
        print(f"Segment port {args.port_id} not found on segment {args.segment_id}", file=sys.stderr)
        return 1

    print(dump_yaml(result.state.to_dict()))
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    client = configure_provider(args)
    if client is None:
        return 1
    resource = _resource(client)

    imported = resource.import_state(args.import_id)
    state = imported.state
    state.segment_id = args.segment_id

    result = resource.read(state)
    if not report(result.diagnostics):
        return 1
    if result.removed:
        print(f"Cannot import {args.import_id}: not found on segment {args.segment_id}", file=sys.stderr)
        return 1

    print(dump_yaml({"segment_ports": [result.state.to_dict()]}))
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    client = configure_provider(args)
    if client is None:
        return 1

    result = _resource(client).delete(SegmentPortResourceModel(segment_id=args.segment_id, port_id=args.port_id))
    if not report(result.diagnostics):
        return 1
    print(f"Deleted segment port {args.port_id} from segment {args.segment_id}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    client = configure_provider(args)
    if client is None:
        return 1

    result = _data_source(client).read(args.segment_id)
    if not report(result.diagnostics):
        return 1
    print(dump_yaml(result.state.to_dict()))
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    client = configure_provider(args)
    if client is None:
        return 1

    result = _data_source(client).read(args.segment_id)
    if not report(result.diagnostics):
        return 1

    counts = export_segment_ports(
        args.segment_id,
        result.state.segment_ports,
        args.output,
        generate_imports=args.generate_imports,
        module=args.module,
    )
    for path in counts["files"]:
        print(f"  Wrote {path}")
    print(f"Exported {counts['ports']} segment port(s)")
    return 0


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    connection = argparse.ArgumentParser(add_help=False)
    connection.add_argument("--host", help="NSX Manager hostname, IP or URL (or set NSXT_HOSTNAME)")
    connection.add_argument("--username", help="NSX API username (or set NSXT_USERNAME)")
    connection.add_argument("--password", help="NSX API password (or set NSXT_PASSWORD)")
    connection.add_argument(
        "--password-file",
        type=Path,
        help="Read NSX API password from file (avoids shell escaping issues with special characters)",
    )
    connection.add_argument(
        "--insecure",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip TLS certificate verification; --no-insecure verifies (or set NSXT_INSECURE)",
    )

    parser = argparse.ArgumentParser(
        prog="nsxt-intervlan-routing",
        description="Manage NSX-T segment ports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="Validate a configuration file")
    p.add_argument("--config", "-c", type=Path, required=True, help="YAML configuration file")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("apply", parents=[connection], help="Create or update the ports in a configuration file")
    p.add_argument("--config", "-c", type=Path, required=True, help="YAML configuration file")
    p.set_defaults(func=cmd_apply)

    p = sub.add_parser("get", parents=[connection], help="Read one segment port")
    p.add_argument("--segment-id", required=True)
    p.add_argument("--port-id", required=True)
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("import", parents=[connection], help="Import an existing segment port by port id")
    p.add_argument("--segment-id", required=True)
    p.add_argument("import_id", help="Port id of the existing segment port")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("delete", parents=[connection], help="Delete one segment port")
    p.add_argument("--segment-id", required=True)
    p.add_argument("--port-id", required=True)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("list", parents=[connection], help="List the ports of a segment")
    p.add_argument("--segment-id", required=True)
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("export", parents=[connection], help="Export the ports of a segment to YAML")
    p.add_argument("--segment-id", required=True)
    p.add_argument("--output", "-o", default="data", help="Output directory (default: data)")
    p.add_argument(
        "--generate-imports",
        action="store_true",
        help="Also write Terraform import blocks (imports.tf)",
    )
    p.add_argument("--module", default="", help="Module name to prefix import addresses with")
    p.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
