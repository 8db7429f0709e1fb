"""
Segment Port Exporter
=====================

Writes the ports of a segment to YAML in the same shape the CLI `apply`
command reads, so an existing segment can be brought under management:

OUTPUT FILES:
    - segment_ports.yaml : One entry per port (segment_id, port_id, segment_port)
    - imports.tf         : Terraform import blocks (optional)

Server-side bookkeeping fields (path, _revision, ...) never reach the output
because ports pass through the SegmentPort model first.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from nsxt_intervlan_routing.models import SegmentPort
from nsxt_intervlan_routing.provider import PROVIDER_TYPE_NAME

SEGMENT_PORTS_FILE = "segment_ports.yaml"
IMPORTS_FILE = "imports.tf"

SEGMENT_PORTS_HEADER = """# =============================================================================
# NSX-T Segment Ports Configuration
# =============================================================================
# Exported from NSX-T Manager
#
# ATTACHMENT TYPES:
#   PARENT: directly attached workload (attachment.id is the VIF UUID)
#   CHILD:  tagged sub-interface; needs attachment.context_id (the PARENT
#           attachment id), attachment.traffic_tag and address_bindings
# =============================================================================
"""


def _str_representer(dumper, data):
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


class _ExportDumper(yaml.SafeDumper):
    pass


_ExportDumper.add_representer(str, _str_representer)


def segment_port_entries(segment_id: str, ports: List[SegmentPort]) -> List[Dict[str, Any]]:
    """Turn listed ports into resource configuration entries."""
    entries = []
    for port in ports:
        if not port.id:
            continue
        entries.append({
            "segment_id": segment_id,
            "port_id": port.id,
            "segment_port": port.to_dict(),
        })
    return entries


def write_yaml(path: Path, data: Dict[str, Any], header: str = "") -> None:
    """
    Write data to a YAML file with an optional header comment.

    Block style, key order preserved, multiline strings written with |.
    """
    with open(path, "w") as f:
        if header:
            f.write(header)
            f.write("\n")
        yaml.dump(
            data,
            f,
            Dumper=_ExportDumper,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
            width=120,
        )


def generate_import_blocks(
    entries: List[Dict[str, Any]],
    resource_name: str = "this",
    module: str = "",
) -> str:
    """
    Generate Terraform import blocks for exported segment ports.

    Import Block Format (Terraform 1.5+):
        import {
          to = nsxt-intervlan-routing_segment_port.this["<port_id>"]
          id = "<port_id>"
        }

    The import id is the bare port id; segment_id comes from the matching
    configuration entry.

    Args:
        entries:       Entries from segment_port_entries()
        resource_name: Name of the for_each resource in configuration
        module:        Optional module name; adds a "module.<name>." prefix
    """
    prefix = f"module.{module}." if module else ""
    resource_type = f"{PROVIDER_TYPE_NAME}_segment_port"

    lines = [
        "# =============================================================================",
        "# Terraform Import Blocks",
        "# =============================================================================",
        "# Generated by the segment port exporter",
        "#",
        "# USAGE:",
        "#   1. Review this file and remove any ports you don't want to import",
        "#   2. Run: terraform plan",
        "#   3. Verify the plan shows 'import' actions (not 'create')",
        "#   4. Run: terraform apply",
        "#   5. After successful import, you can delete this file",
        "# =============================================================================",
        "",
    ]

    for entry in entries:
        port_id = entry["port_id"]
        lines.append(f"# segment: {entry['segment_id']}")
        lines.append("import {")
        lines.append(f'  to = {prefix}{resource_type}.{resource_name}["{port_id}"]')
        lines.append(f'  id = "{port_id}"')
        lines.append("}")
        lines.append("")

    return "\n".join(lines)


def export_segment_ports(
    segment_id: str,
    ports: List[SegmentPort],
    output_dir: str,
    generate_imports: bool = False,
    module: str = "",
) -> Dict[str, Any]:
    """
    Write segment_ports.yaml (and optionally imports.tf) for one segment.

    Returns:
        Dictionary with "ports" (count written) and "files" (paths written)
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    entries = segment_port_entries(segment_id, ports)
    files = []

    ports_file = output_path / SEGMENT_PORTS_FILE
    write_yaml(ports_file, {"segment_ports": entries}, header=SEGMENT_PORTS_HEADER)
    files.append(ports_file)

    if generate_imports:
        imports_file = output_path / IMPORTS_FILE
        with open(imports_file, "w") as f:
            f.write(generate_import_blocks(entries, module=module))
        files.append(imports_file)

    return {"ports": len(entries), "files": files}
