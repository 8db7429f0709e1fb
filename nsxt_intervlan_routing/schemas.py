"""
Declarative schemas for the provider, the segment_port resource and the
segment_ports data source, plus the configuration checks built on them.

Schemas are JSON Schema (draft 2020-12) documents. validate_against_schema()
reports every violation as an error diagnostic instead of stopping at the
first one, so a single run shows everything wrong with a configuration file.
"""

from __future__ import annotations

from typing import Any, Dict, List, Set, Tuple

from jsonschema import Draft202012Validator

from nsxt_intervlan_routing.framework import Diagnostics
from nsxt_intervlan_routing.models import (
    ADMIN_STATES,
    ATTACHMENT_TYPE_CHILD,
    ATTACHMENT_TYPES,
    SEGMENT_PORT_RESOURCE_TYPE,
)

PROVIDER_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "nsxt-intervlan-routing provider",
    "description": "Interface with the NSX API.",
    "type": "object",
    "properties": {
        "insecure": {"type": "boolean", "description": "Allow insecure SSL connections"},
        "host": {"type": "string", "description": "The hostname or IP address of the NSX API."},
        "username": {"type": "string", "description": "The username used to authenticate the API calls to NSX."},
        "password": {
            "type": "string",
            "description": "The password used to authenticate the API calls to NSX.",
            "writeOnly": True,
        },
    },
    "additionalProperties": False,
}

ADDRESS_BINDING_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "ip_address": {"type": "string", "description": "IP address of segment port"},
        "mac_address": {"type": "string", "description": "MAC address of segment port"},
        "vlan_id": {"type": "string", "description": "VLAN ID associated with this segment port"},
    },
    "required": ["ip_address", "mac_address", "vlan_id"],
    "additionalProperties": False,
}

ATTACHMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "description": "Port attachment ID. VIF UUID in NSX."},
        "context_id": {
            "type": "string",
            "description": "Attachment UUID of the PARENT port. Only required when type is CHILD.",
        },
        "traffic_tag": {
            "type": "string",
            "description": "Traffic tag associated with this port. Only required when type is CHILD.",
        },
        "app_id": {
            "type": "string",
            "description": "Application ID associated with this port. Only required when type is CHILD.",
        },
        "allocate_addresses": {"type": "string"},
        "type": {
            "enum": list(ATTACHMENT_TYPES),
            "description": "Type of attachment. Case sensitive. Can be either PARENT or CHILD.",
        },
    },
    "required": ["id", "type"],
    "additionalProperties": False,
}

SEGMENT_PORT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "description": "Id of segment port"},
        "display_name": {"type": "string", "description": "Display name of segment port"},
        "description": {"type": "string", "description": "Description of segment port"},
        "resource_type": {
            "const": SEGMENT_PORT_RESOURCE_TYPE,
            "description": "Resource type of segment port. Can only be set to 'SegmentPort'",
        },
        "admin_state": {"enum": list(ADMIN_STATES), "description": "Admin state of the segment port"},
        "address_bindings": {
            "type": "array",
            "items": ADDRESS_BINDING_SCHEMA,
            "description": "List of IP address bindings",
        },
        "attachment": ATTACHMENT_SCHEMA,
    },
    "required": ["id", "display_name", "resource_type", "admin_state", "attachment"],
    "additionalProperties": False,
    # CHILD ports carry tagged traffic for a PARENT and need bindings to match on
    "if": {
        "properties": {"attachment": {"properties": {"type": {"const": ATTACHMENT_TYPE_CHILD}}}},
        "required": ["attachment"],
    },
    "then": {
        "required": ["address_bindings"],
        "properties": {
            "address_bindings": {"minItems": 1},
            "attachment": {"required": ["context_id", "traffic_tag"]},
        },
    },
}

SEGMENT_PORT_RESOURCE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "segment_port",
    "description": "Manage a segment port.",
    "type": "object",
    "properties": {
        "segment_id": {"type": "string", "minLength": 1, "description": "Identifier for this segment."},
        "port_id": {"type": "string", "minLength": 1, "description": "Identifier for this port."},
        "segment_port": SEGMENT_PORT_SCHEMA,
    },
    "required": ["segment_id", "port_id", "segment_port"],
    "additionalProperties": False,
}

SEGMENT_PORTS_DATA_SOURCE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "segment_ports",
    "description": "List all Segment Ports.",
    "type": "object",
    "properties": {
        "segment_id": {"type": "string", "minLength": 1, "description": "Identifier for this segment."},
    },
    "required": ["segment_id"],
    "additionalProperties": False,
}

CONFIG_FILE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "segment port configuration file",
    "type": "object",
    "properties": {
        "provider": PROVIDER_SCHEMA,
        "segment_ports": {"type": "array", "items": SEGMENT_PORT_RESOURCE_SCHEMA},
    },
    "additionalProperties": False,
}


def validate_against_schema(
    data: Any, schema: Dict[str, Any], name: str, diags: Diagnostics
) -> None:
    """Validate data against a JSON schema, appending one error per violation."""
    validator = Draft202012Validator(schema)
    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path]):
        path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        diags.add_error(f"{name}: {error.message}", attribute=path)


def check_duplicate_ports(ports: List[Dict[str, Any]], diags: Diagnostics) -> Set[Tuple[str, str]]:
    """Flag (segment_id, port_id) pairs that appear more than once."""
    seen: Set[Tuple[str, str]] = set()
    duplicates: Set[Tuple[str, str]] = set()

    for port in ports:
        key = (port.get("segment_id", ""), port.get("port_id", ""))
        if key in seen:
            duplicates.add(key)
        seen.add(key)

    for segment_id, port_id in sorted(duplicates):
        diags.add_error(f"Duplicate segment port: '{port_id}' on segment '{segment_id}'")

    return seen


def check_port_id_matches(ports: List[Dict[str, Any]], diags: Diagnostics) -> None:
    """Warn when segment_port.id differs from the port_id used in the URL."""
    for port in ports:
        port_id = port.get("port_id")
        body_id = (port.get("segment_port") or {}).get("id")
        if port_id and body_id and port_id != body_id:
            diags.add_warning(
                f"Segment port '{port_id}' has segment_port.id '{body_id}'; "
                "NSX addresses the port by port_id"
            )


def check_child_parents(ports: List[Dict[str, Any]], diags: Diagnostics) -> None:
    """
    Warn when a CHILD port points at a context_id that no PARENT port in the
    same file carries. The parent may exist outside the file, so this is only
    a warning.
    """
    parent_ids: Set[str] = set()
    for port in ports:
        attachment = (port.get("segment_port") or {}).get("attachment") or {}
        if attachment.get("type") != ATTACHMENT_TYPE_CHILD and attachment.get("id"):
            parent_ids.add(attachment["id"])

    for port in ports:
        attachment = (port.get("segment_port") or {}).get("attachment") or {}
        context_id = attachment.get("context_id")
        if attachment.get("type") == ATTACHMENT_TYPE_CHILD and context_id and context_id not in parent_ids:
            diags.add_warning(
                f"Child port '{port.get('port_id')}' references unknown parent attachment: '{context_id}'"
            )


def validate_config_document(data: Any, name: str = "config") -> Diagnostics:
    """
    Run every configuration check over a loaded YAML document.

    Checks:
        - Schema compliance (provider block and each segment port)
        - Duplicate (segment_id, port_id) pairs
        - port_id / segment_port.id mismatches
        - CHILD ports whose parent attachment is not declared
    """
    diags = Diagnostics()
    if data is None:
        diags.add_error(f"{name}: document is empty")
        return diags

    validate_against_schema(data, CONFIG_FILE_SCHEMA, name, diags)
    if diags.has_error() or not isinstance(data, dict):
        return diags

    ports = data.get("segment_ports") or []
    check_duplicate_ports(ports, diags)
    check_port_id_matches(ports, diags)
    check_child_parents(ports, diags)
    return diags
