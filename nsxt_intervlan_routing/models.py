"""
Segment Port Data Model
=======================

Plain data-transfer objects for the NSX-T Policy API segment port endpoints.

Each object converts explicitly between its Python form and the JSON wire
form used by the NSX Manager:

    to_dict()    -> dictionary ready for json.dumps() / a PATCH body
    from_dict()  -> object built from a decoded GET response

Wire Format (PATCH /policy/api/v1/infra/segments/{segment}/ports/{port}):
    {
      "id": "060af2c2-e9ff-4686-866c-c0daab1748d6",
      "display_name": "web-01-child",
      "resource_type": "SegmentPort",
      "admin_state": "UP",
      "address_bindings": [
        {"ip_address": "169.254.254.169",
         "mac_address": "00:50:56:ad:5e:64",
         "vlan_id": "1001"}
      ],
      "attachment": {"id": "...", "type": "CHILD", "context_id": "...",
                     "traffic_tag": "1001", "app_id": "web-01-child"}
    }

Fields set to None are left out of the wire form. Keys the server adds on its
own (path, _revision, _create_user, ...) are ignored when decoding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# =============================================================================
# CONSTANTS
# =============================================================================

SEGMENT_PORT_RESOURCE_TYPE = "SegmentPort"

ADMIN_STATE_UP = "UP"
ADMIN_STATE_DOWN = "DOWN"
ADMIN_STATES = (ADMIN_STATE_UP, ADMIN_STATE_DOWN)

ATTACHMENT_TYPE_PARENT = "PARENT"
ATTACHMENT_TYPE_CHILD = "CHILD"
ATTACHMENT_TYPES = (ATTACHMENT_TYPE_PARENT, ATTACHMENT_TYPE_CHILD)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


# =============================================================================
# ADDRESS BINDINGS & ATTACHMENTS
# =============================================================================

@dataclass
class PortAddressBindingEntry:
    """A static IP/MAC/VLAN association enforced on a segment port."""

    ip_address: Optional[str] = None
    mac_address: Optional[str] = None
    vlan_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "ip_address": self.ip_address,
            "mac_address": self.mac_address,
            "vlan_id": self.vlan_id,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PortAddressBindingEntry":
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object for an address binding, got {type(data).__name__}")
        # NSX reports vlan_id as a number on some versions
        vlan_id = data.get("vlan_id")
        return cls(
            ip_address=data.get("ip_address"),
            mac_address=data.get("mac_address"),
            vlan_id=str(vlan_id) if vlan_id is not None else None,
        )


@dataclass
class PortAttachment:
    """
    What is plugged into a segment port and how.

    Attachment Types:
        PARENT: directly attached workload, only id is meaningful
        CHILD:  sub-interface carrying tagged VLAN traffic; context_id points
                at the PARENT attachment, traffic_tag carries the VLAN and
                app_id names the child (often the same as the display name)
    """

    id: Optional[str] = None
    type: Optional[str] = None
    context_id: Optional[str] = None
    traffic_tag: Optional[str] = None
    app_id: Optional[str] = None
    allocate_addresses: Optional[str] = None

    @property
    def is_child(self) -> bool:
        return self.type == ATTACHMENT_TYPE_CHILD

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "type": self.type,
            "context_id": self.context_id,
            "traffic_tag": self.traffic_tag,
            "app_id": self.app_id,
            "allocate_addresses": self.allocate_addresses,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PortAttachment":
        traffic_tag = data.get("traffic_tag")
        return cls(
            id=data.get("id"),
            type=data.get("type"),
            context_id=data.get("context_id"),
            traffic_tag=str(traffic_tag) if traffic_tag is not None else None,
            app_id=data.get("app_id"),
            allocate_addresses=data.get("allocate_addresses"),
        )


# =============================================================================
# SEGMENT PORT
# =============================================================================

@dataclass
class SegmentPort:
    """
    The managed entity: a virtual port attached to an NSX-T segment.

    A SegmentPort is always transmitted whole. Updates reuse the same PATCH
    as creation, so to_dict() must describe the complete desired object.
    """

    id: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    resource_type: str = SEGMENT_PORT_RESOURCE_TYPE
    admin_state: Optional[str] = None
    address_bindings: List[PortAddressBindingEntry] = field(default_factory=list)
    attachment: Optional[PortAttachment] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = _drop_none({
            "id": self.id,
            "display_name": self.display_name,
            "description": self.description,
            "resource_type": self.resource_type,
            "admin_state": self.admin_state,
        })
        if self.address_bindings:
            data["address_bindings"] = [b.to_dict() for b in self.address_bindings]
        if self.attachment is not None:
            data["attachment"] = self.attachment.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentPort":
        """
        Build a SegmentPort from a decoded NSX API object.

        Raises:
            ValueError: If data is not a JSON object, or a nested field has
                        the wrong shape (e.g. address_bindings not a list)
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object for SegmentPort, got {type(data).__name__}")

        bindings = data.get("address_bindings") or []
        if not isinstance(bindings, list):
            raise ValueError("address_bindings must be a list")

        attachment = data.get("attachment")
        if attachment is not None and not isinstance(attachment, dict):
            raise ValueError("attachment must be an object")

        return cls(
            id=data.get("id"),
            display_name=data.get("display_name"),
            description=data.get("description"),
            resource_type=data.get("resource_type", SEGMENT_PORT_RESOURCE_TYPE),
            admin_state=data.get("admin_state"),
            address_bindings=[PortAddressBindingEntry.from_dict(b) for b in bindings],
            attachment=PortAttachment.from_dict(attachment) if attachment is not None else None,
        )


# =============================================================================
# REQUEST / RESPONSE ENVELOPES
# =============================================================================

@dataclass
class PatchSegmentPortRequest:
    """Identity pair plus the full desired SegmentPort for a PATCH call."""

    segment_id: str
    port_id: str
    segment_port: SegmentPort


@dataclass
class ListSegmentPortsResponse:
    """Body of GET /policy/api/v1/infra/segments/{segment}/ports."""

    result_count: int = 0
    results: List[SegmentPort] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ListSegmentPortsResponse":
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object for the port list, got {type(data).__name__}")

        results = data.get("results") or []
        if not isinstance(results, list):
            raise ValueError("results must be a list")

        ports = [SegmentPort.from_dict(item) for item in results]
        return cls(result_count=data.get("result_count", len(ports)), results=ports)
