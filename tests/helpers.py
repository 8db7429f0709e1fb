from nsxt_intervlan_routing.models import (
    PortAddressBindingEntry,
    PortAttachment,
    SegmentPort,
)

SERVER = "https://nsxm-l-01a.corp.local"
SEGMENT_ID = "4d4c0f0a-6c50-420b-90f1-68fb7585cda4"
PORT_ID = "060af2c2-e9ff-4686-866c-c0daab1748d6"
CHILD_PORT_ID = "7b1f4c0e-2a6d-4f0b-9d55-3c8e1a0f4b21"

LIST_URL = f"{SERVER}/policy/api/v1/infra/segments/{SEGMENT_ID}/ports"
PORT_URL = f"{LIST_URL}/{PORT_ID}"
CHILD_PORT_URL = f"{LIST_URL}/{CHILD_PORT_ID}"
SESSION_URL = f"{SERVER}/api/session/create"


def parent_port() -> SegmentPort:
    return SegmentPort(
        id=PORT_ID,
        display_name="web-01",
        description="web-01 parent port",
        admin_state="UP",
        attachment=PortAttachment(id="c3d4e5f6-vif-parent", type="PARENT"),
    )


def child_port() -> SegmentPort:
    return SegmentPort(
        id=CHILD_PORT_ID,
        display_name="web-01-vlan1001",
        admin_state="UP",
        address_bindings=[
            PortAddressBindingEntry(
                ip_address="169.254.254.169",
                mac_address="00:50:56:ad:5e:64",
                vlan_id="1001",
            )
        ],
        attachment=PortAttachment(
            id="d4e5f6a7-vif-child",
            type="CHILD",
            context_id="c3d4e5f6-vif-parent",
            traffic_tag="1001",
            app_id="web-01-vlan1001",
        ),
    )


def nsx_port_payload(port: SegmentPort) -> dict:
    """A port as NSX returns it, including server-side bookkeeping fields."""
    payload = port.to_dict()
    payload.update({
        "path": f"/infra/segments/{SEGMENT_ID}/ports/{port.id}",
        "parent_path": f"/infra/segments/{SEGMENT_ID}",
        "_revision": 3,
        "_create_user": "admin",
        "_system_owned": False,
    })
    return payload
