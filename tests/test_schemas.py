import copy

import pytest

from helpers import CHILD_PORT_ID, PORT_ID, SEGMENT_ID, child_port, parent_port
from nsxt_intervlan_routing.schemas import validate_config_document


def document():
    return {
        "provider": {"host": "nsx.example.com", "username": "admin", "insecure": True},
        "segment_ports": [
            {"segment_id": SEGMENT_ID, "port_id": PORT_ID, "segment_port": parent_port().to_dict()},
            {"segment_id": SEGMENT_ID, "port_id": CHILD_PORT_ID, "segment_port": child_port().to_dict()},
        ],
    }


def test_valid_document_passes():
    diags = validate_config_document(document())

    assert not diags.has_error()
    assert diags.warnings == []


def test_empty_document_is_an_error():
    assert validate_config_document(None).has_error()


def test_child_port_requires_address_bindings():
    doc = document()
    del doc["segment_ports"][1]["segment_port"]["address_bindings"]

    diags = validate_config_document(doc)

    assert diags.has_error()
    assert any("address_bindings" in e.summary for e in diags.errors)


def test_child_port_requires_context_and_traffic_tag():
    doc = document()
    attachment = doc["segment_ports"][1]["segment_port"]["attachment"]
    del attachment["context_id"]
    del attachment["traffic_tag"]

    diags = validate_config_document(doc)

    assert len(diags.errors) == 2


def test_parent_port_needs_no_bindings():
    doc = document()
    doc["segment_ports"] = doc["segment_ports"][:1]

    assert not validate_config_document(doc).has_error()


def test_enums_and_resource_type_are_enforced():
    doc = document()
    port = doc["segment_ports"][0]["segment_port"]
    port["admin_state"] = "up"
    port["attachment"]["type"] = "SIBLING"
    port["resource_type"] = "LogicalPort"

    diags = validate_config_document(doc)

    assert len(diags.errors) == 3


@pytest.mark.parametrize("field", ["admin_state", "attachment", "resource_type"])
def test_segment_port_required_fields(field):
    doc = document()
    del doc["segment_ports"][0]["segment_port"][field]

    diags = validate_config_document(doc)

    assert [e.summary for e in diags.errors] == [f"config: '{field}' is a required property"]


def test_attachment_requires_id():
    doc = document()
    del doc["segment_ports"][0]["segment_port"]["attachment"]["id"]

    diags = validate_config_document(doc)

    assert len(diags.errors) == 1
    assert diags.errors[0].attribute == "segment_ports.0.segment_port.attachment"


def test_binding_needs_all_three_addresses():
    doc = document()
    doc["segment_ports"][1]["segment_port"]["address_bindings"] = [{"vlan_id": "1001"}]

    diags = validate_config_document(doc)

    assert len(diags.errors) == 2
    assert all("address_bindings.0" in e.attribute for e in diags.errors)


def test_unknown_provider_setting_is_rejected():
    doc = document()
    doc["provider"]["port"] = 443

    assert validate_config_document(doc).has_error()


def test_duplicate_ports_are_rejected():
    doc = document()
    doc["segment_ports"].append(copy.deepcopy(doc["segment_ports"][0]))

    diags = validate_config_document(doc)

    assert [e.summary for e in diags.errors] == [
        f"Duplicate segment port: '{PORT_ID}' on segment '{SEGMENT_ID}'"
    ]


def test_mismatched_port_id_warns():
    doc = document()
    doc["segment_ports"][0]["segment_port"]["id"] = "something-else"

    diags = validate_config_document(doc)

    assert not diags.has_error()
    assert len(diags.warnings) == 1


def test_child_with_unknown_parent_warns():
    doc = document()
    doc["segment_ports"][1]["segment_port"]["attachment"]["context_id"] = "missing-parent-vif"

    diags = validate_config_document(doc)

    assert not diags.has_error()
    assert "missing-parent-vif" in diags.warnings[0].summary
