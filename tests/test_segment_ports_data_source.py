import pytest
import requests
import responses

from helpers import LIST_URL, SEGMENT_ID, child_port, nsx_port_payload, parent_port
from nsxt_intervlan_routing.segment_ports_data_source import SegmentPortsDataSource


@pytest.fixture
def data_source(client):
    ds = SegmentPortsDataSource()
    ds.configure(client)
    return ds


def test_metadata_type_name():
    assert SegmentPortsDataSource().metadata("nsxt-intervlan-routing") == "nsxt-intervlan-routing_segment_ports"


@responses.activate
def test_empty_results_yield_no_ports(data_source):
    responses.add(responses.GET, LIST_URL, json={"result_count": 0, "results": []}, status=200)

    resp = data_source.read(SEGMENT_ID)

    assert not resp.diagnostics.has_error()
    assert resp.state.segment_id == SEGMENT_ID
    assert resp.state.segment_ports == []


@responses.activate
def test_lists_parent_and_child_ports(data_source):
    responses.add(
        responses.GET,
        LIST_URL,
        json={
            "result_count": 2,
            "results": [nsx_port_payload(parent_port()), nsx_port_payload(child_port())],
            "sort_by": "display_name",
        },
        status=200,
    )

    resp = data_source.read(SEGMENT_ID)

    assert resp.state.segment_ports == [parent_port(), child_port()]
    assert resp.state.to_dict()["segment_ports"][1]["resource_type"] == "SegmentPort"


@responses.activate
def test_non_200_is_fatal(data_source):
    responses.add(responses.GET, LIST_URL, status=404)

    resp = data_source.read(SEGMENT_ID)

    assert resp.diagnostics.has_error()
    assert resp.state is None


@responses.activate
def test_transport_error_is_fatal(data_source):
    responses.add(responses.GET, LIST_URL, body=requests.exceptions.ConnectionError("no route to host"))

    resp = data_source.read(SEGMENT_ID)

    assert resp.diagnostics.errors[0].summary == f"Unable to Read segment ports for {SEGMENT_ID}"


@responses.activate
def test_malformed_results_is_format_error(data_source):
    responses.add(responses.GET, LIST_URL, json={"results": {"id": "p1"}}, status=200)

    resp = data_source.read(SEGMENT_ID)

    assert resp.diagnostics.errors[0].summary == "Invalid format received for segment ports"


def test_unconfigured_data_source_reports_error():
    resp = SegmentPortsDataSource().read(SEGMENT_ID)

    assert resp.diagnostics.has_error()


def test_validate_config_requires_segment_id():
    assert SegmentPortsDataSource().validate_config({}).has_error()
    assert not SegmentPortsDataSource().validate_config({"segment_id": SEGMENT_ID}).has_error()
