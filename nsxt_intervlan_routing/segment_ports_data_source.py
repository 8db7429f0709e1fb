"""segment_ports data source: every port on one segment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from nsxt_intervlan_routing.client import NsxtClient, NsxtClientError
from nsxt_intervlan_routing.framework import DataSourceResponse, Diagnostics
from nsxt_intervlan_routing.models import ListSegmentPortsResponse, SegmentPort
from nsxt_intervlan_routing.schemas import SEGMENT_PORTS_DATA_SOURCE_SCHEMA, validate_against_schema

LOG = logging.getLogger(__name__)


@dataclass
class SegmentPortsDataSourceModel:
    segment_id: str = ""
    segment_ports: List[SegmentPort] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segment_id": self.segment_id,
            "segment_ports": [port.to_dict() for port in self.segment_ports],
        }


def new_segment_ports_data_source() -> "SegmentPortsDataSource":
    return SegmentPortsDataSource()


class SegmentPortsDataSource:
    """List all Segment Ports."""

    def __init__(self):
        self.client: Optional[NsxtClient] = None

    def configure(self, provider_data: Any) -> None:
        if provider_data is None:
            return
        if not isinstance(provider_data, NsxtClient):
            LOG.error("Unable to prepare client: unexpected provider data %r", type(provider_data).__name__)
            return
        self.client = provider_data

    def metadata(self, provider_type_name: str) -> str:
        return f"{provider_type_name}_segment_ports"

    def schema(self) -> Dict[str, Any]:
        return SEGMENT_PORTS_DATA_SOURCE_SCHEMA

    def validate_config(self, config: Dict[str, Any]) -> Diagnostics:
        diags = Diagnostics()
        validate_against_schema(config, SEGMENT_PORTS_DATA_SOURCE_SCHEMA, "segment_ports", diags)
        return diags

    def read(self, segment_id: str) -> DataSourceResponse:
        """
        Fetch the ports of a segment.

        Only the first page NSX returns is read; an empty or missing
        "results" array yields an empty list.
        """
        LOG.debug("Preparing to read segment ports data source for %s", segment_id)
        resp = DataSourceResponse()
        if self.client is None:
            resp.diagnostics.add_error(
                "Unconfigured segment ports data source",
                "The provider has not been configured; no NSX-T client is available.",
            )
            return resp

        try:
            ports_response = self.client.list_segment_ports(segment_id)
        except (requests.exceptions.RequestException, NsxtClientError) as e:
            resp.diagnostics.add_error(f"Unable to Read segment ports for {segment_id}", str(e))
            return resp

        if ports_response.status_code != 200:
            resp.diagnostics.add_error(
                "Unexpected HTTP error code received for segment ports",
                f"{ports_response.status_code} {ports_response.reason}",
            )
            return resp

        try:
            listing = ListSegmentPortsResponse.from_dict(ports_response.json())
        except ValueError as e:
            resp.diagnostics.add_error("Invalid format received for segment ports", str(e))
            return resp

        resp.state = SegmentPortsDataSourceModel(segment_id=segment_id, segment_ports=listing.results)
        LOG.debug("Finished reading segment ports data source: %d port(s)", len(listing.results))
        return resp
