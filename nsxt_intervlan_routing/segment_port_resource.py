"""
segment_port resource: lifecycle mapping onto the NSX segment port API.

    Create / Update  -> PATCH  (full desired object, expect 200)
    Read             -> GET    (404 removes the resource from state)
    Delete           -> DELETE (identity taken from state)
    Import           -> import id becomes port_id
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from nsxt_intervlan_routing.client import NsxtClient, NsxtClientError
from nsxt_intervlan_routing.framework import Diagnostics, ResourceResponse
from nsxt_intervlan_routing.models import PatchSegmentPortRequest, SegmentPort
from nsxt_intervlan_routing.schemas import SEGMENT_PORT_RESOURCE_SCHEMA, validate_against_schema

LOG = logging.getLogger(__name__)


@dataclass
class SegmentPortResourceModel:
    segment_id: str = ""
    port_id: str = ""
    segment_port: SegmentPort = field(default_factory=SegmentPort)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segment_id": self.segment_id,
            "port_id": self.port_id,
            "segment_port": self.segment_port.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentPortResourceModel":
        return cls(
            segment_id=data.get("segment_id", ""),
            port_id=data.get("port_id", ""),
            segment_port=SegmentPort.from_dict(data.get("segment_port") or {}),
        )


def new_segment_port_resource() -> "SegmentPortResource":
    return SegmentPortResource()


class SegmentPortResource:
    """Manage a segment port."""

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
        return f"{provider_type_name}_segment_port"

    def schema(self) -> Dict[str, Any]:
        return SEGMENT_PORT_RESOURCE_SCHEMA

    def validate_config(self, config: Dict[str, Any]) -> Diagnostics:
        diags = Diagnostics()
        validate_against_schema(config, SEGMENT_PORT_RESOURCE_SCHEMA, "segment_port", diags)
        return diags

    def _require_client(self, resp: ResourceResponse) -> bool:
        if self.client is None:
            resp.diagnostics.add_error(
                "Unconfigured segment port resource",
                "The provider has not been configured; no NSX-T client is available.",
            )
            return False
        return True

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _patch(self, plan: SegmentPortResourceModel, verb: str) -> ResourceResponse:
        resp = ResourceResponse()
        if not self._require_client(resp):
            return resp

        body = PatchSegmentPortRequest(
            segment_id=plan.segment_id,
            port_id=plan.port_id,
            segment_port=plan.segment_port,
        )
        try:
            sp_response = self.client.patch_segment_port(body)
        except (requests.exceptions.RequestException, NsxtClientError) as e:
            resp.diagnostics.add_error(f"Unable to {verb} Segment Port", str(e))
            return resp

        if sp_response.status_code != 200:
            resp.diagnostics.add_error(
                f"An invalid response was received. Code: {sp_response.status_code}",
                f"{sp_response.status_code} {sp_response.reason}",
            )
            return resp

        # NSX answers with the realized object, but the plan is the state
        resp.state = plan
        return resp

    def create(self, plan: SegmentPortResourceModel) -> ResourceResponse:
        LOG.debug("Preparing to create segment port resource %s/%s", plan.segment_id, plan.port_id)
        resp = self._patch(plan, "Create")
        if not resp.diagnostics.has_error():
            LOG.debug("Created segment port resource %s/%s", plan.segment_id, plan.port_id)
        return resp

    def read(self, state: SegmentPortResourceModel) -> ResourceResponse:
        """
        Refresh state from the NSX Manager.

        Outcomes:
            200 -> state replaced by the decoded server object
            404 -> resp.removed is True, resp.state is None
            other status, transport or decode failure -> error diagnostic
        """
        LOG.debug("Preparing to read segment port resource %s/%s", state.segment_id, state.port_id)
        resp = ResourceResponse()
        if not self._require_client(resp):
            return resp

        try:
            sp_response = self.client.get_segment_port(state.segment_id, state.port_id)
        except (requests.exceptions.RequestException, NsxtClientError) as e:
            resp.diagnostics.add_error("Unable to Read Segment Port configuration", str(e))
            return resp

        if sp_response.status_code == 404:
            LOG.debug("Segment port %s/%s no longer exists", state.segment_id, state.port_id)
            resp.removed = True
            return resp

        if sp_response.status_code != 200:
            resp.diagnostics.add_error(
                "Unexpected HTTP error code received for segment port",
                f"{sp_response.status_code} {sp_response.reason}",
            )
            return resp

        try:
            segment_port = SegmentPort.from_dict(sp_response.json())
        except ValueError as e:
            resp.diagnostics.add_error("Invalid format received for segment port", str(e))
            return resp

        resp.state = SegmentPortResourceModel(
            segment_id=state.segment_id,
            port_id=state.port_id,
            segment_port=segment_port,
        )
        LOG.debug("Finished reading segment port resource %s/%s", state.segment_id, state.port_id)
        return resp

    def update(self, plan: SegmentPortResourceModel, state: Optional[SegmentPortResourceModel] = None) -> ResourceResponse:
        # Full replace: the prior state plays no part in the request
        LOG.debug("Preparing to update segment port resource %s/%s", plan.segment_id, plan.port_id)
        resp = self._patch(plan, "Update")
        if not resp.diagnostics.has_error():
            LOG.debug("Updated segment port resource %s/%s", plan.segment_id, plan.port_id)
        return resp

    def delete(self, state: SegmentPortResourceModel) -> ResourceResponse:
        LOG.debug("Preparing to delete segment port resource %s/%s", state.segment_id, state.port_id)
        resp = ResourceResponse()
        if not self._require_client(resp):
            return resp

        try:
            sp_response = self.client.delete_segment_port(state.segment_id, state.port_id)
        except (requests.exceptions.RequestException, NsxtClientError) as e:
            resp.diagnostics.add_error("Unable to Delete Segment Port", str(e))
            return resp

        if sp_response.status_code != 200:
            resp.diagnostics.add_error(
                "Unable to Delete Segment Port",
                f"{sp_response.status_code} {sp_response.reason}",
            )
            return resp

        resp.removed = True
        LOG.debug("Deleted segment port resource %s/%s", state.segment_id, state.port_id)
        return resp

    def import_state(self, import_id: str) -> ResourceResponse:
        """
        Start tracking an existing port. The import id is taken verbatim as
        port_id; segment_id must be supplied before the follow-up read.
        """
        return ResourceResponse(state=SegmentPortResourceModel(port_id=import_id))
