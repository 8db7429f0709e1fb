"""
NSX-T InterVLAN Routing Provider
================================

Bootstraps the shared NSX-T client handed to every resource and data source.

CONFIGURE FLOW:
    1. Resolve insecure/host/username/password (config > env > default)
    2. Build one requests.Session-backed NsxtClient (10 second timeout)
    3. POST /api/session/create once; a non-200 reply is fatal
    4. Return the client as provider_data

The client keeps the login session and attaches it to every later request,
so resources and data sources never handle credentials themselves.

Example:
    provider = NsxtIntervlanRoutingProvider(version="0.1.0")
    configured = provider.configure(ProviderConfig(host="nsx.example.com"))
    if not configured.diagnostics.has_error():
        resource = SegmentPortResource()
        resource.configure(configured.provider_data)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests
import urllib3

from nsxt_intervlan_routing.client import DEFAULT_TIMEOUT, NsxtClient, NsxtClientError
from nsxt_intervlan_routing.config import ProviderConfig, resolve_provider_config
from nsxt_intervlan_routing.framework import ProviderResponse
from nsxt_intervlan_routing.schemas import PROVIDER_SCHEMA
from nsxt_intervlan_routing.segment_port_resource import SegmentPortResource, new_segment_port_resource
from nsxt_intervlan_routing.segment_ports_data_source import (
    SegmentPortsDataSource,
    new_segment_ports_data_source,
)

LOG = logging.getLogger(__name__)

PROVIDER_TYPE_NAME = "nsxt-intervlan-routing"


class NsxtIntervlanRoutingProvider:
    """
    Provider for NSX-T segment ports.

    Attributes:
        version: "dev" for local builds, "test" under acceptance tests,
                 the release version otherwise
    """

    def __init__(self, version: str = "dev", session_factory: Callable[[], requests.Session] = requests.Session):
        self.version = version
        self._session_factory = session_factory

    def metadata(self) -> Dict[str, str]:
        return {"type_name": PROVIDER_TYPE_NAME, "version": self.version}

    def schema(self) -> Dict[str, Any]:
        return PROVIDER_SCHEMA

    def configure(self, config: ProviderConfig, environ: Optional[Mapping[str, str]] = None) -> ProviderResponse:
        """
        Resolve configuration and log in to the NSX Manager.

        Args:
            config:  Explicitly configured values
            environ: Environment mapping for fallbacks (defaults to os.environ)

        Returns:
            ProviderResponse whose provider_data is the configured NsxtClient,
            or None when an error diagnostic was recorded
        """
        LOG.info("Configuring NSX InterVLAN Routing client")
        resp = ProviderResponse()

        resolved, diags = resolve_provider_config(config, environ)
        resp.diagnostics.extend(diags)
        if resp.diagnostics.has_error():
            return resp

        LOG.debug("Creating NSX-T API client for %s", resolved.server_url)

        session = self._session_factory()
        session.verify = not resolved.insecure
        if resolved.insecure:
            # Self-signed certificates are the norm in lab environments
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        client = NsxtClient(
            server=resolved.server_url,
            username=resolved.username,
            password=resolved.password,
            session=session,
            timeout=DEFAULT_TIMEOUT,
            verify=not resolved.insecure,
        )

        try:
            client.create_session()
        except requests.exceptions.HTTPError as e:
            resp.diagnostics.add_error(
                "NSX-T API Client returned a non-200 status code",
                "The NSX-T API Client returned a non-200 status code. The response returned "
                f"indicates an error authenticating the client.\n\nNSX-T Client Error: {e}",
            )
            LOG.info("Configured NSX-T client: success=false")
            return resp
        except (requests.exceptions.RequestException, NsxtClientError) as e:
            resp.diagnostics.add_error(
                "Unable to Create NSX-T API Client",
                "An unexpected error occurred when creating the NSX-T API client.\n\n"
                f"NSX-T Client Error: {e}",
            )
            LOG.info("Configured NSX-T client: success=false")
            return resp

        resp.provider_data = client
        LOG.info("Configured NSX-T client: success=true")
        return resp

    def resources(self) -> List[Callable[[], SegmentPortResource]]:
        return [new_segment_port_resource]

    def data_sources(self) -> List[Callable[[], SegmentPortsDataSource]]:
        return [new_segment_ports_data_source]
