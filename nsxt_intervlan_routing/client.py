"""
NSX-T Segment Port API Client
=============================

A thin HTTP client for the NSX-T Policy API segment port endpoints.

ARCHITECTURE:
    request builder --> request editors --> requests.Session --> NSX Manager
    (new_*_request)     (auth, tracing)     (the "doer")

    Builders return unsent requests.Request objects. NsxtClient.do() runs
    every registered editor over the request, in registration order, and
    then sends it. An editor that raises stops the request before anything
    goes on the wire.

API ENDPOINTS USED:
    - GET    /policy/api/v1/infra/segments/{segment}/ports         - List ports
    - GET    /policy/api/v1/infra/segments/{segment}/ports/{port}  - Get port
    - PATCH  /policy/api/v1/infra/segments/{segment}/ports/{port}  - Create/update port
    - DELETE /policy/api/v1/infra/segments/{segment}/ports/{port}  - Delete port
    - POST   /api/session/create                                   - Login

STATUS CODES:
    The client never interprets status codes. Each operation returns the raw
    requests.Response; deciding what a 404 or a 500 means is up to the caller.
    Transport failures surface as requests.exceptions.RequestException.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional
from urllib.parse import quote, urljoin

import requests

from nsxt_intervlan_routing.auth import (
    SESSION_COOKIE_NAME,
    XSRF_HEADER,
    AuthResponse,
    new_create_session_request,
    parse_auth_response,
)
from nsxt_intervlan_routing.models import PatchSegmentPortRequest

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10  # seconds

SEGMENT_PORTS_PATH = "/policy/api/v1/infra/segments/{segment_id}/ports"

RequestEditor = Callable[[requests.Request], None]


class NsxtClientError(Exception):
    """Raised for client-side failures that happen before a request is sent."""


# =============================================================================
# REQUEST BUILDERS
# =============================================================================

def _ports_url(server: str, segment_id: str, port_id: Optional[str] = None) -> str:
    path = SEGMENT_PORTS_PATH.format(segment_id=quote(segment_id, safe=""))
    if port_id is not None:
        path = f"{path}/{quote(port_id, safe='')}"
    return urljoin(server, path)


def new_list_segment_ports_request(server: str, segment_id: str) -> requests.Request:
    return requests.Request("GET", _ports_url(server, segment_id))


def new_get_segment_port_request(server: str, segment_id: str, port_id: str) -> requests.Request:
    return requests.Request("GET", _ports_url(server, segment_id, port_id))


def new_patch_segment_port_request(server: str, body: PatchSegmentPortRequest) -> requests.Request:
    """
    Build the PATCH used for both create and update.

    The whole SegmentPort is serialized into the body; NSX has no partial
    update endpoint for ports, so there is nothing to diff.
    """
    return requests.Request(
        "PATCH",
        _ports_url(server, body.segment_id, body.port_id),
        json=body.segment_port.to_dict(),
        headers={"Content-Type": "application/json"},
    )


def new_delete_segment_port_request(server: str, segment_id: str, port_id: str) -> requests.Request:
    return requests.Request("DELETE", _ports_url(server, segment_id, port_id))


# =============================================================================
# REQUEST EDITORS
# =============================================================================

def session_auth_editor(auth: AuthResponse) -> RequestEditor:
    """
    Return an editor that attaches an NSX login session to a request.

    The JSESSIONID cookie travels in the requests.Session cookie jar along
    with any other cookie the manager set. The editor adds the X-XSRF-TOKEN
    header when the login returned one.

    Raises (from the editor):
        NsxtClientError: If the session was never established
    """
    def edit(request: requests.Request) -> None:
        if not auth.established:
            raise NsxtClientError("No NSX session established; call create_session() first")
        if auth.xsrf_token:
            request.headers[XSRF_HEADER] = auth.xsrf_token

    return edit


# =============================================================================
# CLIENT
# =============================================================================

class NsxtClient:
    """
    HTTP session client bound to one NSX Manager.

    Attributes:
        server:          Base URL, e.g. "https://nsx-manager.example.com"
        username:        Login username
        password:        Login password
        session:         requests.Session used to send every request
        request_editors: Hooks applied to every request before it is sent
        timeout:         Per-request timeout in seconds
        verify:          Whether to verify the server TLS certificate

    Example:
        client = NsxtClient("https://nsx.example.com", "admin", "secret")
        client.create_session()
        response = client.get_segment_port("web-segment", "web-01")
    """

    def __init__(
        self,
        server: str,
        username: str,
        password: str,
        session: Optional[requests.Session] = None,
        request_editors: Optional[Iterable[RequestEditor]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
    ):
        self.server = server
        self.username = username
        self.password = password
        self.session = session if session is not None else requests.Session()
        self.request_editors: List[RequestEditor] = list(request_editors or [])
        self.timeout = timeout
        self.verify = verify
        self.auth: Optional[AuthResponse] = None

    def add_request_editor(self, editor: RequestEditor) -> None:
        self.request_editors.append(editor)

    def _apply_editors(self, request: requests.Request, extra_editors: Iterable[RequestEditor]) -> None:
        for editor in self.request_editors:
            editor(request)
        for editor in extra_editors:
            editor(request)

    def do(self, request: requests.Request, *request_editors: RequestEditor) -> requests.Response:
        """
        Apply all editors to a request and send it.

        Args:
            request:         Unsent request from one of the new_*_request builders
            request_editors: Extra per-call editors, applied after the
                             client-wide ones

        Returns:
            The raw response, whatever its status code

        Raises:
            NsxtClientError: If an editor refuses the request
            requests.exceptions.RequestException: On transport failure
        """
        self._apply_editors(request, request_editors)
        prepared = self.session.prepare_request(request)
        LOG.debug("%s %s", prepared.method, prepared.url)
        response = self.session.send(prepared, timeout=self.timeout, verify=self.verify)
        LOG.debug("%s %s -> %s", prepared.method, prepared.url, response.status_code)
        return response

    # =========================================================================
    # SESSION
    # =========================================================================

    def create_session(self) -> AuthResponse:
        """
        Log in once and attach the resulting session to every later request.

        The session cookie is kept in self.session's cookie jar.

        Login requests are sent without the client's editors, since those
        normally carry the session this call is creating.

        Returns:
            The parsed AuthResponse

        Raises:
            requests.exceptions.HTTPError: If the login reply is not 200
            NsxtClientError: If the reply carries no session cookie
            requests.exceptions.RequestException: On transport failure
        """
        request = new_create_session_request(self.server, self.username, self.password)
        prepared = self.session.prepare_request(request)
        response = self.session.send(prepared, timeout=self.timeout, verify=self.verify)

        if response.status_code != 200:
            raise requests.exceptions.HTTPError(
                f"Session creation returned {response.status_code} {response.reason}",
                response=response,
            )

        auth = parse_auth_response(response)
        if not auth.established:
            raise NsxtClientError(f"No {SESSION_COOKIE_NAME} cookie in session creation response")

        self.auth = auth
        self.add_request_editor(session_auth_editor(auth))
        LOG.info("Established NSX session on %s", self.server)
        return auth

    # =========================================================================
    # SEGMENT PORT OPERATIONS
    # =========================================================================

    def list_segment_ports(self, segment_id: str, *request_editors: RequestEditor) -> requests.Response:
        request = new_list_segment_ports_request(self.server, segment_id)
        return self.do(request, *request_editors)

    def get_segment_port(self, segment_id: str, port_id: str, *request_editors: RequestEditor) -> requests.Response:
        request = new_get_segment_port_request(self.server, segment_id, port_id)
        return self.do(request, *request_editors)

    def patch_segment_port(self, body: PatchSegmentPortRequest, *request_editors: RequestEditor) -> requests.Response:
        request = new_patch_segment_port_request(self.server, body)
        return self.do(request, *request_editors)

    def delete_segment_port(self, segment_id: str, port_id: str, *request_editors: RequestEditor) -> requests.Response:
        request = new_delete_segment_port_request(self.server, segment_id, port_id)
        return self.do(request, *request_editors)
