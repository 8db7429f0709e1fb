import pytest

from helpers import SERVER
from nsxt_intervlan_routing.auth import AuthResponse
from nsxt_intervlan_routing.client import NsxtClient, session_auth_editor


@pytest.fixture
def auth():
    return AuthResponse(session="2A4F9C0E11", path="/", secure=True, http_only=True, xsrf_token="52a9c3f0-xsrf")


@pytest.fixture
def client(auth):
    """A client whose session is already established."""
    nsx = NsxtClient(SERVER, "admin", "VMware1!VMware1!")
    nsx.session.cookies.set("JSESSIONID", auth.session, path="/")
    nsx.auth = auth
    nsx.add_request_editor(session_auth_editor(auth))
    return nsx
