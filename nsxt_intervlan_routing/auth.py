"""
NSX Manager session authentication.

NSX session-based authentication is a single form POST:

    POST /api/session/create
    Content-Type: application/x-www-form-urlencoded

    j_username=admin&j_password=MyP%40ss

A successful (200) reply carries the session cookie and the XSRF token:

    Set-Cookie: JSESSIONID=2A4F...; Path=/; Secure; HttpOnly; SameSite=Strict
    x-xsrf-token: 52a9c3f0-...

The cookie lands in the requests.Session cookie jar and is sent from there;
the XSRF token must be added to every later API request as a header. This
module only builds the login request and parses the reply;
NsxtClient.create_session() sends it.
"""

from __future__ import annotations

from dataclasses import dataclass
from http.cookiejar import Cookie
from typing import Optional
from urllib.parse import quote_plus, urljoin

import requests

SESSION_CREATE_PATH = "/api/session/create"
SESSION_COOKIE_NAME = "JSESSIONID"
XSRF_HEADER = "X-XSRF-TOKEN"


@dataclass
class AuthResponse:
    """Session state produced by a successful login."""

    session: str = ""
    path: str = ""
    secure: bool = False
    http_only: bool = False
    same_site: str = ""
    xsrf_token: str = ""

    @property
    def established(self) -> bool:
        return bool(self.session)


def new_create_session_request(server: str, username: str, password: str) -> requests.Request:
    """
    Build the login request for an NSX Manager.

    Credentials are URL-encoded so passwords with special characters
    (!, @, #, &) survive the form body intact.
    """
    url = urljoin(server, SESSION_CREATE_PATH)
    data = f"j_username={quote_plus(username)}&j_password={quote_plus(password)}"
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    return requests.Request("POST", url, data=data, headers=headers)


def _session_cookie(jar: requests.cookies.RequestsCookieJar) -> Optional[Cookie]:
    for cookie in jar:
        if cookie.name == SESSION_COOKIE_NAME:
            return cookie
    return None


def parse_auth_response(response: requests.Response) -> AuthResponse:
    """
    Extract the session cookie attributes and XSRF token from a login reply.

    Attributes come from the parsed cookie in response.cookies, so a reply
    with several Set-Cookie headers (load balancer affinity, for one) keeps
    each cookie intact. The session itself goes into the requests.Session
    cookie jar and is sent from there.
    """
    cookie = _session_cookie(response.cookies)
    if cookie is None:
        return AuthResponse(xsrf_token=response.headers.get(XSRF_HEADER, ""))

    return AuthResponse(
        session=cookie.value or "",
        path=cookie.path if cookie.path_specified else "",
        secure=bool(cookie.secure),
        http_only=cookie.has_nonstandard_attr("HttpOnly") or cookie.has_nonstandard_attr("httponly"),
        same_site=cookie.get_nonstandard_attr("SameSite") or cookie.get_nonstandard_attr("samesite") or "",
        xsrf_token=response.headers.get(XSRF_HEADER, ""),
    )
