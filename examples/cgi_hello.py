#!/usr/bin/env python3
"""Run as a CGI script: the emitter picks the ``Status:`` framing itself."""

import os

from httpemit import CookieJar, Request, Response
from httpemit.emitter import send

request = Request(method=os.environ.get("REQUEST_METHOD", "GET"))
jar = CookieJar()
jar.set_cookie("visited", "1", path="/")

response = Response(request, cookie_jar=jar)
response.set_header("Content-Type", "text/plain")
response.write("hello from cgi\n")

send(response)
