import json

from httpemit import Request, Response
from httpemit.server import serve


def handler(request: Request, response: Response) -> None:
    if request.path == "/hello":
        response.write(b"hello world")
    elif request.path == "/json":
        response.set_header("Content-Type", "application/json")
        response.write(json.dumps({"query": request.query_params}))
    elif request.path == "/login":
        jar = response.get_cookie_jar()
        if jar is not None:
            jar.set_cookie("session", "abc123", http_only=True)
        response.set_status(303)
        response.set_header("Location", "/hello")
    elif request.path == "/ping":
        response.set_status(204)
    else:
        response.set_status(404)
        response.write(b"Not Found")


serve(handler, host="127.0.0.1", port=8000)
