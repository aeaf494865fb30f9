"""Request and random-source doubles shared by the test modules."""

from typing import Dict, Iterable, Optional

from starlette.requests import Request


class SequenceRandomSource:
    """Random source returning preset chunks in order."""

    def __init__(self, chunks: Iterable[bytes]):
        self.chunks = list(chunks)
        self.calls = 0

    def fill(self, buffer: bytearray) -> None:
        self.calls += 1
        buffer[:] = self.chunks.pop(0)


def make_request(
    method: str = "GET",
    path: str = "/",
    headers: Optional[Dict[str, str]] = None,
    cookies: Optional[Dict[str, str]] = None,
    body: bytes = b"",
    query_string: str = "",
) -> Request:
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode()))
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "root_path": "",
        "scheme": "http",
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
        "query_string": query_string.encode(),
        "headers": raw_headers,
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)
