from dataclasses import dataclass, field


@dataclass
class Response:
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def text(self, payload: str) -> 'Response':
        headers = self.headers
        headers['content-type'] = 'text/plain; charset=utf-8'

        return Response(
            status=self.status,
            headers=headers,
            body=payload.encode("utf-8")
        )

def response(status_code: int = 200, headers: dict[str, str] | None = None) -> Response:
    return Response(
        status=status_code,
        headers={} if headers is None else headers
    )
