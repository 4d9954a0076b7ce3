import json
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ParameterError(ValueError):
    """A required request parameter is missing or supplied more than once."""


@dataclass
class Request:
    method: str
    path: str
    headers: dict[str, str]
    query_params: dict[str, list]
    body: bytes
    version: str

    def __post_init__(self):
        self._form: dict[str, list[str]] = {}
        self._dict: dict[str, Any] | None = None

        content_type = self.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type == FORM_CONTENT_TYPE:
            self._form = parse_qs(self.body.decode("utf-8", errors="replace"), keep_blank_values=True)
            return

        try:
            parsed = json.loads(self.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            parsed = None
        self._dict = parsed if isinstance(parsed, dict) else None

    def get_all(self, field: str) -> list[str]:
        """Return every value supplied for ``field`` across body and query string."""
        if field is None:
            raise ValueError("Field cannot be None")

        if len(field) == 0:
            raise ValueError("Field cannot be empty")

        values = list(self._form.get(field, []))

        if self._dict and field in self._dict:
            raw = self._dict[field]
            for item in raw if isinstance(raw, list) else [raw]:
                if item is not None:
                    values.append(item if isinstance(item, str) else json.dumps(item))

        values.extend(self.query_params.get(field, []))
        return values

    def get_one(self, field: str, missing: str, multiple: str) -> str:
        """
        Return the single value supplied for ``field``.

        Raises:
            ParameterError: With message ``missing`` if no value was supplied,
                or ``multiple`` if more than one was.
        """
        values = self.get_all(field)
        if not values:
            raise ParameterError(missing)
        if len(values) > 1:
            raise ParameterError(multiple)
        return values[0]
