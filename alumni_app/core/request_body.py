import json

from django.http import HttpRequest

from core.exceptions import InvalidInputError


def read_json_object(request: HttpRequest) -> dict[str, object]:
    """Decode a JSON object body; an empty body reads as ``{}``.

    Anything that is not UTF-8 JSON with an object at the top level raises
    ``InvalidInputError``.
    """
    try:
        data = json.loads(request.body.decode("utf-8") if request.body else "{}")
    except ValueError as exc:
        raise InvalidInputError("Invalid JSON body") from exc
    if not isinstance(data, dict):
        raise InvalidInputError("Invalid JSON body")
    return data
