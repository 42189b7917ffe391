from collections.abc import Mapping
import json
import logging

logger = logging.getLogger(__name__)


def serialize_param(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def serialize_params(params: Mapping[str, object] | None) -> dict[str, str]:
    if not params:
        return {}
    serialized = {key: serialize_param(value) for key, value in params.items() if value is not None}
    logger.debug("serialize_params keys=%s dropped=%s", ",".join(serialized), len(params) - len(serialized))
    return serialized
