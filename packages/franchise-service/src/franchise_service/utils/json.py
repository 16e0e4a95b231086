import dataclasses
import math
from typing import Any


def sanitize_for_json(obj: Any) -> Any:
    """
    Recursively convert an object into JSON-compliant primitives.

    Dataclasses (engine outputs) become dicts; NaN and Infinity floats become None.

    Args:
        obj: The object to sanitize (dataclass, dict, list, float, etc.)

    Returns:
        The sanitized object.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return sanitize_for_json(dataclasses.asdict(obj))
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    elif isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [sanitize_for_json(item) for item in obj]
    return obj
