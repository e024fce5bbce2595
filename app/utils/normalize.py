from enum import Enum


def normalize_value(value):
    """Collapse the empty representations of a field into None."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (list, tuple, dict)) and not value:
        return None
    if hasattr(value, 'model_dump'):
        dumped = {k: v for k, v in value.model_dump(mode="json").items() if normalize_value(v) is not None}
        return dumped or None
    return value
