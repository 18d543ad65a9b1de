from __future__ import annotations


def parse_binding_value(value: str) -> tuple[str, dict[str, str]]:
    """
    Split a binding value like "limit,default=12" into the key ("limit") and
    its options ({"default": "12"}). Segments without '=' are ignored.
    """
    parts = value.split(",")
    key = parts[0].strip()
    options: dict[str, str] = {}
    for part in parts[1:]:
        segment = part.strip()
        if not segment or "=" not in segment:
            continue
        k, v = segment.split("=", 1)
        options[k.strip()] = v.strip()
    return key, options
