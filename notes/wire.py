"""
Compatibility shim for encrypted fields that arrive stringified.

The spreadsheet store writes encrypted fields back as JSON strings, but rows
that went through its object-to-string coercion come back as
``{version=1.0, iv=..., encrypted=...}``. That key=value form is accepted on
read only; nothing in this project ever produces it.
"""
import json
import re

from core.exceptions import MalformedEnvelope

_BRACES = re.compile(r"\{([^}]+)\}")
_NUMBER = re.compile(r"^\d+(\.\d+)?$")


def looks_encrypted(value):
    return (
        isinstance(value, str)
        and value.startswith("{")
        and "encrypted" in value
        and "iv" in value
    )


def _quote_pair(pair):
    pair = pair.strip()
    if "=" not in pair:
        return None
    key, value = pair.split("=", 1)
    key, value = key.strip(), value.strip()
    if key == "version" and _NUMBER.match(value):
        return f"{json.dumps(key)}:{value}"
    return f"{json.dumps(key)}:{json.dumps(value)}"


def repair_key_value_object(text):
    """Rewrite the first ``{k=v, ...}`` span of ``text`` as a JSON object."""

    def _rewrite(match):
        pairs = [p for p in (_quote_pair(raw) for raw in match.group(1).split(",")) if p]
        return "{" + ",".join(pairs) + "}"

    return _BRACES.sub(_rewrite, text.strip(), count=1)


def parse_encrypted_field(value):
    """
    Return the dict form of an encrypted field given as a mapping, a JSON
    string or the malformed key=value string.
    """
    if isinstance(value, dict):
        data = value
    elif isinstance(value, str):
        try:
            data = json.loads(value)
        except ValueError:
            try:
                data = json.loads(repair_key_value_object(value))
            except ValueError as exc:
                raise MalformedEnvelope() from exc
    else:
        raise MalformedEnvelope()

    if not isinstance(data, dict) or "encrypted" not in data or "iv" not in data:
        raise MalformedEnvelope()
    return data
