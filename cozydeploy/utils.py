"""
Utilities

Small helpers shared by the models, services and commands.
"""

import re
from pathlib import Path
from typing import Iterable, Mapping, Optional

from cozydeploy.constants import SECRET_MASK


def form_value(form: Mapping[str, object], key: str) -> Optional[str]:
    """
    Read one field from a form-style mapping.

    HTTP forms map each field to a list of values; plain mappings map
    it to a scalar. Either way the first value wins.

    Args:
        form: Field name -> value or list of values
        key: Field name

    Returns:
        Stripped string value, or None if absent
    """
    value = form.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value).strip()


def ip_schema_from_address(address: str) -> str:
    """
    Derive the network address prefix (first three octets) from an IP.

    Only a /24 address space is supported.

    Args:
        address: Dotted IPv4 address (e.g. 10.1.2.3)

    Returns:
        Prefix such as 10.1.2

    Raises:
        ValueError: If address is not a dotted IPv4 address
    """
    octets = address.strip().split(".")
    if len(octets) != 4 or not all(octet.isdigit() for octet in octets):
        raise ValueError(f"Not an IPv4 address: {address}")
    return ".".join(octets[:3])


def mask_secrets(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret in text."""
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(secret, SECRET_MASK)
    return text


_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def strip_ansi(text: str) -> str:
    """Strip ANSI color codes."""
    return _ANSI_ESCAPE.sub("", text)


def resolve_work_dir(work_dir: Optional[str] = None) -> Path:
    """Resolve the directory holding archives, templates and logs."""
    return Path(work_dir or ".").expanduser().resolve()
