"""Opaque per-device student key for deployments without accounts."""

from __future__ import annotations

import hashlib
import platform
import socket
import uuid


def generate_device_key() -> str:
    """Hash stable host characteristics into a hex fingerprint.

    The key only has to be stable for one machine; it is never reversed.
    """
    components = [
        socket.gethostname(),
        f"{uuid.getnode():012x}",
        platform.system(),
        platform.machine(),
        platform.python_implementation(),
    ]
    fingerprint = "|".join(components)
    return hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()
