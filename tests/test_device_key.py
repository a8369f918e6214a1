from __future__ import annotations

import re

from quiz_taker.core import device_key


def test_device_key_is_stable_hex_digest():
    first = device_key.generate_device_key()

    assert re.fullmatch(r"[0-9a-f]{64}", first)
    assert device_key.generate_device_key() == first


def test_device_key_changes_with_host(monkeypatch):
    original = device_key.generate_device_key()
    monkeypatch.setattr(device_key.socket, "gethostname", lambda: "another-host")

    assert device_key.generate_device_key() != original
