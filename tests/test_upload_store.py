"""
Unit tests for the upload slot.
"""

import dataclasses

import pytest

from filechat.core.upload_store import UploadSlot


def test_empty_slot_returns_none() -> None:
    assert UploadSlot().get() is None


def test_set_overwrites_and_bumps_version() -> None:
    slot = UploadSlot()
    first = slot.set("uploads/a.txt", "a.txt", 3)
    second = slot.set("uploads/b.txt", "b.txt", 5)
    assert first.version == 1
    assert second.version == 2
    assert slot.get() is second
    assert second.uploaded_at >= first.uploaded_at


def test_slots_are_independent() -> None:
    one, two = UploadSlot(), UploadSlot()
    one.set("uploads/a.txt", "a.txt", 1)
    assert two.get() is None


def test_reference_is_immutable() -> None:
    ref = UploadSlot().set("uploads/a.txt", "a.txt", 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        ref.path = "elsewhere"
