from __future__ import annotations

import pytest

from deta_mongo.update_compiler import Util, compile_update


def test_plain_values_are_set():
    assert compile_update({"age": 3, "name": "x"}) == {"$set": {"age": 3, "name": "x"}}


def test_util_sentinels_map_to_operators():
    doc = compile_update({
        "name": "bob",
        "visits": Util.increment(2),
        "tags": Util.append("new"),
        "history": Util.prepend(["a", "b"]),
        "temp": Util.trim(),
    })
    assert doc == {
        "$set": {"name": "bob"},
        "$inc": {"visits": 2},
        "$push": {
            "tags": {"$each": ["new"]},
            "history": {"$each": ["a", "b"], "$position": 0},
        },
        "$unset": {"temp": ""},
    }


def test_increment_defaults_to_one():
    assert compile_update({"n": Util.increment()}) == {"$inc": {"n": 1}}


def test_rejects_empty_and_key_updates():
    with pytest.raises(ValueError):
        compile_update({})
    with pytest.raises(ValueError):
        compile_update({"key": "other"})
    with pytest.raises(TypeError):
        compile_update([("a", 1)])
