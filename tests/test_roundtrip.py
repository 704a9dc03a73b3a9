"""Serialize then reload: the rebuilt database matches the original."""

from __future__ import annotations

import pytest

from acmi_tracks import (
    AcmiConfig,
    RemovedIdPolicy,
    TrackDatabase,
    dumps,
    load_acmi,
    loads,
    save_acmi,
)

TRICKY = "\n".join(
    [
        "FileType=text/acmi/tacview",
        "FileVersion=2.2",
        "0,ReferenceTime=2020-01-01T00:00:00Z,Comments=multi\\",
        "line\\",
        "",
        "#0.5",
        r"1,T=1.5||100,Name=Viper\, Lead,Path=C:\\logs\\,Expr=a=b",
        "1,Color=Red",
        "3",
        "#2",
        "1,T=2.5|3|110|0|0|45|100|200|45",
        "2,T=5|6|7|8|9,Label=x\\",
        "y",
        "#7.25",
        "-1",
        "#9",
        "-2",
        "",
    ]
)


def _snapshot(db: TrackDatabase) -> list:
    return [
        (obj.id, obj.start, obj.end, [(e.time, e.attributes) for e in obj.entries])
        for obj in db.lifetimes()
    ]


def test_tricky_recording_parses_as_intended():
    db = loads(TRICKY)
    assert db.global_object.singleton_value("Comments") == "multi\nline\n"
    first = db[1].entries[0].attributes
    assert first == {
        "T": (1.5, None, 100.0),
        "Name": "Viper, Lead",
        "Path": "C:\\logs\\",
        "Expr": "a=b",
    }
    assert db[3].entries[0].attributes == {}
    assert db[2].entries[0]["Label"] == "x\ny"


def test_round_trip_preserves_objects_and_timelines():
    original = loads(TRICKY)
    text = dumps(original)
    reloaded = loads(text)

    assert _snapshot(reloaded) == _snapshot(original)
    assert dumps(reloaded) == text


def test_round_trip_numeric_values_within_tolerance():
    db = TrackDatabase()
    obj = db.ensure_object(5, 0.1)
    db.append_entry(obj, 0.1, {"Heading": 1 / 3, "T": (0.1 + 0.2, 2.0, 3.0)})
    db.append_entry(obj, 1.7, {"Heading": 2.0})

    reloaded = loads(dumps(db))[5]
    assert reloaded.start == obj.start
    assert reloaded.times == obj.times
    assert reloaded.value_at_time("Heading", 0.9) == pytest.approx(obj.value_at_time("Heading", 0.9))
    assert reloaded.entries[0]["T"] == obj.entries[0]["T"]


def test_round_trip_with_new_lifetimes():
    config = AcmiConfig(removed_id_policy=RemovedIdPolicy.NEW_LIFETIME)
    source = "\n".join(["#0", "1,Name=a", "#5", "-1", "#8", "1,Name=b", "#9", "-1"])
    original = loads(source, config)
    reloaded = loads(dumps(original), config)

    assert _snapshot(reloaded) == _snapshot(original)
    assert [(o.start, o.end) for o in reloaded.history(1)] == [(0.0, 5.0), (8.0, 9.0)]


def test_tiny_offsets_stay_positional():
    db = TrackDatabase()
    obj = db.ensure_object(1, 0.00001)
    db.append_entry(obj, 0.00001, {"Name": "a", "Speed": 2.5e-06})

    text = dumps(db)
    assert "#0.00001\n" in text
    reloaded = loads(text)[1]
    assert reloaded.times == [0.00001]
    assert reloaded.value_at_time("Speed", 0.00001) == 2.5e-06


def test_names_spanning_lines_round_trip():
    original = loads("1,Na\\\nme=x\n")
    assert original[1].entries[0].attributes == {"Na\nme": "x"}

    reloaded = loads(dumps(original))
    assert reloaded[1].entries[0].attributes == {"Na\nme": "x"}


def test_carriage_returns_reload_as_newlines(tmp_path):
    db = TrackDatabase()
    obj = db.ensure_object(1, 0.0)
    db.append_entry(obj, 0.0, {"Note": "a\rb", "Tail": "c\r"})

    for reloaded in (loads(dumps(db)), load_acmi(save_acmi(tmp_path / "cr.txt.acmi", db))):
        assert reloaded[1].entries[0].attributes == {"Note": "a\nb", "Tail": "c\n"}
