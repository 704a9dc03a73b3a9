"""Ingestion pipeline: record dispatch, error modes and removed-id policies."""

from __future__ import annotations

import asyncio
import zipfile

import pytest

from acmi_tracks import (
    AcmiConfig,
    AcmiLoader,
    AcmiParseError,
    RemovedIdPolicy,
    RemovedObjectError,
    TimelineOrderError,
    load_acmi,
    load_lines,
    load_lines_async,
    loads,
)

LENIENT = AcmiConfig(strict=False)


def test_sample_recording(sample_acmi):
    loader = AcmiLoader()
    db = loader.load(sample_acmi.split("\n"))

    assert {obj.id for obj in db.objects()} == {0, 1, 2}
    f16, tank = db[1], db[2]
    assert f16.start == 0.0 and f16.end is None
    assert f16.times == [0.0, 10.0, 20.5]
    assert f16.singleton_value("Type") == "Air+FixedWing"
    assert f16.text_at_time("Name", 25.0) == "F-16C-2"
    assert tank.end == 30.0
    assert tank.entries[0]["Comment"] == "first line\nsecond line"
    assert tank.entries[1]["T"] == (None, None, 4.0, None, None)
    assert db.global_object.singleton_value("Title") == "Test, mission"
    assert db.reference_time.year == 2011

    report = loader.report
    assert (report.frames, report.updates, report.removals, report.skipped) == (3, 7, 1, 0)
    assert report.records == 11
    assert report.warnings == []


def test_removal_of_unknown_object_is_reported(captured_logs):
    loader = AcmiLoader()
    db = loader.load(["1,Name=a", "#30", "-1", "-ff"])

    assert db[1].end == 30.0
    assert 0xFF not in db
    assert loader.report.warnings == ["line 4: remove of unknown object ff"]
    assert any(m.startswith("WARNING:") and "unknown object ff" in m for m in captured_logs)


def test_malformed_frame_aborts_strict_load_but_keeps_partial_database():
    loader = AcmiLoader()
    with pytest.raises(AcmiParseError) as excinfo:
        loader.load(["#0", "1,Name=a", "#oops", "1,Name=b"])
    assert excinfo.value.line_number == 3
    assert len(loader.database[1]) == 1


def test_malformed_frame_is_skipped_in_lenient_mode(captured_logs):
    loader = AcmiLoader(config=LENIENT)
    db = loader.load(["#5", "1,Name=a", "#oops", "1,Name=b"])

    assert db[1].times == [5.0, 5.0]
    assert loader.report.skipped == 1
    assert "line 3" in loader.report.warnings[0]
    assert any(m.startswith("WARNING:") and "record skipped" in m for m in captured_logs)


def test_malformed_field_rejects_the_whole_record():
    with pytest.raises(AcmiParseError, match="Malformed field"):
        load_lines(["1,Name=a,Broken"])

    loader = AcmiLoader(config=LENIENT)
    db = loader.load(["2,Name=a,Broken", "1,Name=b"])
    assert 2 not in db
    assert db[1].entries[0].attributes == {"Name": "b"}


def test_frames_going_backwards_for_an_object():
    lines = ["#10", "1,Name=a", "#5", "1,Name=b", "2,Name=c"]
    with pytest.raises(TimelineOrderError):
        load_lines(lines)

    loader = AcmiLoader(config=LENIENT)
    db = loader.load(lines)
    assert len(db[1]) == 1
    assert db[2].start == 5.0
    assert loader.report.skipped == 1


def test_unrecognized_records_are_ignored():
    loader = AcmiLoader()
    db = loader.load(["Garbage line", "1,Name=a"])
    assert len(db[1]) == 1
    assert loader.report.records == 1


def test_unsupported_coordinate_arity_keeps_the_record():
    db = loads("1,T=1|2,Name=a")
    assert db[1].entries[0].attributes == {"Name": "a"}


def test_update_with_only_rejected_fields_still_marks_time():
    db = loads("#0\n1,Name=a\n#4\n1,T=1|2\n")
    assert db[1].times == [0.0, 4.0]
    assert db[1].entries[1].attributes == {}


REUSED = ["#0", "1,Name=a", "#5", "-1", "#8", "1,Name=b"]


def test_removed_id_policy_continue():
    db = load_lines(REUSED, AcmiConfig(removed_id_policy=RemovedIdPolicy.CONTINUE))
    obj = db[1]
    assert obj.start == 0.0
    assert obj.end == 5.0
    assert [e["Name"] for e in obj.entries] == ["a", "b"]
    assert len(db.history(1)) == 1


def test_removed_id_policy_new_lifetime():
    db = load_lines(REUSED, AcmiConfig(removed_id_policy="new_lifetime"))
    old, new = db.history(1)
    assert (old.start, old.end, len(old)) == (0.0, 5.0, 1)
    assert (new.start, new.end, len(new)) == (8.0, None, 1)
    assert db[1] is new


def test_removed_id_policy_reject():
    config = AcmiConfig(removed_id_policy=RemovedIdPolicy.REJECT)
    with pytest.raises(RemovedObjectError):
        load_lines(REUSED, config)

    loader = AcmiLoader(config=AcmiConfig(strict=False, removed_id_policy="reject"))
    db = loader.load(REUSED)
    assert len(db[1]) == 1
    assert loader.report.skipped == 1


def test_loading_into_an_existing_database():
    db = loads("1,Name=a")
    load_lines(["#3", "2,Name=b"], database=db)
    assert {obj.id for obj in db} == {0, 1, 2}


def test_async_loading(sample_acmi):
    async def source():
        for line in sample_acmi.split("\n"):
            yield line

    db = asyncio.run(load_lines_async(source()))
    assert db[2].end == 30.0


def test_cancelled_async_load_keeps_partial_database():
    loader = AcmiLoader()

    async def main():
        gate = asyncio.Event()

        async def source():
            yield "#1"
            yield "1,Name=a"
            await gate.wait()
            yield "1,Name=b"

        task = asyncio.create_task(loader.load_async(source()))
        while loader.report.updates < 1:
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(main())
    assert len(loader.database[1]) == 1


def test_load_acmi_plain_and_zip(tmp_path, sample_acmi):
    plain = tmp_path / "flight.txt.acmi"
    plain.write_text(sample_acmi, encoding="utf-8-sig")
    archive = tmp_path / "flight.zip.acmi"
    with zipfile.ZipFile(archive, "w") as z:
        z.writestr("flight.txt.acmi", sample_acmi)

    for path in (plain, archive):
        db = load_acmi(path)
        assert db[2].end == 30.0
        assert db[1].coord_at_time(2, 5.0) == pytest.approx(150.0)
