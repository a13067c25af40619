import json
from typer.testing import CliRunner
from blinkgate.cli import app

runner = CliRunner()
BOX = [0.3, 0.2, 0.7, 0.8]

def eye(ear):
    return [[0,0],[1,0],[0,0],[0,0],[0,ear/2],[0,ear/2]]

def line(t, ear):
    return json.dumps({"timestamp": t, "left_eye": eye(ear), "right_eye": eye(ear), "bbox": BOX})

def events(output):
    return [json.loads(l) for l in output.splitlines() if l.startswith("{")]

def test_replay(tmp_path):
    p = tmp_path / "frames.jsonl"
    p.write_text("\n".join([
        line(0.0, 3.2),
        line(0.1, 2.0),
        line(0.5, 3.2),   # inside idle window
        "not json",
        json.dumps({"timestamp": 0.9}),
        line(1.2, 3.2),
        line(1.3, 2.0),
    ]) + "\n")
    res = runner.invoke(app, ["replay", str(p)])
    assert res.exit_code == 0, res.output
    evs = events(res.output)
    assert [e["type"] for e in evs].count("blink") == 2
    assert any(e["type"] == "status" for e in evs)
    final = evs[-1]
    assert final["type"] == "snapshot"
    assert final["snapshot"]["blink_count"] == 2
    assert final["snapshot"]["frames_skipped"] == 2

def test_replay_without_gate(tmp_path):
    p = tmp_path / "frames.jsonl"
    p.write_text("\n".join([line(0.0, 3.2), line(0.1, 2.0), line(0.2, 3.2), line(0.3, 2.0)]) + "\n")
    res = runner.invoke(app, ["replay", str(p), "--no-gate"])
    assert res.exit_code == 0, res.output
    assert events(res.output)[-1]["snapshot"]["blink_count"] == 2

def test_replay_missing_file(tmp_path):
    res = runner.invoke(app, ["replay", str(tmp_path / "missing.jsonl")])
    assert res.exit_code == 1

def test_background_failure_stops_main():
    import asyncio
    import pytest
    from blinkgate.cli import _run_alongside

    async def forever():
        while True:
            await asyncio.sleep(0)

    async def broken():
        raise OSError("address already in use")

    with pytest.raises(OSError):
        asyncio.run(_run_alongside(forever(), broken()))

def test_background_cancelled_after_main():
    import asyncio
    from blinkgate.cli import _run_alongside
    seen = {}

    async def main():
        await asyncio.sleep(0)
        return "done"

    async def side():
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            seen["cancelled"] = True
            raise

    assert asyncio.run(_run_alongside(main(), side())) == "done"
    assert seen == {"cancelled": True}
