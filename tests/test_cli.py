from __future__ import annotations

import io
import json

import pytest

from box_shadow_widths import cli
from box_shadow_widths.cli import build_parser, main
from box_shadow_widths.geometry import Rect
from box_shadow_widths.nodriver_dom import ShadowMeasurement
from box_shadow_widths.shadow import EdgeWidths


def test_parser_defaults():
    ns = build_parser().parse_args(["inspect", "--url", "https://example.com/", "--selector", ".card"])
    assert ns.timeout == 20.0
    assert ns.selector == [".card"]
    assert ns.output in ("text", "jsonl")


def test_parse_text_output(capsys):
    assert main(["parse", "--output", "text", "2px 4px 6px 1px rgba(0,0,0,0.5)", "1px 1px #000, 2px 2px #fff"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "top=0 right=6 bottom=8 left=2  2px 4px 6px 1px rgba(0,0,0,0.5)",
        "unsupported  1px 1px #000, 2px 2px #fff",
    ]


def test_parse_jsonl_output(capsys):
    assert main(["parse", "--output", "jsonl", "3px 5px 0px 0px #111"]) == 0
    ev = json.loads(capsys.readouterr().out)
    assert ev["event"] == "widths"
    assert ev["widths"] == {"top": -5.0, "right": 3.0, "bottom": 5.0, "left": -3.0}
    assert "ts" in ev


def test_parse_reads_stdin_lines(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("none\n\n0px 0px 0px 0px #000\n"))
    assert main(["parse", "--output", "text"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "top=0 right=0 bottom=0 left=0  none",
        "top=0 right=0 bottom=0 left=0  0px 0px 0px 0px #000",
    ]


def test_inspect_requires_cdp_pair():
    with pytest.raises(SystemExit):
        main(["inspect", "--url", "https://example.com/", "--selector", ".card", "--cdp-host", "127.0.0.1"])


def test_inspect_errors_are_reported_as_events(monkeypatch, capsys):
    async def boom(cfg, *, emit=None, uc_module=None):
        raise RuntimeError("no browser")

    monkeypatch.setattr(cli, "inspect_page", boom)
    rc = main(["inspect", "--output", "jsonl", "--url", "https://example.com/", "--selector", ".card"])
    assert rc == 1
    ev = json.loads(capsys.readouterr().out)
    assert ev["event"] == "error"
    assert ev["error_type"] == "RuntimeError"


def test_inspect_rejects_empty_cdp_host():
    with pytest.raises(SystemExit):
        main(["inspect", "--url", "https://example.com/", "--selector", ".card", "--cdp-host", "", "--cdp-port", "9222"])


def _measurements():
    return [
        ShadowMeasurement(
            selector=".card",
            box_shadow="rgba(0, 0, 0, 0.5) 2px 4px 6px 1px",
            border_box=Rect(10.0, 20.0, 100.0, 50.0),
            widths=EdgeWidths(top=0.0, right=6.0, bottom=8.0, left=2.0),
            bounds=Rect(8.0, 20.0, 108.0, 58.0),
        ),
        ShadowMeasurement(
            selector=".layers",
            box_shadow="rgb(0, 0, 0) 1px 1px, rgb(255, 0, 0) 2px 2px",
            border_box=Rect(0.0, 0.0, 10.0, 10.0),
            widths=None,
            bounds=None,
        ),
    ]


def _fake_inspect_page(calls):
    async def fake(cfg, *, emit=None, uc_module=None):
        calls.append(cfg)
        results = _measurements()
        if emit is not None:
            emit({"event": "navigate", "url": cfg.url})
            for m in results:
                emit(m.as_event())
        return results

    return fake


def test_inspect_text_output(monkeypatch, capsys):
    calls = []
    monkeypatch.setattr(cli, "inspect_page", _fake_inspect_page(calls))
    argv = ["inspect", "--output", "text", "--url", "https://example.com/", "--selector", ".card", "--selector", ".layers"]
    assert main(argv) == 0

    assert calls[0].selectors == (".card", ".layers")
    out = capsys.readouterr().out.splitlines()
    assert out == [
        ".card: top=0 right=6 bottom=8 left=2  bounds=(8, 20, 108x58)  rgba(0, 0, 0, 0.5) 2px 4px 6px 1px",
        ".layers: unsupported  rgb(0, 0, 0) 1px 1px, rgb(255, 0, 0) 2px 2px",
    ]


def test_inspect_jsonl_output(monkeypatch, capsys):
    monkeypatch.setattr(cli, "inspect_page", _fake_inspect_page([]))
    argv = ["inspect", "--output", "jsonl", "--url", "https://example.com/", "--selector", ".card"]
    assert main(argv) == 0

    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [e["event"] for e in events] == ["navigate", "measure", "measure"]
    assert events[0]["url"] == "https://example.com/"
    assert events[1]["widths"] == {"top": 0.0, "right": 6.0, "bottom": 8.0, "left": 2.0}
    assert events[1]["bounds"] == {"x": 8.0, "y": 20.0, "width": 108.0, "height": 58.0}
    assert events[2]["supported"] is False
    assert events[2]["widths"] is None and events[2]["bounds"] is None


def test_text_output_keeps_full_precision(capsys):
    assert main(["parse", "--output", "text", "1234567.5px 0px"]) == 0
    assert capsys.readouterr().out == "top=0 right=1234567.5 bottom=0 left=-1234567.5  1234567.5px 0px\n"


def test_jsonl_output_maps_non_finite_widths_to_null(capsys):
    value = "1" * 400 + "px 0px"
    assert main(["parse", "--output", "jsonl", value]) == 0
    line = capsys.readouterr().out
    assert "NaN" not in line and "Infinity" not in line
    ev = json.loads(line)
    assert ev["event"] == "widths"
    assert ev["widths"] == {"top": 0.0, "right": None, "bottom": 0.0, "left": None}
