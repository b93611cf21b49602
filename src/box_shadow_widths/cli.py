from __future__ import annotations

import argparse
import asyncio
import json
import logging
import math
import sys
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from . import __version__
from .env import LOG_LEVEL_CHOICES, OUTPUT_CHOICES, default_headless, default_log_level, default_output, default_sandbox
from .nodriver_dom import ShadowMeasurement
from .session import InspectConfig, inspect_page
from .shadow import EdgeWidths, box_shadow_widths

Emit = Callable[[dict], None]


def _fmt(v: float) -> str:
    return f"{v:.15g}"


def _json_safe(obj: Any) -> Any:
    # NaN and Infinity are not valid JSON.
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


def format_widths(w: EdgeWidths) -> str:
    return f"top={_fmt(w.top)} right={_fmt(w.right)} bottom={_fmt(w.bottom)} left={_fmt(w.left)}"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="box-shadow-widths")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "--output",
            choices=list(OUTPUT_CHOICES),
            default=default_output(),
            help="Output format. Use jsonl for a machine-readable event stream on stdout.",
        )
        sp.add_argument(
            "--log-level",
            choices=list(LOG_LEVEL_CHOICES),
            default=default_log_level(),
            help="Logging verbosity (logs go to stderr).",
        )

    parse = sub.add_parser("parse", help="Compute edge widths for box-shadow values.")
    parse.add_argument(
        "values",
        nargs="*",
        help="box-shadow values (quote each one). Reads one value per stdin line when omitted.",
    )
    add_common(parse)

    inspect = sub.add_parser("inspect", help="Measure computed box-shadows of elements on a live page.")
    inspect.add_argument("--url", required=True)
    inspect.add_argument(
        "--selector",
        action="append",
        required=True,
        help="CSS selector to measure (repeatable).",
    )
    inspect.add_argument("--timeout", type=float, default=20.0, help="Seconds to wait for each selector.")
    inspect.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=default_headless(),
        help="Launch Chrome headless (ignored with --cdp-host/--cdp-port).",
    )
    inspect.add_argument(
        "--sandbox",
        action=argparse.BooleanOptionalAction,
        default=default_sandbox(),
        help="Enable the Chrome sandbox (disable with --no-sandbox if Chrome fails to launch in containers).",
    )
    inspect.add_argument(
        "--browser-path",
        default=None,
        help="Path to a Chrome/Chromium executable (overrides nodriver's auto-detection).",
    )
    inspect.add_argument(
        "--cdp-host",
        default=None,
        help="Connect to an existing Chrome instance via CDP (host). Requires --cdp-port.",
    )
    inspect.add_argument(
        "--cdp-port",
        default=None,
        type=int,
        help="Connect to an existing Chrome instance via CDP (port). Requires --cdp-host.",
    )
    add_common(inspect)

    return p


def _iter_values(values: list[str], stdin=None) -> Iterable[str]:
    if values:
        yield from values
        return
    for line in stdin or sys.stdin:
        s = line.strip()
        if s:
            yield s


def _parse(ns: argparse.Namespace, *, emit: Optional[Emit]) -> None:
    for value in _iter_values(list(ns.values)):
        w = box_shadow_widths(value)
        if emit is not None:
            if w is None:
                emit({"event": "unsupported", "value": value})
            else:
                emit({"event": "widths", "value": value, "widths": w.as_dict()})
            continue

        if w is None:
            sys.stdout.write(f"unsupported  {value}\n")
        else:
            sys.stdout.write(f"{format_widths(w)}  {value}\n")


def _make_config(ns: argparse.Namespace) -> InspectConfig:
    cdp_host = getattr(ns, "cdp_host", None)
    cdp_port = getattr(ns, "cdp_port", None)
    if (not cdp_host) ^ (cdp_port is None):
        raise SystemExit("--cdp-host and --cdp-port must be provided together")

    return InspectConfig.defaults(
        url=ns.url,
        selectors=ns.selector,
        timeout_s=float(ns.timeout),
        headless=bool(ns.headless),
        sandbox=bool(ns.sandbox),
        browser_path=(Path(ns.browser_path).expanduser() if ns.browser_path else None),
        cdp_host=cdp_host,
        cdp_port=cdp_port,
    )


def _write_measurement(m: ShadowMeasurement) -> None:
    if m.widths is None:
        sys.stdout.write(f"{m.selector}: unsupported  {m.box_shadow}\n")
        return
    b = m.bounds
    assert b is not None
    sys.stdout.write(
        f"{m.selector}: {format_widths(m.widths)}  "
        f"bounds=({_fmt(b.x)}, {_fmt(b.y)}, {_fmt(b.width)}x{_fmt(b.height)})  {m.box_shadow or 'none'}\n"
    )


def main(argv: Optional[list[str]] = None) -> int:
    ns = build_parser().parse_args(argv)

    log_level = getattr(logging, str(ns.log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    emit = None
    if ns.output == "jsonl":
        def _emit(ev: dict) -> None:
            if "ts" not in ev:
                ev = {**ev, "ts": time.time()}
            sys.stdout.write(json.dumps(_json_safe(ev), separators=(",", ":"), allow_nan=False) + "\n")
            sys.stdout.flush()

        emit = _emit

    try:
        if ns.cmd == "parse":
            _parse(ns, emit=emit)
            return 0

        if ns.cmd == "inspect":
            cfg = _make_config(ns)
            results = asyncio.run(inspect_page(cfg, emit=emit))
            if emit is None:
                for m in results:
                    _write_measurement(m)
            return 0

        raise SystemExit(f"unknown command: {ns.cmd}")
    except Exception as e:
        if emit is not None:
            emit({"event": "error", "error": str(e), "error_type": e.__class__.__name__})
        else:
            print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
