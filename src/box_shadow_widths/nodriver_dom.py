from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from .geometry import Rect, outset_rect, quad_bounds
from .shadow import EdgeWidths, box_shadow_widths

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShadowMeasurement:
    selector: str
    box_shadow: str
    border_box: Rect
    # Both None when the computed value holds several shadow layers.
    widths: Optional[EdgeWidths]
    bounds: Optional[Rect]

    @property
    def supported(self) -> bool:
        return self.widths is not None

    def as_event(self) -> dict[str, Any]:
        return {
            "event": "measure",
            "selector": self.selector,
            "box_shadow": self.box_shadow,
            "supported": self.supported,
            "border_box": _rect_dict(self.border_box),
            "widths": self.widths.as_dict() if self.widths is not None else None,
            "bounds": _rect_dict(self.bounds) if self.bounds is not None else None,
        }


def _rect_dict(r: Rect) -> dict[str, float]:
    return {"x": r.x, "y": r.y, "width": r.width, "height": r.height}


def _nodriver() -> Any:
    try:
        import nodriver as uc  # type: ignore[import-not-found]
    except Exception:
        _LOG.debug("nodriver import failed, using dict CDP", exc_info=True)
        return None
    return uc


def _cdp_fn(uc: Any, domain: str, name: str) -> Any:
    """Look up a generated nodriver CDP command, or None when unavailable."""
    if uc is None:
        return None
    fn = getattr(getattr(getattr(uc, "cdp", None), domain, None), name, None)
    return fn if callable(fn) else None


def _get(obj: Any, *names: str) -> Any:
    for n in names:
        if obj is None:
            continue
        if isinstance(obj, dict) and n in obj:
            return obj.get(n)
        if hasattr(obj, n):
            return getattr(obj, n)
    return None


def _node_id_from(obj: Any) -> int:
    """
    Best-effort extraction of a nodeId as an int (0 if missing/unparseable).
    """
    if obj is None:
        return 0
    if isinstance(obj, int):
        return int(obj)
    v = _get(obj, "nodeId", "node_id")
    try:
        return int(v) if v is not None else 0
    except (TypeError, ValueError):
        return 0


async def _send_dict(page: Any, method: str, params: dict[str, Any] | None = None) -> Any:
    """Send a raw dict-based CDP message via ``page.send``."""
    return await page.send({"method": str(method), "params": params or {}})


async def _query_nodriver(page: Any, uc: Any, selector: str, within_selector: str | None) -> Any:
    get_document = _cdp_fn(uc, "dom", "get_document")
    query_selector = _cdp_fn(uc, "dom", "query_selector")
    if get_document is None or query_selector is None:
        raise AttributeError("nodriver uc.cdp.dom is missing get_document/query_selector")

    doc = await page.send(get_document(1, True))
    root = _get(doc, "node_id", "nodeId") or _get(_get(doc, "root"), "node_id", "nodeId")
    if not root:
        return 0
    if within_selector:
        root = await page.send(query_selector(root, within_selector))
        if not root:
            return 0
    found = await page.send(query_selector(root, selector))
    return found if found else 0


async def _query_dict(page: Any, selector: str, within_selector: str | None) -> int:
    doc = await _send_dict(page, "DOM.getDocument", {"depth": 1, "pierce": True})
    root = _node_id_from(_get(doc, "root"))
    if not root:
        return 0
    if within_selector:
        resp = await _send_dict(page, "DOM.querySelector", {"nodeId": root, "selector": within_selector})
        root = _node_id_from(resp)
        if not root:
            return 0
    resp = await _send_dict(page, "DOM.querySelector", {"nodeId": root, "selector": selector})
    return _node_id_from(resp)


async def dom_query_selector_node_id(page: Any, selector: str, *, within_selector: str | None = None) -> Any:
    """
    CDP DOM querySelector that returns a nodeId (0 if not found).

    nodriver's generated commands are tried first; pages that only speak dict
    CDP (test fakes, other driver shims) get the raw-message fallback.
    """
    if not hasattr(page, "send"):
        raise AttributeError("page has no send() for CDP DOM query")

    uc = _nodriver()
    if _cdp_fn(uc, "dom", "get_document") is not None:
        try:
            return await _query_nodriver(page, uc, selector, within_selector)
        except Exception:
            _LOG.debug("nodriver querySelector failed, falling back to dict CDP", exc_info=True)

    return await _query_dict(page, selector, within_selector)


async def wait_for_node_id(
    page: Any,
    selector: str,
    *,
    timeout_s: float,
    within_selector: str | None = None,
    poll_s: float = 0.05,
    max_poll_s: float = 0.25,
) -> Any:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + float(timeout_s)
    poll = max(0.0, float(poll_s))
    max_poll = max(poll, float(max_poll_s))
    last_exc: Exception | None = None

    while True:
        try:
            node_id = await dom_query_selector_node_id(page, selector, within_selector=within_selector)
            if node_id:
                return node_id
        except Exception as e:
            # Transient DOM state during navigation; keep polling until timeout.
            last_exc = e

        if loop.time() >= deadline:
            raise TimeoutError(f"Timed out waiting for selector: {selector}") from last_exc

        await asyncio.sleep(poll)
        if poll > 0:
            poll = min(max_poll, poll * 1.5)


async def _enable_css(page: Any, uc: Any) -> None:
    # CSS.getComputedStyleForNode requires the DOM and CSS domains. Already
    # enabled domains (or shims without them) are fine.
    for domain, method in (("dom", "DOM.enable"), ("css", "CSS.enable")):
        fn = _cdp_fn(uc, domain, "enable")
        try:
            if fn is not None:
                await page.send(fn())
            else:
                await _send_dict(page, method)
        except Exception:
            _LOG.debug("%s failed", method, exc_info=True)


def _style_entries(resp: Any) -> list[Any]:
    # Newer protocol revisions return (computedStyle, extraFields).
    if isinstance(resp, tuple) and resp and isinstance(resp[0], list):
        return resp[0]
    if isinstance(resp, dict):
        return list(resp.get("computedStyle") or [])
    if isinstance(resp, list):
        return resp
    return []


async def dom_computed_style(page: Any, node_id: Any) -> dict[str, str]:
    """
    Computed style of a node as a ``{property: value}`` mapping.

    Uses the CSS domain rather than Runtime evaluation.
    """
    if not hasattr(page, "send"):
        raise AttributeError("page has no send() for CDP computed style")

    uc = _nodriver()
    await _enable_css(page, uc)

    resp: Any = None
    nodriver_exc: Exception | None = None
    fn = _cdp_fn(uc, "css", "get_computed_style_for_node")
    if fn is not None:
        try:
            resp = await page.send(fn(node_id))
        except Exception as e:
            nodriver_exc = e
            resp = None

    if resp is None:
        try:
            resp = await _send_dict(page, "CSS.getComputedStyleForNode", {"nodeId": int(node_id)})
        except Exception:
            if nodriver_exc is not None:
                raise nodriver_exc
            raise

    out: dict[str, str] = {}
    for entry in _style_entries(resp):
        name = _get(entry, "name")
        if name is not None:
            value = _get(entry, "value")
            out[str(name)] = "" if value is None else str(value)
    return out


async def dom_border_quad(page: Any, node_id: Any) -> list[float]:
    """
    Border-box quad of a node, falling back to the content then margin quads.

    Box shadows are drawn from the border box.
    """
    if not hasattr(page, "send"):
        raise AttributeError("page has no send() for CDP box model")

    uc = _nodriver()
    bm: Any = None
    nodriver_exc: Exception | None = None
    fn = _cdp_fn(uc, "dom", "get_box_model")
    if fn is not None:
        try:
            bm = await page.send(fn(node_id=node_id))
        except Exception as e:
            nodriver_exc = e
            bm = None

    if bm is None:
        try:
            bm = await _send_dict(page, "DOM.getBoxModel", {"nodeId": int(node_id)})
        except Exception:
            if nodriver_exc is not None:
                raise nodriver_exc
            raise

    model = bm.get("model") if isinstance(bm, dict) else bm
    quad = None
    for name in ("border", "content", "margin"):
        quad = _get(model, name)
        if quad:
            break
    if not quad:
        raise RuntimeError(f"DOM.getBoxModel returned no quad for nodeId: {node_id}")
    return [float(v) for v in quad]


async def _resolve(page: Any, selector: str, *, timeout_s: float | None, within_selector: str | None) -> Any:
    if timeout_s is not None:
        return await wait_for_node_id(page, selector, timeout_s=timeout_s, within_selector=within_selector)

    node_id = await dom_query_selector_node_id(page, selector, within_selector=within_selector)
    if not node_id:
        raise RuntimeError(f"DOM.querySelector returned no nodeId for selector: {selector}")
    return node_id


def _normalize_box_shadow(value: str) -> str:
    v = value.strip()
    return "" if v.lower() == "none" else v


async def selector_box_shadow(
    page: Any,
    selector: str,
    *,
    timeout_s: float | None = None,
    within_selector: str | None = None,
) -> str:
    """Computed `box-shadow` of the element ("" when it has none)."""
    node_id = await _resolve(page, selector, timeout_s=timeout_s, within_selector=within_selector)
    style = await dom_computed_style(page, node_id)
    return _normalize_box_shadow(style.get("box-shadow", ""))


async def selector_shadow_widths(
    page: Any,
    selector: str,
    *,
    timeout_s: float | None = None,
    within_selector: str | None = None,
) -> Optional[EdgeWidths]:
    value = await selector_box_shadow(page, selector, timeout_s=timeout_s, within_selector=within_selector)
    return box_shadow_widths(value)


async def selector_shadow_bounds(
    page: Any,
    selector: str,
    *,
    timeout_s: float | None = None,
    within_selector: str | None = None,
) -> ShadowMeasurement:
    """
    Measure an element's border box and the area its shadow paints over.

    Coordinates are the ones DOM.getBoxModel reports (CSS pixels, page space).
    """
    node_id = await _resolve(page, selector, timeout_s=timeout_s, within_selector=within_selector)
    style = await dom_computed_style(page, node_id)
    value = _normalize_box_shadow(style.get("box-shadow", ""))
    border_box = quad_bounds(await dom_border_quad(page, node_id))

    widths = box_shadow_widths(value)
    if widths is None:
        _LOG.info("multiple box-shadow layers on %s, skipping: %s", selector, value)
    bounds = outset_rect(border_box, widths) if widths is not None else None
    return ShadowMeasurement(
        selector=selector,
        box_shadow=value,
        border_box=border_box,
        widths=widths,
        bounds=bounds,
    )
