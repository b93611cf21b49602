from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Self, Sequence

from .env import default_headless, default_sandbox
from .nodriver_dom import ShadowMeasurement, selector_shadow_bounds

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class InspectConfig:
    url: str
    selectors: tuple[str, ...]
    timeout_s: float
    headless: bool
    sandbox: bool
    browser_path: Optional[Path]
    cdp_host: Optional[str]
    cdp_port: Optional[int]

    @classmethod
    def defaults(
        cls,
        *,
        url: str,
        selectors: Sequence[str] = (),
        timeout_s: float = 20.0,
        headless: bool | None = None,
        sandbox: bool | None = None,
        browser_path: Path | None = None,
        cdp_host: str | None = None,
        cdp_port: int | None = None,
    ) -> Self:
        """
        Create an InspectConfig with CLI-like defaults.
        """
        if (not cdp_host) ^ (cdp_port is None):
            raise ValueError("cdp_host and cdp_port must be provided together")
        return cls(
            url=str(url),
            selectors=tuple(str(s) for s in selectors),
            timeout_s=float(timeout_s),
            headless=default_headless() if headless is None else bool(headless),
            sandbox=default_sandbox() if sandbox is None else bool(sandbox),
            browser_path=browser_path,
            cdp_host=(str(cdp_host) if cdp_host else None),
            cdp_port=(int(cdp_port) if cdp_port is not None else None),
        )

    @property
    def using_cdp(self) -> bool:
        return bool(self.cdp_host and (self.cdp_port is not None))


class ShadowInspector:
    """
    Owns a nodriver browser and measures element shadows on the loaded page.

        async with ShadowInspector(cfg) as insp:
            await insp.navigate(cfg.url)
            m = await insp.measure(".card")
    """

    def __init__(
        self,
        config: InspectConfig,
        *,
        emit: Callable[[dict[str, Any]], None] | None = None,
        uc_module: Optional[Any] = None,
    ) -> None:
        self._cfg = config
        self._emit = emit
        self._uc = uc_module
        self._browser: Any = None
        self._page: Any = None

    async def __aenter__(self) -> "ShadowInspector":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _start_kwargs(self) -> dict[str, Any]:
        # Connect to an existing debuggable Chrome instead of launching one.
        if self._cfg.using_cdp:
            return {"host": str(self._cfg.cdp_host), "port": int(self._cfg.cdp_port)}

        kwargs: dict[str, Any] = {"headless": bool(self._cfg.headless), "sandbox": bool(self._cfg.sandbox)}
        if self._cfg.browser_path is not None:
            kwargs["browser_executable_path"] = str(self._cfg.browser_path)
        return kwargs

    async def start(self) -> None:
        if self._browser is not None:
            return

        uc = self._uc
        if uc is None:
            import nodriver as uc  # type: ignore[no-redef]

        kwargs = self._start_kwargs()
        _LOG.debug("starting browser: %s", kwargs)
        self._browser = await uc.start(**kwargs)

    async def close(self) -> None:
        if self._browser is None:
            return
        b = self._browser
        self._browser = None
        self._page = None

        # nodriver's Browser.stop() is synchronous in most releases; tolerate both shapes.
        with contextlib.suppress(Exception):
            stop = getattr(b, "stop", None)
            if callable(stop):
                res = stop()
                if asyncio.iscoroutine(res):
                    await res

        with contextlib.suppress(Exception):
            disc = getattr(getattr(b, "connection", None), "disconnect", None)
            if callable(disc):
                await asyncio.wait_for(disc(), timeout=2.0)

        # Let pending disconnect callbacks flush before loop teardown.
        await asyncio.sleep(0)

    async def navigate(self, url: str) -> Any:
        if self._browser is None:
            raise RuntimeError("inspector is not started")
        if self._emit is not None:
            self._emit({"event": "navigate", "url": str(url)})
        self._page = await self._browser.get(url)
        return self._page

    @property
    def browser(self) -> Any:
        return self._browser

    @property
    def page(self) -> Any:
        return self._page

    async def measure(self, selector: str, *, within_selector: str | None = None) -> ShadowMeasurement:
        if self._page is None:
            raise RuntimeError("no page loaded; call navigate() first")
        m = await selector_shadow_bounds(
            self._page,
            selector,
            timeout_s=self._cfg.timeout_s,
            within_selector=within_selector,
        )
        if self._emit is not None:
            self._emit(m.as_event())
        return m


async def inspect_page(
    config: InspectConfig,
    *,
    emit: Callable[[dict[str, Any]], None] | None = None,
    uc_module: Optional[Any] = None,
) -> list[ShadowMeasurement]:
    """Open config.url and measure every configured selector in order."""
    async with ShadowInspector(config, emit=emit, uc_module=uc_module) as insp:
        await insp.navigate(config.url)
        return [await insp.measure(sel) for sel in config.selectors]
