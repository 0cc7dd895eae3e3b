"""
PlotlyPane.py — Responsive Plotly FigureWidget pane with gesture forwarding

This module embeds a `plotly.graph_objects.FigureWidget` in an ipywidgets layout
and connects it to the Python-side viewport logic of the rank chart.

The frontend half is an `anywidget` driver that sits hidden next to the Plotly
DOM subtree. It does three jobs:

- keeps Plotly sized to its container (ResizeObserver + MutationObserver, with
  a debounced resize and two follow-ups for animated side-panel transitions),
- reports the pixel size of the plot area (Plotly's ``_fullLayout._size``) in
  the ``plot_width`` / ``plot_height`` traits, which the declutter pass needs,
- forwards wheel and two-finger touch gestures to Python as custom messages,
  with pointer positions already converted to fractions of the plot area
  (``fx`` from the left edge, ``fy`` from the bottom edge).

Plotly's own scroll-zoom must stay disabled on the figure (the wheel handler
here calls ``preventDefault``); drag-to-pan is left to Plotly and surfaces in
Python through the usual ``layout.on_change`` notifications.

Public API
----------

- `PlotlyGestureDriver`
    Hidden `anywidget.AnyWidget` doing resize, size reporting and gestures.
- `PlotlyPaneStyle`
    Frozen dataclass of wrapper styling.
- `PlotlyPane`
    Python wrapper that assembles host, figure and driver and exposes
    `.widget`, `.reflow()`, `.plot_size()` and the gesture callbacks
    `on_wheel` / `on_pinch` / `on_resize`.

Message protocol (frontend → Python)
------------------------------------

==============  ==========================================
type            payload
==============  ==========================================
``wheel``       ``delta_y``, ``fx``, ``fy``
``pinch_start`` ``distance``, ``fx``, ``fy``
``pinch_move``  ``distance``
``pinch_end``   ``remaining`` (pointers still down)
==============  ==========================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import anywidget
import traitlets
import ipywidgets as W

__all__ = ["PlotlyGestureDriver", "PlotlyPaneStyle", "PlotlyPane"]

logger = logging.getLogger(__name__)


class PlotlyGestureDriver(anywidget.AnyWidget):
    """
    Frontend driver for a Plotly DOM subtree.

    Traitlets (synced to frontend)
    ------------------------------
    defer_reveal:
        Hide the host until the first successful resize.
    debounce_ms, min_delta_px, followup_ms_1, followup_ms_2:
        Resize scheduling knobs.
    capture_gestures:
        When False, wheel and touch events are left to the browser.
    plot_width, plot_height:
        Plot-area size in pixels, written by the frontend (0 until known).
    debug_js:
        Enable console logging from the frontend.
    """

    host_selector = traitlets.Unicode("").tag(sync=True)
    defer_reveal = traitlets.Bool(True).tag(sync=True)

    debounce_ms = traitlets.Int(60).tag(sync=True)
    min_delta_px = traitlets.Int(2).tag(sync=True)

    # follow-up resizes to survive JupyterLab sidebar transitions
    followup_ms_1 = traitlets.Int(80).tag(sync=True)
    followup_ms_2 = traitlets.Int(250).tag(sync=True)

    capture_gestures = traitlets.Bool(True).tag(sync=True)
    plot_width = traitlets.Int(0).tag(sync=True)
    plot_height = traitlets.Int(0).tag(sync=True)

    debug_js = traitlets.Bool(False).tag(sync=True)

    _esm = r"""
    function clampInt(x, dflt) {
      let n = Number(x);
      return Number.isFinite(n) ? Math.trunc(n) : dflt;
    }

    function safeLog(enabled, ...args) {
      if (enabled) console.log("[PlotlyGestureDriver]", ...args);
    }

    function pxSizeOf(el) {
      const r = el.getBoundingClientRect();
      return { w: Math.round(r.width), h: Math.round(r.height) };
    }

    function findPlotEl(host) {
      if (!host) return null;
      return host.querySelector(".js-plotly-plot");
    }

    function findClipAncestor(startEl) {
      let el = startEl;
      while (el && el.parentElement) {
        el = el.parentElement;
        const cs = getComputedStyle(el);
        const ox = cs.overflowX || cs.overflow || "visible";
        if (ox !== "visible") return el;
      }
      return null;
    }

    function effectiveSize(host, clip) {
      const hs = pxSizeOf(host);
      if (!clip) return hs;
      const cs = pxSizeOf(clip);
      return { w: Math.min(hs.w, cs.w), h: hs.h };
    }

    function sizePlot(plotEl, wPx, hPx) {
      for (const node of [plotEl, plotEl.querySelector(".plot-container")]) {
        if (!node) continue;
        node.style.width = "100%";
        node.style.minWidth = "0";
        node.style.maxWidth = `${wPx}px`;
        node.style.boxSizing = "border-box";
        node.style.height = `${hPx}px`;
      }
    }

    async function plotlyResize(plotEl) {
      try {
        const P = window.Plotly;
        if (P && P.Plots && typeof P.Plots.resize === "function") {
          return await P.Plots.resize(plotEl);
        }
      } catch (e) {}
      window.dispatchEvent(new Event("resize"));
    }

    function plotArea(plotEl) {
      const s = plotEl && plotEl._fullLayout && plotEl._fullLayout._size;
      if (!s || !(s.w > 0 && s.h > 0)) return null;
      return s;
    }

    function fractionAt(plotEl, clientX, clientY) {
      const s = plotArea(plotEl);
      if (!s) return null;
      const r = plotEl.getBoundingClientRect();
      const fx = (clientX - r.left - s.l) / s.w;
      const fy = 1 - (clientY - r.top - s.t) / s.h;
      return {
        fx: Math.min(1, Math.max(0, fx)),
        fy: Math.min(1, Math.max(0, fy)),
      };
    }

    function touchDistance(t0, t1) {
      return Math.hypot(t1.clientX - t0.clientX, t1.clientY - t0.clientY);
    }

    export default {
      render({ model, el }) {
        el.style.display = "none";

        let debug = !!model.get("debug_js");

        function resolveHost() {
          const sel = model.get("host_selector");
          if (sel && typeof sel === "string" && sel.trim()) {
            return document.querySelector(sel.trim());
          }
          return el.parentElement;
        }

        let host = resolveHost();
        if (!host) {
          safeLog(debug, "No host found; driver inactive.");
          return;
        }

        let clip = findClipAncestor(host);
        let last = { w: 0, h: 0 };
        let timer = null;
        let follow1 = null;
        let follow2 = null;
        let revealed = false;
        let gestureEl = null;
        let pinching = false;

        function setHostHidden(hidden) {
          if (!model.get("defer_reveal")) return;
          host.style.opacity = hidden ? "0" : "";
          host.style.pointerEvents = hidden ? "none" : "";
        }

        setHostHidden(true);

        function reportPlotArea(plotEl) {
          const s = plotArea(plotEl);
          if (!s) return;
          const w = Math.round(s.w);
          const h = Math.round(s.h);
          if (w !== model.get("plot_width") || h !== model.get("plot_height")) {
            model.set("plot_width", w);
            model.set("plot_height", h);
            model.save_changes();
          }
        }

        function onWheel(ev) {
          if (!model.get("capture_gestures")) return;
          const pos = fractionAt(gestureEl, ev.clientX, ev.clientY);
          if (!pos) return;
          ev.preventDefault();
          model.send({ type: "wheel", delta_y: ev.deltaY, fx: pos.fx, fy: pos.fy });
        }

        function onTouchStart(ev) {
          if (!model.get("capture_gestures") || ev.touches.length !== 2) return;
          const [t0, t1] = ev.touches;
          const pos = fractionAt(
            gestureEl, (t0.clientX + t1.clientX) / 2, (t0.clientY + t1.clientY) / 2
          );
          if (!pos) return;
          ev.preventDefault();
          ev.stopPropagation();
          pinching = true;
          model.send({ type: "pinch_start", distance: touchDistance(t0, t1), fx: pos.fx, fy: pos.fy });
        }

        function onTouchMove(ev) {
          if (!pinching || ev.touches.length !== 2) return;
          ev.preventDefault();
          ev.stopPropagation();
          model.send({ type: "pinch_move", distance: touchDistance(ev.touches[0], ev.touches[1]) });
        }

        function onTouchEnd(ev) {
          if (!pinching || ev.touches.length >= 2) return;
          pinching = false;
          model.send({ type: "pinch_end", remaining: ev.touches.length });
        }

        function bindGestures(plotEl) {
          if (gestureEl === plotEl) return;
          unbindGestures();
          gestureEl = plotEl;
          // capture phase so Plotly's own drag handlers never see a two-finger start
          plotEl.addEventListener("wheel", onWheel, { passive: false, capture: true });
          plotEl.addEventListener("touchstart", onTouchStart, { passive: false, capture: true });
          plotEl.addEventListener("touchmove", onTouchMove, { passive: false, capture: true });
          plotEl.addEventListener("touchend", onTouchEnd, { capture: true });
          plotEl.addEventListener("touchcancel", onTouchEnd, { capture: true });
        }

        function unbindGestures() {
          if (!gestureEl) return;
          gestureEl.removeEventListener("wheel", onWheel, { capture: true });
          gestureEl.removeEventListener("touchstart", onTouchStart, { capture: true });
          gestureEl.removeEventListener("touchmove", onTouchMove, { capture: true });
          gestureEl.removeEventListener("touchend", onTouchEnd, { capture: true });
          gestureEl.removeEventListener("touchcancel", onTouchEnd, { capture: true });
          gestureEl = null;
        }

        async function doResize(reason) {
          host = resolveHost();
          if (!host) return false;
          clip = findClipAncestor(host);

          const plotEl = findPlotEl(host);
          if (!plotEl) {
            safeLog(debug, "Plot element not found yet:", reason);
            return false;
          }
          bindGestures(plotEl);

          const cur = effectiveSize(host, clip);
          if (!(cur.w > 0 && cur.h > 0)) return false;

          const minDelta = clampInt(model.get("min_delta_px"), 2);
          const dw = Math.abs(cur.w - last.w);
          const dh = Math.abs(cur.h - last.h);
          if (revealed && dw < minDelta && dh < minDelta) {
            reportPlotArea(plotEl);
            return true;
          }

          last = cur;
          sizePlot(plotEl, cur.w, cur.h);
          await plotlyResize(plotEl);
          reportPlotArea(plotEl);

          if (!revealed) {
            setHostHidden(false);
            revealed = true;
          }
          return true;
        }

        function clearTimers() {
          if (timer) clearTimeout(timer);
          if (follow1) clearTimeout(follow1);
          if (follow2) clearTimeout(follow2);
          timer = follow1 = follow2 = null;
        }

        function schedule(reason) {
          clearTimers();
          const wait = clampInt(model.get("debounce_ms"), 60);
          const t1 = clampInt(model.get("followup_ms_1"), 80);
          const t2 = clampInt(model.get("followup_ms_2"), 250);
          timer = setTimeout(() => { doResize(reason); }, wait);
          follow1 = setTimeout(() => { doResize(reason + ":follow1"); }, wait + t1);
          follow2 = setTimeout(() => { doResize(reason + ":follow2"); }, wait + t2);
        }

        const roHost = new ResizeObserver(() => schedule("ResizeObserver:host"));
        roHost.observe(host);

        let roClip = null;
        if (clip && clip !== host) {
          roClip = new ResizeObserver(() => schedule("ResizeObserver:clip"));
          roClip.observe(clip);
        }

        const mo = new MutationObserver(() => {
          if (findPlotEl(resolveHost())) schedule("MutationObserver");
        });
        mo.observe(host, { childList: true, subtree: true });

        const onMsg = (msg) => {
          if (msg && msg.type === "reflow") schedule("msg:reflow");
        };
        model.on("msg:custom", onMsg);

        const onRevealChange = () => {
          if (!model.get("defer_reveal")) setHostHidden(false);
          schedule("change:defer_reveal");
        };
        model.on("change:defer_reveal", onRevealChange);

        schedule("init");

        return () => {
          try { clearTimers(); } catch (e) {}
          try { unbindGestures(); } catch (e) {}
          try { roHost.disconnect(); } catch (e) {}
          try { if (roClip) roClip.disconnect(); } catch (e) {}
          try { mo.disconnect(); } catch (e) {}
          try { model.off("msg:custom", onMsg); } catch (e) {}
          try { model.off("change:defer_reveal", onRevealChange); } catch (e) {}
          try { setHostHidden(false); } catch (e) {}
        };
      }
    };
    """

    def reflow(self) -> None:
        """Ask the frontend to schedule a resize (debounced, with follow-ups)."""
        self.send({"type": "reflow"})


@dataclass(frozen=True)
class PlotlyPaneStyle:
    """
    Visual styling options for `PlotlyPane`.

    Parameters
    ----------
    padding_px:
        Inner padding (in pixels) applied by the outer wrapper.
    border:
        CSS border string.
    border_radius_px:
        Corner radius in pixels.
    overflow:
        Overflow policy for the wrapper.
    """

    padding_px: int = 0
    border: str = "1px solid #ddd"
    border_radius_px: int = 8
    overflow: str = "hidden"


WheelCallback = Callable[[float, float, float], Any]
PinchCallback = Callable[[str, Dict[str, Any]], Any]
ResizeCallback = Callable[[int, int], Any]


class PlotlyPane:
    """
    Styled, responsive plot area for a Plotly `FigureWidget`.

    The pane must be given a real pixel height by its ancestors; the chart
    layout does this with a fixed-height plot container.

    Parameters
    ----------
    figw:
        The FigureWidget to host.
    style:
        Wrapper styling.
    defer_reveal, debounce_ms, min_delta_px, debug_js:
        Passed to the driver.

    Attributes
    ----------
    driver:
        The underlying `PlotlyGestureDriver`.
    """

    def __init__(
        self,
        figw: W.Widget,
        *,
        style: PlotlyPaneStyle = PlotlyPaneStyle(),
        defer_reveal: bool = True,
        debounce_ms: int = 60,
        min_delta_px: int = 2,
        debug_js: bool = False,
    ):
        self.driver = PlotlyGestureDriver(
            defer_reveal=defer_reveal,
            debounce_ms=debounce_ms,
            min_delta_px=min_delta_px,
            debug_js=debug_js,
        )
        self._wheel_callbacks: List[WheelCallback] = []
        self._pinch_callbacks: List[PinchCallback] = []
        self._resize_callbacks: List[ResizeCallback] = []
        self.driver.on_msg(self._handle_message)
        self.driver.observe(self._handle_resize, names=["plot_width", "plot_height"])

        self._host = W.Box(
            [figw, self.driver],
            layout=W.Layout(
                width="100%",
                height="100%",
                min_width="0",
                min_height="0",
                display="flex",
                flex_flow="column",
                overflow="hidden",
            ),
        )
        self._wrap = W.Box(
            [self._host],
            layout=W.Layout(
                width="100%",
                height="100%",
                min_width="0",
                min_height="0",
                padding=f"{int(style.padding_px)}px",
                border=style.border,
                border_radius=f"{int(style.border_radius_px)}px",
                overflow=style.overflow,
                box_sizing="border-box",
            ),
        )

    @property
    def widget(self) -> W.Widget:
        """The outer wrapper to embed in an ipywidgets layout."""
        return self._wrap

    def reflow(self) -> None:
        """Trigger a programmatic resize after a Python-side layout change."""
        self.driver.reflow()

    def plot_size(self) -> Optional[Tuple[int, int]]:
        """Return the reported plot-area ``(width, height)``, or ``None`` if unknown."""
        w, h = int(self.driver.plot_width), int(self.driver.plot_height)
        if w <= 0 or h <= 0:
            return None
        return (w, h)

    # --- Gesture callbacks ---

    def on_wheel(self, callback: WheelCallback) -> None:
        """Register ``callback(delta_y, fx, fy)`` for wheel events."""
        self._wheel_callbacks.append(callback)

    def on_pinch(self, callback: PinchCallback) -> None:
        """Register ``callback(phase, payload)``; phase is ``start``/``move``/``end``."""
        self._pinch_callbacks.append(callback)

    def on_resize(self, callback: ResizeCallback) -> None:
        """Register ``callback(width, height)`` for plot-area size changes."""
        self._resize_callbacks.append(callback)

    def _handle_message(self, _widget: Any, content: Any, _buffers: Any = None) -> None:
        if not isinstance(content, dict):
            return
        kind = content.get("type")
        if kind == "wheel":
            try:
                args = (float(content["delta_y"]), float(content["fx"]), float(content["fy"]))
            except (KeyError, TypeError, ValueError):
                logger.debug("malformed wheel message: %r", content)
                return
            self._dispatch(self._wheel_callbacks, *args)
        elif isinstance(kind, str) and kind.startswith("pinch_"):
            self._dispatch(self._pinch_callbacks, kind[len("pinch_"):], content)

    def _handle_resize(self, _change: Any = None) -> None:
        size = self.plot_size()
        if size is not None:
            self._dispatch(self._resize_callbacks, *size)

    @staticmethod
    def _dispatch(callbacks: List[Callable[..., Any]], *args: Any) -> None:
        for callback in list(callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("PlotlyPane callback %r failed", callback)
