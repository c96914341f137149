"""Progressive reveal of focused images.

Each observed image moves through ``LOADING -> TRANSITIONING -> COMPLETE``:

* LOADING: the real image is pushed out of the crop window and the blurhash
  placeholder is shown as the element background.
* TRANSITIONING: once the image has loaded, and after a short paint delay,
  the real image becomes the background so CSS crossfades it in.
* COMPLETE: the real image is moved back into view and the background is
  cleared.

A change of image source sends the element back to LOADING from any state.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

from .focus import FocusDescriptor
from .placeholder import (
    PlaceholderConfig,
    RasterCanvas,
    TRANSPARENT_PIXEL,
    placeholder_background,
)
from .scheduler import Scheduler, TimerHandle
from .shift import Shift
from ..exceptions import InvalidHashError

logger = logging.getLogger(__name__)

TRANSITION_DURATION_MS = 320
TRANSITION_DELAY_MS = 280
# Wait before swapping in the real image so the placeholder has painted.
PAINT_DELAY_MS = 10
SETTLE_MS = 10
COMPLETE_AFTER_MS = TRANSITION_DURATION_MS + TRANSITION_DELAY_MS + SETTLE_MS

HIDDEN_POSITION = "-1000vw"
TRANSITION_STYLE = (
    f"background-image {TRANSITION_DURATION_MS}ms ease-in-out {TRANSITION_DELAY_MS}ms"
)


class RevealState(Enum):
    """Loading state of one observed image."""

    LOADING = "loading"
    TRANSITIONING = "transitioning"
    COMPLETE = "complete"


StateListener = Callable[[str, RevealState, RevealState], None]


class RevealController:
    """Reveal state machine for a single image element.

    The controller writes the element's inline style, a plain mapping of CSS
    property to value. Pass the element's own mapping as ``style`` to have
    timer-driven changes land on it directly.
    """

    def __init__(
        self,
        element_id: str,
        scheduler: Scheduler,
        canvas: Optional[RasterCanvas] = None,
        config: Optional[PlaceholderConfig] = None,
        on_state_change: Optional[StateListener] = None,
        style: Optional[Dict[str, str]] = None,
    ):
        self.element_id = element_id
        self.scheduler = scheduler
        self.canvas = canvas or RasterCanvas(config)
        self.on_state_change = on_state_change

        self.style: Dict[str, str] = style if style is not None else {}
        self.style["object-position"] = HIDDEN_POSITION
        self.state = RevealState.LOADING
        self.source: Optional[str] = None
        self.blurhash: Optional[str] = None

        self._placeholder_installed = False
        self._shift = Shift.CENTER
        self._generation = 0
        self._timers: List[TimerHandle] = []
        self._attached = True

    @property
    def attached(self) -> bool:
        return self._attached

    def update(
        self,
        focus: FocusDescriptor,
        shift: Shift,
        source: Optional[str],
        complete: bool = False,
    ) -> None:
        """Apply one layout pass.

        Args:
            focus: Current descriptor of the element
            shift: Crop position computed for the current container size
            source: Identity of the image source (its URL)
            complete: Whether the image at ``source`` has finished loading
        """
        if not self._attached:
            logger.debug(f"Ignoring update for detached image {self.element_id}")
            return

        self._shift = shift
        self._apply_base_style(focus, shift)

        if source != self.source:
            self._reset(source)

        if self.state is not RevealState.COMPLETE and (
            not self._placeholder_installed or focus.blurhash != self.blurhash
        ):
            self._install_placeholder(focus)

        if complete and self.state is RevealState.LOADING:
            self._begin_reveal()
        elif self.state is RevealState.COMPLETE:
            self.style["object-position"] = shift.css()

    def detach(self) -> None:
        """Stop tracking; pending timers become no-ops."""
        self._attached = False
        self._invalidate()

    def _apply_base_style(self, focus: FocusDescriptor, shift: Shift) -> None:
        self.style["object-fit"] = focus.fit.value
        self.style["transition"] = TRANSITION_STYLE
        self.style["background-position"] = shift.css()
        self.style["background-size"] = focus.fit.value
        self.style["background-repeat"] = "no-repeat"

    def _set_state(self, state: RevealState) -> None:
        previous = self.state
        if previous is state:
            return
        self.state = state
        logger.debug(f"Image {self.element_id}: {previous.value} -> {state.value}")
        if self.on_state_change is not None:
            self.on_state_change(self.element_id, previous, state)

    def _invalidate(self) -> None:
        self._generation += 1
        for handle in self._timers:
            handle.cancel()
        self._timers = []

    def _is_live(self, generation: int) -> bool:
        return self._attached and generation == self._generation

    def _schedule(self, delay_ms: float, callback: Callable[[int], None]) -> None:
        generation = self._generation
        self._timers = [handle for handle in self._timers if not handle.done]
        self._timers.append(
            self.scheduler.call_later(delay_ms, lambda: callback(generation))
        )

    def _reset(self, source: Optional[str]) -> None:
        if self.source is not None:
            logger.debug(f"Image {self.element_id} source changed to {source!r}")
        self._invalidate()
        self.source = source
        self.blurhash = None
        self._placeholder_installed = False
        self.style["object-position"] = HIDDEN_POSITION
        self._set_state(RevealState.LOADING)

    def _install_placeholder(self, focus: FocusDescriptor) -> None:
        try:
            background = placeholder_background(focus, self.canvas)
        except InvalidHashError as e:
            logger.warning(f"Image {self.element_id} has no usable placeholder: {e}")
            background = f"url({TRANSPARENT_PIXEL})"

        self.style["background-image"] = background
        self.blurhash = focus.blurhash
        self._placeholder_installed = True

    def _begin_reveal(self) -> None:
        self._set_state(RevealState.TRANSITIONING)
        self._schedule(PAINT_DELAY_MS, self._start_crossfade)

    def _start_crossfade(self, generation: int) -> None:
        if not self._is_live(generation):
            return
        self.style["background-image"] = f'url("{self.source}")'
        self._schedule(COMPLETE_AFTER_MS, self._complete)

    def _complete(self, generation: int) -> None:
        if not self._is_live(generation):
            return
        self._timers = []
        self.style["object-position"] = self._shift.css()
        self.style.pop("background-image", None)
        self._set_state(RevealState.COMPLETE)
