"""Runtime that keeps focused images positioned and revealed.

The host environment owns element lifecycles and event listeners. It
registers each focused image with :class:`FocusRuntime` and forwards resize,
attribute-change, load and pointer signals; the runtime recomputes the crop
position once per frame per image and writes the result into the element's
style mapping.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .core.codec import FOCUS_ATTRIBUTE, decode_or_default, encode
from .core.focus import FocusDescriptor
from .core.picker import FocusPicker, PickerBox
from .core.placeholder import PlaceholderConfig, RasterCanvas
from .core.reveal import RevealController, RevealState
from .core.scheduler import FrameCoalescer, Scheduler
from .core.shift import compute_shift

logger = logging.getLogger(__name__)

SOURCE_ATTRIBUTE = "src"

FocusListener = Callable[[str, FocusDescriptor], None]


@dataclass
class ImageElement:
    """Snapshot of a host image element."""

    element_id: str
    src: Optional[str] = None
    focus: Optional[str] = None      # Encoded focus attribute
    natural_width: int = 0           # 0 until the image has loaded
    natural_height: int = 0
    complete: bool = False
    left: float = 0.0                # Rendered box, page coordinates
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0
    style: Dict[str, str] = field(default_factory=dict)

    def set_attribute(self, name: str, value: Optional[str]) -> None:
        if name == FOCUS_ATTRIBUTE:
            self.focus = value
        elif name == SOURCE_ATTRIBUTE:
            self.src = value
        else:
            raise KeyError(f"Unknown attribute: {name}")


@dataclass
class RuntimeConfig:
    """Configuration for the focus runtime."""

    attribute: str = FOCUS_ATTRIBUTE
    placeholder: PlaceholderConfig = field(default_factory=PlaceholderConfig)

    def __post_init__(self):
        """Validate configuration parameters."""
        if not self.attribute or not self.attribute.startswith("data-"):
            raise ValueError(f"attribute must be a data-* attribute, got {self.attribute!r}")


class _Tracked:
    """Registry entry for one observed element."""

    def __init__(self, element: ImageElement, controller: RevealController):
        self.element = element
        self.controller = controller
        self.focus: Optional[FocusDescriptor] = None
        self.picker: Optional[FocusPicker] = None


class FocusRuntime:
    """Registry of observed images and the signal handlers that drive them."""

    def __init__(self, scheduler: Scheduler, config: Optional[RuntimeConfig] = None):
        self.scheduler = scheduler
        self.config = config or RuntimeConfig()
        self.canvas = RasterCanvas(self.config.placeholder)
        self._frames = FrameCoalescer(scheduler)
        self._tracked: Dict[str, _Tracked] = {}
        self._listeners: List[FocusListener] = []

    # Registry

    def observe(self, element: ImageElement) -> RevealController:
        """Start tracking an element; observing it again is a no-op."""
        tracked = self._tracked.get(element.element_id)
        if tracked is not None:
            return tracked.controller

        controller = RevealController(
            element.element_id,
            self.scheduler,
            canvas=self.canvas,
            style=element.style,
        )
        tracked = _Tracked(element, controller)
        self._tracked[element.element_id] = tracked
        self._refresh_focus(tracked)
        logger.debug(f"Observing image {element.element_id}")

        self._request(element.element_id)
        return controller

    def unobserve(self, element_id: str) -> None:
        tracked = self._tracked.pop(element_id, None)
        if tracked is None:
            return
        self._frames.cancel(element_id)
        tracked.controller.detach()
        if tracked.picker is not None:
            tracked.picker.disable()
        logger.debug(f"Stopped observing image {element_id}")

    def is_observing(self, element_id: str) -> bool:
        return element_id in self._tracked

    def element(self, element_id: str) -> ImageElement:
        return self._tracked[element_id].element

    def controller(self, element_id: str) -> RevealController:
        return self._tracked[element_id].controller

    def focus(self, element_id: str) -> FocusDescriptor:
        """Current decoded descriptor of an element."""
        tracked = self._tracked[element_id]
        if tracked.focus is None:
            self._refresh_focus(tracked)
        return tracked.focus

    def state(self, element_id: str) -> RevealState:
        return self._tracked[element_id].controller.state

    # Listeners

    def add_listener(self, listener: FocusListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: FocusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, element_id: str, focus: FocusDescriptor) -> None:
        for listener in list(self._listeners):
            listener(element_id, focus)

    # Host signals

    def on_resize(
        self,
        element_id: str,
        width: float,
        height: float,
        left: Optional[float] = None,
        top: Optional[float] = None,
    ) -> None:
        tracked = self._tracked.get(element_id)
        if tracked is None:
            return
        element = tracked.element
        element.width = width
        element.height = height
        if left is not None:
            element.left = left
        if top is not None:
            element.top = top
        if tracked.picker is not None:
            box = tracked.picker.box
            box.left, box.top = element.left, element.top
            box.width, box.height = width, height
        self._request(element_id)

    def on_mutation(self, element_id: str, attribute: str) -> None:
        tracked = self._tracked.get(element_id)
        if tracked is None:
            return

        if attribute == self.config.attribute:
            previous = tracked.focus
            self._refresh_focus(tracked)
            if tracked.focus != previous:
                self._notify(element_id, tracked.focus)
        elif attribute == SOURCE_ATTRIBUTE:
            # A new source has not loaded yet.
            tracked.element.complete = False
            tracked.element.natural_width = 0
            tracked.element.natural_height = 0
        else:
            return
        self._request(element_id)

    def on_load(
        self,
        element_id: str,
        natural_size: Optional[Tuple[int, int]] = None,
    ) -> None:
        tracked = self._tracked.get(element_id)
        if tracked is None:
            return
        tracked.element.complete = True
        if natural_size is not None:
            tracked.element.natural_width, tracked.element.natural_height = natural_size
        self._request(element_id)

    def set_attribute(self, element_id: str, name: str, value: Optional[str]) -> None:
        """Write an attribute on an observed element and signal the change."""
        tracked = self._tracked[element_id]
        if name == self.config.attribute:
            tracked.element.focus = value
        else:
            tracked.element.set_attribute(name, value)
        self.on_mutation(element_id, name)

    # Picker

    def attach_picker(
        self,
        element_id: str,
        on_change: Optional[Callable[[FocusDescriptor], None]] = None,
    ) -> FocusPicker:
        """Make an element editable; returns its existing picker if it has one."""
        tracked = self._tracked[element_id]
        if tracked.picker is not None:
            return tracked.picker

        element = tracked.element

        def write_back(focus: FocusDescriptor) -> None:
            self.set_attribute(element_id, self.config.attribute, encode(focus))
            if on_change is not None:
                on_change(self.focus(element_id))

        tracked.picker = FocusPicker(
            self.focus(element_id),
            box=PickerBox(element.left, element.top, element.width, element.height),
            on_change=write_back,
            intrinsic_size=self._intrinsic_size(tracked),
        )
        self._frames.cancel(element_id)
        # Editable images are shown whole and never cropped.
        element.style["object-fit"] = "contain"
        element.style["object-position"] = "50% 50%"
        logger.debug(f"Attached focus picker to {element_id}")
        return tracked.picker

    def detach_picker(self, element_id: str) -> None:
        tracked = self._tracked.get(element_id)
        if tracked is None or tracked.picker is None:
            return
        tracked.picker.disable()
        tracked.picker = None
        self._request(element_id)

    def picker(self, element_id: str) -> Optional[FocusPicker]:
        tracked = self._tracked.get(element_id)
        return tracked.picker if tracked else None

    # Layout

    def _request(self, element_id: str) -> None:
        self._frames.request(element_id, lambda: self._apply(element_id))

    def _refresh_focus(self, tracked: _Tracked) -> None:
        encoded = tracked.element.focus
        tracked.focus = decode_or_default(encoded)
        if tracked.picker is not None and tracked.picker.focus != tracked.focus:
            tracked.picker.focus = tracked.focus

    def _intrinsic_size(self, tracked: _Tracked) -> Tuple[float, float]:
        element = tracked.element
        if element.natural_width > 0 and element.natural_height > 0:
            return element.natural_width, element.natural_height
        return tracked.focus.width, tracked.focus.height

    def _effective_focus(self, tracked: _Tracked) -> FocusDescriptor:
        focus = tracked.focus
        if focus.has_dimensions:
            return focus
        element = tracked.element
        if element.natural_width > 0 and element.natural_height > 0:
            return focus.with_dimensions(element.natural_width, element.natural_height)
        return focus

    def _apply(self, element_id: str) -> None:
        tracked = self._tracked.get(element_id)
        if tracked is None:
            return

        if tracked.picker is not None:
            tracked.picker.intrinsic_size = self._intrinsic_size(tracked)
            return

        element = tracked.element
        focus = self._effective_focus(tracked)
        shift = compute_shift(focus, element.width, element.height)
        if shift is None:
            return

        tracked.controller.update(focus, shift, element.src, element.complete)
