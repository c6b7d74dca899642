from typing import Callable, Dict, List, Optional

from ..domain.placement import place_labels, Projector, BoxProvider, LatLon
from ..utils.log import log_line
from .constants import PLACEMENT_DEBOUNCE_S
from .models import Pin
from .scheduler import Debouncer


class LabelPlacer:
    """Runs placement passes for the map, debounced on camera movement.

    Camera-change events only (re)arm the debounce; the pass runs once the
    camera has been quiet for debounce_s, or immediately on camera settle.
    """

    def __init__(
        self,
        projector: Projector,
        box_of: BoxProvider,
        debounce_s: float = PLACEMENT_DEBOUNCE_S,
        on_placed: Optional[Callable[[Dict[int, LatLon]], None]] = None,
    ):
        self.projector = projector
        self.box_of = box_of
        self.on_placed = on_placed
        self.placements: Dict[int, LatLon] = {}
        self.passes = 0
        self._debounce = Debouncer(debounce_s, self.run_pass)

    def on_camera_changed(self, pins: List[Pin], zoom_level: float) -> None:
        self._debounce.trigger(list(pins), zoom_level)

    def on_camera_settled(self, pins: List[Pin], zoom_level: float) -> Dict[int, LatLon]:
        self._debounce.cancel()
        return self.run_pass(list(pins), zoom_level)

    def cancel(self) -> None:
        self._debounce.cancel()

    def run_pass(self, pins: List[Pin], zoom_level: float) -> Dict[int, LatLon]:
        self.placements = place_labels(pins, self.projector, self.box_of, zoom_level)
        self.passes += 1
        moved = sum(1 for p in pins if self.placements.get(p.id) != p.coordinate)
        log_line(f"PLACEMENT | pins={len(pins)} moved={moved} zoom={zoom_level:.2f}", "DEBUG")
        if self.on_placed:
            self.on_placed(self.placements)
        return self.placements
