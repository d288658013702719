"""
Label -> display region mapping. Exactly one region (or none) is visible.

The browser page mirrors `RegionBoard.snapshot()`: one element per region,
shown when its flag is True.
"""
from dataclasses import dataclass
from typing import Optional

from breedcam.orchestrator.contracts import UnknownLabelPolicy
from breedcam.orchestrator.errors import RegionConfigError

DEFAULT_REGIONS = ["border collie", "dalmatier", "pitbull", "shiba inu", "yorkshire terrier"]
SENTINEL = "nothing"


@dataclass
class Region:
    name: str
    visible: bool = False


class RegionBoard:
    def __init__(self, status_store, names: list[str] = DEFAULT_REGIONS, sentinel: str = SENTINEL,
                 unknown_policy: UnknownLabelPolicy = "ignore"):
        if not names:
            raise RegionConfigError("regions: at least one region is required")
        if len(set(names)) != len(names):
            raise RegionConfigError(f"regions: duplicate region names in {names}")
        if sentinel in names:
            raise RegionConfigError(f"regions: sentinel {sentinel!r} cannot also be a region")
        if unknown_policy not in ("ignore", "hide"):
            raise RegionConfigError(f"regions: unknown label policy {unknown_policy!r}")
        self.status = status_store
        self.sentinel = sentinel
        self.unknown_policy = unknown_policy
        self._regions = {name: Region(name) for name in names}
        self._last_unknown: Optional[str] = None

    @property
    def names(self) -> list[str]:
        return list(self._regions)

    @property
    def visible(self) -> Optional[str]:
        for r in self._regions.values():
            if r.visible:
                return r.name
        return None

    def snapshot(self) -> dict[str, bool]:
        return {r.name: r.visible for r in self._regions.values()}

    def hide_all(self):
        for r in self._regions.values():
            r.visible = False

    def show(self, label: str):
        region = self._regions.get(label)
        if region is None and label != self.sentinel:
            repeated = label == self._last_unknown
            self._last_unknown = label
            if self.unknown_policy == "hide":
                self.hide_all()
            action = "hiding all" if self.unknown_policy == "hide" else "display unchanged"
            # every result is logged; the status ring keeps one entry per run of the same label
            self.status.log(f"regions: unknown label {label!r}, {action}", level="warning", ring=not repeated)
            return

        self._last_unknown = None
        self.hide_all()
        if region is not None:
            region.visible = True

    def note_prediction(self, label: str):
        """Called for every published prediction, shown or not: ends a run of one unknown label."""
        if label != self._last_unknown:
            self._last_unknown = None

    def unknown_labels(self, labels: list[str]) -> list[str]:
        """Model labels with no region (sentinel excluded)."""
        return [l for l in labels if l != self.sentinel and l not in self._regions]
