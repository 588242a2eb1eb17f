from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class GalleryItem:
    """An uploaded image kept inline as a data URI."""

    id: str
    name: str
    data: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def base_name(self) -> str:
        """Lowercased name with the last extension removed."""

        lowered = self.name.lower()
        dot = lowered.rfind(".")
        return lowered[:dot] if dot != -1 else lowered

    def matches(self, name: str) -> bool:
        """True when ``name`` equals this item's name with or without extension."""

        target = (name or "").strip().lower()
        if not target:
            return False
        lowered = self.name.lower()
        if lowered == target:
            return True
        return "." in lowered and self.base_name == target
