from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass
class LayerCache:
    """Static layer template keyed by the inputs that produced it."""

    static_key: tuple[Any, ...] | None = None
    static_template: np.ndarray | None = None

    def static(self, key: tuple[Any, ...]) -> np.ndarray | None:
        if self.static_key == key:
            return self.static_template
        return None

    def store_static(self, key: tuple[Any, ...], template: np.ndarray) -> None:
        self.static_key = key
        self.static_template = template
