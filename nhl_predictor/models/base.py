from abc import ABC, abstractmethod
from typing import Any
import numpy as np


class BaseSportModel(ABC):
    sport: str

    @abstractmethod
    def predict(self, home_stats: Any, away_stats: Any) -> Any:
        pass

    def _sigmoid(self, x: float) -> float:
        with np.errstate(over="ignore"):
            return float(1 / (1 + np.exp(-x)))
