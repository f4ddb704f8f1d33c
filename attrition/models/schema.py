from __future__ import annotations

from dataclasses import dataclass, field
import pandas as pd
from typing import Dict

from attrition.config.settings import Settings


@dataclass
class Context:
    settings: Settings
    data: Dict[str, pd.DataFrame]
    results: Dict[str, pd.DataFrame] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    def add_result(self, name: str, df: pd.DataFrame) -> None:
        self.results[name] = df

    def add_failure(self, name: str, message: str) -> None:
        self.failures[name] = message

    def get(self, name: str) -> pd.DataFrame:
        return self.results[name]
