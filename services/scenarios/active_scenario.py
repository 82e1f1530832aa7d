from __future__ import annotations

from typing import Optional


class ActiveScenario:
    """Holds the scenario id the dashboard is currently showing.

    Owned by the HTTP layer (one per app instance). The chat core only ever
    sees the bound ``get`` method.
    """

    def __init__(self, scenario_id: Optional[str] = None):
        self._scenario_id = scenario_id

    def get(self) -> Optional[str]:
        return self._scenario_id

    def set(self, scenario_id: str) -> None:
        self._scenario_id = scenario_id
