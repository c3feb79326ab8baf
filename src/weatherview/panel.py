from __future__ import annotations

from datetime import datetime, timezone

from .domain.models import WeatherViewState


class WeatherPanel:
    """UI-side observer that keeps whatever the view model last published."""

    def __init__(self) -> None:
        self.view_state = WeatherViewState.empty()
        self.update_count = 0
        self.updated_at_utc: datetime | None = None

    def render(self, view_state: WeatherViewState) -> None:
        self.view_state = view_state
        self.update_count += 1
        self.updated_at_utc = datetime.now(timezone.utc)

    def as_payload(self) -> dict:
        payload = self.view_state.model_dump(mode="json")
        payload["updated_at_utc"] = (
            self.updated_at_utc.isoformat() if self.updated_at_utc is not None else None
        )
        return payload
