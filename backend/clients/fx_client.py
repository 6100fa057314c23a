"""Historical USD to CAD exchange rates over HTTP."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from shared.errors import ExternalServiceError


class FxRateProvider(Protocol):
    def usd_to_cad(self, on_date: date) -> Decimal:
        """Return the USD->CAD rate published for ``on_date``."""


@dataclass(slots=True)
class FxRateClient:
    base_url: str
    timeout_s: float = 20.0

    def usd_to_cad(self, on_date: date) -> Decimal:
        query = urlencode({"from": "USD", "to": "CAD"})
        request = Request(
            url=f"{self.base_url}/{on_date.isoformat()}?{query}",
            headers={"Accept": "application/json"},
            method="GET",
        )
        try:
            with urlopen(request, timeout=self.timeout_s) as response:  # noqa: S310 - URL comes from trusted env config
                payload = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:200]
            raise ExternalServiceError(
                "fx", f"FX rate request failed with status {exc.code}: {body}"
            ) from exc
        except (URLError, TimeoutError, json.JSONDecodeError) as exc:
            raise ExternalServiceError("fx", f"FX rate request failed: {exc}") from exc

        rates = payload.get("rates") if isinstance(payload, dict) else None
        raw_rate = rates.get("CAD") if isinstance(rates, dict) else None
        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation as exc:
            raise ExternalServiceError("fx", f"FX rate missing for {on_date.isoformat()}") from exc
        if raw_rate is None or not rate.is_finite() or rate <= 0:
            raise ExternalServiceError("fx", f"FX rate missing for {on_date.isoformat()}")
        return rate
