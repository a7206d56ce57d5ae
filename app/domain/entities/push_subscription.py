"""Domain entity for push relay subscriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class PushSubscription:
    """Credential returned by the push relay for a subscribed client."""

    endpoint: str
    keys: Mapping[str, str] = field(default_factory=dict)
    expiration_time: datetime | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PushSubscription":
        """Build a subscription from the JSON shape produced by browsers."""

        endpoint = payload.get("endpoint")
        if not isinstance(endpoint, str) or not endpoint:
            raise ValueError("Push subscription payload is missing an endpoint")
        keys = payload.get("keys") or {}
        if not isinstance(keys, Mapping):
            raise ValueError("Push subscription keys must be an object")
        expiration = payload.get("expirationTime")
        expiration_time = (
            datetime.fromtimestamp(expiration / 1000)
            if isinstance(expiration, (int, float))
            else None
        )
        return cls(
            endpoint=endpoint,
            keys={str(key): str(value) for key, value in keys.items()},
            expiration_time=expiration_time,
        )


__all__ = ["PushSubscription"]
