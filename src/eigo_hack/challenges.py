"""Remote challenge service client.

Challenges are best-effort: any network, HTTP or payload problem is logged and
degraded to "no challenges" (or a no-op update). Nothing here feeds back into
mastery, mission or level state.
"""
import json

import httpx
from loguru import logger

from eigo_hack.config import get_settings
from eigo_hack.models import AppSettings, ChallengeEntry, UserInfo

CHALLENGE_STATUSES = ("completed", "declined")


class ChallengeClient:
    """Client for the challenge web app (a single action-dispatched endpoint)."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None, client: httpx.Client | None = None):
        settings = get_settings()
        self.base_url = settings.challenge_api_url if base_url is None else base_url
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout or settings.request_timeout),
            follow_redirects=True,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ChallengeClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get(self, params: dict) -> dict:
        response = self.client.get(self.base_url, params=params)
        response.raise_for_status()
        data = response.json()
        if not data.get("success"):
            raise ValueError(data.get("message") or "request was not successful")
        return data

    def list_pending(self, user: UserInfo) -> list[ChallengeEntry]:
        """Pending challenges addressed to ``user``; empty on any failure."""
        if not self.enabled:
            return []
        params = {"action": "getChallenges", "userInfo": json.dumps(user.to_dict(), ensure_ascii=False)}
        try:
            data = self._get(params)
            return [ChallengeEntry.from_dict(item) for item in data.get("challenges") or []]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Could not fetch challenges for {}: {}", user.player_id, e)
            return []

    def notify_outcome(self, challenge_id: str, status: str, score: int | None = None) -> bool:
        """Report a challenge as completed or declined. Returns False if it did not go through."""
        if status not in CHALLENGE_STATUSES:
            raise ValueError(f"Unknown challenge status: {status!r}")
        if not self.enabled:
            return False
        body = {"action": "updateChallenge", "challengeId": challenge_id, "status": status}
        if score is not None:
            body["resultScore"] = score
        try:
            response = self.client.post(
                self.base_url,
                content=json.dumps(body, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
            )
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error("Failed to update challenge {} ({}): {}", challenge_id, status, e)
            return False

    def fetch_app_settings(self) -> AppSettings:
        if not self.enabled:
            return AppSettings()
        try:
            data = self._get({"action": "getAppSettings"})
            return AppSettings.from_dict(data.get("settings") or {})
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Could not fetch app settings, using defaults: {}", e)
            return AppSettings()
