"""Configuration for the Teamgate client core."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    """Retry ceilings, delays and endpoint layout for one client session.

    Every network-bound step has its own bounded retry ceiling; none retries
    indefinitely.
    """

    base_url: str = "http://localhost:8080"
    request_timeout_s: float = Field(default=30.0, gt=0)

    # AWAITING_SESSION: fixed-interval polling for the provider's session
    session_poll_interval_s: float = Field(default=0.1, ge=0)
    session_poll_attempts: int = Field(default=5, ge=1, le=9)

    # FETCHING_TEAMS: exponential backoff between membership fetch attempts
    team_fetch_max_retries: int = Field(default=3, ge=1)
    team_fetch_base_delay_s: float = Field(default=1.0, ge=0)
    team_fetch_max_delay_s: float = Field(default=8.0, ge=0)

    # Post-login recovery for "READY with zero teams"
    post_login_window_s: float = Field(default=10.0, ge=0)
    post_login_retry_delay_s: float = Field(default=0.5, ge=0)

    # AuthenticatedFetch: linear backoff on network-level failures
    network_max_retries: int = Field(default=2, ge=0)
    network_backoff_s: float = Field(default=1.0, ge=0)

    teams_path: str = "/api/v1/teams"
    team_scoped_paths: list[str] = Field(
        default_factory=lambda: ["/api/v1/reviews", "/api/v1/dashboard/stats"],
        description="Path prefixes that receive the selected team_id",
    )
    selection_key: str = "currentTeamId"
