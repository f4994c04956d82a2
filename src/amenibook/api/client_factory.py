"""
Factory for creating platform booking clients.

Credentials and endpoints live in a per-platform section of the config,
e.g. {"respage": {"campaign_id": "...", "timezone": "..."}}.
"""

from .base import BookingClient, BookingClientError


def create_client(platform: str, settings: dict) -> BookingClient:
    """
    Create a booking client for the given platform.

    Args:
        platform: Platform name ('respage')
        settings: Platform-specific settings dict

    Returns:
        A configured BookingClient instance

    Raises:
        BookingClientError: If the platform is unknown
    """
    if platform == "respage":
        from .respage_client import ResPageClient, BASE_URL, CAMPAIGN_ID, DEFAULT_TIMEOUT, VENUE_TIMEZONE
        return ResPageClient(
            campaign_id=settings.get("campaign_id", CAMPAIGN_ID),
            base_url=settings.get("base_url", BASE_URL),
            timezone=settings.get("timezone", VENUE_TIMEZONE),
            timeout=settings.get("timeout", DEFAULT_TIMEOUT),
        )
    else:
        raise BookingClientError(f"Unknown platform: {platform}", platform=platform)


def load_client_from_config(config: dict, platform: str = "respage") -> BookingClient:
    """
    Build a client from a loaded config (see amenibook.config.load_config).

    Raises:
        BookingClientError: If the config has no section for the platform
    """
    settings = config.get(platform)
    if not isinstance(settings, dict):
        raise BookingClientError(
            f"No settings found for platform '{platform}'. "
            f"Add a '{platform}' section to your config.json.",
            platform=platform,
        )

    return create_client(platform, settings)
