"""
Normalized nuwe user profile.

``parse`` turns the body of the profile endpoint into a ``Profile``. It
never fails on missing or malformed fields; those simply stay ``None``.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

PROVIDER_NAME = "nuwe"


@dataclass
class Profile:
    """User profile in the provider-independent shape."""

    provider: str = PROVIDER_NAME
    id: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None

    # Original response body and its decoded form
    raw: Optional[str] = field(default=None, repr=False)
    json: Optional[Any] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Return the profile using the wire field names."""
        return {
            "provider": self.provider,
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "_raw": self.raw,
            "_json": self.json,
        }


def _as_text(value) -> Optional[str]:
    if isinstance(value, str):
        return value
    # bool is an int subclass but is never a meaningful identifier
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def parse(data) -> Profile:
    """
    Build a Profile from a decoded profile response.

    Args:
        data: Decoded JSON of arbitrary shape

    Returns:
        Profile with ``id``, ``username`` and ``display_name`` filled in
        where the input carries them
    """
    if not isinstance(data, dict):
        return Profile()

    return Profile(
        id=_as_text(data.get("id")),
        username=_as_text(data.get("username")),
        display_name=_as_text(data.get("displayName")),
    )
