import os
from dataclasses import dataclass, field
from typing import Dict, Optional

COMPOSITION_POLICIES = ("literal", "compound")


def _parse_tier_map(raw: str) -> Dict[int, str]:
    """
    Parses a ``"1:GOLD,7:SILVER"`` style mapping of user ids to membership tiers.

    Malformed pairs are skipped.
    """
    tiers = {}
    for pair in raw.split(","):
        user_id, sep, tier = pair.partition(":")
        if not sep or not user_id.strip().isdigit() or not tier.strip():
            continue
        tiers[int(user_id)] = tier.strip().upper()
    return tiers


@dataclass(frozen=True)
class DiscountConfig:
    # Storage
    DATABASE_URL: str = "sqlite:///discounts.db"

    # Membership tier resolution
    DEFAULT_MEMBERSHIP_TIER: Optional[str] = "GOLD"
    MEMBERSHIP_TIERS: Dict[int, str] = field(default_factory=dict)

    # How quantity-based discounts combine with the running amount
    COMPOSITION_POLICY: str = "literal"

    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "DiscountConfig":
        policy = os.environ.get("COMPOSITION_POLICY", "literal").strip().lower()
        if policy not in COMPOSITION_POLICIES:
            raise ValueError(f"COMPOSITION_POLICY must be one of {COMPOSITION_POLICIES}, got {policy!r}")

        default_tier = os.environ.get("DEFAULT_MEMBERSHIP_TIER", "GOLD").strip().upper()

        return cls(
            DATABASE_URL=os.environ.get("DATABASE_URL", "sqlite:///discounts.db"),
            DEFAULT_MEMBERSHIP_TIER=default_tier or None,
            MEMBERSHIP_TIERS=_parse_tier_map(os.environ.get("MEMBERSHIP_TIERS", "")),
            COMPOSITION_POLICY=policy,
            LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def resolve_tier(self, user_id: int) -> Optional[str]:
        """
        Maps a caller to the membership tier its discounts are matched against.

        Args:
            user_id: Identifier of the shopper; 0 means unspecified.

        Returns:
            The configured tier for the user, the default tier, or None when
            no user was given.
        """
        if not user_id:
            return None
        return self.MEMBERSHIP_TIERS.get(user_id, self.DEFAULT_MEMBERSHIP_TIER)


config = DiscountConfig.from_env()
