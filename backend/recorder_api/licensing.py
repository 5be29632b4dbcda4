"""
License verification and per-plan duration limits.

The gateway only talks to a LicenseVerifier, so a real licensing backend
can replace the key-length heuristic without touching request handling.
"""

from typing import Any, Dict, Optional, Protocol

from .models import LicenseDecision, LicensePlan

FREE_LICENSE = "free"

# Seconds of video per plan. The host allows ~10s of execution, and the
# provider needs the rest of it to render.
DURATION_LIMITS: Dict[LicensePlan, int] = {
    LicensePlan.FREE: 5,
    LicensePlan.STARTER: 7,
    LicensePlan.PRO: 7,
    LicensePlan.AGENCY: 7,
}


def get_max_duration_for_plan(plan: Optional[LicensePlan]) -> int:
    """Maximum recording duration for a plan; unknown plans get the free limit"""
    return DURATION_LIMITS.get(plan, DURATION_LIMITS[LicensePlan.FREE])


class LicenseVerifier(Protocol):
    """Decides whether a license key is valid and which plan it grants."""

    async def verify(self, license_key: Optional[str], site_url: Optional[str]) -> LicenseDecision:
        ...


class KeyLengthLicenseVerifier:
    """
    Stand-in verifier that infers the plan from the key alone.

    Absent keys, the literal "free" and keys shorter than 5 characters are
    free; keys of 10 or more characters are starter; anything in between
    is rejected. It never produces pro or agency.
    """

    min_paid_length = 10
    max_free_length = 4

    async def verify(self, license_key: Optional[str], site_url: Optional[str]) -> LicenseDecision:
        if not license_key or license_key == FREE_LICENSE or len(license_key) <= self.max_free_length:
            return LicenseDecision(valid=True, plan=LicensePlan.FREE, message="License valid")

        if len(license_key) >= self.min_paid_length:
            return LicenseDecision(valid=True, plan=LicensePlan.STARTER, message="License valid")

        return LicenseDecision(valid=False, message="Invalid license key format")


def resolve_license_key(header_value: Optional[str], body_value: Any) -> str:
    """Header token wins over the body field; nothing at all means free"""
    for candidate in (header_value, body_value):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return FREE_LICENSE
