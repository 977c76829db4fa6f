"""QR check-in codes printed at each facility.

Two payload formats are understood:

- legacy: ``STORE_<facility_id>``, the bare code printed on older signs
- signed: ``WP1.<facility_id>.<issued_at>.<version>.<signature>`` where the
  signature is an HMAC-SHA256 over the first four fields, keyed per facility
  and per secret version so a provider can rotate a leaked sign.
"""

import hashlib
import hmac
import time
from dataclasses import dataclass

from washpoint.config import settings
from washpoint.core.exceptions import InvalidCheckInCode

SIGNED_PREFIX = "WP1"


@dataclass(frozen=True)
class ScannedCode:
    """A decoded QR payload. Signature is not yet verified."""

    facility_id: str
    signed: bool
    issued_at: int | None = None
    version: int | None = None
    signature: str | None = None

    def matches(self, facility_id) -> bool:
        return self.facility_id == str(facility_id).lower()


def legacy_code(facility_id) -> str:
    """Payload of the plain printed code for a facility."""
    return f"{settings.qr_code_prefix}{facility_id}"


def _facility_key(facility_id: str, version: int) -> bytes:
    return hmac.new(
        settings.qr_signing_secret.encode(),
        f"facility:{facility_id}:{version}".encode(),
        hashlib.sha256,
    ).digest()


def _sign(facility_id: str, issued_at: int, version: int) -> str:
    message = f"{SIGNED_PREFIX}.{facility_id}.{issued_at}.{version}".encode()
    return hmac.new(_facility_key(facility_id, version), message, hashlib.sha256).hexdigest()[:32]


def signed_code(facility_id, version: int, issued_at: int | None = None) -> str:
    """Issue a signed payload for the facility's current secret version."""
    fid = str(facility_id).lower()
    issued = int(time.time()) if issued_at is None else issued_at
    return f"{SIGNED_PREFIX}.{fid}.{issued}.{version}.{_sign(fid, issued, version)}"


def decode(payload: str) -> ScannedCode:
    """Parse a scanned payload without checking its signature.

    Raises:
        InvalidCheckInCode: If the payload is in neither known format
    """
    raw = (payload or "").strip()
    prefix = settings.qr_code_prefix

    if raw.startswith(prefix):
        facility_id = raw[len(prefix):].strip().lower()
        if not facility_id:
            raise InvalidCheckInCode("QR code does not contain a facility")
        return ScannedCode(facility_id=facility_id, signed=False)

    if raw.startswith(f"{SIGNED_PREFIX}."):
        parts = raw.split(".")
        if len(parts) != 5:
            raise InvalidCheckInCode("Malformed QR code")
        _, facility_id, issued_at, version, signature = parts
        try:
            return ScannedCode(
                facility_id=facility_id.lower(),
                signed=True,
                issued_at=int(issued_at),
                version=int(version),
                signature=signature,
            )
        except ValueError:
            raise InvalidCheckInCode("Malformed QR code")

    raise InvalidCheckInCode("This is not a facility QR code")


def verify(code: ScannedCode, current_version: int, now: int | None = None) -> None:
    """Check the integrity of a decoded code against its facility.

    Raises:
        InvalidCheckInCode: If the code is forged, rotated out or expired,
            or is a legacy code while legacy codes are disabled
    """
    if not code.signed:
        if not settings.qr_allow_legacy_codes:
            raise InvalidCheckInCode("This QR code is no longer accepted, please scan the new code")
        return

    if code.version != current_version:
        raise InvalidCheckInCode("This QR code has been replaced, please scan the new code")

    expected = _sign(code.facility_id, code.issued_at, code.version)
    if not hmac.compare_digest(expected, code.signature or ""):
        raise InvalidCheckInCode("QR code signature is invalid")

    ttl = settings.qr_token_ttl_seconds
    if ttl > 0:
        now = int(time.time()) if now is None else now
        if now - code.issued_at > ttl:
            raise InvalidCheckInCode("QR code has expired")
