"""
Health Certificates

Issues verifiable certificates for the four certified badge tiers
(USA Master, International Master, Grandmaster, World Grandmaster).

Verification hash:
    sha256(certificate_number | badge_id | recipient_name | issued_at).hexdigest()
`verify` recomputes it from those four fields and requires exact equality.

Transport payload (what gets rendered as a scannable code):
    base64( level x3 | Reed-Solomon( zlib( record JSON ) ) )
The record is the certificate without its payload field. Each 255-byte
Reed-Solomon block carries parity sized by the error-correction level
(0: 7%, 1: 15%, 2: 25%, 3: 30%) and repairs up to half that many
damaged bytes. The level byte is stored three times and read by
majority. `render_qr_png` draws the payload as a QR code at the
matching L/M/Q/H level. Neither layer is a signature.
"""

import base64
import hashlib
import hmac
import io
import json
import logging
import math
import random
import secrets
import zlib
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import qrcode
from reedsolo import ReedSolomonError, RSCodec

from .constants import (
    BadgeLevel,
    CERTIFICATE_REGIONS,
    CERTIFICATE_VALIDITY_YEARS,
    ERROR_CORRECTION_OVERHEAD,
)
from .health_score import HealthScoreEngine
from .snapshot import HealthSnapshot

logger = logging.getLogger(__name__)

RS_BLOCK_SIZE = 255
_HEADER_COPIES = 3

QR_ERROR_CORRECTION = {
    0: qrcode.constants.ERROR_CORRECT_L,
    1: qrcode.constants.ERROR_CORRECT_M,
    2: qrcode.constants.ERROR_CORRECT_Q,
    3: qrcode.constants.ERROR_CORRECT_H,
}


@dataclass(frozen=True)
class CertificateSignature:
    issuer_name: str
    issuer_title: str
    issuer_organization: str
    signature_hash: str
    timestamp: datetime


@dataclass(frozen=True)
class CertificateMetadata:
    health_score: float
    streak_days: int
    achievements: List[str] = field(default_factory=list)
    region: Optional[str] = None
    verification_url: Optional[str] = None


@dataclass
class Certificate:
    id: UUID
    badge_id: str
    badge_name: str
    badge_level: BadgeLevel
    recipient_name: str
    issued_at: datetime
    expires_at: Optional[datetime]
    certificate_number: str
    signature: CertificateSignature
    metadata: CertificateMetadata
    verification_hash: str = ""
    payload: str = ""

    def to_dict(self, include_payload: bool = True) -> Dict[str, Any]:
        data = {
            "id": str(self.id),
            "badge_id": self.badge_id,
            "badge_name": self.badge_name,
            "badge_level": self.badge_level.value,
            "recipient_name": self.recipient_name,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "certificate_number": self.certificate_number,
            "verification_hash": self.verification_hash,
            "signature": {
                "issuer_name": self.signature.issuer_name,
                "issuer_title": self.signature.issuer_title,
                "issuer_organization": self.signature.issuer_organization,
                "signature_hash": self.signature.signature_hash,
                "timestamp": self.signature.timestamp.isoformat(),
            },
            "metadata": {
                "health_score": self.metadata.health_score,
                "streak_days": self.metadata.streak_days,
                "achievements": list(self.metadata.achievements),
                "region": self.metadata.region,
                "verification_url": self.metadata.verification_url,
            },
        }
        if include_payload:
            data["payload"] = self.payload
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Certificate":
        signature = data["signature"]
        metadata = data["metadata"]
        return cls(
            id=UUID(data["id"]),
            badge_id=data["badge_id"],
            badge_name=data["badge_name"],
            badge_level=BadgeLevel(data["badge_level"]),
            recipient_name=data["recipient_name"],
            issued_at=datetime.fromisoformat(data["issued_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]) if data.get("expires_at") else None,
            certificate_number=data["certificate_number"],
            verification_hash=data.get("verification_hash", ""),
            payload=data.get("payload", ""),
            signature=CertificateSignature(
                issuer_name=signature["issuer_name"],
                issuer_title=signature["issuer_title"],
                issuer_organization=signature["issuer_organization"],
                signature_hash=signature["signature_hash"],
                timestamp=datetime.fromisoformat(signature["timestamp"]),
            ),
            metadata=CertificateMetadata(
                health_score=metadata["health_score"],
                streak_days=metadata["streak_days"],
                achievements=list(metadata.get("achievements", [])),
                region=metadata.get("region"),
                verification_url=metadata.get("verification_url"),
            ),
        )


def compute_verification_hash(
    certificate_number: str,
    badge_id: str,
    recipient_name: str,
    issued_at: datetime,
) -> str:
    material = "|".join([certificate_number, badge_id, recipient_name, issued_at.isoformat()])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def _check_level(level: int) -> None:
    if level not in ERROR_CORRECTION_OVERHEAD:
        raise ValueError(f"Error correction level must be 0-3, got {level}")


def parity_symbols(level: int) -> int:
    """Reed-Solomon parity bytes per 255-byte block at this level."""
    _check_level(level)
    return math.ceil(RS_BLOCK_SIZE * ERROR_CORRECTION_OVERHEAD[level])


def _codec(level: int) -> RSCodec:
    return RSCodec(parity_symbols(level), nsize=RS_BLOCK_SIZE)


def encode_payload(record: Dict[str, Any], level: int = 3) -> str:
    _check_level(level)
    data = json.dumps(record, sort_keys=True, separators=(",", ":")).encode("utf-8")
    encoded = _codec(level).encode(zlib.compress(data, 9))
    return base64.b64encode(bytes([level] * _HEADER_COPIES) + bytes(encoded)).decode("ascii")


def _repair(payload: str):
    """(compressed record bytes, damaged byte count). Raises ValueError past repair."""
    raw = base64.b64decode(payload.encode("ascii"), validate=True)
    if len(raw) <= _HEADER_COPIES:
        raise ValueError("Payload too short")

    header = raw[:_HEADER_COPIES]
    level, votes = Counter(header).most_common(1)[0]
    if votes < 2 or level not in ERROR_CORRECTION_OVERHEAD:
        raise ValueError("Payload header unreadable")

    try:
        data, _, errata = _codec(level).decode(raw[_HEADER_COPIES:])
    except ReedSolomonError as e:
        raise ValueError(f"Payload damaged beyond repair: {e}") from e
    return bytes(data), len(errata) + (_HEADER_COPIES - votes)


def payload_intact(payload: str) -> bool:
    """True only when the payload decodes with no repaired bytes."""
    try:
        _, damaged = _repair(payload)
    except (ValueError, TypeError):
        return False
    return damaged == 0


def decode_payload(payload: str) -> Dict[str, Any]:
    """Record dict from a payload, repairing damage within the level's capacity."""
    data, damaged = _repair(payload)
    if damaged:
        logger.info(f"Repaired {damaged} damaged payload bytes")
    try:
        return json.loads(zlib.decompress(data).decode("utf-8"))
    except zlib.error as e:
        raise ValueError(f"Payload body unreadable: {e}") from e


def render_qr_png(payload: str, level: int = 3) -> bytes:
    """PNG of the payload as a QR code at the matching L/M/Q/H level."""
    _check_level(level)
    qr = qrcode.QRCode(
        version=None,
        error_correction=QR_ERROR_CORRECTION[level],
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # Feb 29 -> Feb 28
        return moment.replace(year=moment.year + years, day=28)


def expiration_for(level: BadgeLevel, issued_at: datetime) -> Optional[datetime]:
    years = CERTIFICATE_VALIDITY_YEARS.get(level)
    if years is None:
        return None
    return _add_years(issued_at, years)


@dataclass(frozen=True)
class IssuerIdentity:
    name: str = "Health Transformation Certification Authority"
    title: str = "Chief Health Officer"
    organization: str = "Health Transformation"


class CertificateIssuer:
    """
    Usage:
        issuer = CertificateIssuer(verify_base_url="https://example.org/verify")
        cert = issuer.issue(view, "Jane Doe", snapshot, streak_days=400)
        issuer.verify(cert)  # True
    """

    def __init__(
        self,
        identity: Optional[IssuerIdentity] = None,
        verify_base_url: str = "https://health-transformation.local/verify",
        error_correction_level: int = 3,
        score_engine: Optional[HealthScoreEngine] = None,
        clock=None,
        rng: Optional[random.Random] = None,
    ):
        if error_correction_level not in ERROR_CORRECTION_OVERHEAD:
            raise ValueError(f"Error correction level must be 0-3, got {error_correction_level}")
        self.identity = identity or IssuerIdentity()
        self.verify_base_url = verify_base_url.rstrip("/")
        self.error_correction_level = error_correction_level
        self.score_engine = score_engine or HealthScoreEngine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rng = rng or random.SystemRandom()

    def issue(
        self,
        badge,
        recipient_name: str,
        snapshot: Optional[HealthSnapshot],
        streak_days: int,
    ) -> Optional[Certificate]:
        """
        Certificate for an earned, certified-tier badge; None otherwise.

        `badge` is a BadgeView (anything with `.badge` and `.earned`).
        """
        definition = badge.badge
        if not badge.earned or not definition.level.requires_certificate:
            logger.debug(
                f"Certificate not issued for {definition.id}: earned={badge.earned} "
                f"level={definition.level.value}"
            )
            return None

        issued_at = self._clock()
        number = f"HC-{int(issued_at.timestamp())}-{self._rng.randint(1000, 9999)}"

        certificate = Certificate(
            id=uuid4(),
            badge_id=definition.id,
            badge_name=definition.name,
            badge_level=definition.level,
            recipient_name=recipient_name,
            issued_at=issued_at,
            expires_at=expiration_for(definition.level, issued_at),
            certificate_number=number,
            signature=CertificateSignature(
                issuer_name=self.identity.name,
                issuer_title=self.identity.title,
                issuer_organization=self.identity.organization,
                signature_hash=hashlib.sha256(
                    f"{issued_at.timestamp()}{secrets.token_hex(16)}".encode("utf-8")
                ).hexdigest(),
                timestamp=issued_at,
            ),
            metadata=CertificateMetadata(
                health_score=round(self.score_engine.score(snapshot), 1),
                streak_days=streak_days,
                achievements=self._achievements(snapshot),
                region=CERTIFICATE_REGIONS.get(definition.level),
                verification_url=f"{self.verify_base_url}/{uuid4()}",
            ),
        )
        certificate.verification_hash = compute_verification_hash(
            number, definition.id, recipient_name, issued_at
        )
        certificate.payload = encode_payload(
            certificate.to_dict(include_payload=False), self.error_correction_level
        )

        logger.info(f"Issued certificate {number} for badge {definition.id}")
        return certificate

    def verify(self, certificate: Certificate) -> bool:
        expected = compute_verification_hash(
            certificate.certificate_number,
            certificate.badge_id,
            certificate.recipient_name,
            certificate.issued_at,
        )
        valid = hmac.compare_digest(
            expected.encode("utf-8"),
            (certificate.verification_hash or "").encode("utf-8"),
        )
        if not valid:
            logger.warning(f"Certificate verification failed for {certificate.certificate_number}")
        return valid

    @staticmethod
    def _achievements(snapshot: Optional[HealthSnapshot]) -> List[str]:
        if snapshot is None:
            return []
        achievements = []
        if snapshot.vision_analysis is not None:
            achievements.append("Excellent Vision Health")
        if snapshot.hearing_analysis is not None:
            achievements.append("Excellent Hearing Health")
        if snapshot.tactile_analysis is not None:
            achievements.append("Excellent Tactile Health")
        if snapshot.tongue_analysis is not None:
            achievements.append("Excellent Tongue Health")
        return achievements
