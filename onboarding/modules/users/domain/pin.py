"""
PIN Domain Model

A PIN row is never edited in place: resets and changes write a new row and
the latest active row is the credential used for authentication.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class PIN:
    """Salted and hashed PIN credential."""
    id: str
    profile_id: str
    pin_hash: str
    salt: str
    is_otp: bool = False
    active: bool = True
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PIN":
        return cls(
            id=data["id"],
            profile_id=data["profile_id"],
            pin_hash=data["pin_hash"],
            salt=data["salt"],
            is_otp=bool(data.get("is_otp", False)),
            active=bool(data.get("active", True)),
            created_at=data.get("created_at"),
        )

    def __repr__(self) -> str:
        # Keep hash material out of logs and tracebacks
        return f"PIN(id={self.id!r}, profile_id={self.profile_id!r}, is_otp={self.is_otp}, active={self.active})"


@dataclass
class PINUpdateResult:
    """Outcome of a reset or change: the owner and the stored hash, never the raw PIN."""
    profile_id: str
    pin_hash: str
