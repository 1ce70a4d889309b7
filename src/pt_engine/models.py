"""Trade rejection value object. Ephemeral, never persisted."""

from dataclasses import dataclass

from src.pt_common.enums import RejectionReason


@dataclass(frozen=True)
class Rejection:
    reason: RejectionReason
    message: str
