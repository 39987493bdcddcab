from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class OTPResult:
    """Uniform outcome of a provider call: Success{verification_id} or Failure{error}."""
    success: bool
    verification_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, verification_id: Optional[str] = None) -> "OTPResult":
        return cls(success=True, verification_id=verification_id)

    @classmethod
    def failure(cls, error: str) -> "OTPResult":
        return cls(success=False, error=error)


class OTPProvider(Protocol):
    async def send_code(self, phone_number: str, country_code: Optional[str] = None) -> OTPResult:
        ...

    async def validate_code(self, verification_id: str, code: str) -> OTPResult:
        ...
