import logging
import uuid
from typing import Dict, Optional

from ...application.ports.otp_provider import OTPProvider, OTPResult
from ...utils import hash_phone_number

logger = logging.getLogger(__name__)


class ConsoleOTPProvider(OTPProvider):
    """Local development provider: every code sent is the configured fixed code."""

    def __init__(self, code: str = "123456"):
        self.code = code
        self._pending: Dict[str, str] = {}

    async def send_code(self, phone_number: str, country_code: Optional[str] = None) -> OTPResult:
        verification_id = uuid.uuid4().hex
        self._pending[verification_id] = phone_number
        logger.info(f"[console-otp] verification {verification_id} issued for phone {hash_phone_number(phone_number)[:12]}")
        return OTPResult.ok(verification_id)

    async def validate_code(self, verification_id: str, code: str) -> OTPResult:
        if verification_id not in self._pending:
            return OTPResult.failure("Verification not found or already used")
        if code != self.code:
            return OTPResult.failure("Invalid or expired code")
        del self._pending[verification_id]
        return OTPResult.ok()
