import asyncio
import json
import logging
import re
from typing import Any, Callable, Dict, Optional, Tuple

import aiohttp

from ...application.ports.otp_provider import OTPProvider, OTPResult
from ...config import settings

logger = logging.getLogger(__name__)

SEND_PATH = "/verification/v3/send"
VALIDATE_PATH = "/verification/v3/validateOtp"
FALLBACK_FLOW_TYPE = "SMS"

_INVALID_FLOW_RE = re.compile(r"invalid flowtype", re.IGNORECASE)


def normalize_phone_number(raw_phone, country_code: str) -> str:
    """Digits only, without a duplicated leading country code or leading zeros."""
    if not raw_phone:
        return ""
    digits = re.sub(r"\D", "", str(raw_phone))
    if country_code and digits.startswith(country_code) and len(digits) > len(country_code):
        digits = digits[len(country_code):]
    return digits.lstrip("0")


def _parse_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    try:
        body = json.loads(text)
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _is_2xx(status: Optional[int]) -> bool:
    return status is not None and 200 <= status < 300


def is_invalid_flow_type(body: Optional[Dict[str, Any]]) -> bool:
    if not body:
        return False
    message = str(body.get("message", ""))
    return message == "Invalid FlowType selected" or bool(_INVALID_FLOW_RE.search(message))


def translate_send_response(status: Optional[int], body: Optional[Dict[str, Any]]) -> OTPResult:
    """Map the provider's send response variants onto an OTPResult."""
    if status is None:
        return OTPResult.failure("No response from SMS service")
    data = body.get("data") if body and isinstance(body.get("data"), dict) else {}
    body_ok = bool(body) and (
        body.get("message") == "SUCCESS"
        or body.get("status") == "success"
        or body.get("responseCode") in (200, "200")
    )
    data_ok = bool(data) and (data.get("responseCode") in (200, "200") or data.get("status") == "success")
    if _is_2xx(status) and (body_ok or data_ok):
        verification_id = data.get("verificationId") or body.get("verificationId")
        return OTPResult.ok(str(verification_id) if verification_id is not None else None)
    reason = None
    if body:
        reason = body.get("message") or body.get("error") or data.get("message")
    return OTPResult.failure(str(reason) if reason else f"HTTP {status}")


def translate_validate_response(status: Optional[int], body: Optional[Dict[str, Any]]) -> OTPResult:
    """Validation succeeds only on an explicit completed status; anything else is a failure."""
    if status is None:
        return OTPResult.failure("No response from SMS service")
    data = body.get("data") if body and isinstance(body.get("data"), dict) else {}
    if (
        _is_2xx(status)
        and body
        and body.get("message") == "SUCCESS"
        and (data.get("verificationStatus") == "VERIFICATION_COMPLETED" or data.get("responseCode") in (200, "200"))
    ):
        return OTPResult.ok()
    reason = None
    if body:
        reason = data.get("errorMessage") or body.get("message")
    return OTPResult.failure(str(reason) if reason else f"HTTP {status}")


class MessageCentralOTPProvider(OTPProvider):
    """MessageCentral VerifyNow client. The provider generates and checks the codes."""

    def __init__(
        self,
        auth_token: Optional[str] = None,
        base_url: Optional[str] = None,
        country_code: Optional[str] = None,
        flow_type: Optional[str] = None,
        customer_id: Optional[str] = None,
        otp_length: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        session_factory: Optional[Callable[[], Any]] = None,
    ):
        self.auth_token = auth_token if auth_token is not None else settings.MESSAGECENTRAL_AUTH_TOKEN
        self.base_url = (base_url or settings.MESSAGECENTRAL_BASE_URL).rstrip("/")
        self.country_code = country_code or settings.MESSAGECENTRAL_COUNTRY_CODE
        self.flow_type = flow_type or settings.MESSAGECENTRAL_FLOW_TYPE
        self.customer_id = customer_id if customer_id is not None else settings.MESSAGECENTRAL_CUSTOMER_ID
        self.otp_length = otp_length if otp_length is not None else settings.otp_length
        self.timeout_seconds = timeout_seconds or settings.OTP_PROVIDER_TIMEOUT_SECONDS
        self._session_factory = session_factory or self._default_session

    def _default_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_seconds))

    async def _request(self, method: str, path: str, params: Dict[str, str]) -> Tuple[Optional[int], Optional[Dict[str, Any]], Optional[str]]:
        url = f"{self.base_url}{path}"
        headers = {"authToken": self.auth_token, "Content-Type": "application/json"}
        try:
            async with self._session_factory() as session:
                async with session.request(method, url, params=params, headers=headers) as response:
                    # Undecodable bytes degrade to a non-JSON body instead of raising
                    text = (await response.read()).decode("utf-8", errors="replace")
                    return response.status, _parse_json(text), None
        except asyncio.TimeoutError:
            logger.warning(f"SMS provider timed out after {self.timeout_seconds}s on {path}")
            return None, None, "SMS service timed out"
        except aiohttp.ClientError as e:
            logger.error(f"SMS provider transport error on {path}: {e}")
            return None, None, str(e) or "SMS service unavailable"

    async def _send_once(self, flow_type: str, mobile_number: str, country_code: str):
        params = {
            "countryCode": str(country_code),
            "flowType": flow_type,
            "mobileNumber": mobile_number,
        }
        if self.customer_id:
            params["customerId"] = self.customer_id
        if self.otp_length:
            params["otpLength"] = self.otp_length
        return await self._request("POST", SEND_PATH, params)

    async def send_code(self, phone_number: str, country_code: Optional[str] = None) -> OTPResult:
        country_code = country_code or self.country_code
        normalized = normalize_phone_number(phone_number, country_code)
        if not normalized:
            return OTPResult.failure("Invalid phone number")

        status, body, error = await self._send_once(self.flow_type, normalized, country_code)
        if error:
            return OTPResult.failure(error)
        if is_invalid_flow_type(body) and self.flow_type != FALLBACK_FLOW_TYPE:
            logger.warning(f"Provider rejected flowType={self.flow_type}, retrying with flowType={FALLBACK_FLOW_TYPE}")
            status, body, error = await self._send_once(FALLBACK_FLOW_TYPE, normalized, country_code)
            if error:
                return OTPResult.failure(error)

        result = translate_send_response(status, body)
        if result.success:
            logger.info(f"Verification code sent (verificationId={result.verification_id})")
        else:
            logger.warning(f"Verification code send failed: {result.error}")
        return result

    async def validate_code(self, verification_id: str, code: str, lang_id: str = "en") -> OTPResult:
        params = {"verificationId": str(verification_id), "code": str(code), "langId": lang_id}
        status, body, error = await self._request("GET", VALIDATE_PATH, params)
        if error:
            return OTPResult.failure(error)
        result = translate_validate_response(status, body)
        if not result.success:
            logger.info(f"Verification {verification_id} rejected: {result.error}")
        return result
