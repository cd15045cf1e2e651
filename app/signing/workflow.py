"""
Signature workflow controller for one signing link.

    LOADING --validate_token--> READY | INVALID
    READY --submit--> SUBMITTING --> SUCCESS
                                 \\-> READY (error alerted, flags cleared)

Every step runs sequentially on the caller's event loop; nothing is retried.
"""
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional
import httpx
from pydantic import ValidationError
from app.schemas.signature import SignatureSubmit, SignatureValidation
from app.signing.canvas import Bounds, SignatureCanvas
from app.signing.compositor import CompositorError, compose_pdf
from app.signing.preview import RenderTarget, SignatureOverlay, render_preview
from app.signing.session import ApiError, ApiSession, IpEchoClient, IpLookupError

logger = logging.getLogger(__name__)

# Shown next to the consent checkbox and sent verbatim with the submission
CONSENT_TEXT = (
    "I agree to electronically sign this document and understand that my electronic "
    "signature is legally binding and has the same effect as a handwritten signature. "
    "I consent to conduct this transaction electronically."
)

INVALID_REQUEST_MESSAGE = "Invalid or expired signature request"
SUBMIT_FAILED_MESSAGE = "Failed to submit signature"
MISSING_INPUT_MESSAGE = "Please sign the document and accept the terms"

DEFAULT_USER_AGENT = f"invoice-signing-client/1.0 python-httpx/{httpx.__version__}"

MOBILE_USER_AGENT = re.compile(r"Mobile|Android|iPhone|iPad", re.IGNORECASE)


class DeviceType(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"


class WorkflowState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    INVALID = "invalid"
    SUBMITTING = "submitting"
    SUCCESS = "success"


def classify_device(user_agent: str) -> DeviceType:
    if MOBILE_USER_AGENT.search(user_agent or ""):
        return DeviceType.MOBILE
    return DeviceType.DESKTOP


def days_until_expiry(expires_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole days left, rounded up. Informational only; the backend enforces expiry."""
    now = now or datetime.now(timezone.utc)
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.ceil((expires_at - now) / timedelta(days=1))


def _log_alert(message: str) -> None:
    logger.warning(message)


class SignatureWorkflow:
    def __init__(
        self,
        token: str,
        session: ApiSession,
        ip_lookup: Optional[Callable[[], Awaitable[str]]] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        alert: Optional[Callable[[str], None]] = None,
        compose: Callable[[RenderTarget], str] = compose_pdf,
    ):
        self.token = token
        self.session = session
        self.ip_lookup = ip_lookup or IpEchoClient()
        self.user_agent = user_agent
        self.alert = alert or _log_alert
        self.compose = compose

        self.state = WorkflowState.LOADING
        self.data: Optional[SignatureValidation] = None
        self.error: Optional[str] = None

        self.signature_data: Optional[str] = None
        self.consent_given = False
        self.submitting = False
        self.generating_pdf = False

        self.canvas: Optional[SignatureCanvas] = None
        self.preview_mounted = False

    @property
    def consent_text(self) -> str:
        return CONSENT_TEXT

    @property
    def can_submit(self) -> bool:
        return self.signature_data is not None and self.consent_given is True

    def days_until_expiry(self, now: Optional[datetime] = None) -> Optional[int]:
        if self.data is None:
            return None
        return days_until_expiry(self.data.signature_request.expires_at, now)

    def expiry_label(self, now: Optional[datetime] = None) -> str:
        days = self.days_until_expiry(now)
        if days is None:
            return ""
        return f"Expires in {days} {'day' if days == 1 else 'days'}"

    async def validate_token(self) -> WorkflowState:
        self.state = WorkflowState.LOADING
        try:
            response = await self.session.get(f"/signatures/validate/{self.token}")
            self.data = SignatureValidation.model_validate(response)
        except ApiError as e:
            self._invalidate(e.message)
        except (httpx.HTTPError, ValidationError) as e:
            logger.error(f"Token validation failed: {e}")
            self._invalidate(None)
        except Exception as e:
            logger.exception(f"Unexpected error validating token: {e}")
            self._invalidate(None)
        else:
            self.error = None
            self.state = WorkflowState.READY
            self.preview_mounted = True
        return self.state

    def _invalidate(self, message: Optional[str]) -> None:
        self.data = None
        self.error = message or INVALID_REQUEST_MESSAGE
        self.state = WorkflowState.INVALID

    def create_canvas(self, bounds: Bounds = Bounds(0, 0, 600, 192)) -> SignatureCanvas:
        self.canvas = SignatureCanvas(self.on_signature_change, bounds=bounds, disabled=self.submitting)
        return self.canvas

    def on_signature_change(self, data_url: Optional[str]) -> None:
        self.signature_data = data_url

    def set_consent(self, given: bool) -> None:
        if self.submitting:
            return
        self.consent_given = given

    def mount_preview(self) -> None:
        self.preview_mounted = True

    def unmount_preview(self) -> None:
        self.preview_mounted = False

    def render_target(self) -> Optional[RenderTarget]:
        """Hidden preview with the current signature overlaid, or None when not mounted."""
        if not self.preview_mounted or self.data is None:
            return None
        overlay = None
        if self.signature_data is not None:
            request = self.data.signature_request
            overlay = SignatureOverlay(
                image_data_url=self.signature_data,
                signer_name=request.signer_name or request.signer_email,
                signed_at=datetime.now(timezone.utc),
            )
        return render_preview(self.data, overlay)

    def _set_busy(self, busy: bool) -> None:
        self.submitting = busy
        if self.canvas is not None:
            self.canvas.disabled = busy

    async def submit(self) -> bool:
        if self.state != WorkflowState.READY:
            return False

        if not self.can_submit:
            self.alert(MISSING_INPUT_MESSAGE)
            return False

        self._set_busy(True)
        self.generating_pdf = True
        self.state = WorkflowState.SUBMITTING
        try:
            target = self.render_target()
            if target is None:
                logger.warning("Document preview not mounted; submitting without a signed PDF")
                signed_pdf = None
            else:
                signed_pdf = self.compose(target)
            self.generating_pdf = False

            ip_address = await self.ip_lookup()

            payload = SignatureSubmit(
                token=self.token,
                signature_data_url=self.signature_data,
                signed_pdf_data_url=signed_pdf,
                consent_given=self.consent_given,
                consent_text=self.consent_text,
                ip_address=ip_address,
                user_agent=self.user_agent,
                device_type=classify_device(self.user_agent).value,
            )
            await self.session.post("/signatures/submit", json=payload.model_dump(by_alias=True, mode="json"))
        except ApiError as e:
            self._fail(e.message)
            return False
        except (httpx.HTTPError, IpLookupError, CompositorError) as e:
            logger.error(f"Signature submission failed: {e}")
            self._fail(None)
            return False
        except Exception as e:
            logger.exception(f"Unexpected error submitting signature: {e}")
            self._fail(None)
            return False
        finally:
            self._set_busy(False)

        self.error = None
        self.state = WorkflowState.SUCCESS
        logger.info(f"Signature submitted for request {self.data.signature_request.id}")
        return True

    def _fail(self, message: Optional[str]) -> None:
        self.generating_pdf = False
        self.error = message or SUBMIT_FAILED_MESSAGE
        self.state = WorkflowState.READY
        self.alert(self.error)
