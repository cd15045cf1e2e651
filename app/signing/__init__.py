from app.signing.canvas import SignatureCanvas
from app.signing.compositor import compose_pdf, CompositorError
from app.signing.preview import render_preview, SignatureOverlay
from app.signing.session import ApiSession, ApiError, IpEchoClient, IpLookupError
from app.signing.workflow import SignatureWorkflow, WorkflowState, CONSENT_TEXT

__all__ = [
    "SignatureCanvas",
    "compose_pdf",
    "CompositorError",
    "render_preview",
    "SignatureOverlay",
    "ApiSession",
    "ApiError",
    "IpEchoClient",
    "IpLookupError",
    "SignatureWorkflow",
    "WorkflowState",
    "CONSENT_TEXT",
]
