import logging

from fastapi import APIRouter, Depends, status

from ..application.services.content_service import ContentService, phishing_email_to_dict
from ..dependencies import Identity, get_content_service, require_admin
from ..schemas import PhishingEmailRequest, PhishingEmailUpdateRequest, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/game", tags=["Game"])


@router.get("/phishing-emails")
def list_phishing_emails(content_service: ContentService = Depends(get_content_service)):
    return ok("Phishing emails retrieved", {"emails": content_service.list_active_phishing_emails()})


# ------------------------
# Admin
# ------------------------
@router.post("/admin/phishing-email", status_code=status.HTTP_201_CREATED)
def create_phishing_email(payload: PhishingEmailRequest, identity: Identity = Depends(require_admin),
                          content_service: ContentService = Depends(get_content_service)):
    email = content_service.create_phishing_email(
        payload.sender,
        payload.subject,
        payload.content,
        is_phishing=payload.is_phishing,
        indicators=payload.indicators,
        active=payload.active,
    )
    logger.info(f"Admin {identity.user_id} created phishing email {email.id}")
    return ok("Phishing email created", phishing_email_to_dict(email))


@router.patch("/admin/phishing-email/{email_id}")
def update_phishing_email(email_id: int, payload: PhishingEmailUpdateRequest, identity: Identity = Depends(require_admin),
                          content_service: ContentService = Depends(get_content_service)):
    email = content_service.update_phishing_email(
        email_id,
        sender=payload.sender,
        subject=payload.subject,
        content=payload.content,
        is_phishing=payload.is_phishing,
        indicators=payload.indicators,
        active=payload.active,
    )
    return ok("Phishing email updated", phishing_email_to_dict(email))


@router.get("/admin/phishing-emails")
def list_all_phishing_emails(identity: Identity = Depends(require_admin),
                             content_service: ContentService = Depends(get_content_service)):
    return ok("Phishing emails retrieved", {"emails": content_service.list_all_phishing_emails()})


@router.delete("/admin/phishing-email/{email_id}")
def delete_phishing_email(email_id: int, identity: Identity = Depends(require_admin),
                          content_service: ContentService = Depends(get_content_service)):
    content_service.delete_phishing_email(email_id)
    return ok("Deleted")
