import logging

from fastapi import APIRouter, Depends

from database import CONTACT_MESSAGES_COLLECTION, SUCCESS_STORIES_COLLECTION, Database, get_db
from pagination import paginate
from schemas import ContactMessage, ContactMessageIn, SuccessStory, SuccessStoryIn
from serializers import to_doc
from workflows import ok

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])

# Submitter contact details stay in the admin views
PUBLIC_STORY_PROJECTION = {"submittedBy": 0, "adminNote": 0}


@router.post("/contact-messages", status_code=201)
def create_contact_message(payload: ContactMessageIn, db: Database = Depends(get_db)):
    message = ContactMessage(
        name=payload.name,
        email=payload.email,
        channel=payload.channel or "email",
        subject=payload.subject,
        message=payload.message,
    )
    message_id = db.create_document(CONTACT_MESSAGES_COLLECTION, message)
    logger.info("Contact message %s received via %s", message_id, message.channel)
    return ok("Message received", id=message_id)


@router.post("/success-stories", status_code=201)
def create_success_story(payload: SuccessStoryIn, db: Database = Depends(get_db)):
    story = SuccessStory(**payload.model_dump())
    story_id = db.create_document(SUCCESS_STORIES_COLLECTION, story)
    logger.info("Success story %s submitted", story_id)
    return ok("Success story submitted for review", id=story_id)


@router.get("/success-stories")
def list_success_stories(page: int = 1, limit: int = 12, db: Database = Depends(get_db)):
    return paginate(
        db.success_stories,
        {"status": "approved"},
        page,
        limit,
        sort=[("marriageDate", -1), ("createdAt", -1)],
        projection=PUBLIC_STORY_PROJECTION,
        transform=to_doc,
        default_limit=12,
    )
