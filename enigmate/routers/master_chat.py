import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from enigmate.database import get_db
from enigmate.dependencies import SupabaseUser, get_current_user
from enigmate.schemas.base import lenient_int, resolve_language
from enigmate.schemas.chat import ChatPatchRequest, ChatPostRequest, ChatResponse
from enigmate.services.conversation import (
    ask_master,
    create_message,
    get_conversation,
    greeting,
    save_conversation,
    stored_messages,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/master-chat", tags=["master-chat"])

MESSAGES = {
    "fr": {
        "invalid_params": "Paramètres invalides",
        "invalid_riddle": "riddleId requis",
        "unexpected": "Erreur inattendue",
    },
    "en": {
        "invalid_params": "Invalid parameters",
        "invalid_riddle": "riddleId required",
        "unexpected": "Unexpected error",
    },
}


def _invalid(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _unexpected(db: Session, riddle_id: int, language: str, error: Exception) -> HTTPException:
    db.rollback()
    logger.error("[MasterChat] Failed to handle conversation for riddle %s: %s", riddle_id, error)
    return HTTPException(status_code=500, detail=MESSAGES[language]["unexpected"])


@router.get("", response_model=ChatResponse)
async def get_master_chat(
    riddle_id: Optional[str] = Query(None, alias="riddleId"),
    lang: Optional[str] = None,
    current_user: SupabaseUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stored conversation for a riddle, or the Master's greeting when there is none."""
    language = resolve_language(lang)
    parsed_id = lenient_int(riddle_id)
    if parsed_id <= 0:
        raise _invalid(MESSAGES[language]["invalid_riddle"])

    try:
        messages = stored_messages(get_conversation(db, current_user.id, parsed_id))
    except Exception as e:
        raise _unexpected(db, parsed_id, language, e)

    if not messages:
        return ChatResponse(messages=[create_message("master", greeting(language=language))])
    return ChatResponse(messages=messages)


@router.post("", response_model=ChatResponse)
async def post_master_chat(
    request: ChatPostRequest,
    current_user: SupabaseUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Append the player's message and the Master's reply."""
    if request.riddle_id <= 0 or not request.message:
        raise _invalid(MESSAGES[request.lang]["invalid_params"])

    context = request.riddle_context
    try:
        conversation = get_conversation(db, current_user.id, request.riddle_id)
        history = stored_messages(conversation) or [
            create_message("master", greeting(context.title if context else None, request.lang))
        ]
        history.append(create_message("user", request.message))

        reply = await ask_master(
            history,
            question=context.question if context else None,
            hints=context.hints if context else [],
            revealed_hints=request.revealed_hints,
            language=request.lang,
        )
        history.append(create_message("master", reply))

        saved = save_conversation(db, current_user.id, request.riddle_id, history, conversation)
    except Exception as e:
        raise _unexpected(db, request.riddle_id, request.lang, e)

    return ChatResponse(messages=saved.messages)


@router.patch("", response_model=ChatResponse)
async def patch_master_chat(
    request: ChatPatchRequest,
    current_user: SupabaseUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Append a message authored by the Master, such as the verdict of a submission."""
    if request.riddle_id <= 0 or not request.master_message:
        raise _invalid(MESSAGES[request.lang]["invalid_params"])

    try:
        conversation = get_conversation(db, current_user.id, request.riddle_id)
        history = stored_messages(conversation)
        history.append(create_message("master", request.master_message))
        saved = save_conversation(db, current_user.id, request.riddle_id, history, conversation)
    except Exception as e:
        raise _unexpected(db, request.riddle_id, request.lang, e)

    return ChatResponse(messages=saved.messages)
