"""The Master chat: a guide persona that helps the player without giving the answer away."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
from enigmate.config import CHAT_MODEL, MAX_MESSAGES_STORED
from enigmate.models.chat import Chat
from enigmate.services import llm

logger = logging.getLogger(__name__)

FALLBACK_REPLIES = {
    "fr": "Continuons notre exploration : que remarques-tu d'autre ?",
    "en": "Let's keep exploring: what else do you notice?",
}


def create_message(author: str, text: str) -> dict:
    return {
        "id": str(uuid.uuid4()),
        "author": author,
        "text": text,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def greeting(title: Optional[str] = None, language: str = "fr") -> str:
    if language == "en":
        suffix = f" – “{title}”" if title else ""
        return f"Welcome to the duel against the Master{suffix}. Tell me your intuition and let's explore together."
    suffix = f" – « {title} »" if title else ""
    return f"Bienvenue dans le duel contre le Maître{suffix}. Décris-moi ton intuition et explorons ensemble."


def get_conversation(db: Session, user_id: str, riddle_id: int) -> Optional[Chat]:
    return db.query(Chat).filter(
        Chat.user_id == user_id,
        Chat.riddle_id == riddle_id,
    ).first()


def stored_messages(conversation: Optional[Chat]) -> list[dict]:
    if conversation is None or not isinstance(conversation.messages, list):
        return []
    return list(conversation.messages)


def save_conversation(
    db: Session,
    user_id: str,
    riddle_id: int,
    messages: list[dict],
    conversation: Optional[Chat] = None,
) -> Chat:
    """Persist the history, keeping only the most recent messages."""
    messages = messages[-MAX_MESSAGES_STORED:]
    if conversation is None:
        conversation = Chat(user_id=user_id, riddle_id=riddle_id, messages=messages)
        db.add(conversation)
    else:
        # Reassign so the JSON column is flagged as modified
        conversation.messages = messages
        conversation.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(conversation)
    return conversation


def build_system_prompt(
    question: Optional[str],
    hints: list[str],
    revealed_hints: list[str],
) -> str:
    possible = "\n".join(f"Indice {i} : {hint}" for i, hint in enumerate(hints, start=1))
    revealed = "\n".join(f"Indice dévoilé {i} : {hint}" for i, hint in enumerate(revealed_hints, start=1))

    prompt = (
        'Tu es "Le Maître", un mentor bienveillant qui guide l\'utilisateur pour résoudre une énigme.\n\n'
        f"Énigme : {question or '(question inconnue)'}\n"
    )
    if possible:
        prompt += f"Ensemble d'indices possibles :\n{possible}\n\n"
    if revealed:
        prompt += f"Indices déjà révélés à l'utilisateur :\n{revealed}\n\n"
    prompt += (
        "Ton ton est chaleureux, mystérieux mais encourageant.\n"
        "Ne donne jamais directement la réponse finale, aide plutôt par étapes.\n"
        "Si l'utilisateur demande explicitement un indice non dévoilé, invite-le à utiliser le panneau d'indices.\n"
        "Tes réponses doivent être courtes (3-4 phrases) et se terminer par une question ou une invitation "
        "à poursuivre la réflexion."
    )
    return prompt


async def ask_master(
    history: list[dict],
    question: Optional[str],
    hints: list[str],
    revealed_hints: list[str],
    language: str,
) -> str:
    """Get the Master's next reply. Falls back to a fixed nudge when Gemini is unavailable."""
    client = llm.get_gemini_client()
    if client is None:
        return FALLBACK_REPLIES[language]

    # Gemini expects the conversation to open with a user turn
    start = next((i for i, entry in enumerate(history) if entry.get("author") == "user"), len(history))
    contents = [
        llm.chat_turn("model" if entry.get("author") == "master" else "user", str(entry.get("text", "")))
        for entry in history[start:]
    ]
    system_instruction = build_system_prompt(question, hints, revealed_hints)
    if language == "en":
        system_instruction += "\nRéponds en anglais."

    try:
        response = await llm.call_gemini_with_retry_async(
            client, CHAT_MODEL, contents, llm.text_config(system_instruction, temperature=0.7)
        )
    except Exception as e:
        logger.error("[MasterChat] Gemini reply failed: %s", e)
        return FALLBACK_REPLIES[language]

    text = (response.text or "").strip()
    return text or FALLBACK_REPLIES[language]
