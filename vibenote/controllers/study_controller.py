"""
Study controller - quizzes and flashcard decks generated from a chat.
"""
from typing import List
import logging

from vibenote.repositories import ChatRepository, FlashcardRepository, MessageRepository
from vibenote.schemas import (
    Chat,
    FlashcardDeck,
    FlashcardPayload,
    FlashcardRequest,
    FlashcardResponse,
    QuizPayload,
    QuizRequest,
    QuizResponse,
)
from vibenote.services.reminder_client import ReminderClient
from vibenote.utils.exceptions import (
    ChatNotFoundError,
    DeckNotFoundError,
    ModelInvocationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


QUIZ_SHAPE = """\
{"quiz": [{"question": "string", "options": {"a": "string", "b": "string", "c": "string", "d": "string"}, \
"correctAnswer": "a|b|c|d", "solution": "one sentence explaining why the answer is correct"}]}"""

FLASHCARD_SHAPE = """\
{"flashcards": [{"question": "string", "answer": "string", "hint": "string (optional)"}]}"""

QUIZ_PROMPT = """\
Based on the following chat conversation, generate a quiz titled "{title}" with exactly {count} questions.

Chat Context:
{context}

Create multiple choice questions based on the key concepts, facts, and learning points discussed in \
this conversation. Make sure the questions test understanding and knowledge retention of the main \
topics covered."""

FLASHCARD_PROMPT = """\
Based on the following chat conversation, generate {count} educational flashcards. {hints}

Chat conversation:
{context}

Create flashcards that test understanding of the key concepts discussed."""

REMINDER_MESSAGES = {
    None: "Flashcards generated successfully!",
    True: "Flashcards generated successfully with calendar reminders set up!",
    False: (
        "Flashcards generated successfully! However, calendar reminders could not be created. "
        "Please ensure you have connected your Google Calendar."
    ),
}


class StudyController:
    """Quiz and flashcard generation over a chat's transcript."""

    def __init__(
        self,
        chat_repo: ChatRepository,
        message_repo: MessageRepository,
        flashcard_repo: FlashcardRepository,
        llm_service,
        reminder_client: ReminderClient,
        settings,
    ):
        self.chat_repo = chat_repo
        self.message_repo = message_repo
        self.flashcard_repo = flashcard_repo
        self.llm = llm_service
        self.reminders = reminder_client
        self.settings = settings

    async def _owned_chat(self, chat_id: str, user_id: str) -> Chat:
        chat = await self.chat_repo.get_by_id(chat_id)
        if not chat or chat.user_id != user_id:
            raise ChatNotFoundError(chat_id)
        return chat

    async def _transcript(self, chat_id: str) -> str:
        messages = await self.message_repo.list_by_chat(chat_id)
        return "\n".join(f"{m.role}: {m.content}" for m in messages)

    # ── Quiz ──

    async def generate_quiz(self, user_id: str, request: QuizRequest) -> QuizResponse:
        """
        Generate a multiple choice quiz with exactly `request.questions` items.

        Raises:
            ValidationError: Too many questions or the chat has no messages.
            ModelInvocationError: Generation failed or returned the wrong count.
        """
        if request.questions > self.settings.max_quiz_questions:
            raise ValidationError(f"A quiz can have at most {self.settings.max_quiz_questions} questions")

        await self._owned_chat(request.chat_id, user_id)
        context = await self._transcript(request.chat_id)
        if not context:
            raise ValidationError("No chat content available to generate quiz from")

        prompt = QUIZ_PROMPT.format(title=request.title, count=request.questions, context=context)
        try:
            payload = await self.llm.generate_structured(prompt, QuizPayload, QUIZ_SHAPE)
        except Exception as e:
            logger.error(f"Quiz generation failed for chat {request.chat_id}: {e}")
            raise ModelInvocationError(str(e)) from e

        if len(payload.quiz) != request.questions:
            logger.warning(
                f"Quiz for chat {request.chat_id} has {len(payload.quiz)} questions, "
                f"expected {request.questions}"
            )
            raise ModelInvocationError(
                f"Expected {request.questions} questions, model returned {len(payload.quiz)}"
            )

        logger.info(f"Generated quiz '{request.title}' ({request.questions} questions) for chat {request.chat_id}")
        return QuizResponse(title=request.title, quiz=payload.quiz)

    # ── Flashcards ──

    async def generate_flashcards(self, user_id: str, request: FlashcardRequest) -> FlashcardResponse:
        """
        Generate flashcards, replace the chat's deck and optionally schedule
        reminders. Reminder failures only change the message.
        """
        chat = await self._owned_chat(request.chat_id, user_id)
        count = request.num_flashcards or self.settings.default_flashcards
        context = await self._transcript(request.chat_id)

        prompt = FLASHCARD_PROMPT.format(
            count=count,
            hints="Include helpful hints for each flashcard." if request.enable_hints else "Do not include hints.",
            context=context,
        )
        try:
            payload = await self.llm.generate_structured(prompt, FlashcardPayload, FLASHCARD_SHAPE)
        except Exception as e:
            logger.error(f"Flashcard generation failed for chat {request.chat_id}: {e}")
            raise ModelInvocationError(str(e)) from e

        flashcards = payload.flashcards
        if not request.enable_hints:
            flashcards = [card.model_copy(update={"hint": None}) for card in flashcards]

        deck = await self.flashcard_repo.upsert(request.chat_id, user_id, flashcards)

        reminded = None
        if request.enable_reminder:
            reminded = await self._schedule_reminders(user_id, chat, count)

        return FlashcardResponse(message=REMINDER_MESSAGES[reminded], deck=deck)

    async def _schedule_reminders(self, user_id: str, chat: Chat, count: int) -> bool:
        chat_title = chat.title or "Untitled Chat"
        try:
            return await self.reminders.create_flashcard_reminders(
                user_id=user_id,
                flashcard_title=f"{chat_title} - {count} Cards",
                chat_title=chat_title,
                chat_id=chat.chat_id,
            )
        except Exception as e:
            logger.error(f"Error creating calendar reminders for chat {chat.chat_id}: {e}")
            return False

    async def get_deck(self, chat_id: str, user_id: str) -> FlashcardDeck:
        deck = await self.flashcard_repo.get_by_chat(chat_id)
        if not deck or deck.user_id != user_id:
            raise DeckNotFoundError(chat_id)
        return deck

    async def list_decks(self, user_id: str) -> List[FlashcardDeck]:
        return await self.flashcard_repo.list_by_user(user_id)

    async def delete_deck(self, deck_id: str, user_id: str) -> None:
        deck = await self.flashcard_repo.get_by_id(deck_id)
        if not deck or deck.user_id != user_id:
            raise DeckNotFoundError(deck_id)
        await self.flashcard_repo.delete(deck_id)
        logger.info(f"Deleted flashcard deck {deck_id}")
