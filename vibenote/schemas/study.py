"""
Quiz and flashcard schemas.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal
from datetime import datetime


class QuizOptions(BaseModel):
    """Four multiple choice options."""
    a: str
    b: str
    c: str
    d: str


class QuizQuestion(BaseModel):
    """A generated multiple choice question."""
    model_config = ConfigDict(populate_by_name=True)

    question: str
    options: QuizOptions
    correct_answer: Literal["a", "b", "c", "d"] = Field(..., alias="correctAnswer")
    solution: str


class QuizPayload(BaseModel):
    """Shape the model must return for a quiz."""
    quiz: List[QuizQuestion]


class QuizRequest(BaseModel):
    title: str = Field(..., min_length=1)
    questions: int = Field(..., ge=1)
    chat_id: str = Field(..., min_length=1)


class QuizResponse(BaseModel):
    title: str
    quiz: List[QuizQuestion]
    toast_notification: str = "Quiz Successfully Generated!"


class Flashcard(BaseModel):
    question: str
    answer: str
    hint: Optional[str] = None


class FlashcardPayload(BaseModel):
    """Shape the model must return for flashcards."""
    flashcards: List[Flashcard]


class FlashcardDeck(BaseModel):
    """Flashcards persisted for a chat (at most one deck per chat)."""
    deck_id: str
    chat_id: str
    user_id: str
    flashcards: List[Flashcard]
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class FlashcardRequest(BaseModel):
    chat_id: str = Field(..., min_length=1)
    num_flashcards: Optional[int] = Field(default=None, ge=1, le=50)
    enable_hints: bool = False
    enable_reminder: bool = False


class FlashcardResponse(BaseModel):
    state: Literal["completed"] = "completed"
    message: str
    deck: FlashcardDeck
