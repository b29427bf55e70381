"""
Study API router - quizzes and flashcards.
"""
from fastapi import APIRouter, Depends
from typing import List

from vibenote.controllers import StudyController
from vibenote.core.auth import require_user_id
from vibenote.core.dependencies import get_study_controller
from vibenote.schemas import FlashcardDeck, FlashcardRequest, FlashcardResponse, QuizRequest, QuizResponse

router = APIRouter(prefix="/api/study", tags=["Study"])


@router.post("/quiz", response_model=QuizResponse)
async def generate_quiz(
    request: QuizRequest,
    user_id: str = Depends(require_user_id),
    controller: StudyController = Depends(get_study_controller),
):
    """Generate a multiple choice quiz from a chat's conversation."""
    return await controller.generate_quiz(user_id, request)


@router.post("/flashcards", response_model=FlashcardResponse)
async def generate_flashcards(
    request: FlashcardRequest,
    user_id: str = Depends(require_user_id),
    controller: StudyController = Depends(get_study_controller),
):
    """Generate (or regenerate) the flashcard deck of a chat."""
    return await controller.generate_flashcards(user_id, request)


@router.get("/flashcards", response_model=List[FlashcardDeck])
async def list_decks(
    user_id: str = Depends(require_user_id),
    controller: StudyController = Depends(get_study_controller),
):
    return await controller.list_decks(user_id)


@router.get("/flashcards/{chat_id}", response_model=FlashcardDeck)
async def get_deck(
    chat_id: str,
    user_id: str = Depends(require_user_id),
    controller: StudyController = Depends(get_study_controller),
):
    return await controller.get_deck(chat_id, user_id)


@router.delete("/flashcards/decks/{deck_id}")
async def delete_deck(
    deck_id: str,
    user_id: str = Depends(require_user_id),
    controller: StudyController = Depends(get_study_controller),
):
    await controller.delete_deck(deck_id, user_id)
    return {"message": f"Deck {deck_id} deleted"}
