"""
Chat turn orchestration.

One user submission goes through:

    validate → normalize attachments → persist user turn → stream model
    → finalize (assistant message, deferred image upload, first-turn title)

The model's first token is awaited before the HTTP response starts, so an
invocation failure is reported as a 500 instead of a broken stream. The
finalize phase runs exactly once per turn as a tracked task: the response
waits for it before sending its final event, and a client disconnect does
not cancel it.
"""
from typing import AsyncGenerator, AsyncIterator, Optional, Set
import asyncio
import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError

from vibenote.schemas import Attachment, ChatTurn, ChatTurnRequest, TurnData
from vibenote.services.content_assembler import MessageContentAssembler
from vibenote.services.persistence import PersistenceGateway
from vibenote.services.title_generator import TitleGenerator
from vibenote.services.library_client import LibraryClient
from vibenote.utils.attachments import infer_content_type, normalize_attachments
from vibenote.utils.exceptions import (
    MalformedRequestError,
    MissingChatIdError,
    ModelInvocationError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@dataclass
class _TurnState:
    turn: ChatTurn
    user_message_id: str
    is_first_turn: bool
    finalize_task: Optional[asyncio.Task] = None


class TurnOrchestrator:
    """Runs the lifecycle of one chat turn."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        llm_service,
        assembler: MessageContentAssembler,
        title_generator: TitleGenerator,
        library_client: LibraryClient,
    ):
        self.gateway = gateway
        self.llm = llm_service
        self.assembler = assembler
        self.title_generator = title_generator
        self.library_client = library_client
        self._pending: Set[asyncio.Task] = set()

    # ========================================
    # VALIDATION
    # ========================================

    @staticmethod
    def parse_turn(raw_body: bytes, chat_id: Optional[str], user_id: Optional[str]) -> ChatTurn:
        """
        Validate a raw request into a ChatTurn.

        Raises:
            MalformedRequestError: Body is not JSON or lacks a usable message list.
            MissingChatIdError / UnauthenticatedError: Header identity missing.
        """
        try:
            body = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedRequestError(str(e)) from e
        if not isinstance(body, dict):
            raise MalformedRequestError("Request body must be a JSON object")

        if not chat_id:
            raise MissingChatIdError()
        if not user_id:
            raise UnauthenticatedError()

        try:
            request = ChatTurnRequest.model_validate(body)
        except PydanticValidationError as e:
            raise MalformedRequestError(str(e)) from e

        data = request.data or TurnData()
        return ChatTurn(
            chat_id=chat_id,
            user_id=user_id,
            messages=request.messages,
            inline_image=data.image_url or None,
            attachments=normalize_attachments(body),
            use_library=data.use_library,
        )

    # ========================================
    # TURN START
    # ========================================

    async def start_turn(self, turn: ChatTurn) -> AsyncIterator[str]:
        """
        Persist the user turn and open the model stream.

        Returns an SSE iterator once the model has produced its first token.

        Raises:
            ModelInvocationError: The model call failed before any output.
            PersistenceError: The user message could not be stored.
        """
        await self.gateway.ensure_chat(turn.chat_id, turn.user_id)
        is_first_turn = await self.gateway.count_messages(turn.chat_id) == 0

        if turn.use_library and not turn.inline_image and not turn.attachments:
            await self._attach_library_images(turn)

        user_message_id = await self.gateway.append_message(
            chat_id=turn.chat_id,
            user_id=turn.user_id,
            role=turn.current.role,
            text=turn.current.text(),
        )

        if turn.inline_image and turn.attachments:
            logger.info(f"Inline image present; ignoring {len(turn.attachments)} library attachments")

        model_messages = self.assembler.assemble(
            turn.messages,
            turn.current,
            inline_image=turn.inline_image,
            attachments=() if turn.inline_image else turn.attachments,
        )

        tokens = self.llm.stream_chat(model_messages)
        try:
            first_token = await tokens.__anext__()
        except StopAsyncIteration:
            first_token = None
        except Exception as e:
            logger.error(f"Model invocation failed for chat {turn.chat_id}: {e}")
            if is_first_turn:
                await asyncio.shield(self._track(self.title_generator.generate(turn.chat_id, turn.current.text())))
            raise ModelInvocationError(str(e)) from e

        state = _TurnState(turn=turn, user_message_id=user_message_id, is_first_turn=is_first_turn)
        logger.info(f"Streaming turn for chat {turn.chat_id} (first turn: {is_first_turn})")
        return self._stream(state, first_token, tokens)

    async def _attach_library_images(self, turn: ChatTurn) -> None:
        result = await self.library_client.retrieve_images(turn.current.text(), turn.user_id)
        if not result.success:
            logger.warning(f"Library images unavailable for chat {turn.chat_id}: {result.error}")
            return
        turn.attachments = [
            Attachment(url=url, content_type=infer_content_type(url)) for url in result.images
        ]

    # ========================================
    # STREAMING
    # ========================================

    async def _stream(
        self,
        state: _TurnState,
        first_token: Optional[str],
        tokens: AsyncGenerator[str, None],
    ) -> AsyncIterator[str]:
        chunks = []
        try:
            if first_token is not None:
                chunks.append(first_token)
                yield _sse({"token": first_token})
            async for token in tokens:
                chunks.append(token)
                yield _sse({"token": token})
        except (asyncio.CancelledError, GeneratorExit):
            logger.warning(
                f"Client disconnected from chat {state.turn.chat_id}; "
                f"finishing turn with {len(chunks)} streamed chunks"
            )
            self._schedule_finalize(state, "".join(chunks), complete=False)
            await tokens.aclose()
            raise
        except Exception as e:
            logger.error(f"Model stream failed for chat {state.turn.chat_id}: {e}")
            if state.is_first_turn:
                turn = state.turn
                await asyncio.shield(self._track(self.title_generator.generate(turn.chat_id, turn.current.text())))
            yield _sse({"error": "An error occurred processing your request", "details": str(e)})
            return

        task = self._schedule_finalize(state, "".join(chunks), complete=True)
        summary = await asyncio.shield(task)
        yield _sse({"done": True, **summary})

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _schedule_finalize(self, state: _TurnState, text: str, complete: bool) -> asyncio.Task:
        if state.finalize_task is None:
            state.finalize_task = self._track(self._finalize(state, text, complete))
        return state.finalize_task

    # ========================================
    # FINALIZE
    # ========================================

    async def _finalize(self, state: _TurnState, text: str, complete: bool) -> dict:
        """
        Post-stream side effects. Failures are logged, never raised.

        An interrupted stream stores the partial answer only if some text
        arrived; a completed stream always stores the answer.
        """
        turn = state.turn
        related_images = [] if turn.inline_image else [att.url for att in turn.attachments]

        assistant_message_id = None
        if complete or text:
            try:
                assistant_message_id = await self.gateway.append_message(
                    chat_id=turn.chat_id,
                    user_id=turn.user_id,
                    role="assistant",
                    text=text,
                    related_images=related_images or None,
                )
            except Exception as e:
                logger.error(f"Failed to save assistant message for chat {turn.chat_id}: {e}")

        storage_id = None
        if turn.inline_image:
            storage_id = await self._store_inline_image(state)

        title = None
        if state.is_first_turn:
            title = await self.title_generator.generate(turn.chat_id, turn.current.text())

        return {
            "chat_id": turn.chat_id,
            "message_id": assistant_message_id,
            "user_message_id": state.user_message_id,
            "title": title,
            "related_images": related_images,
            "image_storage_id": storage_id,
        }

    async def _store_inline_image(self, state: _TurnState) -> Optional[str]:
        """Upload the inline image and patch it onto the user message."""
        turn = state.turn
        try:
            storage_id = await self.gateway.store_image(turn.inline_image)
            await self.gateway.patch_message_image(state.user_message_id, turn.current.text(), storage_id)
            return storage_id
        except Exception as e:
            logger.error(f"Error uploading image for message {state.user_message_id}: {e}")
            return None

    async def drain(self) -> None:
        """Wait for finalize tasks still running (called at shutdown)."""
        if self._pending:
            logger.info(f"Waiting for {len(self._pending)} pending chat turns to finish")
            await asyncio.gather(*list(self._pending), return_exceptions=True)
