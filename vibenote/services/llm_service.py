"""
LLM service for the GROQ API.

Chat turns stream from a vision-capable model; titles and study material
(quizzes, flashcards) use short non-streaming calls. Structured output is
requested as a JSON object and validated against a pydantic model.
"""
from groq import AsyncGroq
from pydantic import BaseModel
from typing import AsyncIterator, List, Optional, Dict, Any, Type, TypeVar
import logging

from vibenote.config.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


# ============================================================
# CENTRALISED PROMPT TEMPLATES
# ============================================================

CHAT_SYSTEM_PROMPT = """\
You are VibeNote AI, an intelligent learning assistant designed for students studying Physics, \
Chemistry, Mathematics (PCM) and Computer Science.

Your primary role is to help students learn through interactive features:

🧠 **Quiz Generation**: Create targeted quizzes based on our conversation to test understanding
📚 **Flashcards**: Generate spaced repetition flashcards in ANKI style with calendar reminders
🎨 **Whiteboard Analysis**: When users share whiteboard drawings, analyze their work and provide feedback

**Key Capabilities:**
- Explain complex PCM and CS concepts clearly
- Break down problems step-by-step
- Create practice questions and flashcards
- Analyze hand-drawn diagrams and solutions
- Provide constructive feedback on student work

**When users mention:**
- "What's on my whiteboard" or similar - they're sharing a drawing/diagram they created
- Quiz requests - generate relevant questions based on our discussion
- Flashcard requests - create memorable study cards with SRS scheduling

Be encouraging, clear, and focus on helping students truly understand concepts rather than just memorizing them.
"""

_TITLE_PROMPT = """\
Generate a short, concise title (maximum 5 words) for this conversation based on \
the user's message. Only return the title, nothing else. User message: "{message}"\
"""

_STRUCTURED_SYSTEM = """\
You are a study-material generator. Reply with a single JSON object only, no prose and no code fences.
The JSON object must match this shape exactly:
{shape}
"""


class LLMService:
    """
    LLM service using the GROQ API.
    """

    def __init__(self):
        self.settings = get_settings()
        self.client: Optional[AsyncGroq] = None
        self.chat_model = self.settings.chat_model
        self.title_model = self.settings.title_model
        self.study_model = self.settings.study_model

    def initialize(self) -> None:
        """Initialize the GROQ client."""
        if self.client is not None:
            return
        if not self.settings.groq_api_key:
            logger.warning("GROQ API key not configured")
            return

        self.client = AsyncGroq(api_key=self.settings.groq_api_key)
        logger.info(
            f"Initialized GROQ client (chat: {self.chat_model}, "
            f"title: {self.title_model}, study: {self.study_model})"
        )

    def _require_client(self) -> AsyncGroq:
        if not self.client:
            raise ValueError("GROQ client not initialized. Check API key.")
        return self.client

    async def stream_chat(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: str = CHAT_SYSTEM_PROMPT,
    ) -> AsyncIterator[str]:
        """Stream a chat completion token-by-token."""
        client = self._require_client()

        stream = await client.chat.completions.create(
            model=self.chat_model,
            messages=[{"role": "system", "content": system_prompt}, *messages],
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.llm_max_tokens,
            stream=True,
        )
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta.content:
                    yield delta.content
        finally:
            await stream.close()

    async def generate_chat_title(self, user_message: str) -> str:
        """One-shot, low-temperature title from the user's text. Raises on failure."""
        client = self._require_client()

        response = await client.chat.completions.create(
            model=self.title_model,
            messages=[{"role": "user", "content": _TITLE_PROMPT.format(message=user_message)}],
            temperature=self.settings.title_temperature,
            max_tokens=20,
        )
        content = response.choices[0].message.content or ""
        return content.strip().strip('"').strip("'").strip()

    async def generate_structured(self, prompt: str, schema: Type[T], shape: str) -> T:
        """
        Generate a JSON object and validate it against `schema`.

        Args:
            prompt: Task description including the source material.
            schema: Pydantic model the reply must satisfy.
            shape: Human-readable JSON shape shown to the model.

        Raises:
            pydantic.ValidationError: If the reply does not match the schema.
        """
        client = self._require_client()

        response = await client.chat.completions.create(
            model=self.study_model,
            messages=[
                {"role": "system", "content": _STRUCTURED_SYSTEM.format(shape=shape)},
                {"role": "user", "content": prompt},
            ],
            temperature=self.settings.title_temperature,
            max_tokens=self.settings.llm_max_tokens,
            response_format={"type": "json_object"},
        )
        raw = response.choices[0].message.content or "{}"
        logger.debug(f"Structured generation returned {len(raw)} chars")
        return schema.model_validate_json(raw)


# Global instance
llm_service = LLMService()


def get_llm_service() -> LLMService:
    """Dependency for getting LLM service."""
    return llm_service
