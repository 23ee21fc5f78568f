import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from openai import AuthenticationError
from pydantic import BaseModel, ValidationError

from resume_reviewer.app.core.config import Settings
from resume_reviewer.app.llm.prompts import FEEDBACK_HUMAN_PROMPT, FEEDBACK_SYSTEM_PROMPT
from resume_reviewer.app.pipeline.conversion import extract_document_text
from resume_reviewer.app.pipeline.errors import InferenceFailed
from resume_reviewer.app.storage.blobs import BlobAdapter

log = logging.getLogger(__name__)


class InferenceMessage(BaseModel):
    """The message of an inference response.

    Attributes:
        content (str | list[Any]): Either the answer text, or a sequence of content
            parts whose first element carries the text.

    """

    content: str | list[Any]


class InferenceEnvelope(BaseModel):
    """The response envelope returned by the inference collaborator."""

    message: InferenceMessage


class InferenceClient(Protocol):
    """The inference collaborator."""

    async def feedback(
        self,
        document_path: str,
        instructions: str,
    ) -> InferenceEnvelope | Mapping[str, Any] | None: ...


def _part_text(part: Any) -> str | None:
    if isinstance(part, str):
        return part
    if isinstance(part, Mapping):
        text = part.get("text")
    else:
        text = getattr(part, "text", None)
    return text if isinstance(text, str) else None


def extract_answer_text(envelope: InferenceEnvelope | Mapping[str, Any]) -> str:
    """Normalize the polymorphic response envelope to the raw answer text.

    Args:
        envelope (InferenceEnvelope | Mapping[str, Any]): The collaborator response, as a
            model or as the equivalent plain mapping.

    Returns:
        str: The answer text.

    Raises:
        InferenceFailed: If the envelope matches neither the string shape nor the
            sequence-of-parts shape.

    Notes:
        1. Validate plain mappings into an `InferenceEnvelope`.
        2. String content is the answer.
        3. Sequence content yields the text of its first element, which may be a string,
           a mapping with a `text` key, or an object with a `text` attribute.

    """
    if not isinstance(envelope, InferenceEnvelope):
        try:
            envelope = InferenceEnvelope.model_validate(envelope)
        except ValidationError as e:
            _msg = f"Unrecognized inference response envelope: {e}"
            log.error(_msg)
            raise InferenceFailed("Unrecognized inference response envelope") from e

    content = envelope.message.content
    if isinstance(content, str):
        return content

    if content:
        text = _part_text(content[0])
        if text is not None:
            return text

    _msg = "Inference response content has no text part"
    log.error(_msg)
    raise InferenceFailed(_msg)


async def request_feedback(
    client: InferenceClient,
    document_path: str,
    instructions: str,
) -> str:
    """Ask the inference collaborator for feedback and return the raw answer text.

    Args:
        client (InferenceClient): The inference collaborator.
        document_path (str): Blob path of the resume document.
        instructions (str): The review instructions built from the job context.

    Returns:
        str: The raw answer text.

    Raises:
        InferenceFailed: If the collaborator raises, returns None, or returns an
            unrecognized envelope.

    Network access:
        - The default collaborator calls the configured LLM endpoint.

    """
    _msg = f"request_feedback starting for {document_path}"
    log.debug(_msg)
    try:
        envelope = await client.feedback(document_path, instructions)
    except InferenceFailed:
        raise
    except AuthenticationError as e:
        _msg = f"LLM authentication failed: {e!s}"
        log.exception(_msg)
        raise InferenceFailed() from e
    except Exception as e:
        _msg = f"Inference request failed: {e!s}"
        log.exception(_msg)
        raise InferenceFailed() from e

    if envelope is None:
        _msg = f"Inference returned no response for {document_path}"
        log.error(_msg)
        raise InferenceFailed()

    answer = extract_answer_text(envelope)
    _msg = f"request_feedback returning {len(answer)} characters"
    log.debug(_msg)
    return answer


def build_llm_params(settings: Settings) -> dict[str, Any]:
    """Build the `ChatOpenAI` keyword arguments from settings.

    Args:
        settings (Settings): The application settings.

    Returns:
        dict[str, Any]: Keyword arguments for `ChatOpenAI`.

    Notes:
        1. Use the configured model name, falling back to "gpt-4o" when empty.
        2. A custom endpoint becomes `openai_api_base`; OpenRouter endpoints also get
           the attribution headers.
        3. Pass the API key when configured; a custom non-OpenRouter endpoint without a
           key gets a placeholder, since local servers do not check it.

    """
    llm_params: dict[str, Any] = {
        "model": settings.llm_model_name or "gpt-4o",
        "temperature": settings.llm_temperature,
    }
    llm_endpoint = settings.llm_endpoint
    if llm_endpoint:
        llm_params["openai_api_base"] = llm_endpoint
        if "openrouter.ai" in llm_endpoint:
            llm_params["default_headers"] = {
                "HTTP-Referer": "http://localhost:8000/",
                "X-Title": "Resume Reviewer",
            }

    if settings.llm_api_key:
        llm_params["api_key"] = settings.llm_api_key
    elif llm_endpoint and "openrouter.ai" not in llm_endpoint:
        llm_params["api_key"] = "not-needed"

    return llm_params


class LangChainInferenceClient:
    """Inference collaborator backed by an OpenAI-compatible chat model.

    The document is read from blob storage and its text is sent to the model
    together with the review instructions. The model's message content, which
    LangChain exposes either as a string or as a list of content blocks, is
    returned unchanged inside an `InferenceEnvelope`.
    """

    def __init__(self, settings: Settings, blobs: BlobAdapter):
        self._settings = settings
        self._blobs = blobs

    def _build_llm(self) -> ChatOpenAI:
        return ChatOpenAI(**build_llm_params(self._settings))

    async def feedback(
        self,
        document_path: str,
        instructions: str,
    ) -> InferenceEnvelope | None:
        """Run the feedback request for a stored document.

        Args:
            document_path (str): Blob path of the resume document.
            instructions (str): The review instructions.

        Returns:
            InferenceEnvelope | None: The model response, or None when the document
                cannot be read.

        """
        document = await self._blobs.read(document_path)
        if document is None:
            _msg = f"Document {document_path} not found in blob storage"
            log.error(_msg)
            return None

        try:
            resume_text = await asyncio.to_thread(extract_document_text, document)
        except ValueError as e:
            _msg = f"Could not extract text from {document_path}: {e!s}"
            log.error(_msg)
            return None

        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", FEEDBACK_SYSTEM_PROMPT),
                ("human", FEEDBACK_HUMAN_PROMPT),
            ]
        )
        chain = prompt | self._build_llm()
        message = await chain.ainvoke(
            {
                "document_path": document_path,
                "resume_text": resume_text,
                "instructions": instructions,
            }
        )
        return InferenceEnvelope(message=InferenceMessage(content=message.content))
