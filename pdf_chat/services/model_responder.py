"""
Service for answering questions about a document with an LLM through LiteLLM.
"""
from typing import Optional

import litellm
from langchain_community.chat_models import ChatLiteLLM
from langchain_core.messages import SystemMessage, HumanMessage
from loguru import logger

from pdf_chat.config.settings import (
    CHAT_MODEL,
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    MAX_CONTENT_LENGTH,
    MAX_TOKENS,
    TEMPERATURE,
    TRUNCATION_MARKER
)

# Trace completions in Langfuse when it is configured
if LANGFUSE_PUBLIC_KEY and LANGFUSE_SECRET_KEY:
    litellm.success_callback = ['langfuse']
    litellm.failure_callback = ['langfuse']

EMPTY_COMPLETION_MESSAGE = "I apologize, but I couldn't generate a response. Please try again."

SYSTEM_PROMPT = """You are an AI assistant that helps users understand PDF documents. You have access to the content of a PDF document and should answer questions based on that content.

Guidelines:
- Provide accurate, helpful responses based on the PDF content
- If information isn't in the document, clearly state that
- Use specific quotes or references when possible
- Be concise but thorough
- If asked to summarize, focus on key points
- For factual questions, provide specific details from the document"""

USER_PROMPT_TEMPLATE = """Based on the following PDF content, please answer this question: "{question}"

PDF Content:
{content}

Please provide a helpful and accurate response based on the document content."""


class ModelResponseError(Exception):
    """Base class for completion failures. str() is the message shown to the user."""
    user_message = "Failed to get AI response. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class AuthError(ModelResponseError):
    user_message = "Invalid API key. Please check your OpenAI API key in settings."


class RateLimitError(ModelResponseError):
    user_message = "Rate limit exceeded. Please try again in a moment."


class ServiceUnavailableError(ModelResponseError):
    user_message = "OpenAI service is temporarily unavailable. Please try again later."


class RequestError(ModelResponseError):
    user_message = "Failed to get AI response. Please try again."


def truncate_content(text: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """Cut text to max_length characters, marking the cut."""
    if len(text) > max_length:
        return text[:max_length] + TRUNCATION_MARKER
    return text


def map_completion_error(error: Exception) -> ModelResponseError:
    """Translate a LiteLLM/provider failure into the matching ModelResponseError."""
    if isinstance(error, ModelResponseError):
        return error
    if isinstance(error, litellm.AuthenticationError):
        return AuthError()
    if isinstance(error, litellm.RateLimitError):
        return RateLimitError()
    if isinstance(error, (litellm.ServiceUnavailableError, litellm.InternalServerError)):
        return ServiceUnavailableError()

    status_code = getattr(error, "status_code", None)
    if status_code == 401:
        return AuthError()
    if status_code == 429:
        return RateLimitError()
    if isinstance(status_code, int) and 500 <= status_code < 600:
        return ServiceUnavailableError()
    return RequestError()


class ModelResponder:
    """Answers questions by sending the document and question to a chat completion model."""

    def __init__(
        self,
        max_content_length: int = MAX_CONTENT_LENGTH,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
        api_base: Optional[str] = None
    ):
        self.max_content_length = max_content_length
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.api_base = api_base

    def build_messages(self, question: str, document_text: str):
        """Build the system and user messages for a single-turn request."""
        content = truncate_content(document_text or "", self.max_content_length)
        if len(content) != len(document_text or ""):
            logger.debug(
                f"Document truncated from {len(document_text)} to {self.max_content_length} characters"
            )
        return [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=USER_PROMPT_TEMPLATE.format(question=question, content=content))
        ]

    def _create_llm(self, api_key: str, model: str) -> ChatLiteLLM:
        kwargs = {}
        if self.api_base:
            kwargs["api_base"] = self.api_base
        return ChatLiteLLM(
            model=model,
            api_key=api_key,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            max_retries=1,
            # no retries in LangChain or in the provider client
            model_kwargs={"max_retries": 0, "num_retries": 0},
            **kwargs
        )

    def respond(
        self,
        question: str,
        document_text: str,
        api_key: Optional[str],
        model: str = CHAT_MODEL
    ) -> str:
        """
        Answer a question about the document with the configured model.

        Args:
            question: The user's question
            document_text: Full extracted document text
            api_key: Caller-supplied provider key
            model: Completion model name

        Returns:
            The completion text, or a fixed apology if it is empty

        Raises:
            AuthError: Missing or rejected API key
            RateLimitError: Provider rate limit hit
            ServiceUnavailableError: Provider 5xx
            RequestError: Any other request failure
        """
        if not api_key:
            raise AuthError()

        messages = self.build_messages(question, document_text)
        try:
            llm = self._create_llm(api_key, model)
            response = llm.invoke(messages)
        except ModelResponseError:
            raise
        except Exception as e:
            mapped = map_completion_error(e)
            logger.error(f"Completion request to {model} failed ({type(mapped).__name__}): {e}")
            raise mapped from e

        content = response.content if isinstance(response.content, str) else ""
        content = content.strip()
        return content or EMPTY_COMPLETION_MESSAGE
