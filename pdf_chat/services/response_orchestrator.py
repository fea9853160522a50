"""
Chooses between the model and heuristic responders for a question.
"""
from typing import Optional

from loguru import logger

from pdf_chat.config.settings import CHAT_MODEL
from pdf_chat.models.chat import Answer, ResponseSource
from pdf_chat.services.heuristic_responder import HeuristicResponder
from pdf_chat.services.model_responder import ModelResponder


class ResponseOrchestrator:
    """Routes questions to exactly one responder and tags the answer with its source."""

    def __init__(
        self,
        heuristic_responder: Optional[HeuristicResponder] = None,
        model_responder: Optional[ModelResponder] = None
    ):
        self.heuristic_responder = heuristic_responder or HeuristicResponder()
        self.model_responder = model_responder or ModelResponder()

    def answer(
        self,
        question: str,
        document_text: str,
        use_model: bool = False,
        api_key: Optional[str] = None,
        model: str = CHAT_MODEL
    ) -> Answer:
        """
        Answer a question about the document.

        The model is used only when use_model is set and an API key is present.
        Model errors propagate to the caller; they are never replaced by a
        heuristic answer.
        """
        if use_model and api_key:
            logger.debug(f"Answering with model {model}")
            content = self.model_responder.respond(question, document_text, api_key, model)
            return Answer(content=content, source=ResponseSource.MODEL)

        logger.debug("Answering with heuristic responder")
        content = self.heuristic_responder.respond(question, document_text)
        return Answer(content=content, source=ResponseSource.HEURISTIC)
