"""
Chat session that ties document loading, usage limits and answering together.
"""
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from loguru import logger

from pdf_chat.config.settings import CHAT_MODEL, OPENAI_API_KEY
from pdf_chat.models.chat import Answer, Conversation
from pdf_chat.models.document import Document
from pdf_chat.models.subscription import LimitDimension
from pdf_chat.services.response_orchestrator import ResponseOrchestrator
from pdf_chat.services.settings_store import SettingsStore
from pdf_chat.services.usage_tracker import LimitCheck, UsageTracker
from pdf_chat.utils.pdf_processor import extract_pages


class EntitlementDenied(Exception):
    """The user's plan does not allow the requested action."""

    def __init__(self, dimension: LimitDimension, check: LimitCheck):
        self.dimension = dimension
        self.check = check
        super().__init__(
            f"Usage limit reached for {dimension.value} ({check.limit} allowed on the current plan)"
        )


class SessionBusyError(Exception):
    """A question is already being answered."""
    pass


class NoDocumentError(Exception):
    """No document has been loaded into the session."""
    pass


@dataclass
class ChatSettings:
    """User-editable answering settings."""
    use_ai: bool = False
    api_key: Optional[str] = OPENAI_API_KEY
    model: str = CHAT_MODEL

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatSettings":
        """Build settings from saved values, keeping defaults for missing keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


class ChatSession:
    """One user's chat over the currently loaded document."""

    def __init__(
        self,
        user_id: str,
        tracker: UsageTracker,
        orchestrator: ResponseOrchestrator,
        settings: Optional[ChatSettings] = None,
        settings_store: Optional[SettingsStore] = None
    ):
        self.user_id = user_id
        self.tracker = tracker
        self.orchestrator = orchestrator
        self.settings_store = settings_store
        if settings is None and settings_store is not None:
            settings = ChatSettings.from_dict(settings_store.load(user_id))
        self.settings = settings or ChatSettings()
        self.document: Optional[Document] = None
        self.conversation = Conversation()
        self._busy = False

    @property
    def is_busy(self) -> bool:
        """True while a question is being answered; callers must not submit another."""
        return self._busy

    @property
    def document_id(self) -> Optional[str]:
        return self.document.id if self.document else None

    def _require(self, dimension: LimitDimension) -> LimitCheck:
        check = self.tracker.check_limit(self.user_id, dimension, document_id=self.document_id)
        if not check.allowed:
            logger.warning(f"User {self.user_id} denied {dimension.value}: {check}")
            raise EntitlementDenied(dimension, check)
        return check

    def wants_model(self) -> bool:
        """True when the user has turned on AI answers and supplied a key."""
        return bool(self.settings.use_ai and self.settings.api_key)

    def can_use_model(self) -> bool:
        return self.wants_model() and self.tracker.has_access(self.user_id, LimitDimension.AI_RESPONSES)

    def save_settings(self) -> None:
        """Persist the current settings for this user, if a store is configured."""
        if self.settings_store is not None:
            self.settings_store.save(self.user_id, self.settings.to_dict())

    def load_document(self, file_bytes: bytes, filename: str) -> Document:
        """
        Extract a PDF and make it the session's document.

        Raises:
            EntitlementDenied: Monthly upload limit reached
            ExtractionError: No text could be extracted; nothing is counted
        """
        self._require(LimitDimension.MONTHLY_UPLOADS)

        raw_text, page_count = extract_pages(file_bytes)
        document = Document(
            filename=filename,
            raw_text=raw_text,
            file_size=len(file_bytes),
            page_count=page_count
        )

        self.tracker.increment(self.user_id, LimitDimension.MONTHLY_UPLOADS)
        self.tracker.reset_document_questions(self.user_id, self.document_id)
        self.document = document
        self.conversation = Conversation(document_id=document.id)
        logger.info(f"Loaded {filename} ({page_count} pages, {len(raw_text)} characters)")
        return document

    def ask(self, question: str) -> Answer:
        """
        Answer a question about the loaded document.

        Raises:
            SessionBusyError: A previous question is still pending
            NoDocumentError: No document is loaded
            ValueError: The question is blank
            EntitlementDenied: Question limit for this document reached, or AI
                answers were requested on a plan without them
            ModelResponseError: The model call failed
        """
        if self._busy:
            raise SessionBusyError("Please wait for the current answer before asking again")
        if self.document is None:
            raise NoDocumentError("Upload a PDF before asking questions")
        if not question or not question.strip():
            raise ValueError("Question cannot be empty")

        self._require(LimitDimension.QUESTIONS_PER_PDF)
        if self.wants_model():
            self._require(LimitDimension.AI_RESPONSES)

        question = question.strip()
        self._busy = True
        try:
            self.conversation.add_user_message(question)
            answer = self.orchestrator.answer(
                question,
                self.document.raw_text,
                use_model=self.can_use_model(),
                api_key=self.settings.api_key,
                model=self.settings.model
            )
        finally:
            self._busy = False

        self.conversation.add_answer(answer)
        self.tracker.increment(self.user_id, LimitDimension.QUESTIONS_PER_PDF, document_id=self.document_id)
        return answer

    def reset(self) -> None:
        """Drop the current document and its conversation."""
        self.tracker.reset_document_questions(self.user_id, self.document_id)
        self.document = None
        self.conversation = Conversation()
