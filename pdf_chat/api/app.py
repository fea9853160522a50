"""
Streamlit application for PDF Chat.
"""
import mimetypes
from datetime import datetime, timedelta

import pandas as pd
import streamlit as st

from pdf_chat.config.settings import (
    ALLOWED_MIME_TYPES,
    AVAILABLE_MODELS,
    BILLING_PORTAL_RETURN_URL,
    CHECKOUT_CANCEL_URL,
    CHECKOUT_SUCCESS_URL,
    MAX_FILE_SIZE
)
from pdf_chat.core.chat_session import (
    ChatSession,
    EntitlementDenied
)
from pdf_chat.models.chat import ConversationRole, ResponseSource
from pdf_chat.models.subscription import SUBSCRIPTION_PLANS, UNLIMITED, LimitDimension, PlanKey
from pdf_chat.services.model_responder import ModelResponseError
from pdf_chat.services.response_orchestrator import ResponseOrchestrator
from pdf_chat.services.settings_store import SqliteSettingsStore
from pdf_chat.services.subscription_service import (
    CheckoutError,
    CheckoutService,
    InMemorySubscriptionStore
)
from pdf_chat.services.usage_store import SqliteUsageStore
from pdf_chat.services.usage_tracker import UsageTracker
from pdf_chat.utils.pdf_processor import ExtractionError

DEMO_USER_ID = "demo-user"

SUGGESTED_QUESTIONS = [
    "Can you summarize this document?",
    "What is the main topic?",
    "What are the key findings?",
    "What methodology was used?",
]


def mock_checkout_session(price_id: str, success_url: str, cancel_url: str) -> str:
    """Stand-in for the billing provider: checkout succeeds immediately."""
    return f"{success_url}&price={price_id}"


def mock_portal_session(customer_id: str, return_url: str) -> str:
    """Stand-in for the billing provider's customer portal."""
    return f"{return_url}?portal={customer_id}"


@st.cache_resource
def get_services():
    """Create the shared services once per server process."""
    subscriptions = InMemorySubscriptionStore()
    tracker = UsageTracker(SqliteUsageStore(), subscriptions)
    checkout = CheckoutService(mock_checkout_session, subscriptions, portal_creator=mock_portal_session)
    return tracker, checkout, ResponseOrchestrator(), SqliteSettingsStore()


def get_session() -> ChatSession:
    """Get or create this browser session's chat session."""
    if "chat_session" not in st.session_state:
        tracker, _, orchestrator, settings_store = get_services()
        st.session_state.chat_session = ChatSession(
            DEMO_USER_ID, tracker, orchestrator, settings_store=settings_store
        )
    return st.session_state.chat_session


def validate_file(file) -> bool:
    """
    Validate uploaded file for size and type.

    Args:
        file: Streamlit UploadedFile object

    Returns:
        bool: True if file is valid, False otherwise
    """
    if not file:
        return False

    if file.size > MAX_FILE_SIZE:
        st.error(f"File size exceeds maximum limit of {MAX_FILE_SIZE/1024/1024:.1f}MB")
        return False

    mime_type = mimetypes.guess_type(file.name)[0]
    if mime_type not in ALLOWED_MIME_TYPES:
        st.error(f"File type {mime_type} not supported. Please upload a PDF file.")
        return False

    return True


def format_limit(value: int) -> str:
    return "Unlimited" if value == UNLIMITED else str(value)


def display_usage(session: ChatSession):
    """Show plan usage in the sidebar."""
    tracker = session.tracker
    usage = tracker.get_usage(session.user_id, document_id=session.document_id)
    rows = []
    for dimension in (LimitDimension.MONTHLY_UPLOADS, LimitDimension.QUESTIONS_PER_PDF):
        check = tracker.check_limit(session.user_id, dimension, document_id=session.document_id)
        rows.append({
            "Limit": dimension.value,
            "Used": usage.get(dimension.value, 0),
            "Allowed": format_limit(check.limit),
            "Remaining": format_limit(check.remaining),
        })
    st.dataframe(pd.DataFrame(rows), hide_index=True)
    ai_enabled = tracker.has_access(session.user_id, LimitDimension.AI_RESPONSES)
    st.write("**AI responses:**", "Included" if ai_enabled else "Upgrade required")


def display_plans(session: ChatSession):
    """Upgrade buttons for paid plans."""
    _, checkout, _, _ = get_services()
    for plan in SUBSCRIPTION_PLANS.values():
        if not plan.is_paid:
            continue
        with st.expander(f"{plan.display_name} - {plan.price_label}"):
            for feature in plan.features:
                st.write(f"- {feature}")
            if plan.enabled_flags:
                st.caption("Includes: " + ", ".join(plan.enabled_flags))
            if st.button(f"Upgrade to {plan.display_name}", key=f"upgrade_{plan.key.value}"):
                try:
                    checkout.start_checkout(
                        plan.key, CHECKOUT_SUCCESS_URL, CHECKOUT_CANCEL_URL, user_id=session.user_id
                    )
                    checkout.complete_checkout(
                        session.user_id,
                        plan.key,
                        customer_id=f"cus_{session.user_id}",
                        current_period_end=datetime.now() + timedelta(days=30)
                    )
                    st.success(f"Upgrade successful! You are now on {plan.display_name}.")
                    st.rerun()
                except CheckoutError as e:
                    st.error(f"Checkout failed: {e}")


def display_billing(session: ChatSession, checkout: CheckoutService):
    """Renewal date and billing portal link for paid subscribers."""
    subscription = session.tracker.subscriptions.get_subscription(session.user_id)
    if subscription is None or not subscription.is_active:
        return
    if subscription.current_period_end:
        st.caption(f"Renews on {subscription.current_period_end:%Y-%m-%d}")
    if subscription.customer_id and st.button("Manage billing"):
        try:
            url = checkout.open_billing_portal(session.user_id, BILLING_PORTAL_RETURN_URL)
            st.link_button("Open billing portal", url)
        except CheckoutError as e:
            st.error(f"Could not open billing portal: {e}")


def display_settings(session: ChatSession):
    """AI settings panel."""
    settings = session.settings
    saved = settings.to_dict()
    settings.use_ai = st.toggle("Use AI responses", value=settings.use_ai)
    settings.api_key = st.text_input("OpenAI API key", value=settings.api_key or "", type="password") or None
    settings.model = st.selectbox(
        "Model",
        options=AVAILABLE_MODELS,
        index=AVAILABLE_MODELS.index(settings.model) if settings.model in AVAILABLE_MODELS else 0
    )
    if settings.to_dict() != saved:
        session.save_settings()
    if session.wants_model() and not session.can_use_model():
        st.warning("AI responses need a Premium or Pro plan. Upgrade or turn off AI responses to keep chatting.")
    elif settings.use_ai and not settings.api_key:
        st.info("Add an OpenAI API key to get AI responses. Using basic responses.")


def display_conversation(session: ChatSession):
    for entry in session.conversation:
        with st.chat_message(entry.role.value):
            st.write(entry.content)
            if entry.role == ConversationRole.ASSISTANT and entry.source == ResponseSource.MODEL:
                st.caption("AI response")


def main():
    """Main function to run the Streamlit app."""
    st.set_page_config(page_title="PDF Chat", page_icon="📄", layout="wide")
    st.title("PDF Chat")

    session = get_session()
    tracker, checkout, _, _ = get_services()

    with st.sidebar:
        plan = tracker.evaluator.resolve_plan(
            tracker.subscriptions.get_subscription(session.user_id)
        )
        st.subheader(f"Plan: {plan.display_name if plan else 'Unknown'}")
        display_billing(session, checkout)
        display_usage(session)
        st.subheader("Settings")
        display_settings(session)
        if plan is None or plan.key == PlanKey.FREE:
            st.subheader("Upgrade")
            display_plans(session)
        if st.button("New document"):
            session.reset()
            st.rerun()

    if session.document is None:
        uploaded_file = st.file_uploader("Upload a PDF", type=["pdf"])
        if uploaded_file and validate_file(uploaded_file):
            try:
                with st.spinner("Extracting text..."):
                    session.load_document(uploaded_file.getvalue(), uploaded_file.name)
                st.rerun()
            except EntitlementDenied:
                st.error("You've reached your monthly upload limit. Upgrade to upload more PDFs.")
            except ExtractionError as e:
                st.error(f"{e}. Please try another file.")
        return

    document = session.document
    st.caption(f"{document.filename} - {document.page_count} pages, {document.word_count} words")

    if not len(session.conversation):
        st.write("Try asking:")
        for suggestion in SUGGESTED_QUESTIONS:
            st.write(f"- {suggestion}")

    display_conversation(session)

    question = st.chat_input("Ask a question about the document", disabled=session.is_busy)
    if question:
        try:
            with st.spinner("Thinking..."):
                session.ask(question)
            st.rerun()
        except EntitlementDenied as e:
            if e.dimension == LimitDimension.AI_RESPONSES:
                st.error("AI responses are available on Premium and Pro plans. Upgrade to use your API key.")
            else:
                st.error("You've used all questions for this PDF. Upgrade for unlimited questions.")
        except ModelResponseError as e:
            st.error(str(e))


if __name__ == "__main__":
    main()
