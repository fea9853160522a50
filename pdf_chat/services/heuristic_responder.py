"""
Rule-based responder that answers questions from the document text without a model.
"""
import random
import re
import time
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from pdf_chat.config.settings import HEURISTIC_DELAY_MIN, HEURISTIC_DELAY_MAX
from pdf_chat.utils.text_analyzer import (
    DETAIL_MIN_LENGTH,
    SUMMARY_MIN_LENGTH,
    search_in_text,
    segment_sentences,
    top_keywords
)

NUMBER_PATTERN = re.compile(r'\d+')
DATE_PATTERN = re.compile(r'\d{4}|\d{1,2}/\d{1,2}/\d{2,4}')
PARAGRAPH_BREAK = "\n\n"

METHOD_KEYWORDS = (
    'method', 'approach', 'technique', 'procedure', 'process', 'analysis', 'study', 'research'
)
FINDING_KEYWORDS = (
    'result', 'finding', 'found', 'conclusion', 'outcome', 'discovered', 'showed', 'demonstrated', 'revealed'
)

Handler = Callable[[str, str], str]


class HeuristicResponder:
    """Answers questions by classifying them on keywords and quoting the document."""

    def __init__(
        self,
        delay_range: Tuple[float, float] = (HEURISTIC_DELAY_MIN, HEURISTIC_DELAY_MAX),
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the responder.

        Args:
            delay_range: Bounds in seconds of the simulated processing delay; (0, 0) disables it
            sleep: Function used to wait out the delay
            rng: Random source for the delay
        """
        low, high = delay_range
        if low < 0 or high < low:
            raise ValueError(f"Invalid delay range: {delay_range}")
        self.delay_range = (low, high)
        self._sleep = sleep
        self._rng = rng or random.Random()

        # Evaluated in order, first match wins
        self.rules: Sequence[Tuple[Tuple[str, ...], Handler]] = (
            (('summary', 'summarize'), self._summary_response),
            (('main topic', 'about'), self._topic_response),
            (('conclusion', 'conclude'), self._conclusion_response),
            (('date', 'when', 'number'), self._factual_response),
            (('methodology', 'method'), self._methodology_response),
            (('finding', 'result'), self._findings_response),
        )

    def respond(self, question: str, document_text: str) -> str:
        """
        Generate an answer for a question about the document.

        Never raises: unusable input falls through to a "could not find" message.
        """
        self._wait()

        question = question or ""
        document_text = document_text or ""
        handler = self.classify(question)
        logger.debug(f"Heuristic responder using {handler.__name__} for question: {question!r}")
        return handler(document_text, question)

    def classify(self, question: str) -> Handler:
        """Return the handler of the first rule whose keywords occur in the question."""
        question_lower = (question or "").lower()
        for keywords, handler in self.rules:
            if any(keyword in question_lower for keyword in keywords):
                return handler
        return self._default_response

    def _wait(self):
        low, high = self.delay_range
        if high <= 0:
            return
        self._sleep(self._rng.uniform(low, high))

    def _summary_response(self, text: str, question: str) -> str:
        sentences = segment_sentences(text, SUMMARY_MIN_LENGTH)
        key_sentences = '. '.join(sentences[:5])
        return (
            f"Here's a summary of the main points from the document:\n\n{key_sentences}.\n\n"
            "This summary covers the key themes and important information from the text. "
            "Would you like me to focus on any particular section?"
        )

    def _topic_response(self, text: str, question: str) -> str:
        top_words = top_keywords(text, 5)
        return (
            f"Based on my analysis, this document appears to focus on topics related to: "
            f"{', '.join(top_words)}.\n\n"
            "The content discusses these themes throughout the text. "
            "Would you like me to elaborate on any of these topics?"
        )

    def _conclusion_response(self, text: str, question: str) -> str:
        sentences = segment_sentences(text, DETAIL_MIN_LENGTH)
        last_sentences = '. '.join(sentences[-5:])
        return (
            f"Looking at the concluding sections of the document:\n\n{last_sentences}.\n\n"
            "These appear to be the main conclusions or final points made in the document. "
            "Is there a specific conclusion you'd like me to explain further?"
        )

    def _factual_response(self, text: str, question: str) -> str:
        numbers = NUMBER_PATTERN.findall(text)
        dates = DATE_PATTERN.findall(text)

        response = "Here are some key facts and figures I found in the document:\n\n"
        if dates:
            response += f"Important dates mentioned: {', '.join(dates[:5])}\n\n"
        if numbers:
            response += f"Notable numbers: {', '.join(numbers[:10])}\n\n"
        response += "Would you like me to provide more context about any of these specific details?"
        return response

    def _methodology_response(self, text: str, question: str) -> str:
        method_sentences = _sentences_with_keywords(text, METHOD_KEYWORDS)
        if method_sentences:
            return (
                "Based on the document, here are the methodological approaches mentioned:\n\n"
                f"{PARAGRAPH_BREAK.join(method_sentences)}\n\n"
                "These sections describe the methods and approaches used in the document."
            )
        return (
            "I couldn't find explicit methodology sections in this document. "
            "The document may not contain detailed methodological information, "
            "or it might be structured differently. "
            "Would you like me to search for specific research approaches or techniques?"
        )

    def _findings_response(self, text: str, question: str) -> str:
        finding_sentences = _sentences_with_keywords(text, FINDING_KEYWORDS)
        if finding_sentences:
            return (
                "Here are the key findings and results from the document:\n\n"
                f"{PARAGRAPH_BREAK.join(finding_sentences)}\n\n"
                "These represent the main discoveries or outcomes presented in the document."
            )
        return (
            "I couldn't identify specific findings or results sections in this document. "
            "The document may present information differently, "
            "or the findings might be integrated throughout the text. "
            "Would you like me to look for specific outcomes or conclusions?"
        )

    def _default_response(self, text: str, question: str) -> str:
        relevant_sentences = search_in_text(text, question)
        if relevant_sentences:
            return (
                "Based on the document, here's what I found related to your question:\n\n"
                f"{PARAGRAPH_BREAK.join(relevant_sentences[:3])}\n\n"
                "Would you like me to elaborate on any specific aspect? "
                "For more detailed and accurate responses, consider adding your OpenAI API key in settings."
            )
        return (
            f"I searched through the document but couldn't find specific information directly "
            f"related to \"{question}\". Could you try rephrasing your question or asking about "
            "a different aspect of the document?\n\n"
            "Note: For more intelligent responses, you can add your OpenAI API key in the settings."
        )


def _sentences_with_keywords(text: str, keywords: Sequence[str], limit: int = 3) -> List[str]:
    """First sentences longer than ten characters that mention any keyword."""
    matches = [
        sentence for sentence in segment_sentences(text, DETAIL_MIN_LENGTH)
        if any(keyword in sentence.lower() for keyword in keywords)
    ]
    return matches[:limit]
