import re
from collections import Counter
from typing import List

SENTENCE_BOUNDARY = re.compile(r'[.!?]+')

# Minimum stripped fragment length per task
SEARCH_MIN_LENGTH = 0
DETAIL_MIN_LENGTH = 10
SUMMARY_MIN_LENGTH = 20

MIN_KEYWORD_LENGTH = 3

STOP_WORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of',
    'with', 'by', 'is', 'are', 'was', 'were', 'be', 'been', 'have', 'has',
    'had', 'do', 'does', 'did', 'will', 'would', 'could', 'should', 'may',
    'might', 'can', 'this', 'that', 'these', 'those'
])


def segment_sentences(text, min_length=SEARCH_MIN_LENGTH):
    """
    Split text into sentence fragments on runs of '.', '!' and '?'.

    Args:
        text (str): The document text
        min_length (int): Fragments whose stripped length is not greater
            than this are discarded

    Returns:
        list: Fragments in document order, not stripped
    """
    if not text:
        return []
    return [s for s in SENTENCE_BOUNDARY.split(text) if len(s.strip()) > min_length]


def search_in_text(text, query, limit=5) -> List[str]:
    """
    Find sentences containing the query, ignoring case.

    Args:
        text (str): The document text
        query (str): Text to look for
        limit (int): Maximum number of sentences returned

    Returns:
        list: Stripped matching sentences in document order
    """
    if not text or not query:
        return []

    query_lower = query.lower()
    matches = [
        sentence.strip()
        for sentence in segment_sentences(text, SEARCH_MIN_LENGTH)
        if query_lower in sentence.lower()
    ]
    return matches[:limit]


def top_keywords(text, k=5) -> List[str]:
    """
    Return the k most frequent non stop-word tokens longer than three characters.

    Ties keep the order in which tokens first appear in the text.
    """
    counts = Counter(
        word for word in text.lower().split()
        if len(word) > MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    )
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:k]]
