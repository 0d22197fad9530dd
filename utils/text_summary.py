import re
from collections import Counter

"""
word level summaries of free text answers: the most used words and the
average word length. answers come either as a plain list of strings or as
the {answer: count} distribution the analytics already built
"""

STOPWORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'if', 'then', 'so', 'of', 'to', 'in', 'on', 'for', 'with',
    'at', 'by', 'from', 'as', 'is', 'it', 'this', 'that', 'these', 'those', 'i', 'you', 'we', 'they',
    'he', 'she', 'them', 'us', 'me', 'my', 'your', 'our', 'their', 'be', 'are', 'was', 'were', 'am',
    'not', 'no', 'yes',
])

# anything that is not a letter, digit, whitespace or apostrophe
# (\w also matches "_", which is not a word character here)
NON_WORD_CHARACTERS = re.compile(r"[^\w\s']|_")


def tokenize(text):
    return NON_WORD_CHARACTERS.sub(' ', str(text).lower()).split()


def weighted_answers(answers):
    """Turn a list of answers or an {answer: count} map into (text, count) pairs."""
    if not answers:
        return []
    if isinstance(answers, dict):
        return [(text, count) for text, count in answers.items()]
    return [(text, 1) for text in answers]


def top_n_words(answers, n=3):
    """
    The n most frequent words across the answers, stop-words left out.

    Each answer's words count as many times as the answer itself occurred.
    Words with the same count keep the order they were first seen in.

    Returns:
        list of {'word': str, 'count': int}, most frequent first
    """
    counts = Counter()
    for text, count in weighted_answers(answers):
        for word in tokenize(text):
            if word in STOPWORDS:
                continue
            counts[word] += count

    return [{'word': word, 'count': count} for word, count in counts.most_common(n)]


def average_word_length(answers):
    """
    Mean length of every word in the answers, stop-words included, weighted
    by how often each answer occurred. Rounded to 2 decimals, 0 for no words.
    """
    characters = 0
    words = 0
    for text, count in weighted_answers(answers):
        tokens = tokenize(text)
        characters += sum(len(token) for token in tokens) * count
        words += len(tokens) * count

    if words == 0:
        return 0
    return round(characters / words, 2)


def summarize_text(answers, n=3):
    return {
        'topWords': top_n_words(answers, n),
        'averageWordLength': average_word_length(answers),
    }
