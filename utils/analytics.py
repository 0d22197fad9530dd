import math
from collections import Counter
from datetime import timedelta

from data_tables.question import (
    CHOICE_TYPES,
    FREE_TEXT_TYPES,
    MULTI_SELECT_TYPES,
    NUMERIC_TYPES,
    is_answered,
    question_title,
)
from database import utcnow
from utils.text_summary import summarize_text

"""
turns the stored responses of a survey into per question statistics.

everything in here is a pure function of the questions and the answer maps
handed in, nothing is cached and nothing is written back. odd answers (a
word in a rating question, an empty list) are skipped, never raised on.
"""

RECENT_DAYS = 30


def format_number(value):
    """5.0 -> '5', 4.5 -> '4.5'"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_answer(value):
    """One answer as a single line of text, the way exports and text counts show it."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, list):
        return '; '.join(format_answer(item) for item in value)
    if isinstance(value, dict):
        return ' | '.join(f'{key}: {format_answer(item)}' for key, item in value.items())
    return str(value)


def to_number(value):
    """
    Coerce an answer to a float, or None when it is not a number.

    Booleans, lists, non finite values (nan, inf) and integers too large
    for a float are not numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def mean_and_deviation(values):
    """
    Mean and population standard deviation, both rounded to 2 decimals.

    Both are None when there are no values or the numbers are too large to
    average as floats.
    """
    if not values:
        return None, None
    average = sum(values) / len(values)
    if not math.isfinite(average):
        return None, None
    variance = sum((value - average) * (value - average) for value in values) / len(values)
    if not math.isfinite(variance):
        return None, None
    return round(average, 2), round(math.sqrt(variance), 2)


def nps_score(scores):
    """Promoters (9-10) minus detractors (0-6) as a percentage of all scores."""
    if not scores:
        return None
    promoters = sum(1 for score in scores if score >= 9)
    detractors = sum(1 for score in scores if score <= 6)
    return (promoters - detractors) / len(scores) * 100


def count_choices(values):
    return dict(Counter(format_answer(value) for value in values))


def count_selections(values):
    """Every ticked option counts once, so one response can add several counts."""
    distribution = Counter()
    for value in values:
        selected = value if isinstance(value, list) else [value]
        for option in selected:
            distribution[format_answer(option)] += 1
    return dict(distribution)


def calculate_question_statistics(question, values):
    """
    Statistics for one question from its answered values.

    Args:
        question: the question dict (id, type, question/title)
        values: the non empty answers given to it, one per response

    Returns:
        dict with questionId, questionTitle, questionType, totalResponses,
        distribution, average, standardDeviation, plus npsScore for nps
        questions and textSummary for text/textarea questions
    """
    question_type = question.get('type')

    analytics = {
        'questionId': question.get('id'),
        'questionTitle': question_title(question),
        'questionType': question_type,
        'totalResponses': len(values),
        'distribution': {},
        'average': None,
        'standardDeviation': None,
    }

    if question_type in CHOICE_TYPES:
        analytics['distribution'] = count_choices(values)

    elif question_type in MULTI_SELECT_TYPES:
        analytics['distribution'] = count_selections(values)

    elif question_type in NUMERIC_TYPES:
        numbers = [number for number in map(to_number, values) if number is not None]
        analytics['average'], analytics['standardDeviation'] = mean_and_deviation(numbers)
        analytics['distribution'] = dict(Counter(format_number(number) for number in numbers))
        if question_type == 'nps':
            analytics['npsScore'] = nps_score(numbers)

    else:
        # free text and the rest: count each literal answer
        analytics['distribution'] = dict(Counter(format_answer(value) for value in values))
        if question_type in FREE_TEXT_TYPES:
            analytics['textSummary'] = summarize_text(analytics['distribution'])

    return analytics


def compute_question_analytics(questions, answer_maps):
    """
    One analytics record per question, in question order.

    answer_maps is a list of {question id: answer} dicts, one per response.
    Keys for questions that no longer exist are ignored.
    """
    all_analytics = []

    for question in questions:
        question_id = question.get('id')
        values = [
            answers.get(question_id)
            for answers in answer_maps
            if is_answered(answers.get(question_id))
        ]
        all_analytics.append(calculate_question_statistics(question, values))

    return all_analytics


def responses_by_date(responses, now=None, days=RECENT_DAYS):
    """Responses per calendar day over the last `days` days, oldest day first."""
    now = now or utcnow()
    cutoff = now - timedelta(days=days)

    per_day = Counter(
        response.created_at.strftime('%Y-%m-%d')
        for response in responses
        if response.created_at is not None and response.created_at >= cutoff
    )
    return [{'date': day, 'count': per_day[day]} for day in sorted(per_day)]


def compute_survey_analytics(survey, responses, now=None):
    """
    Survey level numbers plus the per question analytics.

    completionRate is the percentage of responses flagged complete and
    averageTime the mean seconds between start and end, rounded.
    """
    total = len(responses)
    completed = sum(1 for response in responses if response.is_complete)

    durations = [
        seconds for seconds in (response.completion_seconds() for response in responses)
        if seconds is not None
    ]
    average_time = round(sum(durations) / len(durations)) if durations else 0

    return {
        'surveyId': survey.id,
        'surveyTitle': survey.title,
        'surveyDescription': survey.description,
        'name': survey.name,
        'createdAt': survey.created_at.isoformat() if survey.created_at else None,
        'totalResponses': total,
        'completionRate': (completed / total * 100) if total else 0,
        'averageTime': average_time,
        'responsesByDate': responses_by_date(responses, now=now),
        'questionAnalytics': survey.get_all_statistics(responses),
    }
