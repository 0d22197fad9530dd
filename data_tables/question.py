import uuid

from utils.errors import ApiError

"""
questions live inside their survey (and template) as a json list, so this
module is not a table. it holds the fixed set of question types, the groups
the analytics branch on, and the check every question list goes through
before it is saved

one question looks like:

    {
        "id": "q1",
        "type": "multiple-choice",
        "question": "How did you hear about us?",
        "title": "Source",               # optional
        "description": "",               # optional
        "required": true,
        "options": ["Friend", "Search"], # or {"choices": [...], "placeholder": "..."}
        "settings": {"min": 0, "max": 10, "labels": [...], "rows": [...], "columns": [...]}
    }
"""

QUESTION_TYPES = (
    'text',
    'textarea',
    'multiple-choice',
    'checkbox',
    'dropdown',
    'rating',
    'scale',
    'nps',
    'date',
    'time',
    'email',
    'phone',
    'number',
    'url',
    'matrix',
)

CHOICE_TYPES = ('multiple-choice', 'dropdown')
MULTI_SELECT_TYPES = ('checkbox',)
NUMERIC_TYPES = ('rating', 'scale', 'nps', 'number')
FREE_TEXT_TYPES = ('text', 'textarea')


def question_title(question):
    """The prompt shown to respondents, falling back to the short title."""
    return question.get('question') or question.get('title') or ''


def is_answered(value):
    """None, '' and [] all count as no answer."""
    if value is None:
        return False
    if isinstance(value, str) and value == '':
        return False
    if isinstance(value, (list, dict)) and len(value) == 0:
        return False
    return True


def normalize_questions(raw_questions):
    """
    Check a question list coming from a request and return a cleaned copy.

    Questions without an id get one. Raises ApiError (400) when the list is
    not a list, a question is not an object, the type is unknown, there is no
    prompt text, or two questions share an id.
    """
    if not isinstance(raw_questions, list):
        raise ApiError('Questions must be a list')

    cleaned = []
    seen_ids = set()

    for position, raw in enumerate(raw_questions, start=1):
        if not isinstance(raw, dict):
            raise ApiError(f'Question {position} must be an object')

        question_type = raw.get('type')
        if question_type not in QUESTION_TYPES:
            raise ApiError(f'Question {position} has an unknown type: {question_type}')

        if not question_title(raw).strip():
            raise ApiError(f'Question {position} needs question text')

        question_id = str(raw.get('id') or f'q_{uuid.uuid4().hex[:8]}')
        if question_id in seen_ids:
            raise ApiError(f'Duplicate question id: {question_id}')
        seen_ids.add(question_id)

        question = dict(raw)
        question['id'] = question_id
        question['required'] = bool(raw.get('required', False))
        cleaned.append(question)

    return cleaned
