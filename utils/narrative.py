import logging

from flask import current_app
from openai import OpenAI

from utils.errors import NarrativeError, NarrativeUnavailable

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful, rigorous research analyst."

PROMPT_HEADER = """You are a senior research analyst. Analyze the following survey.
Provide: (1) executive summary, (2) key insights and trends, (3) statistically notable signals,
(4) potential biases/limitations, (5) recommended actions and follow-up questions.
Write clearly for non-technical stakeholders."""

PROMPT_GUIDANCE = """Guidance:
- Call out significant differences or clusters in the distributions.
- If numeric (rating/scale/nps), interpret averages & deviations.
- If categorical, highlight top/bottom choices and notable gaps.
- NPS and scale questions scale from 0-10, rating questions are from 1-5.
- Be specific, concise, and actionable.
- Return the response in markdown format"""


def _or_na(value):
    return 'N/A' if value is None or value == '' else value


def build_prompt(survey_analytics):
    """
    Build the analyst prompt from the survey level analytics dict
    (as returned by compute_survey_analytics).
    """
    meta = (
        "Survey:\n"
        f"- Title: {_or_na(survey_analytics.get('surveyTitle'))}\n"
        f"- Name (user-provided): {_or_na(survey_analytics.get('name'))}\n"
        f"- Description: {_or_na(survey_analytics.get('surveyDescription'))}\n"
        f"- Total responses: {survey_analytics.get('totalResponses', 0)}\n"
        f"- Created at: {_or_na(survey_analytics.get('createdAt'))}"
    )

    blocks = []
    for index, question in enumerate(survey_analytics.get('questionAnalytics', []), start=1):
        distribution = '\n'.join(
            f"      - {answer}: {count}" for answer, count in question['distribution'].items()
        )
        lines = [
            f'  {index}. "{question["questionTitle"]}"',
            f"     - Type: {question['questionType']}",
            f"     - Total responses: {question['totalResponses']}",
            f"     - Average: {_or_na(question['average'])}",
            f"     - Std Dev: {_or_na(question['standardDeviation'])}",
        ]
        if question.get('npsScore') is not None:
            lines.append(f"     - NPS: {round(question['npsScore'], 1)}")
        lines.append("     - Distribution:")
        lines.append(distribution or "      - (no data)")
        blocks.append('\n'.join(lines))

    return f"{PROMPT_HEADER}\n\n{meta}\n\nQuestions & Distributions:\n" + '\n'.join(blocks) + f"\n\n{PROMPT_GUIDANCE}"


def get_client():
    api_key = current_app.config.get('LLM_API_KEY')
    if not api_key:
        raise NarrativeUnavailable('Server is missing an LLM API key')
    return OpenAI(api_key=api_key, base_url=current_app.config.get('LLM_BASE_URL'))


def generate_narrative(survey_analytics):
    """
    Ask the language model for a written analysis of the survey.

    Raises:
        NarrativeUnavailable: no API key configured
        NarrativeError: the completion call failed; the analytics are
            attached to the error payload so the caller still gets them
    """
    client = get_client()
    model = current_app.config['LLM_MODEL']
    prompt = build_prompt(survey_analytics)

    try:
        completion = client.chat.completions.create(
            model=model,
            temperature=current_app.config.get('LLM_TEMPERATURE', 0.2),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
    except Exception as error:
        logger.exception("Narrative generation failed for survey %s", survey_analytics.get('surveyId'))
        raise NarrativeError(
            'Failed to analyze survey',
            payload={'questionAnalytics': survey_analytics.get('questionAnalytics', [])},
        ) from error

    analysis = ''
    if completion.choices:
        analysis = completion.choices[0].message.content or ''

    return {'analysis': analysis, 'model': model}
