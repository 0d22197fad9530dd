import io
from xml.sax.saxutils import escape

import openpyxl
import pandas as pd
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, HRFlowable

from data_tables.question import question_title
from utils.analytics import format_answer

"""
file exports for the admin pages: raw responses as csv or excel, and the
analytics as a pdf report. every function returns a BytesIO ready for send_file
"""

METADATA_COLUMNS = ['Submitted At', 'Complete', 'Respondent Email', 'Respondent Name']


def safe_filename_stem(title):
    return (title or 'survey').replace(' ', '_').replace('/', '_')


def responses_dataframe(survey, responses):
    """One row per response, one column per question title, then the metadata columns."""
    questions = survey.get_all_questions()
    rows = []
    for response in responses:
        answers = response.answers or {}
        row = [format_answer(answers.get(question['id'])) for question in questions]
        row.extend([
            response.created_at.isoformat() if response.created_at else '',
            'yes' if response.is_complete else 'no',
            response.respondent_email or '',
            response.respondent_name or '',
        ])
        rows.append(row)

    columns = [question_title(question) for question in questions] + METADATA_COLUMNS
    return pd.DataFrame(rows, columns=columns)


def export_responses_csv(survey, responses):
    output = io.BytesIO()
    output.write(responses_dataframe(survey, responses).to_csv(index=False).encode('utf-8'))
    output.seek(0)
    return output


def export_responses_excel(survey, responses):
    """Responses as an Excel sheet with a styled header row."""
    frame = responses_dataframe(survey, responses)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Responses'

    ws.append(list(frame.columns))

    # Style header row
    header_fill = PatternFill(start_color='1B3A5C', end_color='1B3A5C', fill_type='solid')
    header_font = Font(bold=True, color='FFFFFF')
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    for row in frame.itertuples(index=False):
        ws.append(list(row))

    # approximate widths, wide enough for a question title
    for i in range(1, len(frame.columns) + 1):
        ws.column_dimensions[get_column_letter(i)].width = 30

    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = Alignment(wrap_text=True, vertical='top')

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def _escape(text):
    return escape(str(text))


def export_analytics_pdf(survey_analytics):
    """PDF report of the survey analytics: one block per question."""
    output = io.BytesIO()
    doc = SimpleDocTemplate(
        output,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
    )

    styles = getSampleStyleSheet()

    style_title = ParagraphStyle(
        'SurveyTitle',
        parent=styles['Title'],
        fontSize=20,
        textColor=colors.HexColor('#1B3A5C'),
        spaceAfter=6,
    )
    style_subtitle = ParagraphStyle(
        'Subtitle',
        parent=styles['Normal'],
        fontSize=11,
        textColor=colors.HexColor('#555555'),
        spaceAfter=16,
    )
    style_question = ParagraphStyle(
        'QuestionText',
        parent=styles['Normal'],
        fontSize=11,
        textColor=colors.HexColor('#2C3E50'),
        fontName='Helvetica-Bold',
        spaceBefore=10,
        spaceAfter=3,
    )
    style_stats = ParagraphStyle(
        'StatsLine',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#444444'),
        spaceAfter=4,
        leftIndent=12,
    )
    style_entry = ParagraphStyle(
        'DistributionEntry',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#333333'),
        spaceAfter=3,
        leftIndent=24,
    )

    story = []

    story.append(Paragraph(_escape(survey_analytics.get('surveyTitle') or 'Survey'), style_title))
    story.append(Paragraph(
        f"Total Responses: {survey_analytics['totalResponses']} &nbsp;&nbsp;|&nbsp;&nbsp; "
        f"Completion Rate: {round(survey_analytics['completionRate'], 1)}% &nbsp;&nbsp;|&nbsp;&nbsp; "
        f"Average Time: {survey_analytics['averageTime']}s",
        style_subtitle
    ))
    story.append(HRFlowable(width='100%', thickness=1, color=colors.HexColor('#DDDDDD'), spaceAfter=10))

    for number, question in enumerate(survey_analytics['questionAnalytics'], start=1):
        story.append(Paragraph(f"Q{number}. {_escape(question['questionTitle'])}", style_question))

        stats = [f"Type: {question['questionType']}", f"Respondents: {question['totalResponses']}"]
        if question['average'] is not None:
            stats.append(f"Average: {question['average']}")
            stats.append(f"Std Dev: {question['standardDeviation']}")
        if question.get('npsScore') is not None:
            stats.append(f"NPS: {round(question['npsScore'], 1)}")
        story.append(Paragraph(' &nbsp;&nbsp;|&nbsp;&nbsp; '.join(stats), style_stats))

        summary = question.get('textSummary')
        if summary and summary['topWords']:
            words = ', '.join(f"{_escape(entry['word'])} ({entry['count']})" for entry in summary['topWords'])
            story.append(Paragraph(
                f"Top words: {words} &nbsp;&nbsp;|&nbsp;&nbsp; Average word length: {summary['averageWordLength']}",
                style_stats
            ))

        if not question['distribution']:
            story.append(Paragraph('No responses yet', style_entry))
        for answer, count in sorted(question['distribution'].items(), key=lambda item: -item[1]):
            story.append(Paragraph(f"• {_escape(answer)}: {count}", style_entry))

        story.append(Spacer(1, 6))

    doc.build(story)
    output.seek(0)
    return output
