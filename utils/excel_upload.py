import pandas as pd

from data_tables.question import QUESTION_TYPES, CHOICE_TYPES, MULTI_SELECT_TYPES


def _cell(row_data, column):
    """Cell text, or '' for a missing column or an empty cell."""
    if column is None:
        return ''
    value = row_data[column]
    if pd.isna(value):
        return ''
    return str(value).strip()


def process_excel_file(file_path):
    """
    Read an Excel file and extract questions.

    The first column holds the question text. Optional columns (matched by
    header, any case):
        type      one of the question types, default 'text'
        required  yes/true/1 marks the question required
        options   choices separated by ';' for choice and checkbox questions

    Parameters:
        file_path: Path to the Excel file

    Returns:
        List of question dicts ready for normalize_questions
    """
    # Read the Excel file
    excel_data = pd.read_excel(file_path)

    # Get the first column (where questions are)
    first_column = excel_data.columns[0]
    headers = {str(column).strip().lower(): column for column in excel_data.columns}
    type_column = headers.get('type')
    required_column = headers.get('required')
    options_column = headers.get('options')

    # Extract questions
    questions_list = []

    for row_index, row_data in excel_data.iterrows():
        question_text = _cell(row_data, first_column)

        # Skip empty rows
        if question_text == '':
            continue

        question_type = _cell(row_data, type_column).lower() or 'text'
        if question_type not in QUESTION_TYPES:
            question_type = 'text'

        question = {
            'id': f'q{len(questions_list) + 1}',
            'type': question_type,
            'question': question_text,
            'required': _cell(row_data, required_column).lower() in ('yes', 'y', 'true', '1', '1.0'),
        }

        if question_type in CHOICE_TYPES or question_type in MULTI_SELECT_TYPES:
            choices = [choice.strip() for choice in _cell(row_data, options_column).split(';')]
            question['options'] = [choice for choice in choices if choice]

        questions_list.append(question)

    return questions_list


def check_if_excel_file(filename, allowed_types=('xlsx', 'xls')):
    """True when the file name ends in one of the allowed spreadsheet extensions."""
    if '.' not in filename:
        return False
    return filename.rsplit('.', 1)[1].lower() in allowed_types
