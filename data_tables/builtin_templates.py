"""
templates that ship with the app. they are looked up before the stored
templates, so a stored template cannot take one of these slugs
"""

BUILTIN_TEMPLATES = [
    {
        'id': 'customer-satisfaction',
        'name': 'Customer Satisfaction',
        'description': 'Measure how happy customers are with your product or service.',
        'category': 'Customer',
        'icon': 'smile',
        'questions': [
            {
                'id': 'q1',
                'type': 'rating',
                'question': 'How satisfied are you with our service overall?',
                'required': True,
                'options': {'scale': 5, 'labels': ['Very unsatisfied', 'Very satisfied']},
            },
            {
                'id': 'q2',
                'type': 'nps',
                'question': 'How likely are you to recommend us to a friend or colleague?',
                'required': True,
            },
            {
                'id': 'q3',
                'type': 'multiple-choice',
                'question': 'How did you hear about us?',
                'required': False,
                'options': {'choices': ['Friend', 'Search engine', 'Social media', 'Advertisement', 'Other']},
            },
            {
                'id': 'q4',
                'type': 'textarea',
                'question': 'What could we do better?',
                'required': False,
                'options': {'placeholder': 'Tell us what you think'},
            },
        ],
        'settings': {
            'allowAnonymous': True,
            'requireAuth': False,
            'multipleResponses': False,
            'showProgressBar': True,
            'thankYouMessage': 'Thanks for helping us improve!',
        },
    },
    {
        'id': 'employee-engagement',
        'name': 'Employee Engagement',
        'description': 'Check in on how your team feels about their work.',
        'category': 'HR',
        'icon': 'users',
        'questions': [
            {
                'id': 'q1',
                'type': 'scale',
                'question': 'How motivated do you feel at work?',
                'required': True,
                'options': {'scale': 10},
            },
            {
                'id': 'q2',
                'type': 'checkbox',
                'question': 'Which of these would improve your week?',
                'required': False,
                'options': {'choices': ['Fewer meetings', 'Clearer goals', 'More feedback', 'Flexible hours']},
            },
            {
                'id': 'q3',
                'type': 'dropdown',
                'question': 'Which team are you in?',
                'required': True,
                'options': {'choices': ['Engineering', 'Sales', 'Support', 'Operations']},
            },
            {
                'id': 'q4',
                'type': 'text',
                'question': 'One word that describes your team culture',
                'required': False,
            },
        ],
        'settings': {
            'allowAnonymous': True,
            'requireAuth': False,
            'multipleResponses': False,
            'showProgressBar': True,
            'thankYouMessage': 'Thanks for your honest feedback.',
        },
    },
    {
        'id': 'event-feedback',
        'name': 'Event Feedback',
        'description': 'Collect feedback from attendees after an event.',
        'category': 'Events',
        'icon': 'calendar',
        'questions': [
            {
                'id': 'q1',
                'type': 'rating',
                'question': 'How would you rate the event?',
                'required': True,
                'options': {'scale': 5},
            },
            {
                'id': 'q2',
                'type': 'number',
                'question': 'How many sessions did you attend?',
                'required': False,
            },
            {
                'id': 'q3',
                'type': 'textarea',
                'question': 'What was the highlight for you?',
                'required': False,
            },
        ],
        'settings': {
            'allowAnonymous': True,
            'requireAuth': False,
            'multipleResponses': True,
            'showProgressBar': False,
            'thankYouMessage': 'See you at the next one!',
        },
    },
]


def find_builtin_template(slug):
    for template in BUILTIN_TEMPLATES:
        if template['id'] == slug:
            return dict(template, isTemplate=True, builtIn=True)
    return None


def list_builtin_templates():
    return [dict(template, isTemplate=True, builtIn=True) for template in BUILTIN_TEMPLATES]
