"""seed subscription plans and landing sections

Revision ID: 0002_seed_plans_and_landing
Revises: 0001_initial_schema
Create Date: 2026-02-02 10:31:09.772114

"""
import json
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_seed_plans_and_landing'
down_revision: Union[str, None] = '0001_initial_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


PLANS = [
    {
        'plan_name': 'basic',
        'display_name': 'Basic',
        'description': 'Daily journaling with AI reflections',
        'price_monthly': 9.99,
        'price_yearly': 99.99,
        'quick_reflect_limit': 15,
        'deep_reflect_limit': 5,
        'therapist_sessions_per_week': 2,
        'features': [
            'Daily journal entries',
            'AI reflections',
            'Mental health metrics',
            'Ask Journal (Quick Reflect)',
            'Basic analytics',
        ],
    },
    {
        'plan_name': 'intermediate',
        'display_name': 'Intermediate',
        'description': 'Deeper reflection and therapist access',
        'price_monthly': 19.99,
        'price_yearly': 199.99,
        'quick_reflect_limit': 25,
        'deep_reflect_limit': 10,
        'therapist_sessions_per_week': 3,
        'features': [
            'Everything in Basic',
            'Ask Journal (Deep Reflect)',
            'Advanced analytics & graphs',
            'Therapist access',
            'Session scheduling',
        ],
    },
    {
        'plan_name': 'advanced',
        'display_name': 'Advanced',
        'description': 'The full Mindfold experience',
        'price_monthly': 29.99,
        'price_yearly': 299.99,
        'quick_reflect_limit': 30,
        'deep_reflect_limit': 15,
        'therapist_sessions_per_week': 4,
        'features': [
            'Everything in Intermediate',
            'Detailed mental health reports',
            'Priority therapist matching',
            'Session notes & prescriptions',
        ],
    },
]

LANDING_SECTIONS = [
    ('navbar', 0, {'brand': 'Mindfold', 'cta_label': 'Get Started'}),
    ('hero', 1, {
        'title': 'Understand your mind, one entry at a time',
        'subtitle': 'Journal daily and get gentle AI reflections on how you are really doing.',
        'cta_label': 'Start journaling',
    }),
    ('features', 2, {'title': 'Everything you need to reflect and grow'}),
    ('how_it_works', 3, {'title': 'How it works', 'steps': ['Write', 'Reflect', 'Grow']}),
    ('pricing', 4, {'title': 'Simple pricing'}),
    ('reviews', 5, {'title': 'What our users say'}),
    ('footer', 6, {'copyright': 'Mindfold'}),
]


def upgrade() -> None:
    """Upgrade schema."""
    conn = op.get_bind()
    for plan in PLANS:
        conn.execute(
            sa.text(
                "INSERT INTO subscription_plans (plan_name, display_name, description, price_monthly, price_yearly, "
                "quick_reflect_limit, deep_reflect_limit, therapist_sessions_per_week, features, is_active) "
                "VALUES (:plan_name, :display_name, :description, :price_monthly, :price_yearly, "
                ":quick_reflect_limit, :deep_reflect_limit, :therapist_sessions_per_week, CAST(:features AS jsonb), true) "
                "ON CONFLICT (plan_name) DO NOTHING"
            ),
            {**plan, 'features': json.dumps(plan['features'])},
        )
    for name, order, content in LANDING_SECTIONS:
        conn.execute(
            sa.text(
                "INSERT INTO landing_page_sections (section_name, display_order, is_active, content) "
                "VALUES (:name, :order, true, CAST(:content AS jsonb)) "
                "ON CONFLICT (section_name) DO NOTHING"
            ),
            {'name': name, 'order': order, 'content': json.dumps(content)},
        )


def downgrade() -> None:
    """Downgrade schema."""
    conn = op.get_bind()
    conn.execute(
        sa.text("DELETE FROM landing_page_sections WHERE section_name = ANY(:names)"),
        {'names': [name for name, _order, _content in LANDING_SECTIONS]},
    )
    conn.execute(
        sa.text("DELETE FROM subscription_plans WHERE plan_name = ANY(:names)"),
        {'names': [plan['plan_name'] for plan in PLANS]},
    )
