"""Initial CaseDesk schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create every CaseDesk table."""

    # Users & sessions
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'api_tokens',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_api_tokens_user_id', 'api_tokens', ['user_id'])
    op.create_index('ix_api_tokens_token_hash', 'api_tokens', ['token_hash'])

    # Catalogs
    for table in ('case_types', 'status_lists', 'tag_lists'):
        op.create_table(
            table,
            sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(255), nullable=False, unique=True),
            sa.Column('description', sa.Text, nullable=True),
            *_timestamps(),
        )
        op.create_index(f'ix_{table}_created_at', table, ['created_at'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('type', sa.String(255), nullable=True),
        sa.Column('order_column', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_tags_name', 'tags', ['name'])
    op.create_index('ix_tags_slug', 'tags', ['slug'])
    op.create_index('ix_tags_type', 'tags', ['type'])
    op.create_index('ix_tags_created_at', 'tags', ['created_at'])

    # Participants
    op.create_table(
        'individuals',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('national_id', sa.String(20), nullable=False, unique=True),
        sa.Column('passport', sa.String(30), nullable=True, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('middle_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('second_last_name', sa.String(100), nullable=True),
        sa.Column('birth_date', sa.Date, nullable=True),
        sa.Column('gender', sa.String(10), nullable=True),
        sa.Column('civil_status', sa.String(20), nullable=True),
        sa.Column('rif', sa.String(15), nullable=True, unique=True),
        sa.Column('email_1', sa.String(255), nullable=True, unique=True),
        sa.Column('email_2', sa.String(255), nullable=True, unique=True),
        sa.Column('phone_number_1', sa.String(20), nullable=True),
        sa.Column('phone_number_2', sa.String(20), nullable=True),
        sa.Column('address_line_1', sa.String(255), nullable=True),
        sa.Column('address_line_2', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('nationality', sa.String(100), nullable=True),
        sa.Column('occupation', sa.String(100), nullable=True),
        sa.Column('educational_level', sa.String(100), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_individuals_national_id', 'individuals', ['national_id'])
    op.create_index('ix_individuals_first_name', 'individuals', ['first_name'])
    op.create_index('ix_individuals_last_name', 'individuals', ['last_name'])
    op.create_index('ix_individuals_created_at', 'individuals', ['created_at'])
    op.create_index('ix_individuals_deleted_at', 'individuals', ['deleted_at'])

    op.create_table(
        'legal_entities',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('rif', sa.String(15), nullable=False, unique=True),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('trade_name', sa.String(255), nullable=True),
        sa.Column('legal_entity_type', sa.String(50), nullable=False),
        sa.Column('registration_number', sa.String(50), nullable=True, unique=True),
        sa.Column('registration_date', sa.Date, nullable=True),
        sa.Column('fiscal_address_line_1', sa.String(255), nullable=False),
        sa.Column('fiscal_address_line_2', sa.String(255), nullable=True),
        sa.Column('fiscal_city', sa.String(100), nullable=False),
        sa.Column('fiscal_state', sa.String(100), nullable=False),
        sa.Column('fiscal_country', sa.String(100), nullable=True),
        sa.Column('email_1', sa.String(255), nullable=True, unique=True),
        sa.Column('email_2', sa.String(255), nullable=True, unique=True),
        sa.Column('phone_number_1', sa.String(20), nullable=True),
        sa.Column('phone_number_2', sa.String(20), nullable=True),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column(
            'legal_representative_id', sa.Integer,
            sa.ForeignKey('individuals.id', ondelete='SET NULL'), nullable=True,
        ),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_legal_entities_rif', 'legal_entities', ['rif'])
    op.create_index('ix_legal_entities_business_name', 'legal_entities', ['business_name'])
    op.create_index('ix_legal_entities_trade_name', 'legal_entities', ['trade_name'])
    op.create_index('ix_legal_entities_created_at', 'legal_entities', ['created_at'])
    op.create_index('ix_legal_entities_deleted_at', 'legal_entities', ['deleted_at'])

    # Legal cases
    op.create_table(
        'legal_cases',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(255), nullable=False, unique=True),
        sa.Column('entry_date', sa.Date, nullable=False),
        sa.Column('sentence_date', sa.Date, nullable=True),
        sa.Column('closing_date', sa.Date, nullable=True),
        sa.Column('case_type_id', sa.Integer, sa.ForeignKey('case_types.id'), nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_legal_cases_code', 'legal_cases', ['code'])
    op.create_index('ix_legal_cases_closing_date', 'legal_cases', ['closing_date'])
    op.create_index('ix_legal_cases_case_type_id', 'legal_cases', ['case_type_id'])
    op.create_index('ix_legal_cases_created_at', 'legal_cases', ['created_at'])
    op.create_index('ix_legal_cases_deleted_at', 'legal_cases', ['deleted_at'])

    op.create_table(
        'statuses',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('reason', sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_statuses_legal_case_id', 'statuses', ['legal_case_id'])
    op.create_index('ix_statuses_created_at', 'statuses', ['created_at'])

    op.create_table(
        'case_events',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('date', sa.Date, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_case_events_legal_case_id', 'case_events', ['legal_case_id'])
    op.create_index('ix_case_events_date', 'case_events', ['date'])
    op.create_index('ix_case_events_created_at', 'case_events', ['created_at'])

    op.create_table(
        'case_important_dates',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('is_expired', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_case_important_dates_legal_case_id', 'case_important_dates', ['legal_case_id'])
    op.create_index('ix_case_important_dates_end_date', 'case_important_dates', ['end_date'])
    op.create_index('ix_case_important_dates_is_expired', 'case_important_dates', ['is_expired'])
    op.create_index('ix_case_important_dates_created_at', 'case_important_dates', ['created_at'])
    op.create_index('ix_case_important_dates_deleted_at', 'case_important_dates', ['deleted_at'])

    # Case links
    op.create_table(
        'case_individuals',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), nullable=False),
        sa.Column('individual_id', sa.Integer, sa.ForeignKey('individuals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('legal_case_id', 'individual_id', name='uq_case_individual'),
    )
    op.create_index('ix_case_individuals_legal_case_id', 'case_individuals', ['legal_case_id'])
    op.create_index('ix_case_individuals_individual_id', 'case_individuals', ['individual_id'])

    op.create_table(
        'case_legal_entities',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), nullable=False),
        sa.Column('legal_entity_id', sa.Integer, sa.ForeignKey('legal_entities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(100), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('legal_case_id', 'legal_entity_id', name='uq_case_legal_entity'),
    )
    op.create_index('ix_case_legal_entities_legal_case_id', 'case_legal_entities', ['legal_case_id'])
    op.create_index('ix_case_legal_entities_legal_entity_id', 'case_legal_entities', ['legal_entity_id'])

    op.create_table(
        'case_tags',
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Integer, sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'legal_entity_tags',
        sa.Column('legal_entity_id', sa.Integer, sa.ForeignKey('legal_entities.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tag_id', sa.Integer, sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
    )

    # Media
    op.create_table(
        'media',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('uuid', sa.String(36), nullable=False, unique=True),
        sa.Column('legal_case_id', sa.Integer, sa.ForeignKey('legal_cases.id', ondelete='CASCADE'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('mime_type', sa.String(255), nullable=False),
        sa.Column('size', sa.Integer, nullable=False),
        sa.Column('collection_name', sa.String(50), nullable=False),
        sa.Column('disk_path', sa.String(500), nullable=False),
        sa.Column('sha256_hash', sa.String(64), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_media_legal_case_id', 'media', ['legal_case_id'])
    op.create_index('ix_media_collection_name', 'media', ['collection_name'])
    op.create_index('ix_media_created_at', 'media', ['created_at'])

    # Todo lists
    op.create_table(
        'todo_lists',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index('ix_todo_lists_user_id', 'todo_lists', ['user_id'])
    op.create_index('ix_todo_lists_created_at', 'todo_lists', ['created_at'])

    op.create_table(
        'todos',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('todo_list_id', sa.Integer, sa.ForeignKey('todo_lists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('is_completed', sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_todos_todo_list_id', 'todos', ['todo_list_id'])
    op.create_index('ix_todos_created_at', 'todos', ['created_at'])


def downgrade() -> None:
    """Drop every CaseDesk table."""
    for table in (
        'todos',
        'todo_lists',
        'media',
        'legal_entity_tags',
        'case_tags',
        'case_legal_entities',
        'case_individuals',
        'case_important_dates',
        'case_events',
        'statuses',
        'legal_cases',
        'legal_entities',
        'individuals',
        'tags',
        'tag_lists',
        'status_lists',
        'case_types',
        'api_tokens',
        'users',
    ):
        op.drop_table(table)
