"""create organizer, event, invitee, game and play tables

Revision ID: 3a7c9e1f2b40
Revises:
Create Date: 2026-02-05 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c9e1f2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'organizer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=True),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
    )
    op.create_index('ix_organizer_email', 'organizer', ['email'], unique=True)

    op.create_table(
        'event',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organizer_id', sa.Integer(), sa.ForeignKey('organizer.id'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_event_organizer_id', 'event', ['organizer_id'])

    op.create_table(
        'guest',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('event.id'), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('qr_code', sa.String(length=120), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_guest_event_id', 'guest', ['event_id'])

    op.create_table(
        'family',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('event.id'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('qr_code', sa.String(length=120), nullable=True),
    )
    op.create_index('ix_family_event_id', 'family', ['event_id'])

    op.create_table(
        'qr_code',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=120), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('event.id'), nullable=False),
        sa.Column('guest_id', sa.Integer(), sa.ForeignKey('guest.id'), nullable=True),
        sa.Column('family_id', sa.Integer(), sa.ForeignKey('family.id'), nullable=True),
        sa.Column('is_valid', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('scan_count', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_qr_code_code', 'qr_code', ['code'], unique=True)

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('event.id'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('settings', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "type IN ('quiz', 'puzzle', 'shoe_game', 'photo_scavenger', 'blind_test', 'twelve_months', 'memory', 'trivia')",
            name='ck_game_type',
        ),
        sa.CheckConstraint("status IN ('draft', 'active', 'paused', 'completed')", name='ck_game_status'),
    )
    op.create_index('ix_game_event_id', 'game', ['event_id'])

    op.create_table(
        'game_question',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(length=50), nullable=False, server_default='multiple_choice'),
        sa.Column('options', sa.JSON(), nullable=True),
        sa.Column('correct_answer', sa.Text(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('media_url', sa.Text(), nullable=True),
        sa.Column('time_limit', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_game_question_game_id', 'game_question', ['game_id'])

    op.create_table(
        'game_guest_access',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('guest_id', sa.Integer(), sa.ForeignKey('guest.id'), nullable=True),
        sa.Column('qr_code', sa.String(length=120), nullable=True),
        sa.Column('access_token', sa.String(length=128), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('has_played', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('played_at', sa.DateTime(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_game_guest_access_game_id', 'game_guest_access', ['game_id'])
    op.create_index('ix_game_guest_access_access_token', 'game_guest_access', ['access_token'], unique=True)

    op.create_table(
        'game_family_access',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('family_id', sa.Integer(), sa.ForeignKey('family.id'), nullable=False),
        sa.Column('qr_code', sa.String(length=120), nullable=True),
        sa.Column('access_token', sa.String(length=128), nullable=False),
        sa.Column('has_played', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('played_at', sa.DateTime(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_game_family_access_game_id', 'game_family_access', ['game_id'])
    op.create_index('ix_game_family_access_access_token', 'game_family_access', ['access_token'], unique=True)

    op.create_table(
        'game_participation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('guest_id', sa.Integer(), sa.ForeignKey('guest.id'), nullable=True),
        sa.Column('family_id', sa.Integer(), sa.ForeignKey('family.id'), nullable=True),
        sa.Column('access_token', sa.String(length=128), nullable=True),
        sa.Column('qr_code', sa.String(length=120), nullable=True),
        sa.Column('identity_key', sa.String(length=160), nullable=False),
        sa.Column('player_name', sa.String(length=100), nullable=True),
        sa.Column('player_type', sa.String(length=20), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.UniqueConstraint('game_id', 'identity_key', name='uq_participation_game_identity'),
    )
    op.create_index('ix_game_participation_game_id', 'game_participation', ['game_id'])
    op.create_index(
        'ix_participation_game_completed_rank', 'game_participation', ['game_id', 'is_completed', 'rank']
    )

    op.create_table(
        'game_answer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('participation_id', sa.Integer(), sa.ForeignKey('game_participation.id'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('game_question.id'), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('points_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('time_spent', sa.Integer(), nullable=True),
        sa.Column('answered_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('participation_id', 'question_id', name='uq_answer_participation_question'),
    )
    op.create_index('ix_game_answer_participation_id', 'game_answer', ['participation_id'])

    op.create_table(
        'game_ip_tracking',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=False),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('participation_id', sa.Integer(), sa.ForeignKey('game_participation.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('game_id', 'ip_address', name='uq_ip_tracking_game_ip'),
    )


def downgrade():
    op.drop_table('game_ip_tracking')
    op.drop_index('ix_game_answer_participation_id', table_name='game_answer')
    op.drop_table('game_answer')
    op.drop_index('ix_participation_game_completed_rank', table_name='game_participation')
    op.drop_index('ix_game_participation_game_id', table_name='game_participation')
    op.drop_table('game_participation')
    op.drop_index('ix_game_family_access_access_token', table_name='game_family_access')
    op.drop_index('ix_game_family_access_game_id', table_name='game_family_access')
    op.drop_table('game_family_access')
    op.drop_index('ix_game_guest_access_access_token', table_name='game_guest_access')
    op.drop_index('ix_game_guest_access_game_id', table_name='game_guest_access')
    op.drop_table('game_guest_access')
    op.drop_index('ix_game_question_game_id', table_name='game_question')
    op.drop_table('game_question')
    op.drop_index('ix_game_event_id', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_qr_code_code', table_name='qr_code')
    op.drop_table('qr_code')
    op.drop_index('ix_family_event_id', table_name='family')
    op.drop_table('family')
    op.drop_index('ix_guest_event_id', table_name='guest')
    op.drop_table('guest')
    op.drop_index('ix_event_organizer_id', table_name='event')
    op.drop_table('event')
    op.drop_index('ix_organizer_email', table_name='organizer')
    op.drop_table('organizer')
