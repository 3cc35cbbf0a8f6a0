"""create users and tweets

Revision ID: 3b9c1d52a7e4
Revises: 
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from chirp.models.tweet import SQLITE_FTS_CREATE, SQLITE_FTS_DROP


# revision identifiers, used by Alembic.
revision: str = '3b9c1d52a7e4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the users and tweets relations."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hash', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'tweets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('tweet', sa.String(length=280), nullable=False),
        sa.Column('created', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tweets_id', 'tweets', ['id'])
    op.create_index('ix_tweets_user_id', 'tweets', ['user_id'])
    op.create_index('ix_tweets_created', 'tweets', ['created'])
    op.create_index(
        'ix_tweets_tweet_fulltext', 'tweets', ['tweet'], mysql_prefix='FULLTEXT'
    )
    if op.get_bind().dialect.name == 'sqlite':
        for statement in SQLITE_FTS_CREATE:
            op.execute(statement)


def downgrade() -> None:
    """Drop the tweets and users relations."""
    if op.get_bind().dialect.name == 'sqlite':
        op.execute(SQLITE_FTS_DROP)
    op.drop_table('tweets')
    op.drop_table('users')
