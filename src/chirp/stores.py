"""Thin adapters over the ``users`` and ``tweets`` relations.

Every predicate is built from SQLAlchemy expressions or bound text, so
caller-supplied text only ever reaches the database as a bound parameter.
"""

from datetime import datetime
from typing import Dict, List

from sqlalchemy import Integer, column, false, func, select, text
from sqlalchemy.dialects.mysql import match as mysql_match
from sqlalchemy.orm import Session

from .models.tweet import Tweet
from .models.user import User
from .text_match import fts5_any_query, tsquery_any


class UserStore:
    """Equality lookups and inserts against ``users``."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.scalars(select(User).where(User.email == email)).first()

    def get_by_username(self, username: str) -> User | None:
        return self.session.scalars(
            select(User).where(User.username == username)
        ).first()

    def add(self, **fields) -> int:
        """Insert a user and flush so the store assigns its id."""
        user = User(**fields)
        self.session.add(user)
        self.session.flush()
        return user.id


class TweetStore:
    """Inserts, joins and ordered searches against ``tweets``."""

    # Union of the feed and search projections.
    columns = (
        Tweet.id,
        Tweet.user_id,
        Tweet.tweet,
        Tweet.created,
        User.username,
        User.name,
    )

    def __init__(self, session: Session):
        self.session = session

    @property
    def dialect(self) -> str:
        return self.session.get_bind().dialect.name

    def _joined(self):
        return select(*self.columns).join(User, User.id == Tweet.user_id)

    def _newest_first(self, query):
        return query.order_by(Tweet.created.desc(), Tweet.id.desc())

    def _rows(self, query) -> List[Dict[str, object]]:
        return [dict(row) for row in self.session.execute(query).mappings()]

    def add(self, user_id: int, body: str) -> int:
        tweet = Tweet(user_id=user_id, tweet=body, created=datetime.utcnow())
        self.session.add(tweet)
        self.session.flush()
        return tweet.id

    def get(self, tweet_id: int) -> Dict[str, object] | None:
        rows = self._rows(self._joined().where(Tweet.id == tweet_id))
        return rows[0] if rows else None

    def feed_for(self, user_id: int) -> List[Dict[str, object]]:
        query = self._joined().where(User.id == user_id)
        return self._rows(self._newest_first(query))

    def keyword_clause(self, keywords: str):
        """Full-text predicate matching tweets that contain any keyword.

        Uses MySQL's FULLTEXT index, PostgreSQL text search, or the SQLite
        FTS5 ``tweets_fts`` index.
        """
        if self.dialect in ("mysql", "mariadb"):
            return mysql_match(Tweet.tweet, against=keywords).in_natural_language_mode()
        if self.dialect == "postgresql":
            query = tsquery_any(keywords)
            if query is None:
                return false()
            return func.to_tsvector(Tweet.tweet).bool_op("@@")(func.to_tsquery(query))
        if self.dialect == "sqlite":
            query = fts5_any_query(keywords)
            if query is None:
                return false()
            matching = (
                text("SELECT rowid FROM tweets_fts WHERE tweets_fts MATCH :fts_query")
                .bindparams(fts_query=query)
                .columns(column("rowid", Integer))
            )
            return Tweet.id.in_(matching)
        return Tweet.tweet.match(keywords)

    def hashtag_clause(self, pattern: str):
        return Tweet.tweet.regexp_match(pattern)

    def search(self, clause, limit: int, offset: int) -> List[Dict[str, object]]:
        query = self._newest_first(self._joined().where(clause))
        return self._rows(query.limit(limit).offset(offset))
