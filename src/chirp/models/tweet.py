from datetime import datetime

from sqlalchemy import DDL, Column, DateTime, ForeignKey, Index, Integer, String, event

from ..database import Base

# External-content FTS5 index over tweets.tweet, kept current by an insert
# trigger. Tweets are never updated or deleted, so no other triggers exist.
SQLITE_FTS_CREATE = (
    "CREATE VIRTUAL TABLE IF NOT EXISTS tweets_fts "
    "USING fts5(tweet, content='tweets', content_rowid='id')",
    "CREATE TRIGGER IF NOT EXISTS tweets_fts_insert AFTER INSERT ON tweets BEGIN "
    "INSERT INTO tweets_fts(rowid, tweet) VALUES (new.id, new.tweet); END",
)
SQLITE_FTS_DROP = "DROP TABLE IF EXISTS tweets_fts"


class Tweet(Base):
    """A single post owned by a user."""

    __tablename__ = "tweets"
    __table_args__ = (
        # Only materialized on MySQL/MariaDB; other dialects ignore the prefix
        # and build a plain index.
        Index("ix_tweets_tweet_fulltext", "tweet", mysql_prefix="FULLTEXT"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    tweet = Column(String(280), nullable=False)
    created = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)


for _statement in SQLITE_FTS_CREATE:
    event.listen(
        Tweet.__table__, "after_create", DDL(_statement).execute_if(dialect="sqlite")
    )
event.listen(
    Tweet.__table__, "before_drop", DDL(SQLITE_FTS_DROP).execute_if(dialect="sqlite")
)
