"""Service layer for user feeds, posting and tweet search."""

import logging
from typing import Dict, List, Tuple

from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .errors import MalformedRequest, StoreFailure, UnknownUser
from .models.user import User
from .stores import TweetStore, UserStore
from .text_match import hashtag_pattern, normalize_tag


logger = logging.getLogger(__name__)

TWEET_COUNTER = Counter("tweets_posted_total", "Total tweets posted")

# Largest value a signed 64-bit SQL integer column or LIMIT/OFFSET accepts.
MAX_SQL_INTEGER = 2**63 - 1


def _parse_non_negative(name: str, value) -> int:
    if isinstance(value, bool):
        raise MalformedRequest(f"{name} must be a non-negative integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdecimal():
        number = int(value.strip())
    else:
        raise MalformedRequest(f"{name} must be a non-negative integer")
    if number < 0:
        raise MalformedRequest(f"{name} must be a non-negative integer")
    if number > MAX_SQL_INTEGER:
        raise MalformedRequest(f"{name} must not exceed {MAX_SQL_INTEGER}")
    return number


def parse_page(limit=None, offset=None) -> Tuple[int, int]:
    """Validate ``limit``/``offset`` query values.

    Missing or empty values fall back to the configured default limit and a
    zero offset. Values are never coerced: anything that is not a
    non-negative integer, an offset beyond the SQL integer range, or a limit
    above ``max_page_limit``, is rejected.
    """
    if limit is None or limit == "":
        limit = settings.default_page_limit
    else:
        limit = _parse_non_negative("limit", limit)
        if limit > settings.max_page_limit:
            raise MalformedRequest(
                f"limit must not exceed {settings.max_page_limit}"
            )
    if offset is None or offset == "":
        offset = 0
    else:
        offset = _parse_non_negative("offset", offset)
    return limit, offset


class FeedService:
    """Builds ordered, paginated tweet listings for a single session."""

    def __init__(self, session: Session):
        self.session = session
        self.users = UserStore(session)
        self.tweets = TweetStore(session)

    def _handle_service_error(self, exc: SQLAlchemyError) -> None:
        """Rollback the transaction and surface a generic store failure."""
        self.session.rollback()
        logger.exception("service layer error", exc_info=exc)
        raise StoreFailure() from exc

    def get_user(self, user_id: int) -> User:
        try:
            user = self.users.get(user_id)
        except SQLAlchemyError as exc:
            self._handle_service_error(exc)
        if user is None:
            raise UnknownUser()
        return user

    def get_user_feed(self, user_id: int) -> List[Dict[str, object]]:
        """Return every tweet owned by ``user_id``, newest first.

        An unknown user simply has an empty feed.
        """
        try:
            return self.tweets.feed_for(user_id)
        except SQLAlchemyError as exc:
            self._handle_service_error(exc)

    def post_tweet(self, user_id: int, body: str | None) -> Dict[str, object]:
        """Insert a tweet stamped with the server clock and return it.

        Parameters
        ----------
        user_id: int
            Owner of the new tweet; must reference an existing user.
        body: str
            Tweet text, non-blank and at most ``max_tweet_length`` characters.

        Returns
        -------
        dict
            The stored row joined with its author's username and name.
        """
        if not body or not body.strip():
            raise MalformedRequest("Tweet text is required")
        if len(body) > settings.max_tweet_length:
            raise MalformedRequest(
                f"Tweet exceeds {settings.max_tweet_length} characters"
            )
        logger.info("post tweet user=%s", user_id)
        try:
            if self.users.get(user_id) is None:
                raise UnknownUser()
            tweet_id = self.tweets.add(user_id, body)
            self.session.commit()
            tweet = self.tweets.get(tweet_id)
        except SQLAlchemyError as exc:
            self._handle_service_error(exc)
        TWEET_COUNTER.inc()
        logger.info("created tweet id=%s user=%s", tweet_id, user_id)
        return tweet

    def search_by_keyword(
        self, keywords: str | None, limit=None, offset=None
    ) -> List[Dict[str, object]]:
        """Full-text search over tweet bodies, ordered by recency."""
        if not keywords or not keywords.strip():
            raise MalformedRequest("keywords are required")
        limit, offset = parse_page(limit, offset)
        logger.info("keyword search limit=%s offset=%s", limit, offset)
        try:
            clause = self.tweets.keyword_clause(keywords)
            return self.tweets.search(clause, limit, offset)
        except SQLAlchemyError as exc:
            self._handle_service_error(exc)

    def search_by_hashtag(
        self, tag: str | None, limit=None, offset=None
    ) -> List[Dict[str, object]]:
        """Tweets containing ``#tag`` as a whole token, ordered by recency."""
        normalized = normalize_tag(tag)
        if normalized is None:
            raise MalformedRequest("hashtag must contain only word characters")
        limit, offset = parse_page(limit, offset)
        pattern = hashtag_pattern(normalized, settings.hashtag_trailing_boundary)
        logger.info("hashtag search tag=%s limit=%s offset=%s", normalized, limit, offset)
        try:
            return self.tweets.search(self.tweets.hashtag_clause(pattern), limit, offset)
        except SQLAlchemyError as exc:
            self._handle_service_error(exc)
