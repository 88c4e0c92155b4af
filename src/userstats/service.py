# orchestration and business rules.
# provides pure functions (parse, group, the five statistics) and a run() coordinator
# that performs the single fetch and hands the body to analyze_body()

from __future__ import annotations
import logging
from typing import Dict, Iterable, Iterator, List, Tuple
from pydantic import ValidationError
from .models import AnalysisResult, CityBucket, Number, User, mean
from .client import EmptyResponseError, UserFeedClient, resolve_url

logger = logging.getLogger(__name__)


# transform the NDJSON body into typed users, dropping lines that do not decode
def parse_users(body: str) -> Iterator[User]:
    for lineno, line in enumerate(body.strip().split("\n"), start=1):
        if not line.strip():
            continue
        try:
            yield User.model_validate_json(line)
        except ValidationError as exc:
            # a bad record never aborts the run
            logger.warning(
                "Skipping malformed JSON line %d: %s",
                lineno, exc.errors(include_url=False)[0]["msg"],
            )


def group_by_city(users: Iterable[User]) -> Dict[str, CityBucket]:
    # dicts keep insertion order, so buckets appear in first-seen order
    buckets: Dict[str, CityBucket] = {}
    for user in users:
        if not user.city:
            continue
        buckets.setdefault(user.city, CityBucket()).add(user)
    return buckets


def average_age_per_city(buckets: Dict[str, CityBucket]) -> Dict[str, Number]:
    return {city: mean(b.ages) for city, b in buckets.items()}


def average_friends_per_city(buckets: Dict[str, CityBucket]) -> Dict[str, Number]:
    return {city: mean(b.friend_counts) for city, b in buckets.items()}


def most_friends_per_city(buckets: Dict[str, CityBucket]) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for city, b in buckets.items():
        if not b.users:
            continue
        best = b.users[0]
        for user in b.users[1:]:
            # strict > so the first user holding the maximum keeps it
            if user.friend_count > best.friend_count:
                best = user
        result[city] = best.name
    return result


def _most_common(counts: Dict[str, int]) -> str:
    # fold over insertion order, a later key needs a strictly higher count to win
    best: Tuple[str, int] = ("", 0)
    for key, count in counts.items():
        if count > best[1]:
            best = (key, count)
    return best[0]


def most_common_first_name(users: Iterable[User]) -> str:
    counts: Dict[str, int] = {}
    for user in users:
        if not user.name:
            continue
        counts[user.name] = counts.get(user.name, 0) + 1
    return _most_common(counts)


def most_common_hobby(users: Iterable[User]) -> str:
    # every occurrence counts, hobbies are not deduplicated per friend or per user
    counts: Dict[str, int] = {}
    for user in users:
        for friend in user.friends or ():
            for hobby in friend.hobbies:
                counts[hobby] = counts.get(hobby, 0) + 1
    return _most_common(counts)


def analyze(users: List[User]) -> AnalysisResult:
    buckets = group_by_city(users)
    return AnalysisResult(
        average_age_per_city=average_age_per_city(buckets),
        average_friends_per_city=average_friends_per_city(buckets),
        most_friends_per_city=most_friends_per_city(buckets),
        most_common_first_name=most_common_first_name(users),
        most_common_hobby=most_common_hobby(users),
    )


# pure path: body -> users -> result, no i/o besides warnings
def analyze_body(body: str) -> AnalysisResult:
    # only a zero-length body is fatal, whitespace yields an empty result
    if not body:
        raise EmptyResponseError()
    users = list(parse_users(body))
    logger.info("Parsed %d users", len(users))
    return analyze(users)


def run(url: str | None = None, client: UserFeedClient | None = None) -> AnalysisResult:
    # single fetch, then everything is synchronous and in memory
    client = client or UserFeedClient()
    body = client.fetch_text(resolve_url(url))
    return analyze_body(body)
