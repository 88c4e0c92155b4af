# models and tiny stats helpers to keep data shapes explicit and reusable across the app

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict

Number = Union[int, float]


class Friend(BaseModel):
    # nested inside a user record, hobbies may repeat and are counted as-is
    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    name: str = ""
    hobbies: List[str] = []


class User(BaseModel):
    # one NDJSON line; strict so a wrong type is a record error, not a coercion
    model_config = ConfigDict(frozen=True, strict=True, extra="ignore", allow_inf_nan=False)

    id: int
    name: str = ""
    city: Optional[str] = None
    age: float
    friends: Optional[List[Friend]] = None

    @property
    def friend_count(self) -> int:
        return len(self.friends) if self.friends else 0


@dataclass
class CityBucket:
    # index-aligned: ages[i], friend_counts[i] and users[i] come from the same record
    ages: List[float] = field(default_factory=list)
    friend_counts: List[int] = field(default_factory=list)
    users: List[User] = field(default_factory=list)

    def add(self, user: User) -> None:
        self.ages.append(user.age)
        self.friend_counts.append(user.friend_count)
        self.users.append(user)


@dataclass(frozen=True)
class AnalysisResult:
    # output value object used by the cli reporter
    average_age_per_city: Dict[str, Number]
    average_friends_per_city: Dict[str, Number]
    most_friends_per_city: Dict[str, str]
    most_common_first_name: str
    most_common_hobby: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "average_age_per_city": dict(self.average_age_per_city),
            "average_friends_per_city": dict(self.average_friends_per_city),
            "most_friends_per_city": dict(self.most_friends_per_city),
            "most_common_first_name": self.most_common_first_name,
            "most_common_hobby": self.most_common_hobby,
        }


def round1(value: float) -> Number:
    # half-up on the decimal representation, so 0.25 -> 0.3 (round() would give 0.2)
    if abs(value) >= 1e21:
        # already past one-decimal precision, quantize would overflow the context
        return float(value)
    q = Decimal(repr(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return int(q) if q == q.to_integral_value() else float(q)


def mean(values: List[float]) -> Number:
    # rounded average, 0 on empty input
    return round1(sum(values) / len(values)) if values else 0
