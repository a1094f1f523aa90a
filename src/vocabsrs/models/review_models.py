"""Plain records exchanged between the engine and its store."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional


class Skill(Enum):
    """Independent learning modalities tracked per item."""
    A = "A"  # recognition
    B = "B"  # production
    C = "C"  # listening


ALL_SKILLS = (Skill.A, Skill.B, Skill.C)


class ItemStatus(Enum):
    """Overall status of an item, derived from per-skill mastery."""
    MASTER = "master"
    READABLE = "readable"
    LISTENABLE = "listenable"
    SPEAKABLE = "speakable"
    NOT_YET = "not_yet"


class ProgressKey(NamedTuple):
    """Composite key of one progress row."""
    item_id: int
    skill: Skill

    def to_dict(self) -> Dict[str, Any]:
        return {"item_id": self.item_id, "skill": self.skill.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressKey":
        return cls(item_id=data["item_id"], skill=Skill(data["skill"]))


@dataclass
class ItemRecord:
    """A vocabulary entry owned by the catalog."""
    id: int
    text: str
    meanings: List[str] = field(default_factory=list)  # first one is primary
    category: str = "word"
    tags: List[str] = field(default_factory=list)
    example: Optional[str] = None
    note: Optional[str] = None
    created_at: int = 0  # epoch ms
    status: ItemStatus = ItemStatus.NOT_YET

    @property
    def primary_meaning(self) -> Optional[str]:
        return self.meanings[0] if self.meanings else None


@dataclass
class ProgressRecord:
    """Position of one (item, skill) pair on the interval ladder."""
    item_id: int
    skill: Skill
    stage: int = 0
    next_due: date = field(default_factory=date.today)
    correct_count: int = 0
    wrong_count: int = 0
    mastered: bool = False
    complete_master: bool = False

    @property
    def key(self) -> ProgressKey:
        return ProgressKey(self.item_id, self.skill)

    @property
    def accuracy(self) -> float:
        total = self.correct_count + self.wrong_count
        return self.correct_count / total if total else 0.0


@dataclass(frozen=True)
class AttemptRecord:
    """One graded answer; never updated."""
    item_id: int
    skill: Skill
    result: bool
    ts: int  # epoch ms
    elapsed_ms: int = 0


@dataclass(frozen=True)
class AchievementRecord:
    """An unlocked achievement code and when it was first earned."""
    code: str
    achieved_at: int  # epoch ms


@dataclass
class QueueEntry:
    """A due (item, skill) pair together with its progress row."""
    item: ItemRecord
    skill: Skill
    progress: ProgressRecord

    @property
    def key(self) -> ProgressKey:
        return ProgressKey(self.item.id, self.skill)


@dataclass
class SessionAnswer:
    """An answer given during a review session."""
    key: ProgressKey
    correct: bool


@dataclass
class ReviewSessionData:
    """Serializable state of a resumable review session."""
    id: str
    queue: List[ProgressKey] = field(default_factory=list)
    answers: List[SessionAnswer] = field(default_factory=list)
    total_count: int = 0
    updated_at: int = 0  # epoch ms

    @property
    def answered_keys(self) -> set:
        return {answer.key for answer in self.answers}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "queue": [key.to_dict() for key in self.queue],
            "answers": [
                {**answer.key.to_dict(), "correct": answer.correct}
                for answer in self.answers
            ],
            "total_count": self.total_count,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReviewSessionData":
        queue = [ProgressKey.from_dict(entry) for entry in data.get("queue", [])]
        answers = [
            SessionAnswer(key=ProgressKey.from_dict(entry), correct=bool(entry["correct"]))
            for entry in data.get("answers", [])
        ]
        return cls(
            id=data["id"],
            queue=queue,
            answers=answers,
            total_count=data.get("total_count") or len(queue) + len(answers),
            updated_at=data.get("updated_at", 0),
        )


@dataclass
class SessionSummary:
    """Outcome of a finished review session."""
    correct: int
    wrong: int
    wrong_keys: List[ProgressKey] = field(default_factory=list)


@dataclass
class Stats:
    """Aggregate statistics over progress rows and the attempt log."""
    total_items: int = 0
    mastered_a: int = 0
    mastered_b: int = 0
    mastered_c: int = 0
    complete_master: int = 0
    status_counts: Dict[str, int] = field(default_factory=dict)
    total_attempts: int = 0
    total_correct: int = 0
    overall_accuracy: float = 0.0
    average_response_ms: float = 0.0
    today_attempts: int = 0
    today_correct: int = 0
    today_accuracy: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    due_count: int = 0


@dataclass
class WeakItem:
    """An item with wrong answers and its wrong rate over all skills."""
    item: ItemRecord
    correct_count: int
    wrong_count: int

    @property
    def wrong_rate(self) -> float:
        total = self.correct_count + self.wrong_count
        return self.wrong_count / total if total else 0.0
