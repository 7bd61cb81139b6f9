"""
Domain models for oral practice sessions and their feedback reports

All records serialize with camelCase aliases (``model_dump(by_alias=True)``)
so stored payloads keep the shape the frontend reads, e.g. ``tensesFound``
or ``criterionA``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SessionPhase(str, Enum):
    """Session lifecycle phase"""
    PREPARING = "PREPARING"
    PRESENTING = "PRESENTING"
    CONVERSING = "CONVERSING"
    COMPLETED = "COMPLETED"
    TERMINATED = "TERMINATED"


class TurnRole(str, Enum):
    """Transcript turn role"""
    PRESENTATION = "presentation"
    STUDENT = "student"
    EXAMINER = "examiner"


class CamelModel(BaseModel):
    """Base model accepting both field names and camelCase aliases"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(BaseModel):
    """Immutable analysis record"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read offset-less instants as UTC so they compare with stamped ones"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ==================== TRANSCRIPT ====================

class Turn(CamelModel):
    """One utterance in the transcript"""
    # Unknown roles are tolerated and ignored by every consumer.
    role: str
    content: str = ""
    timestamp: Optional[datetime] = None
    word_count: Optional[int] = Field(None, ge=0)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def words(self) -> int:
        """Precomputed word count when available, otherwise a whitespace count"""
        return self.word_count or len(self.content.split())


class PhaseTimestamps(CamelModel):
    """Phase boundary instants stamped by the lifecycle guard"""
    prep_started_at: Optional[datetime] = None
    present_started_at: Optional[datetime] = None
    converse_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("prep_started_at", "present_started_at", "converse_started_at", "completed_at")
    @classmethod
    def _timestamps_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class AiAnalysis(CamelModel):
    """Structured description of the stimulus image"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    description: Optional[str] = None
    cultural_context: Optional[str] = None
    themes: List[str] = Field(default_factory=list)
    talking_points: List[str] = Field(default_factory=list)
    deeper_questions: List[str] = Field(default_factory=list)
    vocabulary_hints: List[str] = Field(default_factory=list)
    suggested_theme: Optional[str] = None


class ImageContext(CamelModel):
    """Cultural and thematic context of the image the learner presented"""
    cultural_context: str = ""
    theme: str = ""
    talking_points: List[str] = Field(default_factory=list)
    ai_analysis: Optional[AiAnalysis] = None


# ==================== QUANTITATIVE ANALYSIS ====================

class TenseEntry(FrozenCamelModel):
    tense: str
    count: int
    examples: List[str] = Field(default_factory=list)


class TenseAnalysis(FrozenCamelModel):
    tenses_found: List[TenseEntry] = Field(default_factory=list)
    total_tenses_used: int = 0
    variety_score: int = Field(0, ge=0, le=10)
    missing_tenses: List[str] = Field(default_factory=list)
    dominant_tense: str = "none"


class WordBucket(FrozenCamelModel):
    level: str
    count: int
    percentage: int


class VocabularyAnalysis(FrozenCamelModel):
    estimated_level: str
    lexical_diversity: float = Field(ge=0, le=1)
    word_distribution: List[WordBucket]
    advanced_words: List[str] = Field(default_factory=list)
    complexity_score: float = Field(ge=0, le=10)


class FactorScore(FrozenCamelModel):
    name: str
    score: int = Field(ge=0, le=10)
    count: int


class DepthAnalysis(FrozenCamelModel):
    overall_score: float = Field(ge=0, le=10)
    factor_scores: List[FactorScore]
    average_response_length: int
    strongest_factor: str
    weakest_factor: str


class PaceAnalysis(FrozenCamelModel):
    overall_wpm: int = Field(alias="overallWPM")
    presentation_wpm: int = Field(alias="presentationWPM")
    conversation_wpm: int = Field(alias="conversationWPM")
    pace_variability: float
    fluency_rating: str
    fluency_score: int = Field(ge=0, le=10)


class QuantitativeAnalysis(FrozenCamelModel):
    tenses: TenseAnalysis
    depth: DepthAnalysis
    vocabulary: VocabularyAnalysis
    pace: PaceAnalysis


# ==================== RUBRIC ====================

CRITERION_MAX_MARKS: Dict[str, int] = {
    "A": 12,
    "B1": 6,
    "B2": 6,
    "C": 6,
}

TOTAL_MAX_MARK = sum(CRITERION_MAX_MARKS.values())


class CriterionGrade(FrozenCamelModel):
    """Grade for a single rubric criterion"""
    mark: int = Field(ge=0)
    band: str
    justification: str
    strengths: List[str]
    improvements: List[str]


class RubricResult(FrozenCamelModel):
    """Strict rubric schema; every field is required"""
    criterion_a: CriterionGrade
    criterion_b1: CriterionGrade
    criterion_b2: CriterionGrade
    criterion_c: CriterionGrade
    total_mark: int = Field(ge=0, le=TOTAL_MAX_MARK)
    overall_summary: str
    top_strengths: List[str]
    priority_improvements: List[str]

    @model_validator(mode="after")
    def check_marks(self) -> "RubricResult":
        for criterion, grade in self.criteria().items():
            maximum = CRITERION_MAX_MARKS[criterion]
            if grade.mark > maximum:
                raise ValueError(f"Criterion {criterion} mark {grade.mark} out of range 0-{maximum}")
        expected = sum(grade.mark for grade in self.criteria().values())
        if self.total_mark != expected:
            raise ValueError(f"Total mark {self.total_mark} does not equal sum {expected}")
        return self

    def criteria(self) -> Dict[str, CriterionGrade]:
        return {
            "A": self.criterion_a,
            "B1": self.criterion_b1,
            "B2": self.criterion_b2,
            "C": self.criterion_c,
        }


# ==================== FEEDBACK ====================

class FeedbackReport(FrozenCamelModel):
    """Combined result of one successful pipeline run"""
    rubric: RubricResult
    quantitative: QuantitativeAnalysis


class FeedbackErrorMarker(FrozenCamelModel):
    """Persisted in place of a report when the pipeline fails"""
    error: Literal[True] = True
    message: str


class ScoreOverride(CamelModel):
    """Teacher replacement of one criterion mark"""
    original_score: Optional[int] = None
    new_score: int
    justification: str
    teacher_id: str
    overridden_at: datetime


# ==================== SESSION ====================

class PracticeSession(CamelModel):
    """Persisted practice session as seen by the lifecycle guard and the pipeline"""
    id: str
    user_id: Optional[str] = None
    status: SessionPhase = SessionPhase.PREPARING
    transcript: List[Turn] = Field(default_factory=list)
    image_context: Optional[ImageContext] = None
    prep_started_at: Optional[datetime] = None
    present_started_at: Optional[datetime] = None
    converse_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    feedback: Optional[Dict[str, Any]] = None
    score_a: Optional[int] = None
    score_b1: Optional[int] = None
    score_b2: Optional[int] = None
    score_c: Optional[int] = None
    speaking_pace: Optional[int] = None
    vocabulary_level: Optional[str] = None

    @field_validator("prep_started_at", "present_started_at", "converse_started_at", "completed_at")
    @classmethod
    def _timestamps_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def timestamps(self) -> PhaseTimestamps:
        return PhaseTimestamps(
            prep_started_at=self.prep_started_at,
            present_started_at=self.present_started_at,
            converse_started_at=self.converse_started_at,
            completed_at=self.completed_at,
        )
