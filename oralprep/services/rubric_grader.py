# oralprep/services/rubric_grader.py
import json
import re
from typing import Any, Dict, Optional, Sequence

import google.generativeai as genai
import structlog
from pydantic import ValidationError

from oralprep.core.config import settings
from oralprep.domain.errors import GradingError
from oralprep.domain.models import ImageContext, PhaseTimestamps, RubricResult, Turn, TurnRole
from oralprep.prompts.grading_prompts import build_grading_prompt

logger = structlog.get_logger(__name__)

CRITERION_KEYS = ("criterionA", "criterionB1", "criterionB2", "criterionC")

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def _reconcile_total(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Replace a miscounted totalMark with the sum of the criterion marks"""
    marks = []
    for key in CRITERION_KEYS:
        grade = payload.get(key)
        mark = grade.get("mark") if isinstance(grade, dict) else None
        if not isinstance(mark, int) or isinstance(mark, bool):
            # Left for schema validation to reject
            return payload
        marks.append(mark)

    expected = sum(marks)
    if payload.get("totalMark") != expected:
        logger.warning("Rubric total does not match criterion sum, correcting",
                       reported=payload.get("totalMark"),
                       expected=expected)
        payload = {**payload, "totalMark": expected}
    return payload


def parse_rubric(response_text: str) -> RubricResult:
    """
    Parse and validate the model's JSON rubric.

    Raises:
        GradingError: empty text, invalid JSON, missing fields or marks out of range
    """
    text = (response_text or "").strip()
    if not text:
        raise GradingError("Empty grading response")

    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise GradingError(f"Grading response is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise GradingError("Grading response is not a JSON object")

    try:
        return RubricResult.model_validate(_reconcile_total(payload))
    except ValidationError as e:
        raise GradingError(f"Grading response failed validation: {e}") from e


class RubricGrader:
    """Grades a session transcript against the four-criterion oral rubric with Gemini"""

    def __init__(self, model: Any = None, validation_retries: Optional[int] = None):
        if model is None:
            if not settings.GEMINI_API_KEY:
                raise ValueError("GEMINI_API_KEY not found in environment variables")
            genai.configure(api_key=settings.GEMINI_API_KEY)
            model = genai.GenerativeModel(settings.GRADER_MODEL)

        self.model = model
        self.validation_retries = (
            settings.GRADER_VALIDATION_RETRIES if validation_retries is None else validation_retries
        )

        # Low temperature for consistent marking
        self.generation_config = genai.types.GenerationConfig(
            temperature=settings.GRADER_TEMPERATURE,
            max_output_tokens=settings.GRADER_MAX_OUTPUT_TOKENS,
            response_mime_type="application/json",
        )

        # Safety settings to avoid blocking educational content
        self.safety_settings = [
            {
                "category": "HARM_CATEGORY_HARASSMENT",
                "threshold": "BLOCK_ONLY_HIGH"
            },
            {
                "category": "HARM_CATEGORY_HATE_SPEECH",
                "threshold": "BLOCK_ONLY_HIGH"
            },
            {
                "category": "HARM_CATEGORY_SEXUALLY_EXPLICIT",
                "threshold": "BLOCK_ONLY_HIGH"
            },
            {
                "category": "HARM_CATEGORY_DANGEROUS_CONTENT",
                "threshold": "BLOCK_ONLY_HIGH"
            }
        ]

    async def grade(
        self,
        transcript: Sequence[Turn],
        presentation_text: str,
        image_context: Optional[ImageContext],
        timestamps: PhaseTimestamps,
    ) -> RubricResult:
        """
        Grade one completed session.

        Raises:
            GradingError: the model call failed, or every attempt returned an
                unusable rubric
        """
        conversation = [
            turn for turn in transcript
            if turn.role in (TurnRole.STUDENT, TurnRole.EXAMINER)
        ]
        prompt = build_grading_prompt(presentation_text, conversation, image_context, timestamps)

        attempts = 1 + max(0, self.validation_retries)
        last_error: Optional[GradingError] = None
        for attempt in range(1, attempts + 1):
            response_text = await self._request(prompt)
            try:
                rubric = parse_rubric(response_text)
            except GradingError as e:
                last_error = e
                logger.warning("Rubric grading response rejected",
                               attempt=attempt,
                               attempts=attempts,
                               error=str(e))
                continue

            logger.info("Rubric grading complete",
                        attempt=attempt,
                        criterion_a=rubric.criterion_a.mark,
                        criterion_b1=rubric.criterion_b1.mark,
                        criterion_b2=rubric.criterion_b2.mark,
                        criterion_c=rubric.criterion_c.mark,
                        total=rubric.total_mark)
            return rubric

        raise GradingError(f"No valid rubric after {attempts} attempt(s): {last_error}")

    async def _request(self, prompt: str) -> str:
        """Send the prompt; returns "" for blocked or truncated responses"""
        try:
            response = await self.model.generate_content_async(
                prompt,
                generation_config=self.generation_config,
                safety_settings=self.safety_settings
            )
        except Exception as e:
            logger.error("Rubric grading request failed", error=str(e))
            raise GradingError(f"Grading request failed: {e}") from e

        # Check if response was blocked or empty
        if not response.candidates or not response.candidates[0].content.parts:
            logger.warning("Grading response was blocked or empty")
            return ""

        candidate = response.candidates[0]
        if candidate.finish_reason != 1:  # 1 = STOP (successful completion)
            logger.warning("Grading response did not finish normally", finish_reason=str(candidate.finish_reason))
            return ""

        return candidate.content.parts[0].text
