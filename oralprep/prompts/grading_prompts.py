"""
Rubric grading prompt for oral exam transcripts
"""

import json
from typing import Optional, Sequence

import structlog

from oralprep.domain.models import ImageContext, PhaseTimestamps, Turn, TurnRole
from oralprep.utils import minutes_between, round_half_up, round_int

logger = structlog.get_logger(__name__)


RUBRIC_DESCRIPTORS = """
=== CRITERION A: LANGUAGE (0-12 marks) ===
How successfully does the candidate command spoken language?

0: The work does not reach a standard described by the descriptors below.

1-3: Command of the language is limited. Vocabulary is sometimes appropriate to the task. Basic grammatical structures are used. Language contains errors in basic structures. Errors interfere with communication.

4-6: Command of the language is partially effective. Vocabulary is appropriate to the task. Some basic grammatical structures are used, with some attempts to use more complex structures. Language is mostly accurate in basic structures, but errors occur in more complex structures. Errors at times interfere with communication.

7-9: Command of the language is effective and mostly accurate. Vocabulary is appropriate to the task, and varied. A variety of basic and more complex grammatical structures is used. Language is mostly accurate. Occasional errors in basic and in complex grammatical structures do not interfere with communication.

10-12: Command of the language is mostly accurate and very effective. Vocabulary is appropriate to the task, and varied, including the use of idiomatic expressions. A variety of basic and more complex grammatical structures is used effectively. Language is mostly accurate. Minor errors in more complex grammatical structures do not interfere with communication.

=== CRITERION B1: MESSAGE - VISUAL STIMULUS (0-6 marks) ===
Evaluates the PRESENTATION phase ONLY.

0: The work does not reach a standard described by the descriptors below.

1-2: The presentation is mostly irrelevant to the stimulus. The presentation is limited to descriptions of the stimulus, or part of it. These descriptions may be incomplete. The presentation is not clearly linked to the target culture(s).

3-4: The presentation is mostly relevant to the stimulus. With a focus on explicit details, the candidate provides descriptions and basic personal interpretations relating to the stimulus. The presentation is mostly linked to the target culture(s).

5-6: The presentation is consistently relevant to the stimulus and draws on explicit and implicit details. The presentation provides both descriptions and personal interpretations relating to the stimulus. The presentation makes clear links to the target culture(s).

=== CRITERION B2: MESSAGE - CONVERSATION (0-6 marks) ===
Evaluates the CONVERSATION phase ONLY.

0: The work does not reach a standard described by the descriptors below.

1-2: The candidate consistently struggles to address the questions. Some responses are appropriate and are rarely developed. Responses are limited in scope and depth.

3-4: The candidate's responses are mostly relevant to the questions. Most responses are appropriate and some are developed. Responses are mostly broad in scope and depth.

5-6: The candidate's responses are consistently relevant to the questions and show some development. Responses are consistently appropriate and developed. Responses are broad in scope and depth, including personal interpretations and/or attempts to engage the interlocutor.

=== CRITERION C: INTERACTIVE SKILLS (0-6 marks) ===
Evaluates the CONVERSATION phase ONLY.

0: The work does not reach a standard described by the descriptors below.

1-2: Comprehension and interaction are limited. The candidate provides limited responses in the target language. Participation is limited. Most questions must be repeated and/or rephrased.

3-4: Comprehension and interaction are mostly sustained. The candidate provides responses in the target language and mostly demonstrates comprehension. Participation is mostly sustained.

5-6: Comprehension and interaction are consistently sustained. The candidate provides responses in the target language and demonstrates comprehension. Participation is sustained with some independent contributions.

=== END OF RUBRIC ===
"""

GRADING_INSTRUCTIONS = """
GRADING INSTRUCTIONS:
1. Read the ENTIRE transcript carefully before assigning any scores.
2. For each criterion, first identify which band the student clearly falls into based on the descriptors.
3. Then assign a specific mark within that band based on how strongly they meet the descriptors.
4. Cite SPECIFIC quotes or examples from the transcript to justify every score. Use the student's actual words.
5. If a student is borderline between two bands, err on the side of the lower band unless there is clear evidence for the higher one.
6. For Criterion A, look specifically for: variety of tenses, vocabulary range, grammatical accuracy, use of complex structures (subjunctive, conditionals, relative clauses).
7. For Criterion B1, evaluate ONLY the presentation text: did they describe the image, interpret it, and connect it to culture?
8. For Criterion B2, evaluate ONLY the conversation: did they answer questions fully, with depth, scope, and personal interpretation?
9. For Criterion C, evaluate ONLY the conversation: did they sustain interaction, demonstrate comprehension, and contribute independently?
"""

RESPONSE_FORMAT = """
Respond in this EXACT JSON format with no additional text:
{
  "criterionA": {
    "mark": <number 0-12>,
    "band": "<e.g., '7-9'>",
    "justification": "<2-3 sentences with specific transcript quotes as evidence>",
    "strengths": ["<specific strength with example from transcript>", "<another>"],
    "improvements": ["<specific actionable improvement>", "<another>"]
  },
  "criterionB1": {
    "mark": <number 0-6>,
    "band": "<e.g., '3-4'>",
    "justification": "<2-3 sentences with specific transcript quotes>",
    "strengths": ["..."],
    "improvements": ["..."]
  },
  "criterionB2": {
    "mark": <number 0-6>,
    "band": "<e.g., '5-6'>",
    "justification": "<2-3 sentences with specific transcript quotes>",
    "strengths": ["..."],
    "improvements": ["..."]
  },
  "criterionC": {
    "mark": <number 0-6>,
    "band": "<e.g., '3-4'>",
    "justification": "<2-3 sentences with specific transcript quotes>",
    "strengths": ["..."],
    "improvements": ["..."]
  },
  "totalMark": <sum of all criteria out of 30>,
  "overallSummary": "<3-4 sentence overall assessment referencing specific moments from the exam>",
  "topStrengths": ["<top strength>", "<second strength>"],
  "priorityImprovements": ["<most important thing to work on>", "<second most important>", "<third>"]
}
"""


def _duration_minutes(start, end) -> float:
    if start is None or end is None:
        return 0
    return round_half_up(max(minutes_between(start, end), 0), 1)


def format_conversation(conversation: Sequence[Turn]) -> str:
    lines = []
    for turn in conversation:
        speaker = "STUDENT" if turn.role == TurnRole.STUDENT else "EXAMINER"
        lines.append(f"[{speaker}]: {turn.content}")
    return "\n\n".join(lines)


def format_image_context(image_context: Optional[ImageContext]) -> str:
    if image_context is None:
        return "(No image context available)"
    payload = image_context.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, indent=2, ensure_ascii=False)


def build_grading_prompt(
    presentation_text: str,
    conversation: Sequence[Turn],
    image_context: Optional[ImageContext],
    timestamps: PhaseTimestamps,
) -> str:
    """
    Build the single grading prompt sent to the language model.

    Args:
        presentation_text: Text of the presentation turn, possibly empty
        conversation: Student and examiner turns in order
        image_context: Description of the stimulus image
        timestamps: Phase boundaries used for the duration figures

    Returns:
        Prompt text asking for one JSON rubric result
    """
    student_turns = [turn for turn in conversation if turn.role == TurnRole.STUDENT]
    examiner_turns = [turn for turn in conversation if turn.role == TurnRole.EXAMINER]
    total_student_words = sum(turn.words for turn in student_turns)
    average_response_length = round_int(total_student_words / len(student_turns)) if student_turns else 0

    presentation_minutes = _duration_minutes(timestamps.present_started_at, timestamps.converse_started_at)
    conversation_minutes = _duration_minutes(timestamps.converse_started_at, timestamps.completed_at)

    prompt = f"""You are a senior Spanish B examiner with 15 years of experience grading Individual Oral assessments. You will grade a student's performance based on their complete transcript.

Grade STRICTLY according to the rubric descriptors below. Do not inflate scores. Be fair, consistent, and evidence-based.

IMPORTANT CONTEXT: You are evaluating a TEXT transcript of a practice session, not speech. You CANNOT assess pronunciation or intonation and must not penalize the student for the absence of pronunciation evidence. For Criterion A, evaluate ONLY vocabulary, grammatical structures, accuracy, and effectiveness of communication.
{RUBRIC_DESCRIPTORS}
IMAGE CONTEXT (what the image depicts; use this to judge relevance of the student's responses):
{format_image_context(image_context)}

COMPLETE TRANSCRIPT:

[PRESENTATION PHASE]
{presentation_text or "(No presentation text recorded)"}

[CONVERSATION PHASE]
{format_conversation(conversation) or "(No conversation recorded)"}

SESSION DATA:
- Presentation duration: {presentation_minutes} minutes
- Conversation duration: {conversation_minutes} minutes
- Total student words: {total_student_words}
- Number of examiner questions: {len(examiner_turns)}
- Number of student responses: {len(student_turns)}
- Average student response length: {average_response_length} words
{GRADING_INSTRUCTIONS}{RESPONSE_FORMAT}"""

    logger.debug("Grading prompt built",
                 prompt_chars=len(prompt),
                 student_responses=len(student_turns),
                 examiner_questions=len(examiner_turns))
    return prompt
