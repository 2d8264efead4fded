import re
from typing import Any, Dict, List

from ..logic.constants import CHAT_CONTEXT_FEATURES, CHAT_HISTORY_TURNS, TOP_N
from ..logic.contracts import ChatContext, ChatTurn, ScoredCandidate, StudentProfile
from .safety_rules import SAFETY_RULES, SYSTEM_ROLE_DEFINITION

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1F\x7F-\x9F]")


def sanitize_user_input(value: Any) -> str:
    """Strip backslashes, backticks and control characters from user text."""
    if not isinstance(value, str):
        return ""
    return _CONTROL_CHARS_RE.sub("", value.replace("\\", "").replace("`", "")).strip()


def _quoted_list(values: List[str]) -> str:
    return ", ".join(f'"{sanitize_user_input(v)}"' for v in values)


def build_system_prompt() -> str:
    """Role text followed by one bullet per safety rule."""
    bullets = "\n".join(f"- {rule}" for rule in SAFETY_RULES)
    return f"{SYSTEM_ROLE_DEFINITION.strip()}\n\nAlways follow these rules:\n{bullets}\n"


def sanitize_universities_for_prompt(
    candidates: List[ScoredCandidate],
    limit: int = TOP_N,
) -> List[Dict[str, Any]]:
    """Reduce ranked candidates to the fields the prompt needs."""
    minimized = []
    for scored in candidates[:limit]:
        uni = scored.university
        bench = uni.benchmarks
        minimized.append({
            "name": uni.name,
            "location": f"{uni.location.city}, {uni.location.state}",
            "placementPercentage": bench.placement_percentage or "N/A",
            "averageSalary": bench.average_salary or "N/A",
            # Rounded to the nearest thousand
            "annualFee": round(uni.average_annual_fee / 1000) * 1000,
            "ranking": bench.ranking or "N/A",
            "keyFeatures": list(uni.key_features),
            "priorityMatches": list(scored.debug_meta.priority_matches),
        })
    return minimized


def _profile_section(profile: StudentProfile) -> str:
    academics = profile.academics
    interests = profile.interests
    prefs = profile.preferences
    return (
        f'- Academics: {{ "grade12Score": {academics.grade12_score or "N/A"}, '
        f'"board": "{sanitize_user_input(academics.board) or "N/A"}" }}\n'
        f'- Interests: {{ "fieldOfStudy": "{interests.field_of_study or "N/A"}", '
        f'"courses": [{_quoted_list(interests.courses)}] }}\n'
        f'- Preferences: {{ "locations": [{_quoted_list(prefs.locations)}], '
        f'"budget": {prefs.budget or "N/A"}, '
        f'"priorities": [{_quoted_list(prefs.priorities)}] }}'
    )


def _universities_section(universities: List[Dict[str, Any]]) -> str:
    if not universities:
        return "No matching universities found based on current filters."
    lines = []
    for index, uni in enumerate(universities, 1):
        lines.append(
            f'{index}. **{uni["name"]}**: {{ "placementPercentage": {uni["placementPercentage"]}, '
            f'"averageSalary": {uni["averageSalary"]}, "annualFee": {uni["annualFee"]}, '
            f'"keyFeatures": [{_quoted_list(uni["keyFeatures"])}], "ranking": "{uni["ranking"]}" }}'
        )
    return "\n".join(lines)


def build_recommendation_prompt(profile: StudentProfile, universities: List[Dict[str, Any]]) -> str:
    """
    Constructs the counsellor-note prompt from the profile and the
    sanitised shortlist.
    """
    return f"""User Profile:
{_profile_section(profile)}

Retrieved University Data:
Here are the top universities from our database that match the student's core preferences:
{_universities_section(universities)}

Task:
Write a personalized and encouraging note to the student.
1. Start with a warm greeting.
2. Analyze their profile and acknowledge their strengths.
3. Based ONLY on the provided university data, recommend these universities, writing each name in bold markdown exactly as given.
4. For each university, explain WHY it's a great fit for THIS student, directly referencing their priorities and the university's key features.
5. Avoid content not in provided data.
6. Conclude with an optimistic and empowering statement about their bright future.
"""


def _chat_context_section(context: ChatContext) -> str:
    if not context.recommended_universities:
        return ""
    lines = ["Recommended Universities:"]
    for index, uni in enumerate(context.recommended_universities, 1):
        features = ", ".join(
            sanitize_user_input(f) for f in uni.key_features[:CHAT_CONTEXT_FEATURES]
        )
        lines.append(
            f"{index}. **{sanitize_user_input(uni.name)}**: Located in "
            f"{sanitize_user_input(uni.location) or 'N/A'}, ranked {uni.ranking or 'N/A'}. "
            f"Known for {features or 'N/A'}."
        )
    return "\n".join(lines)


def _chat_history_section(history: List[ChatTurn]) -> str:
    turns = history[-CHAT_HISTORY_TURNS:]
    return "\n".join(
        f"User: {_unbold(turn.message)}\nAI: {_unbold(turn.reply)}" for turn in turns
    )


def _unbold(value: str) -> str:
    # Asterisks outside the context block would read as university names
    return sanitize_user_input(value).replace("*", "")


def build_chat_prompt(message: str, context: ChatContext, history: List[ChatTurn]) -> str:
    """
    Chat prompt: the shortlist the student already has, the last few turns
    and the current question. Only context names are bolded.
    """
    return f"""{_chat_context_section(context)}

Conversation History:
{_chat_history_section(history)}

Current User Question:
{_unbold(message)}

Task:
Respond helpfully to the student's question. Be factual, supportive, and encouraging. Only reference universities that were mentioned in the provided context.
"""
