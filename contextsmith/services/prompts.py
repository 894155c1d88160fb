"""Prompt text for every model-backed decision in the retrieval pipeline.

Builders return plain strings; callers wrap them into Messages. Every prompt
asks for JSON only, and every caller still strips code fences before decoding.
"""

import json
from typing import Any

from contextsmith.core.models import CriticalQuestion, SymbolMatch

TASK_CLASSIFIER_SYSTEM = "You are a task classification specialist."

PLANNER_SYSTEM_TEMPLATE = """You are the routing agent of a code-understanding system.
Your job is to:
- Read the user's task and a short project description.
- Decide the high-level intent.
- Plan how to search the codebase (queries plus which workers to activate).

Available specialized workers:
{available_workers}

Respond with a single JSON object ONLY, no commentary, matching this schema:
{{
  "global_intent": "short_snake_case_label",
  "search_queries": [
    {{"query": "string", "kind": "component|type|schema|api|style|helper|any", "target_paths": ["optional/path"]}}
  ],
  "workers": [
    {{
      "worker_id": "worker_key_from_available_list",
      "description": "what this worker should focus on",
      "queries": [
        {{"query": "string", "kind": "component|type|schema|api|style|helper|any", "target_paths": []}}
      ]
    }}
  ]
}}

Guidelines:
- Use 3 to 8 specific search queries rather than one generic query.
- Include a types/schemas query when the task touches data or forms.
- Include a UI query when the task has a frontend aspect.
- Use target_paths hints only when obvious; otherwise leave them empty.
- Select 2 to 4 workers from the available list.
"""

AUDITOR_SYSTEM = """You are the context auditor of a code-understanding system.
Given a user task and a list of candidate code items, decide which items are essential.

Rules:
- Prefer items that are directly useful for implementing the task.
- Prefer framework entry points and core domain types.
- Drop generic utilities that are not clearly relevant.

Respond with JSON only, matching:
{"keep_indices": [0, 2, 5]}
"""


def build_planner_system_prompt(worker_lines: list[str]) -> str:
    return PLANNER_SYSTEM_TEMPLATE.format(available_workers="\n".join(worker_lines))


def build_planner_user_prompt(
    user_task: str, project_description: str, recommended: list[str]
) -> str:
    return (
        f"User task:\n{user_task}\n\n"
        f"Detected project description:\n{project_description}\n\n"
        f"Recommended workers based on task type: {', '.join(recommended)}\n"
    )


def build_question_generation_prompt(
    user_task: str, language: str, framework: str | None = None
) -> str:
    framework_context = f" using the {framework} framework" if framework else ""
    return f"""You are analyzing a {language or "software"} project{framework_context} for this user request:
"{user_task}"

Generate 3-5 critical questions to ask about the existing codebase so that existing code is reused instead of duplicated.

For each question, give:
- question: the question to ask
- search_query: what to search for in the codebase
- expected_type: kind of code element (component/function/type/constant/schema)
- priority: critical/high/medium

Examples:
- React/TypeScript: "Is there a Button component?", search: "Button", type: "component"
- Rust: "Is there a User struct?", search: "User struct", type: "type"
- Python: "Is there an auth decorator?", search: "auth decorator", type: "function"

Respond with a JSON array:
[
  {{"question": "...", "search_query": "...", "expected_type": "...", "priority": "critical"}}
]

Return ONLY the JSON array."""


def build_verification_prompt(
    question: CriticalQuestion, results: list[SymbolMatch], max_results: int
) -> str:
    summary = "\n".join(r.summary() for r in results[:max_results])
    return f"""Question: {question.question}
Expected type: {question.expected_type}
Search query used: {question.search_query}

Search results found:
{summary}

Verify whether these results correctly answer the question.
Respond with JSON:
{{
  "is_correct": true,
  "reason": "explanation",
  "suggestion": "optional better search query if incorrect"
}}

Return ONLY the JSON."""


def build_reformulation_prompt(question: CriticalQuestion) -> str:
    return f"""The search query "{question.search_query}" for the question "{question.question}" did not find the right results.

Suggest a better search query. Consider:
- More specific terms
- Alternate naming (e.g., "User" vs "UserModel" vs "UserStruct")
- Related terms
- Type-specific searches

Respond with JSON:
{{"new_query": "improved search query"}}

Return ONLY the JSON."""


def build_audit_user_prompt(
    user_task: str, category: str, summaries: list[dict[str, Any]]
) -> str:
    return (
        f"User task:\n{user_task}\n\n"
        f"Category: {category}\n\n"
        f"Candidate items:\n{json.dumps(summaries, indent=2, ensure_ascii=False)}"
    )
