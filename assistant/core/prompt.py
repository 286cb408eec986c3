from __future__ import annotations

from typing import Sequence


GENERIC_SYSTEM_PROMPT = (
    "You are a helpful and knowledgeable assistant. "
    "Answer the user's questions concisely and informatively."
)


def handbook_system_prompt(company_name: str, sources: Sequence[str]) -> str:
    return (
        f"You are a helpful assistant for {company_name}. "
        "You must ONLY use the information provided below to answer.\n\n"
        "--- EMPLOYEE HANDBOOK EXCERPTS ---\n"
        + "\n\n".join(sources)
        + "\n--- END OF EXCERPTS ---"
    )


def no_match_system_prompt(company_name: str) -> str:
    return (
        f"You are a helpful assistant for {company_name}. "
        "The employee handbook does not contain relevant information for this question. "
        "Reply politely: \"I'm sorry, I don't know. "
        "The employee handbook does not contain information about that.\""
    )


def build_system_prompt(use_rag: bool, sources: Sequence[str], company_name: str) -> str:
    if not use_rag:
        return GENERIC_SYSTEM_PROMPT
    if sources:
        return handbook_system_prompt(company_name, sources)
    return no_match_system_prompt(company_name)
