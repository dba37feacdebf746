"""
Prompt Templates

Pure string builders for every prompt the question pipeline sends to the LLM.
Nothing here performs I/O.
"""

from __future__ import annotations

from typing import Sequence

from ..core.models import ConversationMessage

CONVERSATION_WINDOW = 4

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Your task is to answer questions based on the information "
    "provided in the Context section below. "
    "The context contains relevant excerpts from internal documentation. "
    "Guidelines:\n"
    "- If the context directly answers the question, provide a clear and comprehensive answer.\n"
    "- If the context contains partial information that helps answer the question, use that "
    "information and clearly explain what you found.\n"
    "- If the context contains related or similar information (e.g., user asks about 'DSR' but "
    "context has 'DSI' or 'DRR'), explain what information is available and suggest the user "
    "may have meant one of those terms.\n"
    "- If the context is empty or has no relevant information at all, answer the question using "
    "your general knowledge (full context).\n"
    "- CRITICAL: If you answer using your general knowledge (and not the provided context), you "
    "MUST explicitly append the following citation at the end of your response: "
    "'Source: this information is provided from internet'.\n"
    "- CRITICAL: When explaining formulas, calculations, or technical definitions from the "
    "context, preserve the EXACT wording and meaning from the source. Do not paraphrase "
    "technical terms or change the definition. Quote the formula exactly as written.\n"
    "- Format formulas in plain text, NOT in LaTeX. Use simple text like "
    "'DSR = (defects in UAT) / (defects in UAT + defects in QA)' instead of LaTeX notation.\n"
    "- IMPORTANT: Always include the source URL(s) at the end of your answer in the format: "
    "'Source: [URL]'. If multiple sources are used, list all of them.\n"
    "- Cite the source titles when providing information.\n"
    "- If there is previous conversation history, use it to understand the context of the "
    "current question. For example, if the user asks 'what about DSI?' after asking about DSR, "
    "understand they want information about DSI."
)

WEB_SYSTEM_PROMPT = (
    "You are a helpful assistant. "
    "Answer the user's question based on the following context from Confluence. "
    "If the answer is not in the context, you may use your general knowledge to answer, but "
    "explicitly state that the information comes from outside Confluence. "
    "If you use general knowledge, append 'Source: this information is provided from internet' "
    "at the end. "
    "Always include source URLs when using information from the context."
)

REWRITE_PROMPT = (
    "Given the following conversation history and a new follow-up question, rephrase the "
    "follow-up question to be a standalone query that contains all necessary context from the "
    "history.\n"
    "If the follow-up question is already standalone, return it exactly as is.\n"
    "Do NOT answer the question. Return ONLY the rewritten question text. Do not add quotes or "
    "prefixes like 'Rewritten Question:'.\n\n"
    "--- History ---\n"
    "{history}\n\n"
    "--- Follow-up Question ---\n"
    "{question}\n\n"
    "--- Rewritten Question ---"
)

SUGGESTIONS_PROMPT = (
    'The user asked: "{question}". '
    "We could not find any relevant information in our documentation. "
    "Please generate 3 relevant, alternative questions that the user might have intended to ask, "
    "related to software development, KPIs, or project management. "
    "Return ONLY the 3 questions, each on a new line, without numbering or bullets."
)

CONVERSATION_HEADER = "\n\n--- Previous Conversation ---\n"
CONTEXT_HEADER = "\n\n--- Context from Documentation ---\n"
QUESTION_HEADER = "\n\n--- Question ---\n"
ANSWER_HEADER = "\n\n--- Answer ---"


def speaker(message: ConversationMessage) -> str:
    return "User: " if message.role == "user" else "Assistant: "


def render_history(history: Sequence[ConversationMessage]) -> str:
    """Full history, one tagged message per line (used by the rewriter)."""
    return "\n".join(speaker(m) + m.content for m in history)


def render_conversation(
    history: Sequence[ConversationMessage] | None,
    limit: int = CONVERSATION_WINDOW,
) -> str:
    """
    Conversation snippet for the answer prompt: the last ``limit`` messages
    under a header, or an empty string when there is no history.
    """
    if not history:
        return ""
    lines = "".join(f"{speaker(m)}{m.content}\n" for m in list(history)[-limit:])
    return CONVERSATION_HEADER + lines


def build_rewrite_prompt(question: str, history: Sequence[ConversationMessage]) -> str:
    return REWRITE_PROMPT.format(history=render_history(history), question=question)


def build_suggestions_prompt(question: str) -> str:
    return SUGGESTIONS_PROMPT.format(question=question)


def assemble_prompt(
    include_web_content: bool,
    conversation: str,
    context: str,
    feedback: str,
    query: str,
) -> str:
    """
    Build the final answer prompt.

    Section order is fixed: system instructions, conversation snippet,
    documentation context, feedback examples, question, answer cue.
    ``conversation`` and ``feedback`` carry their own headers and may be empty.
    """
    system = WEB_SYSTEM_PROMPT if include_web_content else DEFAULT_SYSTEM_PROMPT
    return (
        system
        + conversation
        + CONTEXT_HEADER
        + context
        + feedback
        + QUESTION_HEADER
        + query
        + ANSWER_HEADER
    )
