from knowhow_rag.core.models import ConversationMessage
from knowhow_rag.rag.prompts import (
    DEFAULT_SYSTEM_PROMPT,
    WEB_SYSTEM_PROMPT,
    assemble_prompt,
    build_suggestions_prompt,
    render_conversation,
)


def msg(role, content):
    return ConversationMessage(role=role, content=content)


def test_conversation_keeps_last_four_messages():
    history = [msg("user", f"u{i}") if i % 2 == 0 else msg("assistant", f"a{i}") for i in range(6)]

    snippet = render_conversation(history)

    assert snippet == (
        "\n\n--- Previous Conversation ---\n"
        "User: u2\nAssistant: a3\nUser: u4\nAssistant: a5\n"
    )


def test_conversation_empty_without_history():
    assert render_conversation(None) == ""
    assert render_conversation([]) == ""


def test_section_order():
    prompt = assemble_prompt(
        include_web_content=False,
        conversation="\n\n--- Previous Conversation ---\nUser: hi\n",
        context="Title: T\nSource: u\nContent: c",
        feedback="\n\n--- Previous Feedback for Similar Questions ---\n",
        query="What is DSR?",
    )

    assert prompt.startswith(DEFAULT_SYSTEM_PROMPT)
    positions = [
        prompt.index("--- Previous Conversation ---"),
        prompt.index("--- Context from Documentation ---"),
        prompt.index("--- Previous Feedback for Similar Questions ---"),
        prompt.index("--- Question ---\nWhat is DSR?"),
    ]
    assert positions == sorted(positions)
    assert prompt.endswith("\n\n--- Answer ---")


def test_web_variant_selected():
    prompt = assemble_prompt(True, "", "", "", "q")

    assert prompt.startswith(WEB_SYSTEM_PROMPT)
    assert DEFAULT_SYSTEM_PROMPT not in prompt
    assert prompt == WEB_SYSTEM_PROMPT + "\n\n--- Context from Documentation ---\n\n\n--- Question ---\nq\n\n--- Answer ---"


def test_both_variants_carry_internet_citation():
    citation = "Source: this information is provided from internet"
    assert citation in DEFAULT_SYSTEM_PROMPT
    assert citation in WEB_SYSTEM_PROMPT


def test_suggestions_prompt_quotes_question():
    assert build_suggestions_prompt("What is XYZ?").startswith('The user asked: "What is XYZ?". ')
