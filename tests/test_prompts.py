from datetime import date

from gavagai.models import BatchItem, FewShotExample, KnowledgeBase, Utterance, UtteranceBatch
from gavagai.prompts import build_prompt, build_system_prompt, build_user_message


def test_system_prompt_embeds_ontology(ontology) -> None:
    system = build_system_prompt(ontology, "2024-01-15")
    assert "# Role: Gavagai Interpretation Engine" in system
    assert '"InsertTransaction"' in system
    assert '"expense:food:coffee"' in system
    assert '"Transaction"' in system
    assert "## Validation Rules\n```json\n{}\n```" in system
    assert "No examples provided." in system
    assert '"inferredIntent": "action" | "query" | "mixed"' in system
    assert system.endswith("Respond ONLY with valid JSON. No explanations outside the JSON structure.")


def test_date_defaults_to_today(ontology) -> None:
    assert f"## Current Date\n{date.today().isoformat()}" in build_system_prompt(ontology)


def test_knowledge_base_date_wins(ontology) -> None:
    kb = KnowledgeBase(context={"currentDate": "2023-05-01"}, knowledge={"currentDate": "2022-01-01"})
    assert "## Current Date\n2023-05-01" in build_system_prompt(ontology, "2024-01-15", None, kb)

    kb = KnowledgeBase(knowledge={"currentDate": "2022-01-01"})
    assert "## Current Date\n2022-01-01" in build_system_prompt(ontology, "2024-01-15", None, kb)


def test_knowledge_base_sections(ontology) -> None:
    kb = KnowledgeBase(context={"userLocation": "SF"}, knowledge={"rules": ["over 1000 needs review"]})
    system = build_system_prompt(ontology, "2024-01-15", None, kb)
    assert "## Current Context" in system
    assert "## Domain Knowledge" in system
    assert system.index("## Current Context") < system.index("## Few-Shot Examples")


def test_empty_knowledge_base_adds_nothing(ontology) -> None:
    system = build_system_prompt(ontology, "2024-01-15", None, KnowledgeBase(context={}))
    assert "## Current Context" not in system


def test_few_shot_examples(ontology) -> None:
    examples = [
        FewShotExample(input="COFFEE 3", output={"a": 1}, rationale="coffee alias"),
        FewShotExample(input="RENT 900", output={"b": 2}),
    ]
    system = build_system_prompt(ontology, "2024-01-15", examples)
    assert '### Example 1\n**Input:** COFFEE 3\n**Output:**\n```json\n{\n  "a": 1\n}\n```' in system
    assert "**Rationale:** coffee alias" in system
    assert "### Example 2" in system


def test_single_utterance_message() -> None:
    assert build_user_message(Utterance(source="s", raw="STARBUCKS 12.50")) == (
        "Interpret the following utterance:\n\nSTARBUCKS 12.50"
    )


def test_single_utterance_metadata() -> None:
    message = build_user_message(Utterance(source="s", raw="X", metadata={"account": "visa"}))
    assert message.endswith('Metadata:\n{\n  "account": "visa"\n}')


def test_batch_keeps_order_and_metadata() -> None:
    batch = UtteranceBatch(
        source="bank",
        utterances=[BatchItem(raw="A 1"), BatchItem(raw="B 2", metadata={"n": 2}), BatchItem(raw="C 3")],
    )
    assert build_user_message(batch) == (
        "Interpret the following batch of utterances:\n\n"
        '1. A 1\n2. B 2\n   Metadata: {"n": 2}\n3. C 3'
    )


def test_build_prompt_pairs_both(ontology, utterance) -> None:
    pair = build_prompt(utterance, ontology, "2024-01-15")
    assert pair.user.startswith("Interpret the following utterance")
    assert "## Current Date\n2024-01-15" in pair.system
