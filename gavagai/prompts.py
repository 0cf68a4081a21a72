import json
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Union

from .models import FewShotExample, KnowledgeBase, Ontology, Utterance, UtteranceBatch

SYSTEM_TEMPLATE = """# Role: Gavagai Interpretation Engine

You are a semantic translation engine that converts fuzzy utterances into
structured IntentionPropositions. Assume every utterance expresses an intention:
a desired state, goal, command, or request. Map it to the allowed operations.

Your output MUST be valid JSON conforming to the GavagaiResponse schema.

## Core Principles

1. **Intentions Only**: If the utterance doesn't express a desired action or state,
   return it in `unresolved[]` with reason "NOT_AN_INTENTION"
2. **Schema Conformance**: Only emit operations from the allowed set
3. **Entity Resolution**: Match against the provided ontology; never hallucinate IDs
4. **Preserve Original**: Always include originalRaw in every proposition
5. **Explicit Uncertainty**: Set needs_review=true when you are uncertain about
   any field; use ambiguities[] to specify which fields and why
6. **Surface Alternatives**: Include additional plausible interpretations in
   alternative_propositions[] for HITL resolution
7. **Propose Learnings**: Suggest new_entities[] for unknown aliases

## Domain Schema
```json
{schema}
```

## Allowed Verbs
```json
{verbs}
```

## Known Entities (with aliases)
```json
{nouns}
```

## Validation Rules
```json
{validation}
```

## Current Date
{current_date}

{knowledge_base}## Few-Shot Examples
{few_shot}

## Uncertainty Signals

Use structural signals, NOT numeric confidence:

| Signal | When to Use |
|--------|-------------|
| `needs_review: false` | All fields are unambiguous; safe to auto-execute |
| `needs_review: true` | Any uncertainty exists; queue for human review |
| `ambiguities: [...]` | Specify which fields are uncertain and alternatives |
| `alternative_propositions: [...]` | Other plausible interpretations |
| `unresolved: [...]` | Cannot form any proposition; needs human interpretation |

## Output Schema

Your response must be a JSON object with this structure:
```json
{output_schema}
```

Respond ONLY with valid JSON. No explanations outside the JSON structure."""

OUTPUT_SCHEMA = """{
  "propositions": [
    {
      "operation": "string (from allowed verbs)",
      "needs_review": boolean,
      "record": {
        "originalRaw": "string (the original input)",
        ...domain-specific fields
      },
      "items": [...optional sub-items],
      "ambiguities": [...optional field uncertainties],
      "reasoning": "optional string explaining interpretation"
    }
  ],
  "alternative_propositions": [...same structure as propositions],
  "unresolved": [
    {
      "originalRaw": "string",
      "reason": "string",
      "suggestedOptions": [...optional]
    }
  ],
  "new_entities": [
    {
      "alias": "string",
      "canonicalId": "optional string",
      "entityType": "string",
      "rationale": "string"
    }
  ],
  "answer": "optional string for query responses",
  "errors": [],
  "meta": {
    "inferredIntent": "action" | "query" | "mixed"
  }
}"""

CONTEXT_TEMPLATE = """## Current Context

The following context describes the current situation in which utterances are being interpreted.
Use this information to better understand the intent and resolve ambiguities.

```json
{context}
```

"""

KNOWLEDGE_TEMPLATE = """## Domain Knowledge

The following knowledge provides general know-hows, facts, rules, and patterns
that should inform your interpretation.

```json
{knowledge}
```

"""

SINGLE_USER_TEMPLATE = "Interpret the following utterance:\n\n{raw}"
BATCH_USER_TEMPLATE = "Interpret the following batch of utterances:\n\n{utterances}"


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _format_few_shot(examples: Optional[List[FewShotExample]]) -> str:
    if not examples:
        return "No examples provided."
    blocks = []
    for i, example in enumerate(examples, 1):
        block = (
            f"### Example {i}\n"
            f"**Input:** {example.input}\n"
            f"**Output:**\n```json\n{_pretty(example.output)}\n```"
        )
        if example.rationale:
            block += f"\n**Rationale:** {example.rationale}"
        blocks.append(block)
    return "\n\n".join(blocks)


def _format_knowledge_base(knowledge_base: Optional[KnowledgeBase]) -> str:
    if knowledge_base is None:
        return ""
    section = ""
    if knowledge_base.context:
        section += CONTEXT_TEMPLATE.format(context=_pretty(knowledge_base.context))
    if knowledge_base.knowledge:
        section += KNOWLEDGE_TEMPLATE.format(knowledge=_pretty(knowledge_base.knowledge))
    return section


def _resolve_date(current_date: Optional[str], knowledge_base: Optional[KnowledgeBase]) -> str:
    # knowledge_base.context > knowledge_base.knowledge > argument > today
    if knowledge_base is not None:
        for source in (knowledge_base.context, knowledge_base.knowledge):
            if source and source.get("currentDate") is not None:
                return str(source["currentDate"])
    return current_date or date.today().isoformat()


def build_system_prompt(
    ontology: Ontology,
    current_date: Optional[str] = None,
    few_shot: Optional[List[FewShotExample]] = None,
    knowledge_base: Optional[KnowledgeBase] = None,
) -> str:
    return SYSTEM_TEMPLATE.format(
        schema=_pretty(ontology.schema_),
        verbs=_pretty(ontology.verbs),
        nouns=_pretty(ontology.nouns),
        validation=_pretty(ontology.validation or {}),
        current_date=_resolve_date(current_date, knowledge_base),
        knowledge_base=_format_knowledge_base(knowledge_base),
        few_shot=_format_few_shot(few_shot),
        output_schema=OUTPUT_SCHEMA,
    )


def build_user_message(input: Union[Utterance, UtteranceBatch]) -> str:
    if isinstance(input, Utterance):
        message = SINGLE_USER_TEMPLATE.format(raw=input.raw)
        if input.metadata:
            message += f"\n\nMetadata:\n{_pretty(input.metadata)}"
        return message

    lines = []
    for i, item in enumerate(input.utterances, 1):
        line = f"{i}. {item.raw}"
        if item.metadata:
            line += f"\n   Metadata: {json.dumps(item.metadata, ensure_ascii=False)}"
        lines.append(line)
    return BATCH_USER_TEMPLATE.format(utterances="\n".join(lines))


def build_prompt(
    input: Union[Utterance, UtteranceBatch],
    ontology: Ontology,
    current_date: Optional[str] = None,
    few_shot: Optional[List[FewShotExample]] = None,
    knowledge_base: Optional[KnowledgeBase] = None,
) -> PromptPair:
    return PromptPair(
        system=build_system_prompt(ontology, current_date, few_shot, knowledge_base),
        user=build_user_message(input),
    )
