from typing import Annotated, Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError


class Ambiguity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    field: str
    reason: str
    alternatives: List[str] = Field(default_factory=list)


class SuggestedOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: str
    label: str


class UnresolvedItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    originalRaw: str
    reason: str
    suggestedOptions: Optional[List[SuggestedOption]] = None


class NewEntityProposal(BaseModel):
    model_config = ConfigDict(extra="ignore")

    alias: str
    canonicalId: Optional[str] = None
    entityType: str
    rationale: str


class GavagaiError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    message: str
    context: Optional[dict[str, Any]] = None


class PropositionRecord(BaseModel):
    # Domain fields ride along next to originalRaw and are kept verbatim.
    model_config = ConfigDict(extra="allow")

    originalRaw: str


class IntentionProposition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    operation: str
    needs_review: StrictBool
    record: PropositionRecord
    items: Optional[List[dict[str, Any]]] = None
    ambiguities: Optional[List[Ambiguity]] = None
    reasoning: Optional[str] = None


class ResponseMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    inferredIntent: Literal["action", "query", "mixed"]


class GavagaiResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    propositions: List[IntentionProposition]
    alternative_propositions: List[IntentionProposition]
    unresolved: List[UnresolvedItem]
    new_entities: List[NewEntityProposal]
    answer: Optional[str] = None
    errors: List[GavagaiError]
    meta: ResponseMeta


class SchemaError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    message: str


class ConstraintError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    context: Optional[dict[str, Any]] = None


class ValidationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    valid: bool
    schemaErrors: List[SchemaError] = Field(default_factory=list)
    constraintErrors: List[ConstraintError] = Field(default_factory=list)


class Ontology(BaseModel):
    """Caller-supplied vocabulary bounding what an interpretation may contain.

    ``schema`` maps entity types to their fields, ``verbs`` maps every legal
    operation name to a description, ``nouns`` maps categories to known
    ``{id, aliases}`` records and ``validation`` holds free-form rules.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")
    verbs: dict[str, Any]
    nouns: dict[str, Any] = Field(default_factory=dict)
    validation: Optional[dict[str, Any]] = None

    @property
    def verb_names(self) -> List[str]:
        return list(self.verbs.keys())


class Utterance(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["Utterance"] = "Utterance"
    source: str
    raw: str
    metadata: Optional[dict[str, Any]] = None


class BatchItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    raw: str
    metadata: Optional[dict[str, Any]] = None


class UtteranceBatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["UtteranceBatch"] = "UtteranceBatch"
    source: str
    utterances: List[BatchItem]


GavagaiInput = Annotated[Union[Utterance, UtteranceBatch], Field(discriminator="kind")]


class ModelSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    provider: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)


class FewShotExample(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input: str
    output: dict[str, Any]
    rationale: Optional[str] = None


class KnowledgeBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    context: Optional[dict[str, Any]] = None
    knowledge: Optional[dict[str, Any]] = None


class InterpretOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    few_shot: Optional[List[FewShotExample]] = None
    current_date: Optional[str] = None
    knowledge_base: Optional[KnowledgeBase] = None


def schema_errors_from(exc: ValidationError) -> List[SchemaError]:
    return [
        SchemaError(path=".".join(str(part) for part in err["loc"]), message=err["msg"])
        for err in exc.errors()
    ]


def check_response(value: Any) -> Tuple[Optional[GavagaiResponse], List[SchemaError]]:
    """Validate ``value`` against the response schema without raising."""
    try:
        return GavagaiResponse.model_validate(value), []
    except ValidationError as e:
        return None, schema_errors_from(e)
    except RecursionError as e:
        return None, [SchemaError(path="", message=str(e))]
