from typing import Optional, Union

from .interpret import interpret
from .models import (
    GavagaiResponse,
    IntentionProposition,
    InterpretOptions,
    KnowledgeBase,
    ModelSpec,
    Ontology,
    Utterance,
    UtteranceBatch,
    ValidationResult,
)
from .policy import should_auto_execute
from .prompts import PromptPair, build_prompt
from .registry import AdapterRegistry
from .validation import validate


def merge_options(
    defaults: Optional[InterpretOptions], overrides: Optional[InterpretOptions]
) -> InterpretOptions:
    """Per-call options win over defaults; knowledge-base maps are merged key by key."""
    base = defaults or InterpretOptions()
    if overrides is None:
        return base

    updates = {name: getattr(overrides, name) for name in overrides.model_fields_set if name != "knowledge_base"}
    merged = base.model_copy(update=updates)
    if overrides.knowledge_base is not None:
        default_kb = base.knowledge_base or KnowledgeBase()
        merged.knowledge_base = KnowledgeBase(
            context={**(default_kb.context or {}), **(overrides.knowledge_base.context or {})},
            knowledge={**(default_kb.knowledge or {}), **(overrides.knowledge_base.knowledge or {})},
        )
    return merged


class GavagaiClient:
    """Binds an ontology, a model and default options so calls stay short."""

    def __init__(
        self,
        ontology: Ontology,
        model: ModelSpec,
        default_options: Optional[InterpretOptions] = None,
        *,
        registry: Optional[AdapterRegistry] = None,
    ):
        self._ontology = ontology
        self._model = model
        self._default_options = default_options
        self._registry = registry

    @property
    def ontology(self) -> Ontology:
        return self._ontology

    @property
    def model(self) -> ModelSpec:
        return self._model

    @property
    def default_options(self) -> Optional[InterpretOptions]:
        return self._default_options

    def interpret(
        self, input: Union[Utterance, UtteranceBatch], options: Optional[InterpretOptions] = None
    ) -> GavagaiResponse:
        return interpret(
            input,
            self._ontology,
            self._model,
            merge_options(self._default_options, options),
            registry=self._registry,
        )

    def build_prompt(
        self, input: Union[Utterance, UtteranceBatch], options: Optional[InterpretOptions] = None
    ) -> PromptPair:
        merged = merge_options(self._default_options, options)
        return build_prompt(input, self._ontology, merged.current_date, merged.few_shot, merged.knowledge_base)

    def validate(self, response: GavagaiResponse) -> ValidationResult:
        return validate(response, self._ontology)

    def should_auto_execute(self, proposition: IntentionProposition) -> bool:
        return should_auto_execute(proposition)
