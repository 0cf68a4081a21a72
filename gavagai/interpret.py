import logging
from dataclasses import dataclass
from typing import Optional, Union

from .errors import InvocationFailed, ProviderNotConfigured, ResponseParseError, UnparseableResponse
from .extraction import extract_json
from .models import GavagaiResponse, InterpretOptions, ModelSpec, Ontology, Utterance, UtteranceBatch
from .parser import parse_response
from .prompts import PromptPair, build_prompt
from .registry import AdapterRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterpretationResult:
    response: GavagaiResponse
    raw: str
    prompt: PromptPair


def run_interpretation(
    input: Union[Utterance, UtteranceBatch],
    ontology: Ontology,
    model: ModelSpec,
    options: Optional[InterpretOptions] = None,
    *,
    registry: Optional[AdapterRegistry] = None,
    log: Optional[logging.Logger] = None,
) -> InterpretationResult:
    log = log or logger
    options = options or InterpretOptions()
    registry = registry or default_registry()

    adapter = registry.get(model.provider)
    if adapter is None:
        raise ProviderNotConfigured(model.provider)

    prompt = build_prompt(
        input,
        ontology,
        options.current_date,
        options.few_shot,
        options.knowledge_base,
    )
    log.debug("built prompt: system=%d chars, user=%d chars", len(prompt.system), len(prompt.user))

    log.debug("calling %s / %s", model.provider, model.model)
    try:
        raw = adapter.complete(prompt.system, prompt.user, model)
    except Exception as e:
        log.warning("invocation failed for provider %s: %s", model.provider, e)
        raise InvocationFailed(model.provider, e) from e
    if not isinstance(raw, str):
        raise InvocationFailed(model.provider, TypeError(f"adapter returned {type(raw).__name__}, expected str"))
    log.debug("raw reply: %d chars", len(raw))

    extracted = extract_json(raw)
    log.debug("extracted JSON: %d chars", len(extracted))

    try:
        response = parse_response(extracted)
    except ResponseParseError as e:
        log.warning("unparseable reply from %s (%s)", model.provider, e.kind)
        raise UnparseableResponse(raw, e) from e

    log.debug(
        "parsed response: %d propositions, %d alternatives, %d unresolved",
        len(response.propositions),
        len(response.alternative_propositions),
        len(response.unresolved),
    )
    return InterpretationResult(response=response, raw=raw, prompt=prompt)


def interpret(
    input: Union[Utterance, UtteranceBatch],
    ontology: Ontology,
    model: ModelSpec,
    options: Optional[InterpretOptions] = None,
    *,
    registry: Optional[AdapterRegistry] = None,
    log: Optional[logging.Logger] = None,
) -> GavagaiResponse:
    """Interpret an utterance or batch with the adapter registered for ``model.provider``.

    One prompt, one model call, one parse. Every failure surfaces as a single
    ``GavagaiException`` subclass:

    - ``ProviderNotConfigured`` when no adapter is registered (nothing is sent);
    - ``InvocationFailed`` when the adapter raises, whatever its error type;
    - ``UnparseableResponse`` when the reply is not a schema-valid response,
      with the raw reply kept in ``context["rawResponse"]``.

    Ontology constraints are not checked here; call ``validation.validate``.
    """
    return run_interpretation(input, ontology, model, options, registry=registry, log=log).response
