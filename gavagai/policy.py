from collections.abc import Mapping
from typing import Any, Union

from .models import IntentionProposition


def should_auto_execute(proposition: Union[IntentionProposition, Mapping[str, Any]]) -> bool:
    """True only for a proposition the model flagged as safe and left unambiguous.

    Operation type and record contents play no part in the decision.
    """
    if isinstance(proposition, Mapping):
        needs_review = proposition.get("needs_review")
        ambiguities = proposition.get("ambiguities")
    else:
        needs_review = proposition.needs_review
        ambiguities = proposition.ambiguities
    return needs_review is False and not ambiguities
