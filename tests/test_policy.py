import pytest

from gavagai.models import Ambiguity, IntentionProposition, PropositionRecord
from gavagai.policy import should_auto_execute


def _proposition(needs_review: bool, ambiguities) -> IntentionProposition:
    return IntentionProposition(
        operation="InsertTransaction",
        needs_review=needs_review,
        record=PropositionRecord(originalRaw="test"),
        ambiguities=ambiguities,
    )


AMBIGUOUS = [Ambiguity(field="amount", reason="two numbers")]


@pytest.mark.parametrize(
    ("needs_review", "ambiguities", "expected"),
    [
        (False, None, True),
        (False, [], True),
        (False, AMBIGUOUS, False),
        (True, None, False),
        (True, AMBIGUOUS, False),
    ],
)
def test_truth_table(needs_review, ambiguities, expected) -> None:
    assert should_auto_execute(_proposition(needs_review, ambiguities)) is expected


def test_accepts_plain_mapping() -> None:
    assert should_auto_execute({"operation": "X", "needs_review": False, "record": {"originalRaw": "x"}})
    assert not should_auto_execute({"operation": "X", "needs_review": True, "record": {"originalRaw": "x"}})


def test_operation_and_record_are_ignored() -> None:
    prop = IntentionProposition(
        operation="DeleteEverything",
        needs_review=False,
        record=PropositionRecord(originalRaw="rm -rf", amount="1000000"),
    )
    assert should_auto_execute(prop)
