"""
Tests unitaires pour le flux de revue sequentielle.
"""
import pytest
from unittest.mock import MagicMock


def _review_state(count=3):
    from app.services.restaurant.review_flow import (
        ReviewState, Submit, ExtractionSucceeded, reduce,
    )

    state = reduce(ReviewState(), Submit())
    items = [{"name": f"item-{i}", "quantity": i + 1} for i in range(count)]
    return reduce(state, ExtractionSucceeded(items=items, header={"supplier": "Rungis"}))


class TestReducerTransitions:
    """Tests des transitions du reducer."""

    @pytest.mark.unit
    def test_submit_then_extraction_reaches_review(self):
        from app.services.restaurant.review_flow import FlowStep

        state = _review_state()

        assert state.step == FlowStep.REVIEW
        assert state.current_index == 0
        assert state.header == {"supplier": "Rungis"}

    @pytest.mark.unit
    def test_empty_extraction_returns_to_start_with_error(self):
        from app.services.restaurant.review_flow import (
            ReviewState, Submit, ExtractionSucceeded, reduce, FlowStep, NO_ITEMS_MESSAGE,
        )

        state = reduce(reduce(ReviewState(), Submit()), ExtractionSucceeded(items=[]))

        assert state.step == FlowStep.START
        assert state.error == NO_ITEMS_MESSAGE

    @pytest.mark.unit
    def test_extraction_failure_returns_to_start(self):
        from app.services.restaurant.review_flow import (
            ReviewState, Submit, ExtractionFailed, reduce, FlowStep,
        )

        state = reduce(reduce(ReviewState(), Submit()), ExtractionFailed("OCR down"))

        assert state.step == FlowStep.START
        assert state.error == "OCR down"

    @pytest.mark.unit
    def test_confirming_last_item_moves_to_confirm(self):
        from app.services.restaurant.review_flow import ConfirmItem, reduce, FlowStep

        state = _review_state(2)
        state = reduce(state, ConfirmItem({"quantity": 10}))
        state = reduce(state, ConfirmItem())

        assert state.step == FlowStep.CONFIRM
        assert state.confirmed == frozenset({0, 1})
        assert state.items[0]["quantity"] == 10

    @pytest.mark.unit
    def test_confirm_does_not_mutate_previous_state(self):
        """Chaque transition produit un nouvel etat."""
        from app.services.restaurant.review_flow import ConfirmItem, reduce

        before = _review_state(2)
        after = reduce(before, ConfirmItem({"quantity": 99}))

        assert before.items[0]["quantity"] == 1
        assert after.items[0]["quantity"] == 99

    @pytest.mark.unit
    def test_skip_advances_without_confirming(self):
        from app.services.restaurant.review_flow import SkipItem, reduce

        state = reduce(_review_state(), SkipItem())

        assert state.current_index == 1
        assert state.confirmed == frozenset()

    @pytest.mark.unit
    def test_skip_on_last_item_moves_to_confirm(self):
        from app.services.restaurant.review_flow import SkipItem, reduce, FlowStep, confirm_payload

        state = _review_state(2)
        state = reduce(reduce(state, SkipItem()), SkipItem())

        assert state.step == FlowStep.CONFIRM
        assert len(state.items) == 2
        assert confirm_payload(state)["confirmed"] == []

    @pytest.mark.unit
    def test_previous_from_confirm_goes_back_to_last_item(self):
        from app.services.restaurant.review_flow import SkipItem, PreviousItem, reduce, FlowStep

        state = _review_state(2)
        state = reduce(reduce(state, SkipItem()), SkipItem())
        state = reduce(state, PreviousItem())

        assert state.step == FlowStep.REVIEW
        assert state.current_index == 1

    @pytest.mark.unit
    def test_invalid_action_raises(self):
        from app.services.restaurant.review_flow import (
            ReviewState, ConfirmItem, SubmitConfirm, reduce, InvalidTransition,
        )

        with pytest.raises(InvalidTransition):
            reduce(ReviewState(), ConfirmItem())
        with pytest.raises(InvalidTransition):
            reduce(_review_state(), SubmitConfirm())


class TestReducerRemoveAndEdit:
    """Tests de suppression et d'edition de lignes."""

    @pytest.mark.unit
    def test_remove_reindexes_confirmed_items(self):
        from app.services.restaurant.review_flow import ConfirmItem, RemoveItem, reduce

        state = _review_state(3)
        state = reduce(state, ConfirmItem())
        state = reduce(state, ConfirmItem())
        # curseur sur l'index 2, lignes 0 et 1 confirmees
        state = reduce(state, RemoveItem(index=0))

        assert [i["name"] for i in state.items] == ["item-1", "item-2"]
        assert state.confirmed == frozenset({0})
        assert state.current_index == 1

    @pytest.mark.unit
    def test_removing_last_item_resets(self):
        from app.services.restaurant.review_flow import RemoveItem, reduce, FlowStep

        state = reduce(_review_state(1), RemoveItem())

        assert state.step == FlowStep.START
        assert state.items == ()

    @pytest.mark.unit
    def test_remove_out_of_range_raises(self):
        from app.services.restaurant.review_flow import RemoveItem, reduce, InvalidTransition

        with pytest.raises(InvalidTransition):
            reduce(_review_state(2), RemoveItem(index=5))

    @pytest.mark.unit
    def test_edit_item_and_header(self):
        from app.services.restaurant.review_flow import EditItem, EditHeader, reduce

        state = reduce(_review_state(), EditItem(index=2, patch={"quantity": 0.5}))
        state = reduce(state, EditHeader({"total": 12}))

        assert state.items[2]["quantity"] == 0.5
        assert state.header == {"supplier": "Rungis", "total": 12}


class TestReducerCancel:
    """Tests d'abandon du flux."""

    @pytest.mark.unit
    def test_cancel_with_pending_items_asks_confirmation(self):
        from app.services.restaurant.review_flow import Cancel, KeepEditing, reduce, FlowStep

        state = reduce(_review_state(), Cancel())

        assert state.discard_requested is True
        assert state.step == FlowStep.REVIEW

        state = reduce(state, KeepEditing())
        assert state.discard_requested is False

    @pytest.mark.unit
    def test_forced_cancel_resets(self):
        from app.services.restaurant.review_flow import Cancel, ReviewState, reduce

        assert reduce(_review_state(), Cancel(force=True)) == ReviewState()


class TestReviewFlowController:
    """Tests pour ReviewFlowController."""

    @pytest.mark.unit
    def test_run_all_persists_confirm_payload(self):
        from app.services.restaurant.review_flow import ReviewFlowController, FlowStep

        extractor = MagicMock(return_value=([{"name": "a"}, {"name": "b"}], {"date": "2026-01-01"}))
        persister = MagicMock(return_value="ok")
        controller = ReviewFlowController(extractor, persister, success_message="Done")

        state = controller.run_all("document")

        assert state.step == FlowStep.COMPLETE
        assert state.message == "Done"
        assert controller.result == "ok"
        persister.assert_called_once_with({
            "header": {"date": "2026-01-01"},
            "items": [{"name": "a"}, {"name": "b"}],
            "confirmed": [0, 1],
        })

    @pytest.mark.unit
    def test_extraction_error_is_captured_in_state(self):
        from app.core.exceptions import ExternalServiceError
        from app.services.restaurant.review_flow import ReviewFlowController, FlowStep

        extractor = MagicMock(side_effect=ExternalServiceError("OCR unavailable"))
        persister = MagicMock()
        controller = ReviewFlowController(extractor, persister)

        state = controller.submit("document")

        assert state.step == FlowStep.START
        assert state.error is not None
        persister.assert_not_called()

    @pytest.mark.unit
    def test_persist_error_stays_in_confirm(self):
        from app.core.exceptions import BadRequest
        from app.services.restaurant.review_flow import ReviewFlowController, FlowStep

        extractor = MagicMock(return_value=([{"name": "a"}], {}))
        persister = MagicMock(side_effect=BadRequest("Invalid line"))
        controller = ReviewFlowController(extractor, persister)

        state = controller.run_all("document")

        assert state.step == FlowStep.CONFIRM
        assert state.submitting is False
        assert state.error == "Invalid line"

    @pytest.mark.unit
    def test_unexpected_errors_propagate(self):
        from app.services.restaurant.review_flow import ReviewFlowController

        extractor = MagicMock(side_effect=RuntimeError("boom"))
        controller = ReviewFlowController(extractor, MagicMock())

        with pytest.raises(RuntimeError):
            controller.submit("document")
