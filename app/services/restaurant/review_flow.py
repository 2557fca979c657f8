"""
Flux de revue sequentielle (reception, ventes, inventaire).

Le flux suit les etapes START -> PROCESSING -> REVIEW -> CONFIRM -> COMPLETE.
Chaque transition est une fonction pure `reduce(state, action)` qui
retourne un nouvel etat immuable; rien n'est persiste avant la
confirmation finale, abandonner le flux ne laisse donc aucune trace.

Usage:
    controller = ReviewFlowController(extractor, persister)
    controller.submit(upload)
    controller.dispatch(ConfirmItem({"quantity": 2}))
    controller.confirm()
"""
import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Sequence, Tuple

from app.core.exceptions import AppException

logger = logging.getLogger(__name__)

NO_ITEMS_MESSAGE = "No items were extracted from the document"

Item = Mapping[str, Any]


class FlowStep(str, enum.Enum):
    """Etapes du flux de revue."""
    START = "START"
    PROCESSING = "PROCESSING"
    REVIEW = "REVIEW"
    CONFIRM = "CONFIRM"
    COMPLETE = "COMPLETE"


class InvalidTransition(Exception):
    """Action non autorisee a l'etape courante."""

    def __init__(self, step: FlowStep, action: Any):
        self.step = step
        self.action = action
        super().__init__(f"{type(action).__name__} is not allowed in step {step.value}")


@dataclass(frozen=True)
class ReviewState:
    """
    Instantane immuable du flux.

    Attributes:
        step: Etape courante
        items: Lignes extraites (copiees a chaque modification)
        current_index: Curseur de revue
        confirmed: Index des lignes confirmees
        header: Champs d'en-tete (date, montant, fournisseur...)
        error: Derniere erreur a afficher
        message: Message de succes
        submitting: Persistance en cours
        discard_requested: Confirmation d'abandon demandee
    """
    step: FlowStep = FlowStep.START
    items: Tuple[Dict[str, Any], ...] = ()
    current_index: int = 0
    confirmed: FrozenSet[int] = frozenset()
    header: Mapping[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    message: Optional[str] = None
    submitting: bool = False
    discard_requested: bool = False

    @property
    def current_item(self) -> Optional[Dict[str, Any]]:
        if self.step != FlowStep.REVIEW or not self.items:
            return None
        return self.items[self.current_index]

    @property
    def is_last_item(self) -> bool:
        return self.current_index >= len(self.items) - 1

    @property
    def has_pending_items(self) -> bool:
        return self.step in (FlowStep.REVIEW, FlowStep.CONFIRM) and bool(self.items)


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class Submit:
    """Capture declenchee (fichier, photo ou saisie)."""


@dataclass(frozen=True)
class ExtractionSucceeded:
    items: Sequence[Item]
    header: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class ExtractionFailed:
    error: str


@dataclass(frozen=True)
class ConfirmItem:
    """Confirme la ligne courante, avec modifications eventuelles."""
    patch: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class SkipItem:
    pass


@dataclass(frozen=True)
class RemoveItem:
    """Retire une ligne (la ligne courante si index est None)."""
    index: Optional[int] = None


@dataclass(frozen=True)
class PreviousItem:
    pass


@dataclass(frozen=True)
class NextItem:
    pass


@dataclass(frozen=True)
class EditItem:
    index: int
    patch: Mapping[str, Any]


@dataclass(frozen=True)
class EditHeader:
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class SubmitConfirm:
    pass


@dataclass(frozen=True)
class PersistSucceeded:
    message: Optional[str] = None


@dataclass(frozen=True)
class PersistFailed:
    error: str


@dataclass(frozen=True)
class Cancel:
    """Abandon; sans force, une confirmation est demandee s'il reste des lignes."""
    force: bool = False


@dataclass(frozen=True)
class KeepEditing:
    """Refus de l'abandon demande."""


@dataclass(frozen=True)
class Reset:
    pass


# =============================================================================
# Reducer
# =============================================================================

def _require(state: ReviewState, action: Any, *steps: FlowStep) -> None:
    if state.step not in steps:
        raise InvalidTransition(state.step, action)


def _patched(item: Item, patch: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    updated = dict(item)
    if patch:
        updated.update(patch)
    return updated


def _advance(state: ReviewState, **changes) -> ReviewState:
    """Avance le curseur, ou passe en CONFIRM apres la derniere ligne."""
    if state.is_last_item:
        return replace(state, step=FlowStep.CONFIRM, **changes)
    return replace(state, current_index=state.current_index + 1, **changes)


def _remove(state: ReviewState, action: RemoveItem) -> ReviewState:
    index = state.current_index if action.index is None else action.index
    if not 0 <= index < len(state.items):
        raise InvalidTransition(state.step, action)

    items = state.items[:index] + state.items[index + 1:]
    if not items:
        return ReviewState()

    confirmed = frozenset(
        i if i < index else i - 1
        for i in state.confirmed
        if i != index
    )
    current = state.current_index
    if index < current:
        current -= 1
    current = min(current, len(items) - 1)
    return replace(state, items=items, confirmed=confirmed, current_index=current)


def reduce(state: ReviewState, action: Any) -> ReviewState:
    """
    Applique une action et retourne le nouvel etat.

    Raises:
        InvalidTransition: si l'action n'est pas permise a l'etape courante
    """
    if isinstance(action, Reset):
        return ReviewState()

    if isinstance(action, Cancel):
        if state.has_pending_items and not action.force:
            return replace(state, discard_requested=True)
        return ReviewState()

    if isinstance(action, KeepEditing):
        return replace(state, discard_requested=False)

    if isinstance(action, Submit):
        _require(state, action, FlowStep.START)
        return replace(state, step=FlowStep.PROCESSING, error=None, message=None)

    if isinstance(action, ExtractionSucceeded):
        _require(state, action, FlowStep.PROCESSING)
        if not action.items:
            return ReviewState(error=NO_ITEMS_MESSAGE)
        return ReviewState(
            step=FlowStep.REVIEW,
            items=tuple(dict(item) for item in action.items),
            header=dict(action.header or {}),
        )

    if isinstance(action, ExtractionFailed):
        _require(state, action, FlowStep.PROCESSING)
        return ReviewState(error=action.error)

    if isinstance(action, ConfirmItem):
        _require(state, action, FlowStep.REVIEW)
        index = state.current_index
        items = list(state.items)
        items[index] = _patched(items[index], action.patch)
        return _advance(
            state,
            items=tuple(items),
            confirmed=state.confirmed | {index},
        )

    if isinstance(action, SkipItem):
        _require(state, action, FlowStep.REVIEW)
        return _advance(state)

    if isinstance(action, RemoveItem):
        _require(state, action, FlowStep.REVIEW, FlowStep.CONFIRM)
        return _remove(state, action)

    if isinstance(action, PreviousItem):
        _require(state, action, FlowStep.REVIEW, FlowStep.CONFIRM)
        if state.step == FlowStep.CONFIRM:
            return replace(state, step=FlowStep.REVIEW, current_index=len(state.items) - 1, error=None)
        return replace(state, current_index=max(0, state.current_index - 1))

    if isinstance(action, NextItem):
        _require(state, action, FlowStep.REVIEW)
        return replace(state, current_index=min(len(state.items) - 1, state.current_index + 1))

    if isinstance(action, EditItem):
        _require(state, action, FlowStep.REVIEW, FlowStep.CONFIRM)
        if not 0 <= action.index < len(state.items):
            raise InvalidTransition(state.step, action)
        items = list(state.items)
        items[action.index] = _patched(items[action.index], action.patch)
        return replace(state, items=tuple(items))

    if isinstance(action, EditHeader):
        _require(state, action, FlowStep.REVIEW, FlowStep.CONFIRM)
        return replace(state, header={**state.header, **action.fields})

    if isinstance(action, SubmitConfirm):
        _require(state, action, FlowStep.CONFIRM)
        return replace(state, submitting=True, error=None)

    if isinstance(action, PersistSucceeded):
        _require(state, action, FlowStep.CONFIRM)
        return replace(
            state,
            step=FlowStep.COMPLETE,
            submitting=False,
            error=None,
            message=action.message,
            discard_requested=False,
        )

    if isinstance(action, PersistFailed):
        _require(state, action, FlowStep.CONFIRM)
        return replace(state, submitting=False, error=action.error)

    raise InvalidTransition(state.step, action)


def confirm_payload(state: ReviewState) -> Dict[str, Any]:
    """
    Charge utile envoyee a la persistance: {header, items, confirmed}.

    confirmed liste les index des lignes confirmees, les lignes passees
    n'y figurent pas.
    """
    return {
        "header": dict(state.header),
        "items": [dict(item) for item in state.items],
        "confirmed": sorted(state.confirmed),
    }


# =============================================================================
# Controller
# =============================================================================

Extractor = Callable[[Any], Tuple[Sequence[Item], Mapping[str, Any]]]
Persister = Callable[[Dict[str, Any]], Any]


class ReviewFlowController:
    """
    Pilote un flux de revue avec deux collaborateurs:
    - extractor(source) -> (items, header), appele a la soumission
    - persister(payload) -> resultat, appele a la confirmation finale

    Les erreurs applicatives (AppException) des collaborateurs sont
    converties en etat d'erreur; les autres remontent.
    """

    def __init__(self, extractor: Extractor, persister: Persister, success_message: Optional[str] = None):
        self.extractor = extractor
        self.persister = persister
        self.success_message = success_message
        self.state = ReviewState()
        self.result: Any = None

    def dispatch(self, action: Any) -> ReviewState:
        self.state = reduce(self.state, action)
        return self.state

    def submit(self, source: Any) -> ReviewState:
        """Lance l'extraction et passe en REVIEW (ou revient a START en cas d'echec)."""
        self.dispatch(Submit())
        try:
            items, header = self.extractor(source)
        except AppException as exc:
            logger.warning(f"Extraction echouee: {exc.message}")
            return self.dispatch(ExtractionFailed(exc.message))
        return self.dispatch(ExtractionSucceeded(items=items, header=header))

    def confirm(self) -> ReviewState:
        """Persiste le resume; reste en CONFIRM avec l'erreur en cas d'echec."""
        self.dispatch(SubmitConfirm())
        try:
            self.result = self.persister(confirm_payload(self.state))
        except AppException as exc:
            logger.warning(f"Persistance echouee: {exc.message}")
            return self.dispatch(PersistFailed(exc.message))
        return self.dispatch(PersistSucceeded(message=self.success_message))

    def run_all(self, source: Any) -> ReviewState:
        """Extraction, confirmation de chaque ligne telle quelle, puis persistance."""
        self.submit(source)
        while self.state.step == FlowStep.REVIEW:
            self.dispatch(ConfirmItem())
        if self.state.step == FlowStep.CONFIRM:
            return self.confirm()
        return self.state
