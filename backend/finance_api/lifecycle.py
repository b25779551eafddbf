"""Record lifecycle for incoming and outgoing funds.

Every fund record moves through three states:

    Active --soft_delete--> SoftDeleted --hard_delete--> Gone
                            SoftDeleted --restore-----> Active

``Active`` is the initial state and ``Gone`` is terminal. Content updates are
only accepted while a record is ``Active``. All services go through
:func:`transition` instead of checking ``is_deleted`` flags themselves, so the
rule that a live record can never be hard deleted lives in one place.
"""

from enum import Enum

from finance_api.errors import InvalidTransition, IrreversibleGuardError


class RecordState(str, Enum):
    ACTIVE = "active"
    SOFT_DELETED = "soft_deleted"
    GONE = "gone"


class RecordAction(str, Enum):
    UPDATE = "update"
    SOFT_DELETE = "soft_delete"
    RESTORE = "restore"
    HARD_DELETE = "hard_delete"


_TRANSITIONS: dict[tuple[RecordState, RecordAction], RecordState] = {
    (RecordState.ACTIVE, RecordAction.UPDATE): RecordState.ACTIVE,
    (RecordState.ACTIVE, RecordAction.SOFT_DELETE): RecordState.SOFT_DELETED,
    (RecordState.SOFT_DELETED, RecordAction.RESTORE): RecordState.ACTIVE,
    (RecordState.SOFT_DELETED, RecordAction.HARD_DELETE): RecordState.GONE,
}

_REJECTIONS = {
    RecordAction.UPDATE: "Record is deleted. Restore it before editing.",
    RecordAction.SOFT_DELETE: "Record is already deleted",
    RecordAction.RESTORE: "Record is not deleted",
}


def state_of(record) -> RecordState:
    """Derive the lifecycle state of a fund record (None means Gone)."""
    if record is None:
        return RecordState.GONE
    return RecordState.SOFT_DELETED if record.is_deleted else RecordState.ACTIVE


def source_state(action: RecordAction) -> RecordState:
    """The only state from which ``action`` may be applied.

    Services use this to build conditional writes (``WHERE is_deleted = ...``)
    so the check and the write happen in one statement.
    """
    for state, allowed in _TRANSITIONS:
        if allowed is action:
            return state
    raise InvalidTransition(f"Unknown action {action!r}")


def transition(state: RecordState, action: RecordAction) -> RecordState:
    """Return the state reached by applying ``action`` in ``state``.

    Raises:
        IrreversibleGuardError: hard delete requested on a record that is not
            soft-deleted.
        InvalidTransition: any other move the state machine does not allow.
    """
    target = _TRANSITIONS.get((state, action))
    if target is not None:
        return target
    if action is RecordAction.HARD_DELETE:
        raise IrreversibleGuardError()
    raise InvalidTransition(_REJECTIONS.get(action, f"Cannot {action.value} a {state.value} record"))
