"""
Edit session controller.

Owns the single "currently editing cell" state shared by every projection.
The state is either Idle or Editing; begin, commit and cancel are the only
transitions, and a second begin while Editing is rejected.

Usage:
    controller = EditSessionController()
    if controller.begin("u1", ("age",), 30):
        controller.set_text("31")
        result = await controller.commit(store, client)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from docdesk.core.codec import MISSING, ParsePolicy, parse_edit, serialize_for_edit, values_equal
from docdesk.core.documents import Document, DocumentStore, set_path
from docdesk.core.errors import DocumentNotFound

if TYPE_CHECKING:
    from docdesk.clients.base import DocumentClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    """No cell is being edited."""


@dataclass(frozen=True)
class Editing:
    """A cell edit in progress.

    Attributes:
        document_id: Id of the document being edited.
        field_path: Keys from the document's top level to the edited value.
        raw_text: Current editor text.
    """

    document_id: str
    field_path: tuple[str, ...]
    raw_text: str

    @property
    def field(self) -> str:
        """Dotted form of the field path ("address.city")."""
        return ".".join(self.field_path)


EditState = Union[Idle, Editing]


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a commit.

    Attributes:
        attempted: Whether an update call was issued.
        success: Whether the update was acknowledged (True when nothing
            needed to be written).
        message: Failure message from the client.
        document: The document with its new data after a successful write.
    """

    attempted: bool
    success: bool
    message: str = ""
    document: Document | None = None


NOTHING_TO_COMMIT = CommitResult(attempted=False, success=True)


class EditSessionController:
    """Single shared owner of the active edit state."""

    def __init__(self, policy: ParsePolicy = ParsePolicy.STRICT) -> None:
        self.policy = policy
        self._state: EditState = Idle()

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def is_editing(self) -> bool:
        return isinstance(self._state, Editing)

    def is_editing_cell(self, document_id: str, field_path: tuple[str, ...]) -> bool:
        """Whether the given cell is the one being edited."""
        state = self._state
        return (
            isinstance(state, Editing)
            and state.document_id == document_id
            and state.field_path == field_path
        )

    def begin(self, document_id: str, field_path: tuple[str, ...], original: Any = MISSING) -> bool:
        """Start editing a cell.

        Args:
            document_id: The document that owns the cell.
            field_path: Path of the cell's value inside the document data.
            original: The current value, used to seed the editor text.

        Returns:
            False if another session is already open (nothing changes).
        """
        if self.is_editing:
            logger.debug("Rejected edit of %s.%s: a session is open", document_id, ".".join(field_path))
            return False
        self._state = Editing(document_id, tuple(field_path), serialize_for_edit(original))
        return True

    def set_text(self, raw_text: str) -> None:
        """Replace the editor text of the open session (ignored when Idle)."""
        state = self._state
        if isinstance(state, Editing):
            self._state = Editing(state.document_id, state.field_path, raw_text)

    def cancel(self) -> None:
        """Discard the open session without any external call."""
        self._state = Idle()

    async def commit(self, store: DocumentStore, client: DocumentClient) -> CommitResult:
        """Write the open session back to the store's client.

        The session is closed before the update call is awaited, so a confirm
        followed by a focus-loss commit issues a single call. Invalid text
        leaves the session open so the user can correct it.

        Args:
            store: The current document snapshot.
            client: The document client that receives the update.

        Returns:
            The CommitResult; NOTHING_TO_COMMIT when Idle or unchanged.

        Raises:
            EditValidationError: If the text cannot be parsed for the field.
            DocumentNotFound: If the document left the store; the session is
                closed in that case.
        """
        state = self._state
        if not isinstance(state, Editing):
            return NOTHING_TO_COMMIT

        doc = store.get(state.document_id)
        if doc is None:
            self._state = Idle()
            raise DocumentNotFound(state.document_id)

        old_value = doc.get_path(state.field_path)
        if state.raw_text == serialize_for_edit(old_value):
            # Confirmed without changes (an absent field seeds "")
            self._state = Idle()
            return NOTHING_TO_COMMIT
        new_value = parse_edit(state.raw_text, old_value, self.policy)

        self._state = Idle()

        if old_value is not MISSING and values_equal(old_value, new_value):
            return NOTHING_TO_COMMIT

        new_data = set_path(doc.data, state.field_path, new_value)
        result = await client.update_document(doc.path, new_data)
        if not result.success:
            logger.warning("Update of %s.%s failed: %s", doc.id, state.field, result.message)
            return CommitResult(attempted=True, success=False, message=result.message)

        logger.info("Updated %s.%s", doc.id, state.field)
        return CommitResult(attempted=True, success=True, document=doc.with_data(new_data))
