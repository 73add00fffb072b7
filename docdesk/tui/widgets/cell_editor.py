"""Modal screen for editing a single document field."""

from __future__ import annotations

from textual import events
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, TextArea

# Type names whose editor text is JSON, where line breaks are insignificant
JSON_TYPES = frozenset({"array", "map"})


def single_line(text: str) -> str:
    """Join pretty-printed JSON onto one line for a single-line Input.

    Only used for array and map text; other values keep their line breaks.
    """
    if "\n" not in text:
        return text
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


class CellEditorModal(ModalScreen[str | None]):
    """A modal editor for one field value.

    Dismisses with the edited text when the edit is confirmed (Enter, or
    Ctrl+S in the multi-line editor, or the editor losing focus) and with
    None when it is cancelled (Escape). Text with line breaks that is not
    JSON is edited in a TextArea so the breaks survive.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+s", "confirm", "Save", priority=True),
    ]

    CSS = """
    CellEditorModal {
        align: center middle;
    }

    CellEditorModal > Vertical {
        width: 80%;
        height: auto;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    CellEditorModal .modal-header {
        height: auto;
        padding: 1 2;
        background: $primary;
        color: $text;
        text-align: center;
        text-style: bold;
        width: 100%;
    }

    CellEditorModal .field-key-label {
        height: auto;
        padding: 1 2;
        background: $surface-darken-1;
        color: $secondary;
        text-style: bold;
        width: 100%;
    }

    CellEditorModal .error-label {
        height: auto;
        padding: 0 2;
        color: $error;
    }

    CellEditorModal .close-hint {
        height: auto;
        padding: 1 2;
        text-align: center;
        color: $text-muted;
        width: 100%;
    }
    """

    def __init__(
        self,
        document_id: str,
        field: str,
        type_name: str,
        raw_text: str,
        error: str | None = None,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        """Initialize the cell editor.

        Args:
            document_id: Id of the edited document.
            field: Dotted path of the edited field.
            type_name: Type tag of the current value, shown in the header.
            raw_text: Initial editor text.
            error: Validation error from a previous attempt, if any.
            name: Optional name for the widget.
            id: Optional ID for the widget.
            classes: Optional CSS classes.
        """
        super().__init__(name=name, id=id, classes=classes)
        self.document_id = document_id
        self.field = field
        self.type_name = type_name
        self.raw_text = single_line(raw_text) if type_name in JSON_TYPES else raw_text
        self.multiline = "\n" in self.raw_text
        self.error = error
        self._result_sent = False

    def compose(self) -> ComposeResult:
        """Compose the modal content."""
        with Vertical():
            yield Label(f"Edit {self.document_id}", classes="modal-header", markup=False)
            yield Label(f'Field: "{self.field}" ({self.type_name})', classes="field-key-label", markup=False)
            if self.multiline:
                yield TextArea(self.raw_text, id="cell-input")
            else:
                yield Input(value=self.raw_text, id="cell-input")
            if self.error:
                yield Label(self.error, classes="error-label", markup=False)
            hint = "[CTRL+S] save  [ESC] cancel" if self.multiline else "[ENTER] save  [ESC] cancel"
            yield Label(hint, classes="close-hint", markup=False)

    def on_mount(self) -> None:
        self.query_one("#cell-input").focus()

    @property
    def editor_text(self) -> str:
        """Current editor text."""
        editor = self.query_one("#cell-input")
        return editor.text if isinstance(editor, TextArea) else editor.value

    def _close(self, result: str | None) -> None:
        # Enter and the following blur must produce a single result
        if self._result_sent:
            return
        self._result_sent = True
        self.dismiss(result)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter confirms the edit."""
        event.stop()
        self._close(event.value)

    def on_descendant_blur(self, event: events.DescendantBlur) -> None:
        """Losing focus confirms the edit."""
        if isinstance(event.widget, (Input, TextArea)) and self.is_current:
            self._close(self.editor_text)

    def action_confirm(self) -> None:
        """Ctrl+S confirms the edit."""
        self._close(self.editor_text)

    def action_cancel(self) -> None:
        """Escape discards the edit."""
        self._close(None)
