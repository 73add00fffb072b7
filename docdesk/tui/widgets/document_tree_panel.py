"""
Document Tree Panel widget for browsing a collection as a tree.

This module provides a Tree widget that draws the rows of the tree
projection: the collection root, one node per document, then nested fields
rendered as:
    - Maps: `{} key_name` (expandable)
    - Arrays: `[] key_name (N items)` (expandable)
    - Strings: `"key": "value"` (leaf)
    - Other values: `"key": value` (leaf)

Node data is the node path, so expansion changes and selections can be
mapped back to the engine's expansion map and edit session.
"""

from __future__ import annotations

from dataclasses import replace

from rich.text import Text
from textual.message import Message
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from docdesk.projections.tree import NodeKind, TreeRow

# Maximum value length shown in a leaf label before truncation
MAX_LABEL_VALUE_LENGTH = 50


class DocumentTreePanel(Tree[str]):
    """Tree widget rebuilt from tree projection rows.

    Expansion is owned by the engine: the widget reports toggles with
    NodeToggled and is rebuilt from fresh rows afterwards.
    """

    class NodeToggled(Message):
        """Posted when the user expands or collapses a node.

        Attributes:
            node_path: The path of the node (e.g., "users/u1.address").
            expanded: Whether the node is now expanded.
        """

        def __init__(self, node_path: str, expanded: bool) -> None:
            self.node_path = node_path
            self.expanded = expanded
            super().__init__()

    class LeafActivated(Message):
        """Posted when Enter is pressed on an editable leaf.

        Attributes:
            row: The tree row of the leaf.
        """

        def __init__(self, row: TreeRow) -> None:
            self.row = row
            super().__init__()

    def __init__(
        self,
        label: str = "collection",
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(label, id=id, classes=classes)
        self._rows: dict[str, TreeRow] = {}
        self._path_nodes: dict[str, TreeNode[str]] = {}

    def get_row(self, path: str) -> TreeRow | None:
        return self._rows.get(path)

    @property
    def cursor_path(self) -> str | None:
        node = self.cursor_node
        return node.data if node is not None else None

    def _label(self, row: TreeRow) -> Text:
        if row.kind != NodeKind.FIELD:
            text = Text(row.key, style="bold")
            text.append(f"  {row.type_name}", style="dim")
            return text

        display = row.display
        if not row.expandable and len(display) > MAX_LABEL_VALUE_LENGTH:
            display = display[: MAX_LABEL_VALUE_LENGTH - 3] + "..."
        label = replace(row, display=display).label
        text = Text(label, style="reverse" if row.editing else "")
        text.append(f"  {row.type_name}", style="dim")
        return text

    def load_rows(self, rows: list[TreeRow]) -> None:
        """Rebuild the tree from projection rows, keeping the cursor path.

        Rows arrive in pre-order, so each row's parent is the closest
        preceding row one level shallower.
        """
        cursor_path = self.cursor_path
        self.clear()
        self._rows = {row.path: row for row in rows}
        self._path_nodes = {}
        if not rows:
            return

        root_row = rows[0]
        self.root.set_label(self._label(root_row))
        self.root.data = root_row.path
        self._path_nodes[root_row.path] = self.root

        # parents[d] is the latest node at depth d
        parents: list[TreeNode[str]] = [self.root]
        for row in rows[1:]:
            del parents[row.depth:]
            parent = parents[-1]
            if row.expandable:
                node = parent.add(
                    self._label(row), data=row.path, allow_expand=True, expand=row.expanded
                )
            else:
                node = parent.add_leaf(self._label(row), data=row.path)
            self._path_nodes[row.path] = node
            parents.append(node)

        if root_row.expanded:
            self.root.expand()
        else:
            self.root.collapse()

        node = self._path_nodes.get(cursor_path) if cursor_path else None
        if node is not None:
            self.call_after_refresh(self.move_cursor, node)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded[str]) -> None:
        self._report_toggle(event.node, True)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed[str]) -> None:
        self._report_toggle(event.node, False)

    def _report_toggle(self, node: TreeNode[str], expanded: bool) -> None:
        row = self._rows.get(node.data) if node.data else None
        # Programmatic expansion during a rebuild matches the rows already
        if row is None or row.expanded == expanded:
            return
        self.post_message(self.NodeToggled(row.path, expanded))

    def on_tree_node_selected(self, event: Tree.NodeSelected[str]) -> None:
        row = self._rows.get(event.node.data) if event.node.data else None
        if row is not None and row.editable:
            self.post_message(self.LeafActivated(row))
