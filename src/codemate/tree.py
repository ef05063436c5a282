"""Project tree helpers.

The tree is a list of ``ProjectFile`` / ``ProjectFolder`` nodes. Nodes are
told apart by their ``kind`` tag, never by probing for attributes, and every
walk rejects a node it does not recognise.
"""

import posixpath
from typing import Iterable, Iterator

from .core import FileRecord, ProjectFile, ProjectFolder, TreeNode

_CORRUPT_ORE_BLOCK = """\
// CorruptOreBlock implementation

package com.example.mod.block;

import net.minecraft.world.level.block.Block;

public class CorruptOreBlock extends Block {
    // Implementation goes here
}"""

_MY_SWORD = """\
package com.example.mod.item;

import net.minecraft.world.item.Item;
import net.minecraft.world.item.SwordItem;

public class MySword extends SwordItem {

    public MySword(Item.Properties properties) {
        super(Tiers.IRON, 3, -2.4F, properties);
    }
}"""


def default_project_structure() -> list[TreeNode]:
    """Return a fresh copy of the seed mod skeleton."""
    return [
        ProjectFolder("src", "/src", [
            ProjectFolder("main", "/src/main", [
                ProjectFolder("java", "/src/main/java", [
                    ProjectFile("CorruptOreBlock.java", "/src/main/java/CorruptOreBlock.java", _CORRUPT_ORE_BLOCK),
                    ProjectFile("MySword.java", "/src/main/java/MySword.java", _MY_SWORD),
                ]),
                ProjectFolder("resources", "/src/main/resources", [
                    ProjectFolder("lang", "/src/main/resources/lang"),
                    ProjectFolder("modelstates", "/src/main/resources/modelstates"),
                ]),
            ]),
        ]),
    ]


def iter_nodes(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node, depth first, parents before children."""
    for node in nodes:
        if node.kind == "folder":
            yield node
            yield from iter_nodes(node.children)
        elif node.kind == "file":
            yield node
        else:
            raise TypeError(f"Unknown tree node kind: {node.kind!r}")


def iter_files(nodes: Iterable[TreeNode]) -> Iterator[ProjectFile]:
    """Yield file nodes only, depth first."""
    for node in iter_nodes(nodes):
        if node.kind == "file":
            yield node


def find_file(nodes: Iterable[TreeNode], path: str) -> ProjectFile | None:
    """Return the first file whose path matches, or None."""
    return next((f for f in iter_files(nodes) if f.path == path), None)


def update_file_content(nodes: Iterable[TreeNode], path: str, content: str) -> bool:
    """Replace the content of the first file at ``path``.

    Returns False, leaving the tree untouched, when no file has that path.
    """
    target = find_file(nodes, path)
    if target is None:
        return False
    target.content = content
    return True


def build_tree(records: Iterable[FileRecord]) -> list[TreeNode]:
    """Nest flat file records into a tree.

    Records whose parent folder is not among the records, or whose parent
    links loop back to themselves, are placed at the root. Children are
    ordered folders first, then by name.
    """
    folders: dict[str, ProjectFolder] = {}
    nodes: dict[str, TreeNode] = {}
    unique: list[FileRecord] = []

    for rec in records:
        if rec.path in nodes:
            continue  # first record for a path wins
        unique.append(rec)
        if rec.is_folder:
            node = ProjectFolder(rec.name, rec.path)
            folders[rec.path] = node
        else:
            node = ProjectFile(rec.name, rec.path, rec.content or "")
        nodes[rec.path] = node

    parents = {rec.path: _parent_of(rec) for rec in unique}

    roots: list[TreeNode] = []
    for rec in unique:
        node = nodes[rec.path]
        parent = folders.get(parents[rec.path])
        if parent is not None and not _on_cycle(rec.path, parents, folders):
            parent.children.append(node)
        else:
            roots.append(node)

    for folder in folders.values():
        folder.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    return roots


def flatten_tree(nodes: Iterable[TreeNode]) -> Iterator[tuple[str, str, str | None, bool, str | None]]:
    """Yield ``(path, name, content, is_folder, parent_path)`` for every node."""
    for node in iter_nodes(nodes):
        parent = posixpath.dirname(node.path)
        parent_path = parent if parent not in ("", "/") else None
        if node.kind == "folder":
            yield node.path, node.name, None, True, parent_path
        else:
            yield node.path, node.name, node.content, False, parent_path


def _parent_of(rec: FileRecord) -> str:
    if rec.parent_path:
        return rec.parent_path
    return posixpath.dirname(rec.path)


def _on_cycle(path: str, parents: dict[str, str], folders: dict[str, ProjectFolder]) -> bool:
    """True if following parent links from ``path`` leads back to it."""
    current = parents.get(path)
    for _ in range(len(folders) + 1):
        if current == path:
            return True
        if current not in folders:
            return False
        current = parents.get(current)
    return False


def _sort_key(node: TreeNode) -> tuple[int, str]:
    return (0 if node.kind == "folder" else 1, node.name.lower())
