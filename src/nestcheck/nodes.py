"""Node abstraction: the protocol the scanner walks, plus a concrete tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence


class Node(Protocol):
    """Anything with a name and an ordered, finite list of children."""

    @property
    def name(self) -> str: ...

    @property
    def children(self) -> Sequence[Node]: ...


@dataclass(eq=False)
class TreeNode:
    """Plain in-memory node. Equality is identity, like a live scene object."""

    name: str
    children: list[TreeNode] = field(default_factory=list)
    destroyed: bool = field(default=False, repr=False)

    def add(self, child: TreeNode) -> TreeNode:
        self.children.append(child)
        return child

    def destroy(self) -> None:
        """Mark this subtree deleted; outstanding references go stale."""
        stack = [self]
        while stack:
            node = stack.pop()
            node.destroyed = True
            stack.extend(node.children)

    def find_child(self, name: str) -> TreeNode | None:
        """Direct-child lookup by exact name (first match)."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TreeNode:
        """Build a tree from {"name": ..., "children": [...]}.

        Iterative, so depth is not limited by the recursion limit.
        Raises ValueError if a node has no string name.
        """
        root = cls._from_fields(data)
        stack = [(data, root)]
        while stack:
            current, node = stack.pop()
            for child_data in current.get("children") or []:
                child = cls._from_fields(child_data)
                node.children.append(child)
                stack.append((child_data, child))
        return root

    @classmethod
    def _from_fields(cls, data: dict[str, Any]) -> TreeNode:
        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError(f"Node name must be a string, got {name!r}")
        return cls(name=name)



def is_alive(node: Node | None) -> bool:
    """False for None and for nodes the host reports as destroyed."""
    return node is not None and not getattr(node, "destroyed", False)


def tree(name: str, *children: TreeNode) -> TreeNode:
    """Shorthand: tree("A", tree("A"), tree("B"))."""
    return TreeNode(name=name, children=list(children))
