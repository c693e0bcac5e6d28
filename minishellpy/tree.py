"""Build an execution tree from a parsed command list."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from .parser import Command, Separator


class NodeType(enum.Enum):
    """Kinds of node in the execution tree."""

    COMMAND = enum.auto()
    PIPE = enum.auto()
    AND = enum.auto()
    OR = enum.auto()
    SUBSHELL = enum.auto()


@dataclass
class TreeNode:
    """A tree node; command nodes of a group carry the group's own tree in ``subshell``."""

    type: NodeType
    command: Optional[Command] = None
    left: Optional["TreeNode"] = None
    right: Optional["TreeNode"] = None
    subshell: Optional["TreeNode"] = None


def _split(commands: list[Command], index: int, kind: NodeType) -> TreeNode:
    head = [*commands[:index], replace(commands[index], separator=Separator.END)]
    return TreeNode(
        kind,
        left=build_tree(head),
        right=build_tree(commands[index + 1 :]),
    )


def build_tree(commands: Iterable[Command]) -> Optional[TreeNode]:
    """Build a tree: ``&&``/``||`` bind loosest and split at the last one, pipes at the first.

    The input commands are left unchanged. An empty list gives None.
    """
    items = list(commands)
    if not items:
        return None
    and_or = [
        index
        for index, cmd in enumerate(items)
        if cmd.separator in (Separator.AND, Separator.OR)
    ]
    if and_or:
        index = and_or[-1]
        kind = NodeType.AND if items[index].separator is Separator.AND else NodeType.OR
        return _split(items, index, kind)
    pipe = next(
        (index for index, cmd in enumerate(items) if cmd.separator is Separator.PIPE),
        None,
    )
    if pipe is not None:
        return _split(items, pipe, NodeType.PIPE)
    head = items[0]
    subshell = build_tree(head.subshell) if head.is_subshell else None
    return TreeNode(NodeType.COMMAND, command=head, subshell=subshell)