#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
loopguard/visitor.py
====================

Visitor pattern infrastructure for JavaScript syntax tree traversal.

Provides:
- ``ASTVisitor`` — base with ``accept``-based dispatch
- ``DepthFirstVisitor`` — pre/post-order traversal with enter/leave hooks
- ``TransformingVisitor`` — in-place rewriter that can replace, delete or
  splice statements
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, List

from loopguard import ast_nodes as A

__all__ = [
    "ASTVisitor",
    "DepthFirstVisitor",
    "TransformingVisitor",
]


class ASTVisitor:
    """Base class for syntax tree visitors.

    ``visit`` dispatches through :meth:`Node.accept` to
    ``visit_<snake_case_class_name>``; node types without such a method
    go to ``generic_visit``, which does nothing.
    """

    def visit(self, node: A.Node) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)

    def generic_visit(self, node: A.Node) -> Any:
        """Called when no specific visitor method exists."""
        return None


class DepthFirstVisitor(ASTVisitor):
    """Visitor that traverses all children in depth-first order.

    Override ``enter`` / ``leave`` for pre/post-order processing.  Children
    are visited in source order, so ``enter`` sees an outer construct
    before anything nested inside it.
    """

    def generic_visit(self, node: A.Node) -> Any:
        self.enter(node)
        for child in node.children():
            self.visit(child)
        self.leave(node)
        return None

    def enter(self, node: A.Node) -> None:
        """Called before visiting children."""
        pass

    def leave(self, node: A.Node) -> None:
        """Called after visiting children."""
        pass


class TransformingVisitor(ASTVisitor):
    """Visitor that rewrites the tree in place.

    ``visit`` returns the replacement for the node it was given:

    * the same node, or another node, replaces it;
    * ``None`` deletes it from a list field (a single-node field keeps
      the original);
    * a list splices its items into a list field.  When the slot holds a
      single statement (``if`` branch, loop body, label body) the items
      are wrapped in a ``BlockStatement`` so the result stays one
      statement.
    """

    def generic_visit(self, node: A.Node) -> A.Node:
        for f in fields(node):
            if f.name == "loc":
                continue
            value = getattr(node, f.name)
            if isinstance(value, A.Node):
                setattr(node, f.name, self._replace_single(value))
            elif isinstance(value, list):
                setattr(node, f.name, self._replace_list(value))
        return node

    def _replace_single(self, child: A.Node) -> A.Node:
        result = self.visit(child)
        if result is None:
            return child
        if isinstance(result, list):
            if len(result) == 1:
                return result[0]
            return A.BlockStatement(body=result, loc=child.loc)
        return result

    def _replace_list(self, items: list) -> list:
        out: List[Any] = []
        for item in items:
            if not isinstance(item, A.Node):
                out.append(item)
                continue
            result = self.visit(item)
            if result is None:
                continue
            if isinstance(result, list):
                out.extend(result)
            else:
                out.append(result)
        return out
