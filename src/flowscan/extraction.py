"""Identifier-read extraction for expressions."""

from __future__ import annotations

from typing import List

from .grammars import Grammar


def call_receiver(node, grammar: Grammar):
    """Return the receiver expression of a call, or None for unqualified calls."""

    if grammar.callee_field is None:
        return node.child_by_field_name(grammar.receiver_field)
    callee = node.child_by_field_name(grammar.callee_field)
    if callee is None or callee.type not in grammar.member_kinds:
        return None
    return callee.child_by_field_name(grammar.receiver_field)


def call_arguments(node, grammar: Grammar) -> List:
    arguments = node.child_by_field_name(grammar.arguments_field)
    if arguments is None:
        return []
    return list(arguments.named_children)


def extract_read_identifiers(expr, grammar: Grammar, receiver_reads: bool = False) -> List:
    """Return the identifier nodes ``expr`` reads, in source order.

    Calls contribute their arguments (and, with ``receiver_reads``, an
    identifier receiver); constructions contribute their arguments; binary
    expressions contribute both operands. Every other expression kind reads
    nothing. Occurrences are not deduplicated.
    """

    reads: List = []
    stack = [expr]
    while stack:
        current = stack.pop()
        if current is None:
            continue
        kind = current.type
        if kind in grammar.identifier_kinds:
            reads.append(current)
        elif kind in grammar.call_kinds:
            operands = []
            if receiver_reads:
                receiver = call_receiver(current, grammar)
                if receiver is not None and receiver.type in grammar.identifier_kinds:
                    operands.append(receiver)
            operands.extend(call_arguments(current, grammar))
            stack.extend(reversed(operands))
        elif kind in grammar.construction_kinds:
            stack.extend(reversed(call_arguments(current, grammar)))
        elif kind in grammar.binary_kinds:
            stack.append(current.child_by_field_name(grammar.right_field))
            stack.append(current.child_by_field_name(grammar.left_field))
    return reads
