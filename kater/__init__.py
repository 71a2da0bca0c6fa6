"""Predicates, labelled NFAs, regular combinators and NFA simplification passes."""

__version__ = "0.3.1"
__all__ = ["predicate", "nfa", "nfa_ops", "nfautils"]