"""Simplification and normalisation passes over automata.

Besides the protocol required by :mod:`kater.nfa`, labels used here provide
``is_relation()``, ``merged(other)`` returning the label of a step that makes
both checks, and ``parts()`` returning the (pre-check, relation, post-check)
labels a relation step breaks into. A theory provides ``composes(l1, l2)``
telling whether two labels can be taken in sequence on the same event.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from kater.nfa import NFA, State, Transition
from kater.nfa_ops import to_dfa

SimilarityMatrix = dict[State, dict[State, bool]]


def apply_bidirectionally(fun: Callable[[NFA], Any], nfa: NFA) -> None:
    """Apply FUN to NFA and then to its reverse, leaving NFA in its original direction."""
    fun(nfa)
    nfa.flip()
    fun(nfa)
    nfa.flip()


def calculate_reachable_from(nfa: NFA, states: Iterable[State]) -> set[State]:
    """Return the states reachable from STATES, STATES included."""
    visited: set[State] = set()
    work: list[State] = []
    for s in states:
        visited.add(s)
        work.append(s)
    while work:
        s = work.pop()
        for t in s.outgoing:
            if t.dest in visited:
                continue
            visited.add(t.dest)
            work.append(t.dest)
    return visited


def calculate_reaching_to(nfa: NFA, states: Iterable[State]) -> set[State]:
    """Return the states from which STATES can be reached, STATES included."""
    targets = tuple(states)
    nfa.flip()
    try:
        return calculate_reachable_from(nfa, targets)
    finally:
        nfa.flip()


def _remove_dead_states_one_direction(nfa: NFA) -> None:
    useful = calculate_reaching_to(nfa, nfa.accepting)
    nfa.remove_states_if(lambda s: s not in useful)
    if nfa.num_starting == 0:
        nfa.create_starting()


def remove_dead_states(nfa: NFA) -> None:
    """Remove states that cannot reach an accepting state or be reached from a starting one."""
    apply_bidirectionally(_remove_dead_states_one_direction, nfa)


def _transitions_similar(t1: Transition, t2: Transition, similar: SimilarityMatrix) -> bool:
    return t1.label == t2.label and similar[t1.dest][t2.dest]


def _states_similar(s1: State, s2: State, similar: SimilarityMatrix) -> bool:
    return all(
        s2.has_outgoing(t1) or any(_transitions_similar(t1, t2, similar) for t2 in s2.outgoing)
        for t1 in s1.outgoing
    )


def find_similar_states(nfa: NFA) -> SimilarityMatrix:
    """Return the simulation relation: ``m[s1][s2]`` holds if S2 simulates S1."""
    states = nfa.states
    similar: SimilarityMatrix = {s1: {s2: True for s2 in states} for s1 in states}

    for a in nfa.accepting:
        for s in states:
            if not s.accepting:
                similar[a][s] = False

    changed = True
    while changed:
        changed = False
        for s1 in states:
            row = similar[s1]
            for s2 in states:
                if row[s2] and not _states_similar(s1, s2, similar):
                    row[s2] = False
                    changed = True
    return similar


def _remove_similar_transitions_one_direction(nfa: NFA) -> None:
    matrix = find_similar_states(nfa)

    pairs: list[tuple[State, State]] = []
    seen: set[tuple[State, State]] = set()
    for s1 in nfa.states:
        for s2 in nfa.states:
            if s1 is not s2 and matrix[s1][s2] and matrix[s2][s1] and (s2, s1) not in seen:
                seen.add((s1, s2))
                pairs.append((s1, s2))

    for kept, dropped in pairs:
        if dropped.starting:
            nfa.make_starting(kept)
        nfa.add_inverted_transitions(kept, dropped.incoming)
    to_remove = {dropped for _, dropped in pairs}
    nfa.remove_states_if(lambda s: s in to_remove)

    # Must run after merging, so that only transitions to surviving states remain.
    for s in nfa.states:
        outs = s.outgoing
        nfa.remove_transitions_if(
            s,
            lambda t1, outs=outs: any(
                t1 != t2 and _transitions_similar(t1, t2, matrix) for t2 in outs
            ),
        )


def remove_similar_transitions(nfa: NFA) -> None:
    """Merge mutually similar states and drop transitions subsumed by similar ones."""
    apply_bidirectionally(_remove_similar_transitions_one_direction, nfa)


def state_composition_matrix(nfa: NFA) -> dict[State, tuple[bool, ...]]:
    """Return, for every state, which states of the reversed automaton's DFA contain it.

    This is the state composition matrix of Kameda and Weiner.
    """
    nfa.flip()
    try:
        _, dfa_to_nfa = to_dfa(nfa)
    finally:
        nfa.flip()
    subsets = list(dfa_to_nfa.values())
    return {s: tuple(s in subset for subset in subsets) for s in nfa.states}


def _is_subset(a: tuple[bool, ...], b: tuple[bool, ...]) -> bool:
    return all(y or not x for x, y in zip(a, b))


def _scm_reduce_one_direction(nfa: NFA) -> None:
    if nfa.num_states == 0:
        return
    scm = state_composition_matrix(nfa)
    width = len(next(iter(scm.values())))

    for si in nfa.states:
        if si.starting:
            continue
        row = scm[si]
        covers = [sj for sj in nfa.states if sj is not si and _is_subset(scm[sj], row)]
        union = [False] * width
        for sj in covers:
            union = [u or v for u, v in zip(union, scm[sj])]
        if tuple(union) != row:
            continue
        for sj in covers:
            nfa.add_inverted_transitions(sj, si.incoming)
        del scm[si]
        nfa.remove_state(si)


def scm_reduce(nfa: NFA) -> None:
    """Remove states whose row in the composition matrix is the union of other rows."""
    apply_bidirectionally(_scm_reduce_one_direction, nfa)


def remove_redundant_self_loops(nfa: NFA) -> None:
    """Drop self-loops of non-accepting states that a successor can take over."""
    for s in nfa.states:
        outs = s.outgoing
        redundant = [
            t1
            for t1 in outs
            if t1.dest is not s
            and not s.accepting
            and all(
                t2.label == t1.label and (t2.dest is s or t1.dest.has_outgoing(t2))
                for t2 in outs
            )
        ]
        nfa.remove_transitions(s, [Transition(t.label, s) for t in redundant])


def join_predicate_edges(nfa: NFA, theory: Any) -> bool:
    """Fold predicate edges into the edges that follow them; return whether anything changed."""
    changed = False
    for s in nfa.states:
        to_remove: list[Transition] = []
        to_add: list[Transition] = []
        for t in s.outgoing:
            if not t.label.is_predicate():
                continue
            if t.dest.accepting and t.dest is not s:
                continue
            if t.dest is not s:
                for q in t.dest.outgoing:
                    if (q.label.is_relation() or q.dest is not s) and theory.composes(
                        t.label, q.label
                    ):
                        to_add.append(Transition(t.label.merged(q.label), q.dest))
            to_remove.append(t)
        changed |= bool(to_remove)
        nfa.remove_transitions(s, to_remove)
        nfa.add_transitions(s, to_add)
    return changed


def compact_edges(nfa: NFA, theory: Any) -> None:
    """Join predicate edges in both directions until nothing changes."""

    def compact(automaton: NFA) -> None:
        while join_predicate_edges(automaton, theory):
            pass
        remove_redundant_self_loops(automaton)

    apply_bidirectionally(compact, nfa)


def copy_nfa(nfa: NFA) -> tuple[NFA, dict[State, State]]:
    """Return a copy of NFA and the map from its states to the copy's states."""
    result = NFA()
    mapping: dict[State, State] = {}
    for s1 in nfa.states:
        s2 = result.create_state()
        mapping[s1] = s2
        if s1.starting:
            result.make_starting(s2)
        if s1.accepting:
            result.make_accepting(s2)
    for s1 in nfa.states:
        for t in s1.outgoing:
            result.add_transition(mapping[s1], t.copy_to(mapping[t.dest]))
    return result, mapping


def _break_into_multiple(nfa: NFA, state: State, transition: Transition) -> None:
    if transition.label.is_predicate():
        return
    pre, rel, post = transition.label.parts()
    current = nfa.add_transition_to_fresh(state, pre)
    current = nfa.add_transition_to_fresh(current, rel)
    nfa.add_transition(current, Transition(post, transition.dest))


def break_to_parts(nfa: NFA) -> None:
    """Replace every relation edge by a pre-check, relation and post-check edge chain."""
    to_break = [
        (s, t) for s in nfa.states for t in s.outgoing if not t.label.is_predicate()
    ]
    for s, t in to_break:
        _break_into_multiple(nfa, s, t)
    for s, t in to_break:
        nfa.remove_transition(s, t)
    remove_dead_states(nfa)


def add_transitive_predicate_edges(nfa: NFA, theory: Any) -> None:
    """Shortcut consecutive predicate edges with a single merged predicate edge."""
    to_remove: list[tuple[State, Transition]] = []
    to_create_starting: list[Transition] = []

    for s in nfa.states:
        to_add: list[Transition] = []
        for out in s.outgoing:
            if not out.label.is_predicate():
                continue
            for out2 in out.dest.outgoing:
                if not out2.label.is_predicate():
                    continue
                if theory.composes(out.label, out2.label):
                    to_add.append(Transition(out.label.merged(out2.label), out2.dest))
                if out.dest.starting:
                    to_create_starting.append(out2)
                to_remove.append((out.dest, out2))
        nfa.add_transitions(s, to_add)

    if to_create_starting:
        fresh = nfa.create_starting()
        nfa.add_transitions(fresh, to_create_starting)
    for src, t in to_remove:
        nfa.remove_transition(src, t)


def simplify(nfa: NFA, theory: Any) -> None:
    """Run the standard sequence of reductions on NFA."""
    # Dead state removal may add no-op states to an empty automaton.
    if nfa.num_states == 0:
        return
    compact_edges(nfa, theory)
    remove_dead_states(nfa)
    remove_similar_transitions(nfa)
    remove_dead_states(nfa)
    scm_reduce(nfa)
    compact_edges(nfa, theory)
    scm_reduce(nfa)
    remove_dead_states(nfa)
    remove_similar_transitions(nfa)
    remove_dead_states(nfa)