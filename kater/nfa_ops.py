"""Regular operations, searches and determinisation on automata."""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable, Iterator, Optional

from kater.nfa import NFA, State, Transition


def _take_states(nfa: NFA, other: NFA) -> None:
    """Move all states of OTHER, with their starting/accepting status, into NFA."""
    nfa._states.extend(other._states)
    nfa._starting.extend(other._starting)
    nfa._accepting.extend(other._accepting)
    other._states = []
    other._starting = []
    other._accepting = []


def accepts_empty_string(nfa: NFA) -> bool:
    """Whether some starting state is also accepting."""
    return any(s.accepting for s in nfa.starting)


def accepted_word(nfa: NFA) -> Optional[list[Any]]:
    """Return the labels of some accepted word, or None if the language is empty."""
    visited: set[State] = set(nfa.starting)
    work: list[tuple[State, list[Any]]] = [(s, []) for s in nfa.states if s.starting]
    while work:
        state, word = work.pop()
        if state.accepting:
            return word
        for t in state.outgoing:
            if t.dest in visited:
                continue
            visited.add(t.dest)
            work.append((t.dest, word + [t.label]))
    return None


def alt(nfa: NFA, other: NFA) -> NFA:
    """Make NFA accept the union of both languages; OTHER is emptied."""
    _take_states(nfa, other)
    return nfa


def seq(nfa: NFA, other: NFA) -> NFA:
    """Make NFA accept the concatenation of both languages; OTHER is emptied."""
    for a in nfa.accepting:
        for s in other.starting:
            nfa.add_transitions(a, s.outgoing)
    if not accepts_empty_string(other):
        nfa.clear_all_accepting()
    other.clear_all_starting()
    _take_states(nfa, other)
    return nfa


def plus(nfa: NFA) -> NFA:
    """Make NFA accept one or more repetitions of its language."""
    for a in nfa.accepting:
        for s in nfa.starting:
            nfa.add_epsilon_transition_succ(a, s)
    return nfa


def or_empty(nfa: NFA) -> NFA:
    """Make NFA also accept the empty word."""
    if accepts_empty_string(nfa):
        return nfa
    state = next((s for s in nfa.starting if not s.has_incoming()), None)
    if state is None:
        state = nfa.create_starting()
    nfa.make_accepting(state)
    return nfa


def star(nfa: NFA) -> NFA:
    """Make NFA accept zero or more repetitions of its language.

    The result has a single starting state, which is also the single accepting one.
    """
    ex_starting = nfa.starting
    ex_accepting = nfa.accepting
    nfa.clear_all_starting()
    nfa.clear_all_accepting()

    hub = nfa.create_state()
    for es in ex_starting:
        nfa.add_epsilon_transition_succ(hub, es)
    for ea in ex_accepting:
        nfa.add_epsilon_transition_pred(ea, hub)

    nfa.make_starting(hub)
    nfa.make_accepting(hub)
    return nfa


def paths_reachable_from(
    nfa: NFA, states: Iterable[State]
) -> Iterator[tuple[State, Transition]]:
    """Yield (source, transition) for every transition reachable from STATES."""
    visited: set[State] = set()
    work: list[State] = []
    for s in states:
        visited.add(s)
        work.append(s)
    while work:
        s = work.pop()
        for t in s.outgoing:
            yield (s, t)
            if t.dest in visited:
                continue
            visited.add(t.dest)
            work.append(t.dest)


def paths_reaching_to(nfa: NFA, states: Iterable[State]) -> list[tuple[State, Transition]]:
    """Return (source, transition) for every transition from which STATES are reachable."""
    targets = tuple(states)
    nfa.flip()
    try:
        return [(t.dest, t.flip_to(s)) for s, t in paths_reachable_from(nfa, targets)]
    finally:
        nfa.flip()


def to_dfa(nfa: NFA) -> tuple[NFA, dict[State, frozenset[State]]]:
    """Determinise NFA by the subset construction.

    Return the automaton and a map from each of its states to the set of
    states of NFA it stands for.
    """
    dfa = NFA()
    subset_to_state: dict[frozenset[State], State] = {}
    state_to_subset: dict[State, frozenset[State]] = {}

    start = dfa.create_starting()
    start_set = frozenset(nfa.starting)
    subset_to_state[start_set] = start
    state_to_subset[start] = start_set

    work: deque[frozenset[State]] = deque([start_set])
    while work:
        current = work.pop()
        src = subset_to_state[current]
        for ns in current:
            for t in ns.outgoing:
                nxt = frozenset(
                    t2.dest for ns2 in current for t2 in ns2.outgoing if t2.label == t.label
                )
                dest = subset_to_state.get(nxt)
                if dest is None:
                    dest = dfa.create_state()
                    subset_to_state[nxt] = dest
                    state_to_subset[dest] = nxt
                    work.append(nxt)
                dfa.add_transition(src, Transition(t.label, dest))

    for dstate, subset in state_to_subset.items():
        if any(s.accepting for s in subset):
            dfa.make_accepting(dstate)
    return dfa, state_to_subset