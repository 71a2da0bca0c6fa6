from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from kater.nfa import NFA, Transition
from kater.nfautils import (
    add_transitive_predicate_edges,
    apply_bidirectionally,
    break_to_parts,
    calculate_reachable_from,
    calculate_reaching_to,
    compact_edges,
    copy_nfa,
    find_similar_states,
    join_predicate_edges,
    remove_dead_states,
    remove_redundant_self_loops,
    remove_similar_transitions,
    scm_reduce,
    simplify,
    state_composition_matrix,
)


@dataclass(frozen=True)
class Lab:
    pre: frozenset = field(default_factory=frozenset)
    rel: Optional[str] = None
    post: frozenset = field(default_factory=frozenset)
    inv: bool = False

    def is_predicate(self) -> bool:
        return self.rel is None

    def is_relation(self) -> bool:
        return self.rel is not None

    def flipped(self) -> "Lab":
        if self.is_predicate():
            return self
        return Lab(self.post, self.rel, self.pre, not self.inv)

    def merged(self, other: "Lab") -> "Lab":
        if self.is_predicate():
            if other.is_predicate():
                return Lab(self.pre | other.pre)
            return Lab(self.pre | other.pre, other.rel, other.post, other.inv)
        return Lab(self.pre, self.rel, self.post | other.pre, self.inv)

    def parts(self):
        return Lab(self.pre), Lab(rel=self.rel, inv=self.inv), Lab(self.post)


def P(*names):
    return Lab(frozenset(names))


def R(name):
    return Lab(rel=name)


class Theory:
    def __init__(self, ok=True):
        self.ok = ok

    def composes(self, a, b):
        return self.ok


def words(nfa, n):
    out = set()
    frontier = [(s, ()) for s in nfa.starting]
    for _ in range(n + 1):
        nxt = []
        for s, w in frontier:
            if s.accepting:
                out.add(w)
            nxt.extend((t.dest, w + (t.label,)) for t in s.outgoing)
        frontier = nxt
    return out


def chain(*labels):
    nfa = NFA()
    states = [nfa.create_starting()]
    for lab in labels:
        states.append(nfa.add_transition_to_fresh(states[-1], lab))
    nfa.make_accepting(states[-1])
    return nfa, states


def parallel_paths():
    nfa = NFA()
    a = nfa.create_starting()
    for _ in range(2):
        b = nfa.add_transition_to_fresh(a, R("r"))
        c = nfa.add_transition_to_fresh(b, R("s"))
        nfa.make_accepting(c)
    return nfa


def test_apply_bidirectionally_sees_both_directions_and_restores():
    nfa, (s0, s1) = chain(R("r"))
    seen = []
    apply_bidirectionally(lambda a: seen.append(a.starting), nfa)
    assert seen == [(s0,), (s1,)]
    assert nfa.starting == (s0,)
    assert nfa.accepting == (s1,)


def test_reachable_and_reaching():
    nfa, (a, b, c) = chain(R("r"), R("s"))
    d = nfa.create_state()
    assert calculate_reachable_from(nfa, [b]) == {b, c}
    assert calculate_reaching_to(nfa, [b]) == {a, b}
    assert d not in calculate_reachable_from(nfa, [a])
    assert nfa.starting == (a,)


def test_remove_dead_states_keeps_language():
    nfa, (s0, s1) = chain(R("r"))
    isolated = nfa.create_state()
    dead_end = nfa.add_transition_to_fresh(s0, R("q"))
    before = words(nfa, 3)
    remove_dead_states(nfa)
    assert set(nfa.states) == {s0, s1}
    assert isolated not in nfa.states and dead_end not in nfa.states
    assert words(nfa, 3) == before == {(R("r"),)}


def test_remove_dead_states_on_empty_language():
    nfa = NFA()
    s0 = nfa.create_starting()
    nfa.add_transition_to_fresh(s0, R("r"))
    remove_dead_states(nfa)
    assert words(nfa, 3) == set()
    assert nfa.num_starting >= 1


def test_find_similar_states():
    nfa, (s0, s1) = chain(R("r"))
    sim = find_similar_states(nfa)
    assert all(sim[s][s] for s in nfa.states)
    assert sim[s1][s0] is False
    assert sim[s0][s1] is False


def test_remove_similar_transitions_merges_parallel_paths():
    nfa = parallel_paths()
    before = words(nfa, 4)
    count = nfa.num_states
    remove_similar_transitions(nfa)
    assert words(nfa, 4) == before == {(R("r"), R("s"))}
    assert nfa.num_states < count


def test_state_composition_matrix_rows():
    nfa, states = chain(R("r"), R("s"))
    scm = state_composition_matrix(nfa)
    assert set(scm) == set(states)
    assert len({len(row) for row in scm.values()}) == 1
    assert all(any(row) for row in scm.values())
    assert nfa.starting == (states[0],)


def test_scm_reduce_preserves_language():
    nfa = parallel_paths()
    before = words(nfa, 4)
    count = nfa.num_states
    scm_reduce(nfa)
    assert words(nfa, 4) == before
    assert nfa.num_states <= count


def test_remove_redundant_self_loops():
    nfa = NFA()
    s = nfa.create_starting()
    d = nfa.create_accepting()
    x = R("x")
    nfa.add_self_transition(s, x)
    nfa.add_transition(s, Transition(x, d))
    nfa.add_self_transition(d, x)
    remove_redundant_self_loops(nfa)
    assert not s.has_outgoing(Transition(x, s))
    assert s.has_outgoing(Transition(x, d))
    assert d.has_outgoing(Transition(x, d))


def test_join_predicate_edges_merges_into_relation():
    nfa, (s0, m, f) = chain(P("A"), R("r"))
    assert join_predicate_edges(nfa, Theory()) is True
    merged = P("A").merged(R("r"))
    assert s0.has_outgoing(Transition(merged, f))
    assert not s0.has_outgoing_to(m)
    assert words(nfa, 3) == {(merged,)}


def test_join_predicate_edges_without_composition_drops_edge():
    nfa, (s0, m, f) = chain(P("A"), R("r"))
    assert join_predicate_edges(nfa, Theory(ok=False)) is True
    assert words(nfa, 3) == set()


def test_compact_edges_merges_predicates():
    nfa, states = chain(P("A"), R("r"))
    compact_edges(nfa, Theory())
    assert words(nfa, 3) == {(P("A").merged(R("r")),)}


def test_copy_nfa_is_independent():
    nfa, states = chain(R("r"), R("s"))
    copied, mapping = copy_nfa(nfa)
    assert words(copied, 3) == words(nfa, 3)
    assert set(mapping) == set(states)
    assert not set(mapping.values()) & set(states)
    copied.remove_all_transitions(mapping[states[0]])
    assert words(copied, 3) == set()
    assert words(nfa, 3) == {(R("r"), R("s"))}


def test_break_to_parts():
    label = Lab(frozenset({"A"}), "r", frozenset({"B"}))
    nfa, _ = chain(label)
    break_to_parts(nfa)
    assert words(nfa, 4) == {label.parts()}
    assert all(t.label.is_predicate() or t.label == R("r")
               for s in nfa.states for t in s.outgoing)


def test_add_transitive_predicate_edges():
    nfa, (s0, m, f) = chain(P("A"), P("B"))
    add_transitive_predicate_edges(nfa, Theory())
    assert s0.has_outgoing(Transition(P("A", "B"), f))
    assert not m.has_outgoing_to(f)


def test_simplify_preserves_relation_language():
    nfa = parallel_paths()
    before = words(nfa, 4)
    count = nfa.num_states
    simplify(nfa, Theory())
    assert words(nfa, 4) == before
    assert nfa.num_states < count


def test_simplify_empty_automaton_untouched():
    nfa = NFA()
    simplify(nfa, Theory())
    assert nfa.num_states == 0