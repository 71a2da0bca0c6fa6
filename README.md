# kater

Building blocks for reasoning about weak memory models with automata:
predicates over events, nondeterministic finite automata (NFAs) whose
transitions carry labels, and the passes that keep those automata small.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `kater.predicate`

- `BuiltinPredicate`: an `IntEnum` of the builtin predicates (`NA`, `RLX`,
  `ACQ`, `REL`, `SC`, `W`, `R`, `F`, ... `LOC`), numbered from 0.
- `Predicate`: a frozen, ordered value with an integer `id` and a `comp`
  (complement) flag. `Predicate.create_builtin(BuiltinPredicate.W)` gives the
  builtin one; `Predicate.create_user()` hands out fresh negative ids.
  `is_builtin()` is true for ids >= 0, `complemented()` returns a copy with the
  flag flipped. `str()` gives the id, followed by `-1` when complemented.
- `PredicateInfo`: a dataclass with `name`, `genmc` and `dbg` fields.
- `PredicateSet`: a sorted set of predicates without duplicates.
  `insert()` takes a predicate or another set and returns whether anything
  was added; `contains()` tests membership or superset; `minus()` removes a
  predicate or a set. Sets compare lexicographically and print as
  `[5&6-1]`. They are mutable and therefore unhashable.

```python
from kater.predicate import BuiltinPredicate, Predicate, PredicateSet

w = Predicate.create_builtin(BuiltinPredicate.W)
ps = PredicateSet([w, Predicate.create_builtin(BuiltinPredicate.R).complemented()])
print(ps)              # [5&6-1]
ps.insert(w)           # False, already present
```

### `kater.nfa`

`NFA` owns `State` objects; each state keeps its outgoing transitions and its
incoming ones (stored inverted, with flipped labels) in step. A `Transition`
is a frozen `(label, dest)` pair.

Build an automaton with `NFA.from_label(label)` or by hand with
`create_state`, `create_starting`, `create_accepting`, `add_transition`,
`add_transition_to_fresh` and the `add_epsilon_transition*` helpers. States
are removed with `remove_state` / `remove_states_if`, split with
`split_state`, and `flip()` reverses the whole automaton in place.
`str(nfa)` lists the starting and accepting states and every transition.

### `kater.nfa_ops`

Regular combinators that modify their first argument (and empty the second):
`alt`, `seq`, `star`, `plus`, `or_empty`. Queries: `accepts_empty_string`,
`accepted_word` (the labels of some accepted word, or `None` when the
language is empty), `to_dfa` (subset construction, returning the DFA and a
map from its states to sets of original states), `paths_reachable_from` and
`paths_reaching_to`.

### `kater.nfautils`

Simplification passes: `remove_dead_states`, `find_similar_states`,
`remove_similar_transitions`, `state_composition_matrix`, `scm_reduce`,
`remove_redundant_self_loops`, `join_predicate_edges`, `compact_edges`,
`break_to_parts`, `add_transitive_predicate_edges`, `copy_nfa`,
`calculate_reachable_from`, `calculate_reaching_to`, `apply_bidirectionally`,
and the combined `simplify(nfa, theory)`.

## Labels and theories

The automata treat labels as opaque. A label must be hashable, compare by
value and provide:

- `flipped()`: the label of the reversed transition;
- `is_predicate()`: whether it is a test on events rather than a step.

The passes in `kater.nfautils` also use `is_relation()`, `merged(other)` (a
label making both checks) and `parts()` (the pre-check, relation and
post-check labels a step breaks into). The `theory` argument of
`join_predicate_edges`, `compact_edges`, `add_transitive_predicate_edges` and
`simplify` must provide `composes(label1, label2)`.

## Example

```python
from dataclasses import dataclass

from kater import nfa_ops
from kater.nfa import NFA


@dataclass(frozen=True)
class Step:
    name: str

    def flipped(self):
        return self

    def is_predicate(self):
        return False

    def is_relation(self):
        return True


a = NFA.from_label(Step("a"))
nfa_ops.seq(a, NFA.from_label(Step("b")))
print(nfa_ops.accepted_word(a))       # [Step(name='a'), Step(name='b')]
nfa_ops.star(a)
assert nfa_ops.accepts_empty_string(a)
dfa, mapping = nfa_ops.to_dfa(a)
```

## What this package does not do

It has no command-line program and reads no model files. It provides no
concrete label, relation or theory classes, no regular-expression front end
that builds automata from expressions, no language-inclusion checker with
counterexamples, and no code generation; callers supply labels and theories
following the protocol above.