"""Nondeterministic finite automata whose transitions carry labels.

Labels are opaque to this module beyond a small protocol: they must be
hashable, compare by value, provide ``flipped()`` returning the label of the
reversed transition, and ``is_predicate()`` telling whether the label is a
predicate (a test on events) rather than a relation step.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

_state_ids: Iterator[int] = itertools.count()


@dataclass(frozen=True)
class Transition:
    """A labelled edge towards ``dest``."""

    label: Any
    dest: "State"

    def copy_to(self, state: "State") -> "Transition":
        """Return a transition with the same label leading to STATE."""
        return Transition(self.label, state)

    def flip_to(self, state: "State") -> "Transition":
        """Return a transition with the label flipped, leading to STATE."""
        return Transition(self.label.flipped(), state)


class State:
    """An automaton state holding its outgoing and incoming transitions.

    Incoming transitions are stored inverted: their ``dest`` is the source of
    the original edge and their label is flipped.
    """

    __slots__ = ("id", "_starting", "_accepting", "_out", "_in")

    def __init__(self, state_id: int) -> None:
        self.id = state_id
        self._starting = False
        self._accepting = False
        self._out: dict[Transition, None] = {}
        self._in: dict[Transition, None] = {}

    def __repr__(self) -> str:
        return f"State({self.id})"

    @property
    def starting(self) -> bool:
        return self._starting

    @property
    def accepting(self) -> bool:
        return self._accepting

    @property
    def outgoing(self) -> tuple[Transition, ...]:
        return tuple(self._out)

    @property
    def incoming(self) -> tuple[Transition, ...]:
        return tuple(self._in)

    @property
    def num_outgoing(self) -> int:
        return len(self._out)

    @property
    def num_incoming(self) -> int:
        return len(self._in)

    def has_outgoing(self, transition: Optional[Transition] = None) -> bool:
        """Whether this state has TRANSITION outgoing, or any outgoing one if omitted."""
        if transition is None:
            return bool(self._out)
        return transition in self._out

    def has_incoming(self, transition: Optional[Transition] = None) -> bool:
        """Whether this state has the inverted TRANSITION, or any incoming one if omitted."""
        if transition is None:
            return bool(self._in)
        return transition in self._in

    def has_outgoing_to(self, state: "State") -> bool:
        return any(t.dest is state for t in self._out)

    def has_incoming_to(self, state: "State") -> bool:
        return any(t.dest is state for t in self._in)

    def has_all_out_loops(self) -> bool:
        """Whether every outgoing transition returns to this state."""
        return all(t.dest is self for t in self._out)

    def has_all_in_loops(self) -> bool:
        """Whether every incoming transition comes from this state."""
        return all(t.dest is self for t in self._in)

    def has_all_out_predicates(self) -> bool:
        return all(t.label.is_predicate() for t in self._out)

    def has_all_in_predicates(self) -> bool:
        return all(t.label.is_predicate() for t in self._in)

    def outgoing_same_as(self, other: "State") -> bool:
        return self._out.keys() == other._out.keys()

    def incoming_same_as(self, other: "State") -> bool:
        return self._in.keys() == other._in.keys()

    def flip(self) -> "State":
        """Swap incoming with outgoing transitions and starting with accepting."""
        self._out, self._in = self._in, self._out
        self._starting, self._accepting = self._accepting, self._starting
        return self


class NFA:
    """A nondeterministic automaton over opaque transition labels."""

    def __init__(self) -> None:
        self._states: list[State] = []
        self._starting: list[State] = []
        self._accepting: list[State] = []

    @classmethod
    def from_label(cls, label: Any) -> "NFA":
        """Return an automaton accepting exactly the one-letter word LABEL."""
        nfa = cls()
        init = nfa.create_starting()
        final = nfa.create_accepting()
        nfa.add_transition(init, Transition(label, final))
        return nfa

    @property
    def states(self) -> tuple[State, ...]:
        return tuple(self._states)

    @property
    def starting(self) -> tuple[State, ...]:
        return tuple(self._starting)

    @property
    def accepting(self) -> tuple[State, ...]:
        return tuple(self._accepting)

    @property
    def num_states(self) -> int:
        return len(self._states)

    @property
    def num_starting(self) -> int:
        return len(self._starting)

    @property
    def num_accepting(self) -> int:
        return len(self._accepting)

    def size(self) -> int:
        """Number of states times number of transitions."""
        transitions = sum(s.num_outgoing for s in self._states)
        return self.num_states * transitions

    def create_state(self) -> State:
        """Add a fresh, unconnected state and return it."""
        state = State(next(_state_ids))
        self._states.append(state)
        return state

    def create_starting(self) -> State:
        state = self.create_state()
        self.make_starting(state)
        return state

    def create_accepting(self) -> State:
        state = self.create_state()
        self.make_accepting(state)
        return state

    def make_starting(self, state: State) -> None:
        if not state._starting:
            state._starting = True
            self._starting.append(state)

    def make_accepting(self, state: State) -> None:
        if not state._accepting:
            state._accepting = True
            self._accepting.append(state)

    def clear_starting(self, state: State) -> None:
        state._starting = False
        self._starting = [s for s in self._starting if s is not state]

    def clear_all_starting(self) -> None:
        for s in self._starting:
            s._starting = False
        self._starting.clear()

    def clear_accepting(self, state: State) -> None:
        state._accepting = False
        self._accepting = [s for s in self._accepting if s is not state]

    def clear_all_accepting(self) -> None:
        for s in self._accepting:
            s._accepting = False
        self._accepting.clear()

    def remove_state(self, state: State) -> None:
        """Remove STATE and every transition touching it; no-op if absent."""
        if not any(s is state for s in self._states):
            return
        self.remove_states_if(lambda s: s is state)

    def remove_states_if(self, pred: Callable[[State], bool]) -> None:
        """Remove every state satisfying PRED together with its transitions."""
        for s in self._states:
            for t in [t for t in s._out if pred(t.dest)]:
                del s._out[t]
            for t in [t for t in s._in if pred(t.dest)]:
                del s._in[t]
        self._starting = [s for s in self._starting if not pred(s)]
        self._accepting = [s for s in self._accepting if not pred(s)]
        self._states = [s for s in self._states if not pred(s)]

    def split_state(self, state: State, keep: Callable[[Transition], bool]) -> State:
        """Create a copy of STATE; STATE keeps the incoming transitions satisfying
        KEEP and the copy receives the rest. Return the copy."""
        copy = self.create_state()
        if state.accepting:
            self.make_accepting(copy)
        self.add_transitions(copy, state.outgoing)
        self.add_inverted_transitions(copy, state.incoming)
        self.remove_inverted_transitions_if(copy, keep)
        self.remove_inverted_transitions_if(state, lambda t: not keep(t))
        return copy

    def add_transition(self, src: State, transition: Transition) -> None:
        """Add TRANSITION from SRC and record its inverse at the destination."""
        src._out[transition] = None
        transition.dest._in[transition.flip_to(src)] = None

    def add_transitions(self, src: State, transitions: Iterable[Transition]) -> None:
        for t in tuple(transitions):
            self.add_transition(src, t)

    def add_inverted_transition(self, dst: State, transition: Transition) -> None:
        """Add the edge described by the inverted TRANSITION arriving at DST."""
        self.add_transition(transition.dest, transition.flip_to(dst))

    def add_inverted_transitions(self, dst: State, transitions: Iterable[Transition]) -> None:
        for t in tuple(transitions):
            self.add_inverted_transition(dst, t)

    def add_self_transition(self, src: State, label: Any) -> None:
        self.add_transition(src, Transition(label, src))

    def add_epsilon_transition(self, src: State, dst: State, epsilon: Any) -> None:
        """Add an explicit EPSILON-labelled transition from SRC to DST."""
        self.add_transition(src, Transition(epsilon, dst))
        if dst.accepting:
            self.make_accepting(src)
        if src.starting:
            self.make_starting(dst)

    def add_epsilon_transition_succ(self, src: State, dst: State) -> None:
        """Simulate an ε edge by copying DST's outgoing transitions to SRC."""
        self.add_transitions(src, dst.outgoing)
        if dst.accepting:
            self.make_accepting(src)
        if src.starting:
            self.make_starting(dst)

    def add_epsilon_transition_pred(self, src: State, dst: State) -> None:
        """Simulate an ε edge by connecting SRC's predecessors to DST."""
        self.add_inverted_transitions(dst, src.incoming)
        if dst.accepting:
            self.make_accepting(src)
        if src.starting:
            self.make_starting(dst)

    def add_transition_to_fresh(self, src: State, label: Any) -> State:
        dst = self.create_state()
        self.add_transition(src, Transition(label, dst))
        return dst

    def remove_transition(self, src: State, transition: Transition) -> None:
        """Remove TRANSITION from SRC and its inverse from the destination."""
        src._out.pop(transition, None)
        transition.dest._in.pop(transition.flip_to(src), None)

    def remove_transitions(self, src: State, transitions: Iterable[Transition]) -> None:
        for t in tuple(transitions):
            self.remove_transition(src, t)

    def remove_transitions_if(self, src: State, pred: Callable[[Transition], bool]) -> None:
        self.remove_transitions(src, [t for t in src._out if pred(t)])

    def remove_inverted_transitions(self, dst: State, transitions: Iterable[Transition]) -> None:
        for t in tuple(transitions):
            self.remove_transition(t.dest, t.flip_to(dst))

    def remove_inverted_transitions_if(
        self, dst: State, pred: Callable[[Transition], bool]
    ) -> None:
        self.remove_inverted_transitions(dst, [t for t in dst._in if pred(t)])

    def remove_all_transitions(self, src: State) -> None:
        self.remove_transitions(src, src.outgoing)

    def flip(self) -> "NFA":
        """Reverse the automaton in place."""
        for s in self._states:
            s.flip()
        self._starting, self._accepting = self._accepting, self._starting
        return self

    def __str__(self) -> str:
        lines = [f"[NFA with {self.num_states} states]"]
        header = "starting:" + "".join(f" {s.id}" for s in self._starting)
        header += " accepting:" + "".join(f" {s.id}" for s in self._accepting)
        lines.append(header)
        for s in self._states:
            for t in s._out:
                lines.append(f"\t{s.id} --{t.label}--> {t.dest.id}")
        return "\n".join(lines) + "\n"