# struct_mesh/scheduler.py
"""
RECOMPUTE SCHEDULER: Explicit Task Graph
========================================

PURPOSE:
--------
Every derived value in the pipeline (mesh, node inputs, element inputs,
solver results) is a pure function of some declared inputs. This module
keeps those functions in a directed acyclic graph and re-runs exactly the
ones whose inputs changed, in topological order.

    Source   a settable value (one per table, plus settings)
    Task     fn(*input_values) -> value, memoized on input versions

EXECUTION MODEL:
----------------
- Single-threaded and synchronous: set() returns after the pass is done.
- A pass visits tasks in topological order (ties broken by declaration
  order) and recomputes a task when any input's version moved since its
  last run. A recomputed task bumps its own version, invalidating its
  dependents further down the same pass.
- set() during a pass (a subscriber editing a table) is queued. Queued
  edits are applied together after the current pass and trigger exactly
  one more full pass. Subscribers called while queued edits are applied
  see the graph as running, so their own edits join the same batch.
- No cancellation: a pass runs to completion or until a task raises. The
  failed task and everything downstream of it lose their values (get()
  returns None) so no result from older inputs stays published; the next
  pass retries them. If edits were queued during the failed pass, they
  still get their pass; the exception reaches the caller of set()/run()
  only when the last pass fails.
- Subscribers of a node are called with its new value after it is
  (re)computed. Sources notify their subscribers when set.

USAGE:
------
    graph = TaskGraph()
    graph.add_source('a', 1)
    graph.add_task('double', lambda a: 2 * a, ['a'])
    graph.subscribe('double', print)
    graph.run()          # prints 2
    graph.set('a', 5)    # prints 10
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class GraphError(ValueError):
    """Raised for an invalid graph declaration (duplicate or unknown node, cycle)."""
    pass


_UNSET = object()


@dataclass
class _Node:
    name: str
    fn: Optional[Callable] = None  # None for sources
    inputs: Tuple[str, ...] = ()
    value: Any = _UNSET
    version: int = 0
    seen: Tuple[int, ...] = ()  # input versions at last successful run
    subscribers: List[Callable[[Any], None]] = field(default_factory=list)

    @property
    def is_source(self) -> bool:
        return self.fn is None


class TaskGraph:
    """Memoized DAG of sources and tasks with eager, queued recomputation."""

    def __init__(self):
        self._nodes: Dict[str, _Node] = {}
        self._order: List[str] = []
        self._running = False
        self._pending: Dict[str, Any] = {}
        self.passes = 0

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def add_source(self, name: str, value: Any = None) -> None:
        self._declare(_Node(name, value=value, version=1))

    def add_task(self, name: str, fn: Callable, inputs: Sequence[str]) -> None:
        """
        Declare a task. Inputs must already exist, which also rules out cycles.
        """
        for dep in inputs:
            if dep not in self._nodes:
                raise GraphError(f"Task {name!r} depends on unknown node {dep!r}")
            if dep == name:
                raise GraphError(f"Task {name!r} depends on itself")
        self._declare(_Node(name, fn=fn, inputs=tuple(inputs)))

    def _declare(self, node: _Node) -> None:
        if node.name in self._nodes:
            raise GraphError(f"Node {node.name!r} already declared")
        self._nodes[node.name] = node
        self._order = self._toposort()

    def _toposort(self) -> List[str]:
        # Kahn's algorithm; declaration order breaks ties
        indegree = {name: len(node.inputs) for name, node in self._nodes.items()}
        dependents: Dict[str, List[str]] = {name: [] for name in self._nodes}
        for name, node in self._nodes.items():
            for dep in node.inputs:
                dependents[dep].append(name)

        declared = list(self._nodes)
        ready = [name for name in declared if indegree[name] == 0]
        order = []
        while ready:
            name = ready.pop(0)
            order.append(name)
            for child in dependents[name]:
                indegree[child] -= 1
                if indegree[child] == 0:
                    ready.append(child)
            ready.sort(key=declared.index)

        if len(order) != len(self._nodes):
            raise GraphError("Task graph contains a cycle")
        return order

    @property
    def order(self) -> List[str]:
        return list(self._order)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, name: str) -> Any:
        node = self._node(name)
        return None if node.value is _UNSET else node.value

    def version(self, name: str) -> int:
        return self._node(name).version

    def is_stale(self, name: str) -> bool:
        node = self._node(name)
        if node.is_source:
            return False
        return node.value is _UNSET or node.seen != self._input_versions(node)

    def subscribe(self, name: str, callback: Callable[[Any], None]) -> None:
        self._node(name).subscribers.append(callback)

    def _node(self, name: str) -> _Node:
        try:
            return self._nodes[name]
        except KeyError:
            raise KeyError(f"Unknown node {name!r}") from None

    def _input_versions(self, node: _Node) -> Tuple[int, ...]:
        return tuple(self._nodes[dep].version for dep in node.inputs)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def set(self, name: str, value: Any) -> None:
        """Replace a source value and recompute everything downstream."""
        self.set_many({name: value})

    def set_many(self, values: Dict[str, Any]) -> None:
        """Replace several sources at once; one pass."""
        for name in values:
            if not self._node(name).is_source:
                raise GraphError(f"{name!r} is a task, not a source")

        self._pending.update(values)
        if self._running:
            logger.debug("Queueing edit of %s until the current pass ends", sorted(values))
            return
        self.run()

    def _assign(self, node: _Node, value: Any) -> None:
        node.value = value
        node.version += 1
        for callback in list(node.subscribers):
            callback(value)

    def _apply_pending(self) -> None:
        # Subscribers may queue more edits; they join this batch
        while self._pending:
            pending, self._pending = self._pending, {}
            for name, value in pending.items():
                self._assign(self._nodes[name], value)

    def run(self) -> None:
        """
        Apply queued edits and bring every task up to date, repeating the
        pass while edits keep arriving during it.

        Raises whatever the last pass raised. A failure followed by queued
        edits is logged and superseded by the pass those edits trigger.
        """
        if self._running:
            return
        self._running = True
        try:
            while True:
                self._apply_pending()
                try:
                    self._pass()
                except Exception as exc:
                    if not self._pending:
                        raise
                    logger.warning("Pass %d failed (%s); running queued edits", self.passes, exc)
                if not self._pending:
                    return
        finally:
            self._running = False

    def _pass(self) -> None:
        self.passes += 1
        recomputed = []
        for name in self._order:
            node = self._nodes[name]
            if node.is_source:
                continue
            versions = self._input_versions(node)
            if node.value is not _UNSET and versions == node.seen:
                continue

            args = [self._nodes[dep].value for dep in node.inputs]
            args = [None if a is _UNSET else a for a in args]
            try:
                value = node.fn(*args)
            except Exception:
                self._clear_downstream(name)
                raise
            node.value = value
            node.version += 1
            node.seen = versions
            recomputed.append(name)

            for callback in list(node.subscribers):
                callback(node.value)

        logger.debug("Pass %d recomputed %s", self.passes, recomputed or "nothing")

    def _clear_downstream(self, name: str) -> None:
        """Drop the values of a failed task and of every task that depends on it."""
        cleared = {name}
        for other in self._order:
            node = self._nodes[other]
            if other in cleared or cleared.intersection(node.inputs):
                cleared.add(other)
                node.value = _UNSET
                node.seen = ()
        logger.debug("Cleared %s after %r failed", sorted(cleared), name)
