# hostcert/services/graph.py

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Dict, List, Mapping, Optional, Set, Tuple

from hostcert.services.errors import GraphError
from hostcert.services.planner import Artifact, ArtifactState

log = logging.getLogger(__name__)


class Step(str, Enum):
    GENERATE_KEY = "generate_key"
    KEY_PERMISSIONS = "key_permissions"
    RENDER_CONFIG = "render_config"
    GENERATE_CSR = "generate_csr"
    GENERATE_CSR_TEXT = "generate_csr_text"
    SELF_SIGN = "self_sign"
    COMBINE_BUNDLE = "combine_bundle"
    BUNDLE_PERMISSIONS = "bundle_permissions"


class Gate(str, Enum):
    """ When a step is allowed to run """
    ALWAYS = "always"
    IF_ABSENT = "if_absent"
    ON_NOTIFY = "on_notify"


class EdgeKind(str, Enum):
    REQUIRE = "require"
    NOTIFY = "notify"


@dataclass(frozen=True)
class Node:
    step: Step
    gate: Gate
    artifact: Optional[Artifact] = None


class ChangeGraph:
    """
    Directed acyclic graph of regeneration steps.

    `require` edges only order two steps. `notify` edges also trigger the
    downstream step whenever the upstream step reports a change.
    """
    def __init__(self):
        self._nodes: Dict[Step, Node] = {}
        self._upstream: Dict[Step, Dict[Step, EdgeKind]] = {}

    # -------------------------
    # Construction
    # -------------------------

    def add_step(self, step: Step, gate: Gate, artifact: Optional[Artifact] = None) -> "ChangeGraph":
        if step in self._nodes:
            raise GraphError(f"Step {step.value!r} is already in the graph.")
        if gate in (Gate.IF_ABSENT, Gate.ON_NOTIFY) and artifact is None:
            raise GraphError(f"Step {step.value!r} with gate {gate.value!r} needs an artifact.")

        self._nodes[step] = Node(step=step, gate=gate, artifact=artifact)
        self._upstream[step] = {}
        return self

    def require(self, before: Step, after: Step) -> "ChangeGraph":
        return self._add_edge(before, after, EdgeKind.REQUIRE)

    def notify(self, source: Step, target: Step) -> "ChangeGraph":
        return self._add_edge(source, target, EdgeKind.NOTIFY)

    def _add_edge(self, source: Step, target: Step, kind: EdgeKind) -> "ChangeGraph":
        for step in (source, target):
            if step not in self._nodes:
                raise GraphError(f"Unknown step {step.value!r}.")
        if source == target:
            raise GraphError(f"Step {source.value!r} cannot depend on itself.")

        # notify is the stronger relation; never downgrade it
        if self._upstream[target].get(source) != EdgeKind.NOTIFY:
            self._upstream[target][source] = kind
        return self

    # -------------------------
    # Queries
    # -------------------------

    @property
    def steps(self) -> List[Step]:
        return list(self._nodes)

    def node(self, step: Step) -> Node:
        try:
            return self._nodes[step]
        except KeyError as e:
            raise GraphError(f"Unknown step {step.value!r}.") from e

    def upstream(self, step: Step) -> Mapping[Step, EdgeKind]:
        return dict(self._upstream[step])

    def dependents(self, step: Step) -> Set[Step]:
        """ Every step that transitively depends on `step` """
        found: Set[Step] = set()
        frontier = [step]

        while frontier:
            current = frontier.pop()
            for candidate, edges in self._upstream.items():
                if current in edges and candidate not in found:
                    found.add(candidate)
                    frontier.append(candidate)

        return found

    def order(self) -> List[Step]:
        """
        Topological order of all steps. Ready steps are taken in declaration
        order so the result is stable from run to run.

        Raises:
            GraphError: The graph contains a cycle.
        """
        index = {step: i for i, step in enumerate(self._nodes)}
        pending = {step: len(edges) for step, edges in self._upstream.items()}
        ready = [(index[step], step) for step, count in pending.items() if count == 0]
        heapq.heapify(ready)

        ordered: List[Step] = []

        while ready:
            _, step = heapq.heappop(ready)
            ordered.append(step)

            for candidate, edges in self._upstream.items():
                if step in edges:
                    pending[candidate] -= 1
                    if pending[candidate] == 0:
                        heapq.heappush(ready, (index[candidate], candidate))

        if len(ordered) != len(self._nodes):
            stuck = sorted(s.value for s in self._nodes if s not in ordered)
            raise GraphError(f"Change graph has a cycle through: {', '.join(stuck)}")

        return ordered

    def decide(
            self,
            step: Step,
            state: Mapping[Artifact, ArtifactState],
            changed: AbstractSet[Step],
        ) -> Tuple[bool, str]:
        """
        Decide whether a step runs on this pass.

        Args:
            step: The step to decide on.
            state: Artifact states probed at the start of the run.
            changed: Steps that already ran this pass and reported a change.

        Returns:
            (run, reason)
        """
        node = self.node(step)

        if node.gate == Gate.ALWAYS:
            return True, "enforced on every run"

        absent = state.get(node.artifact, ArtifactState.ABSENT) == ArtifactState.ABSENT

        if node.gate == Gate.IF_ABSENT:
            if absent:
                return True, f"{node.artifact.value} absent"
            return False, f"{node.artifact.value} already present"

        notified = [
            upstream.value for upstream, kind in self._upstream[step].items()
            if kind == EdgeKind.NOTIFY and upstream in changed
        ]
        if notified:
            return True, f"notified by {', '.join(sorted(notified))}"
        if absent:
            return True, f"{node.artifact.value} absent"
        return False, "up to date"


def default_graph() -> ChangeGraph:
    """
    The regeneration graph for one identity.

        key -> key permissions
        config ~> CSR ~> CSR text        (~> notify)
        key ~> CSR
        key, config -> self-signed cert -> bundle -> bundle permissions
        key -> bundle
    """
    graph = ChangeGraph()

    graph.add_step(Step.GENERATE_KEY, Gate.IF_ABSENT, Artifact.KEY)
    graph.add_step(Step.KEY_PERMISSIONS, Gate.ALWAYS)
    graph.add_step(Step.RENDER_CONFIG, Gate.ALWAYS, Artifact.CONFIG)
    graph.add_step(Step.GENERATE_CSR, Gate.ON_NOTIFY, Artifact.CSR)
    graph.add_step(Step.GENERATE_CSR_TEXT, Gate.ON_NOTIFY, Artifact.CSR_TEXT)
    graph.add_step(Step.SELF_SIGN, Gate.IF_ABSENT, Artifact.CERT)
    graph.add_step(Step.COMBINE_BUNDLE, Gate.IF_ABSENT, Artifact.BUNDLE)
    graph.add_step(Step.BUNDLE_PERMISSIONS, Gate.ALWAYS)

    graph.require(Step.GENERATE_KEY, Step.KEY_PERMISSIONS)

    graph.notify(Step.RENDER_CONFIG, Step.GENERATE_CSR)
    graph.notify(Step.GENERATE_KEY, Step.GENERATE_CSR)
    graph.notify(Step.GENERATE_CSR, Step.GENERATE_CSR_TEXT)

    graph.require(Step.GENERATE_KEY, Step.SELF_SIGN)
    graph.require(Step.RENDER_CONFIG, Step.SELF_SIGN)
    graph.require(Step.SELF_SIGN, Step.COMBINE_BUNDLE)
    graph.require(Step.GENERATE_KEY, Step.COMBINE_BUNDLE)
    graph.require(Step.COMBINE_BUNDLE, Step.BUNDLE_PERMISSIONS)

    return graph
