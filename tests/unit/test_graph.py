"""Unit tests for hostcert.services.graph module."""

import pytest

from hostcert.services.errors import GraphError
from hostcert.services.graph import ChangeGraph, EdgeKind, Gate, Step, default_graph
from hostcert.services.planner import Artifact, ArtifactState

ALL_ABSENT = {artifact: ArtifactState.ABSENT for artifact in Artifact}
ALL_PRESENT = {artifact: ArtifactState.PRESENT for artifact in Artifact}


class TestDefaultGraphOrder:
    """Tests for the topological order of the default graph."""

    def test_order(self):
        """Should order steps key first, bundle permissions last."""
        assert default_graph().order() == [
            Step.GENERATE_KEY,
            Step.KEY_PERMISSIONS,
            Step.RENDER_CONFIG,
            Step.GENERATE_CSR,
            Step.GENERATE_CSR_TEXT,
            Step.SELF_SIGN,
            Step.COMBINE_BUNDLE,
            Step.BUNDLE_PERMISSIONS,
        ]

    def test_key_before_every_reader(self):
        """Should place key generation before every step that reads the key."""
        order = default_graph().order()
        key_index = order.index(Step.GENERATE_KEY)

        for reader in (Step.GENERATE_CSR, Step.SELF_SIGN, Step.COMBINE_BUNDLE):
            assert order.index(reader) > key_index

    def test_order_is_stable(self):
        """Should return the same order on every call."""
        graph = default_graph()

        assert graph.order() == graph.order()


class TestEdges:
    """Tests for edge bookkeeping."""

    def test_notify_edges(self):
        """Should mark CSR as notified by key and config."""
        upstream = default_graph().upstream(Step.GENERATE_CSR)

        assert upstream == {
            Step.RENDER_CONFIG: EdgeKind.NOTIFY,
            Step.GENERATE_KEY: EdgeKind.NOTIFY,
        }

    def test_self_sign_not_notified(self):
        """Should only require, never notify, the self-signed certificate."""
        upstream = default_graph().upstream(Step.SELF_SIGN)

        assert set(upstream.values()) == {EdgeKind.REQUIRE}

    def test_notify_not_downgraded(self):
        """Should keep a notify edge when a require edge is added later."""
        graph = ChangeGraph()
        graph.add_step(Step.RENDER_CONFIG, Gate.ALWAYS)
        graph.add_step(Step.GENERATE_CSR, Gate.ON_NOTIFY, Artifact.CSR)
        graph.notify(Step.RENDER_CONFIG, Step.GENERATE_CSR)
        graph.require(Step.RENDER_CONFIG, Step.GENERATE_CSR)

        assert graph.upstream(Step.GENERATE_CSR)[Step.RENDER_CONFIG] == EdgeKind.NOTIFY

    def test_dependents_of_key(self):
        """Should find every step downstream of key generation."""
        dependents = default_graph().dependents(Step.GENERATE_KEY)

        assert dependents == {
            Step.KEY_PERMISSIONS,
            Step.GENERATE_CSR,
            Step.GENERATE_CSR_TEXT,
            Step.SELF_SIGN,
            Step.COMBINE_BUNDLE,
            Step.BUNDLE_PERMISSIONS,
        }

    def test_dependents_of_csr(self):
        """Should not count the certificate as a CSR dependent."""
        assert default_graph().dependents(Step.GENERATE_CSR) == {Step.GENERATE_CSR_TEXT}


class TestMalformedGraphs:
    """Tests for graph construction errors."""

    def test_cycle_detected(self):
        """Should raise GraphError on a cycle."""
        graph = ChangeGraph()
        graph.add_step(Step.GENERATE_CSR, Gate.ALWAYS)
        graph.add_step(Step.GENERATE_CSR_TEXT, Gate.ALWAYS)
        graph.require(Step.GENERATE_CSR, Step.GENERATE_CSR_TEXT)
        graph.require(Step.GENERATE_CSR_TEXT, Step.GENERATE_CSR)

        with pytest.raises(GraphError):
            graph.order()

    def test_unknown_step(self):
        """Should reject edges to steps not in the graph."""
        graph = ChangeGraph()
        graph.add_step(Step.GENERATE_KEY, Gate.IF_ABSENT, Artifact.KEY)

        with pytest.raises(GraphError):
            graph.require(Step.GENERATE_KEY, Step.SELF_SIGN)

    def test_duplicate_step(self):
        """Should reject adding a step twice."""
        graph = ChangeGraph()
        graph.add_step(Step.GENERATE_KEY, Gate.IF_ABSENT, Artifact.KEY)

        with pytest.raises(GraphError):
            graph.add_step(Step.GENERATE_KEY, Gate.IF_ABSENT, Artifact.KEY)

    def test_gate_needs_artifact(self):
        """Should require an artifact for existence-gated steps."""
        with pytest.raises(GraphError):
            ChangeGraph().add_step(Step.SELF_SIGN, Gate.IF_ABSENT)

    def test_self_edge(self):
        """Should reject a step depending on itself."""
        graph = ChangeGraph()
        graph.add_step(Step.GENERATE_KEY, Gate.IF_ABSENT, Artifact.KEY)

        with pytest.raises(GraphError):
            graph.notify(Step.GENERATE_KEY, Step.GENERATE_KEY)


class TestDecide:
    """Tests for per-step run decisions."""

    def test_key_generated_when_absent(self):
        run, _ = default_graph().decide(Step.GENERATE_KEY, ALL_ABSENT, set())
        assert run is True

    def test_key_never_regenerated(self):
        """Should skip key generation whenever the key is present."""
        graph = default_graph()
        everything = set(Step)

        run, reason = graph.decide(Step.GENERATE_KEY, ALL_PRESENT, everything)

        assert run is False
        assert "present" in reason

    def test_config_always_rendered(self):
        run, _ = default_graph().decide(Step.RENDER_CONFIG, ALL_PRESENT, set())
        assert run is True

    def test_csr_up_to_date(self):
        """Should skip the CSR when present and nothing upstream changed."""
        run, reason = default_graph().decide(Step.GENERATE_CSR, ALL_PRESENT, set())

        assert run is False
        assert reason == "up to date"

    def test_csr_notified_by_config(self):
        """Should regenerate the CSR after a config change."""
        run, reason = default_graph().decide(Step.GENERATE_CSR, ALL_PRESENT, {Step.RENDER_CONFIG})

        assert run is True
        assert "render_config" in reason

    def test_csr_notified_by_key(self):
        run, _ = default_graph().decide(Step.GENERATE_CSR, ALL_PRESENT, {Step.GENERATE_KEY})
        assert run is True

    def test_csr_generated_when_absent(self):
        state = {**ALL_PRESENT, Artifact.CSR: ArtifactState.ABSENT}

        run, _ = default_graph().decide(Step.GENERATE_CSR, state, set())

        assert run is True

    def test_cert_ignores_config_change(self):
        """Should not regenerate the certificate when only the config changed."""
        run, _ = default_graph().decide(
            Step.SELF_SIGN, ALL_PRESENT, {Step.RENDER_CONFIG, Step.GENERATE_CSR}
        )

        assert run is False

    def test_bundle_ignores_config_change(self):
        run, _ = default_graph().decide(Step.COMBINE_BUNDLE, ALL_PRESENT, {Step.RENDER_CONFIG})
        assert run is False
