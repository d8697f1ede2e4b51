"""Tests for the Reasoning Engine."""

import asyncio
import itertools

import pytest

from thoughtgraph.config.errors import (
    ErrorCode,
    ProviderError,
    SessionCancelled,
    StageExecutionError,
    ValidationError,
)
from thoughtgraph.config.settings import Settings
from thoughtgraph.domains.knowledge.graph_store import ROOT_NODE_ID
from thoughtgraph.domains.knowledge.models import NodeKind

from .engine import ReasoningEngine
from .models import InferencePriority, StageStatus

QUESTION = "Does chromosomal instability drive CTCL progression?"

FIELD_RESPONSE = """{
  "primary_field": "Oncology",
  "secondary_fields": ["Genomics"],
  "objectives": ["Measure instability", "Relate it to stage"],
  "constraints": ["Small cohorts"],
  "initial_scope": "Cutaneous T-cell lymphoma"
}"""

HYPOTHESIS_RESPONSE = "\n".join(
    f"hypothesis_{i}: Distinct statement number {i} about aneuploidy burden {'x' * i}\n"
    f"falsification_{i}: Refuted if cohort {i} shows no change"
    for i in range(1, 5)
)


class ScriptedInference:
    """Inference provider answering by prompt prefix."""

    def __init__(self, responses=None, configured=True, fail_on=None):
        self.responses = responses or {}
        self.configured = configured
        self.fail_on = fail_on
        self.prompts: dict[str, str] = {}
        self._ids = itertools.count(1)

    def is_configured(self) -> bool:
        return self.configured

    def submit(self, prompt: str, priority: InferencePriority = InferencePriority.HIGH) -> str:
        task_id = f"task-{next(self._ids)}"
        self.prompts[task_id] = prompt
        return task_id

    async def await_result(self, task_id: str, timeout_ms: int) -> str:
        prompt = self.prompts[task_id]
        if self.fail_on and prompt.startswith(self.fail_on):
            raise ProviderError("provider down")
        for prefix, response in self.responses.items():
            if prompt.startswith(prefix):
                return response
        return ""

    def count(self, prefix: str) -> int:
        return sum(1 for p in self.prompts.values() if p.startswith(prefix))


class BrokenSearch:
    def __init__(self):
        self.calls = 0

    async def search(self, query, options=None):
        self.calls += 1
        raise ProviderError("search unavailable")


class StaticSearch:
    async def search(self, query, options=None):
        return "A randomized controlled trial with 400 patients, p < 0.01"


@pytest.fixture
def settings():
    return Settings(evidence_max_in_flight=4)


@pytest.fixture
def inference():
    return ScriptedInference(
        {
            "Analyze this research question": FIELD_RESPONSE,
            "Decompose": "Scope: Skin-homing T cells only\n\nObjectives: Compare stages",
            "Generate": HYPOTHESIS_RESPONSE,
            "Analyze this evidence": "Randomized controlled trial, p < 0.01, replicated",
            "Analyze the causal": "Classification: causal_direct\nConfidence: 0.8",
            "Plan the composition": "Composition plan",
            "Audit this": "No major issues",
            "Write the final": "Final report",
        }
    )


@pytest.fixture
def engine(inference, settings):
    return ReasoningEngine(inference=inference, settings=settings)


# --- Validation ---


async def test_stage_out_of_range(engine: ReasoningEngine):
    for stage in (0, 10):
        with pytest.raises(ValidationError) as exc:
            await engine.execute_stage(stage, QUESTION)
        assert exc.value.code == ErrorCode.INVALID_STAGE
    assert engine.stage_contexts == []


async def test_stage_out_of_order(engine: ReasoningEngine):
    with pytest.raises(ValidationError) as exc:
        await engine.execute_stage(2)

    assert exc.value.code == ErrorCode.INVALID_STAGE
    assert engine.current_stage == 0


async def test_empty_question(engine: ReasoningEngine):
    with pytest.raises(ValidationError) as exc:
        await engine.execute_stage(1, "   ")

    assert exc.value.code == ErrorCode.EMPTY_INPUT


async def test_missing_credentials(settings):
    for provider in (None, ScriptedInference(configured=False)):
        engine = ReasoningEngine(inference=provider, settings=settings)
        with pytest.raises(ValidationError) as exc:
            await engine.execute_stage(1, QUESTION)
        assert exc.value.code == ErrorCode.MISSING_CREDENTIALS
        assert engine.store.nodes() == []


# --- Stages 1-3 ---


async def test_initialization_creates_root(engine: ReasoningEngine):
    outcome = await engine.execute_stage(1, QUESTION)

    assert [n.id for n in outcome.graph.nodes] == [ROOT_NODE_ID]
    root = outcome.graph.nodes[0]
    assert root.confidence.as_list() == [0.8, 0.7, 0.6, 0.8]
    assert root.metadata.value == QUESTION
    assert root.metadata.disciplinary_tags == ["Oncology", "Genomics"]
    assert outcome.graph.metadata.stage == 1
    assert outcome.context.status == StageStatus.COMPLETED
    assert outcome.context.confidence_achieved == 0.8
    assert outcome.context.api_calls_made == 1
    assert engine.research_context.field == "Oncology"
    assert engine.research_context.objectives == ["Measure instability", "Relate it to stage"]


async def test_initialization_with_unparseable_response(settings):
    engine = ReasoningEngine(inference=ScriptedInference(), settings=settings)

    await engine.execute_stage(1, QUESTION)

    assert engine.research_context.field == "General Science"
    assert engine.store.root.metadata.disciplinary_tags == ["General Science"]


async def test_decomposition_creates_seven_dimensions(engine: ReasoningEngine):
    await engine.execute_stage(1, QUESTION)
    outcome = await engine.execute_stage(2)

    dimensions = [n for n in outcome.graph.nodes if n.kind == NodeKind.DIMENSION]
    assert len(dimensions) == 7
    assert len(outcome.graph.edges) == 7
    assert all(e.source == ROOT_NODE_ID for e in outcome.graph.edges)
    assert dimensions[0].id == "n1_scope"
    assert dimensions[3].id == "n4_data_needs"
    assert dimensions[0].metadata.value == "Skin-homing T cells only"
    assert dimensions[6].metadata.value == "Knowledge Gaps analysis for Oncology research context"


async def test_hypotheses_have_falsification_criteria(engine: ReasoningEngine, inference):
    await engine.run(QUESTION, through=3)

    hypotheses = engine.store.nodes(NodeKind.HYPOTHESIS)
    assert len(hypotheses) == 28
    assert inference.count("Generate") == 7
    assert all(h.metadata.falsification_criteria for h in hypotheses)
    assert [h.impact_score for h in hypotheses[:4]] == [0.6, 0.7, 0.8, 0.9]
    assert len(engine.research_context.hypotheses) == 28


# --- Evidence ---


async def test_evidence_search_failure_falls_back_to_inference(inference, settings):
    search = BrokenSearch()
    engine = ReasoningEngine(inference=inference, search=search, settings=settings)

    await engine.run(QUESTION, through=4)

    evidence = engine.store.nodes(NodeKind.EVIDENCE)
    assert len(evidence) == 28
    assert search.calls == 28
    assert inference.count("Research evidence") == 28
    assert all(e.metadata.attribution == "inference" for e in evidence)


async def test_evidence_edges_follow_scores(inference, settings):
    engine = ReasoningEngine(inference=inference, search=StaticSearch(), settings=settings)

    await engine.run(QUESTION, through=4)

    assert inference.count("Research evidence") == 0
    for evidence in engine.store.nodes(NodeKind.EVIDENCE):
        edge = engine.store.get_edge(f"edge_{evidence.id[2:]}_{evidence.id}")
        assert edge is not None
        assert edge.confidence == evidence.confidence.empirical_support
        assert edge.metadata.type == "evidence_support"
        assert edge.metadata.causal_metadata is not None
        assert edge.metadata.temporal_metadata is not None


async def test_causal_failure_is_recovered(settings):
    inference = ScriptedInference(
        {"Analyze this research question": FIELD_RESPONSE},
        fail_on="Analyze the causal",
    )
    engine = ReasoningEngine(inference=inference, search=StaticSearch(), settings=settings)

    await engine.run(QUESTION, through=4)

    edges = [e for e in engine.store.edges() if e.metadata.type == "evidence_support"]
    assert len(edges) == 28
    assert all(e.metadata.causal_metadata.fallback_classification for e in edges)


# --- Failures and cancellation ---


async def test_failure_is_recorded(settings):
    inference = ScriptedInference({"Analyze this research question": FIELD_RESPONSE}, fail_on="Decompose")
    engine = ReasoningEngine(inference=inference, settings=settings)
    await engine.execute_stage(1, QUESTION)

    with pytest.raises(StageExecutionError) as exc:
        await engine.execute_stage(2)

    assert exc.value.stage_id == 2
    record = engine.stage_contexts[-1]
    assert record.stage_id == 2
    assert record.status == StageStatus.ERROR
    assert "provider down" in record.error_message
    assert engine.current_stage == 1


async def test_failed_evidence_stage_stops_provider_calls():
    inference = ScriptedInference(
        {"Analyze this research question": FIELD_RESPONSE},
        fail_on="Analyze this evidence",
    )
    engine = ReasoningEngine(
        inference=inference, search=StaticSearch(), settings=Settings(evidence_max_in_flight=1)
    )
    await engine.run(QUESTION, through=3)

    with pytest.raises(StageExecutionError):
        await engine.execute_stage(4)

    prompts_at_failure = len(inference.prompts)
    calls_at_failure = engine.stage_contexts[-1].api_calls_made
    for _ in range(200):
        await asyncio.sleep(0)

    assert len(inference.prompts) == prompts_at_failure
    record = engine.stage_contexts[-1]
    assert record.status == StageStatus.ERROR
    assert record.api_calls_made == calls_at_failure
    assert engine.current_stage == 3


async def test_cancel_stops_further_stages(engine: ReasoningEngine):
    outcomes = await engine.run(
        QUESTION,
        on_stage=lambda outcome: engine.cancel() if outcome.stage_id == 2 else None,
    )

    assert [o.stage_id for o in outcomes] == [1, 2]
    with pytest.raises(SessionCancelled):
        await engine.execute_stage(3)


# --- Full run ---


async def test_full_run_completes_session(engine: ReasoningEngine):
    outcomes = await engine.run(QUESTION)

    assert [o.stage_id for o in outcomes] == list(range(1, 10))
    final = outcomes[-1].graph
    assert final.metadata.completed is True
    assert final.metadata.stage == 9
    assert "overall_confidence" in final.metadata.graph_metrics
    assert engine.stage_results[-1] == "Final report"
    assert 0.0 < engine.overall_confidence() <= 1.0
    node_ids = {n.id for n in final.nodes}
    assert all(e.source in node_ids and e.target in node_ids for e in final.edges)


async def test_resume_from_snapshot(engine: ReasoningEngine, inference, settings):
    await engine.run(QUESTION, through=2)

    resumed = ReasoningEngine(
        inference=inference,
        settings=settings,
        initial_graph=engine.graph_data(),
        research_context=engine.research_context,
    )

    assert resumed.current_stage == 2
    outcome = await resumed.execute_stage(3)
    assert len([n for n in outcome.graph.nodes if n.kind == NodeKind.HYPOTHESIS]) == 28


async def test_resume_carries_earlier_results(engine: ReasoningEngine, inference, settings):
    await engine.run(QUESTION, through=7)

    resumed = ReasoningEngine(
        inference=inference,
        settings=settings,
        initial_graph=engine.graph_data(),
        research_context=engine.research_context,
        stage_results={7: engine.stage_results[-1]},
    )
    await resumed.execute_stage(8)

    audit_prompts = [p for p in inference.prompts.values() if p.startswith("Audit this")]
    assert "Composition plan" in audit_prompts[-1]
    assert resumed.stage_results == ["Composition plan", "No major issues"]


async def test_resumed_engine_without_inference_is_rejected(engine: ReasoningEngine, settings):
    await engine.run(QUESTION, through=2)

    resumed = ReasoningEngine(inference=None, settings=settings, initial_graph=engine.graph_data())

    with pytest.raises(ValidationError) as exc:
        await resumed.execute_stage(3)
    assert exc.value.code == ErrorCode.MISSING_CREDENTIALS
