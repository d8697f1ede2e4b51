"""
Reasoning Engine - Nine-stage graph construction pipeline.

Stages run strictly in order against one graph owned by the engine:

1. Initialization        root node from field detection
2. Decomposition         seven dimension nodes
3. Hypothesis/Planning   four hypotheses per dimension
4. Evidence Integration  evidence per hypothesis, edge typing, hyperedges
5. Pruning/Merging       low-confidence edges, similar hypotheses, orphans
6. Subgraph Extraction   high-impact subgraph statistics
7. Composition           composition plan text
8. Reflection            audit of the plan
9. Final Analysis        final report, session completed
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from thoughtgraph.config.errors import (
    ErrorCode,
    SessionCancelled,
    StageExecutionError,
    ValidationError,
)
from thoughtgraph.config.settings import Settings, get_settings
from thoughtgraph.domains.evidence import (
    EvidenceScorer,
    HyperedgeSynthesizer,
    analyze_relationship,
)
from thoughtgraph.domains.knowledge.confidence import mean, weighted_average
from thoughtgraph.domains.knowledge.graph_store import ROOT_NODE_ID, ReasoningGraphStore, slugify
from thoughtgraph.domains.knowledge.models import (
    ConfidenceVector,
    Edge,
    EdgeKind,
    EdgeMetadata,
    EvidenceMetadata,
    GraphData,
    HypothesisMetadata,
    Node,
    NodeKind,
    NodeMetadata,
)

from . import prompts
from .contracts import EvidenceSearchProvider, InferenceProvider
from .models import (
    DIMENSION_LABELS,
    HYPOTHESES_PER_DIMENSION,
    STAGE_CONFIDENCE,
    STAGE_NAMES,
    EvidenceRecord,
    InferencePriority,
    ResearchContext,
    StageExecutionContext,
    StageOutcome,
    StageStatus,
    SubgraphReport,
)
from .parsing import (
    extract_dimension_content,
    extract_falsification_criteria,
    extract_hypothesis,
    parse_field_analysis,
)
from .pruning import critical_subgraph, prune_graph

logger = logging.getLogger(__name__)

__all__ = ["ReasoningEngine"]

ROOT_CONFIDENCE = (0.8, 0.7, 0.6, 0.8)
DIMENSION_CONFIDENCE = (0.7, 0.8, 0.7, 0.7)
HYPOTHESIS_CONFIDENCE = (0.6, 0.7, 0.6, 0.5)
EVIDENCE_IMPACT = 0.8

StageHandler = Callable[[StageExecutionContext, "str | None"], Awaitable[str]]


class ReasoningEngine:
    """
    Staged reasoning pipeline over a confidence-weighted graph.

    Each engine owns one session: its graph, research context, stage result
    log and execution log. Independent engines share no mutable state.

    Example:
        >>> engine = ReasoningEngine(inference=InferenceTaskQueue(LLMService()))
        >>> outcome = await engine.execute_stage(1, "Does chromosomal instability drive CTCL progression?")
        >>> outcome.graph.nodes[0].id
        'n0_root'
    """

    def __init__(
        self,
        inference: InferenceProvider | None,
        search: EvidenceSearchProvider | None = None,
        settings: Settings | None = None,
        scorer: EvidenceScorer | None = None,
        synthesizer: HyperedgeSynthesizer | None = None,
        initial_graph: GraphData | None = None,
        research_context: ResearchContext | None = None,
        stage_results: dict[int, str] | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            inference: Text inference provider (required to run stages)
            search: Evidence search provider; stage 4 falls back to inference without it
            settings: Engine settings, defaults to environment settings
            scorer: Evidence scoring heuristic
            synthesizer: Hyperedge synthesizer
            initial_graph: Graph to resume from; its metadata stage becomes the current stage
            research_context: Research context to resume with
            stage_results: Earlier stage results keyed by stage, so a resumed
                session can chain composition, reflection and final report
        """
        self._inference = inference
        self._search = search
        self._settings = settings or get_settings()
        self._scorer = scorer or EvidenceScorer()
        self._synthesizer = synthesizer or HyperedgeSynthesizer()
        self._store = ReasoningGraphStore(initial_graph)
        self._context = research_context or ResearchContext()
        self._current_stage = initial_graph.metadata.stage if initial_graph else 0
        self._results: dict[int, str] = dict(sorted((stage_results or {}).items()))
        self._contexts: list[StageExecutionContext] = []
        self._subgraph: SubgraphReport | None = None
        self._cancelled = False

        self._handlers: dict[int, StageHandler] = {
            1: self._initialize,
            2: self._decompose,
            3: self._generate_hypotheses,
            4: self._integrate_evidence,
            5: self._prune,
            6: self._extract_subgraph,
            7: self._compose,
            8: self._reflect,
            9: self._finalize,
        }

    # --- Session state ---

    @property
    def store(self) -> ReasoningGraphStore:
        return self._store

    @property
    def research_context(self) -> ResearchContext:
        return self._context

    @property
    def current_stage(self) -> int:
        return self._current_stage

    @property
    def stage_results(self) -> list[str]:
        """Per-stage textual results, in execution order."""
        return list(self._results.values())

    @property
    def stage_contexts(self) -> list[StageExecutionContext]:
        """One execution record per stage call, including failures."""
        return [c.model_copy() for c in self._contexts]

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop issuing further stage calls. The running stage is not rolled back."""
        self._cancelled = True
        logger.info("Session cancelled at stage %d", self._current_stage)

    def graph_data(self) -> GraphData:
        """Snapshot with only valid edges and hyperedges."""
        return self._store.export()

    def overall_confidence(self) -> float:
        """Weighted average of completed stage confidences, later stages weigh more."""
        scores = [
            c.confidence_achieved for c in self._contexts if c.status == StageStatus.COMPLETED
        ]
        return weighted_average(scores)

    # --- Execution ---

    def _validate(self, stage: int, input_text: str | None) -> None:
        if self._cancelled:
            raise SessionCancelled()
        if stage not in self._handlers:
            raise ValidationError(
                f"Stage must be between 1 and 9, got {stage}",
                {"stage": stage},
                code=ErrorCode.INVALID_STAGE,
            )
        if stage != self._current_stage + 1:
            raise ValidationError(
                f"Stage {stage} cannot run after stage {self._current_stage}",
                {"stage": stage, "current_stage": self._current_stage},
                code=ErrorCode.INVALID_STAGE,
            )
        if stage == 1 and (not input_text or not input_text.strip()):
            raise ValidationError(
                "A research question is required for stage 1",
                code=ErrorCode.EMPTY_INPUT,
            )
        if self._inference is None or not self._inference.is_configured():
            raise ValidationError(
                "Inference provider credentials are missing",
                code=ErrorCode.MISSING_CREDENTIALS,
            )

    async def execute_stage(self, stage: int, input_text: str | None = None) -> StageOutcome:
        """
        Run one stage.

        Args:
            stage: Stage number, must be the stage after the current one
            input_text: Research question (stage 1 only)

        Returns:
            Stage result text, graph snapshot and execution record

        Raises:
            ValidationError: Bad stage number, empty question or missing credentials
            SessionCancelled: The session was cancelled
            StageExecutionError: The stage failed; the failure is recorded first
        """
        self._validate(stage, input_text)

        context = StageExecutionContext(
            stage_id=stage,
            stage_name=STAGE_NAMES[stage],
            input_data={"nodes": len(self._store.nodes()), "input": input_text or ""},
        )
        self._contexts.append(context)
        start_time = time.time()
        logger.info("Stage %d (%s) started", stage, context.stage_name)

        try:
            result = await self._handlers[stage](context, input_text)
        except asyncio.CancelledError:
            context.status = StageStatus.ERROR
            context.error_message = "cancelled"
            context.duration_ms = (time.time() - start_time) * 1000
            raise
        except Exception as e:
            context.status = StageStatus.ERROR
            context.error_message = str(e) or type(e).__name__
            context.duration_ms = (time.time() - start_time) * 1000
            logger.error("Stage %d (%s) failed: %s", stage, context.stage_name, e)
            raise StageExecutionError(stage, context.error_message) from e

        context.status = StageStatus.COMPLETED
        context.confidence_achieved = STAGE_CONFIDENCE[stage]
        context.duration_ms = (time.time() - start_time) * 1000
        self._current_stage = stage
        self._results[stage] = result
        self._store.touch(stage)

        logger.info(
            "Stage %d (%s) completed in %.0fms with %d API calls",
            stage,
            context.stage_name,
            context.duration_ms,
            context.api_calls_made,
        )
        return StageOutcome(
            stage_id=stage,
            result=result,
            graph=self.graph_data(),
            context=context.model_copy(),
        )

    async def run(
        self,
        question: str,
        through: int = 9,
        on_stage: Callable[[StageOutcome], None] | None = None,
    ) -> list[StageOutcome]:
        """
        Run the remaining stages up to ``through``.

        Stops quietly when the session is cancelled between stages.

        Args:
            question: Research question for stage 1
            through: Last stage to run
            on_stage: Called after each completed stage

        Returns:
            Outcomes of the stages that ran
        """
        if through not in self._handlers:
            raise ValidationError(
                f"Stage must be between 1 and 9, got {through}",
                {"stage": through},
                code=ErrorCode.INVALID_STAGE,
            )

        outcomes: list[StageOutcome] = []
        for stage in range(self._current_stage + 1, through + 1):
            if self._cancelled:
                logger.info("Stopping before stage %d: session cancelled", stage)
                break
            outcome = await self.execute_stage(stage, question if stage == 1 else None)
            outcomes.append(outcome)
            if on_stage is not None:
                on_stage(outcome)
        return outcomes

    # --- Provider calls ---

    async def _infer(
        self,
        context: StageExecutionContext,
        prompt: str,
        timeout_ms: int,
        priority: InferencePriority = InferencePriority.HIGH,
    ) -> str:
        if self._inference is None:
            raise ValidationError(
                "Inference provider credentials are missing",
                code=ErrorCode.MISSING_CREDENTIALS,
            )
        task_id = self._inference.submit(prompt, priority)
        context.api_calls_made += 1
        return await self._inference.await_result(task_id, timeout_ms)

    # --- Stages ---

    async def _initialize(self, context: StageExecutionContext, question: str | None) -> str:
        question = (question or "").strip()
        response = await self._infer(
            context,
            prompts.FIELD_DETECTION_PROMPT.format(question=question),
            self._settings.field_detection_timeout_ms,
        )
        analysis = parse_field_analysis(response)

        self._context = ResearchContext(
            field=analysis.primary_field,
            topic=question,
            objectives=analysis.objectives,
            constraints=analysis.constraints,
        )

        root = Node(
            id=ROOT_NODE_ID,
            label="Task Understanding",
            kind=NodeKind.ROOT,
            confidence=ConfidenceVector.of(*ROOT_CONFIDENCE),
            metadata=NodeMetadata(
                source_description="Root node created from the research question",
                value=question,
                notes=f"Auto-detected field: {analysis.primary_field}",
                disciplinary_tags=[analysis.primary_field, *analysis.secondary_fields],
                impact_score=1.0,
                attribution="Field detection",
            ),
        )
        self._store.clear()
        self._store.add_node(root)
        self._subgraph = None
        context.output_data = {"field_analysis": analysis.model_dump()}

        objectives = "\n".join(f"{i}. {o}" for i, o in enumerate(analysis.objectives, 1))
        return (
            "# Stage 1: Initialization\n\n"
            f"Primary field: {analysis.primary_field}\n"
            f"Secondary fields: {', '.join(analysis.secondary_fields) or 'None identified'}\n"
            f"Scope: {analysis.initial_scope}\n\n"
            f"Objectives:\n{objectives or 'To be refined in later stages'}\n\n"
            f"Root node {ROOT_NODE_ID} created with confidence {list(ROOT_CONFIDENCE)}"
        )

    async def _decompose(self, context: StageExecutionContext, _: str | None) -> str:
        field = self._context.field
        response = await self._infer(
            context,
            prompts.DECOMPOSITION_PROMPT.format(
                field=field,
                topic=self._context.topic,
                objectives=", ".join(self._context.objectives),
                dimensions="\n".join(f"- {d}" for d in DIMENSION_LABELS),
            ),
            self._settings.decomposition_timeout_ms,
        )

        lines = []
        for index, label in enumerate(DIMENSION_LABELS):
            node = Node(
                id=f"n{index + 1}_{slugify(label)}",
                label=label,
                kind=NodeKind.DIMENSION,
                confidence=ConfidenceVector.of(*DIMENSION_CONFIDENCE),
                metadata=NodeMetadata(
                    source_description="Decomposition dimension",
                    value=extract_dimension_content(response, label, field),
                    notes=f"Dimension analysis for {field}",
                    disciplinary_tags=[field],
                    impact_score=0.9 if index < 3 else 0.7,
                    attribution="Decomposition",
                ),
            )
            self._store.add_node(node)
            self._store.add_edge(
                Edge(
                    id=f"edge_root_{node.id}",
                    source=ROOT_NODE_ID,
                    target=node.id,
                    kind=EdgeKind.SUPPORTIVE,
                    confidence=0.8,
                    metadata=EdgeMetadata(
                        type="decomposition_derivation",
                        source_description="Root to dimension decomposition edge",
                    ),
                )
            )
            lines.append(f"- {node.id}: {node.metadata.value}")

        context.output_data = {"dimensions": len(DIMENSION_LABELS)}
        return f"# Stage 2: Decomposition\n\n{len(DIMENSION_LABELS)} dimensions:\n" + "\n".join(lines)

    async def _generate_hypotheses(self, context: StageExecutionContext, _: str | None) -> str:
        field = self._context.field
        dimensions = self._store.nodes(NodeKind.DIMENSION)
        statements: list[str] = []

        for dimension in dimensions:
            response = await self._infer(
                context,
                prompts.HYPOTHESIS_PROMPT.format(
                    count=HYPOTHESES_PER_DIMENSION,
                    dimension=dimension.label,
                    field=field,
                    topic=self._context.topic,
                    content=dimension.metadata.value,
                ),
                self._settings.hypothesis_timeout_ms,
            )

            for i in range(HYPOTHESES_PER_DIMENSION):
                statement = extract_hypothesis(response, i + 1, field)
                node = Node(
                    id=f"h{dimension.id}_{i + 1}",
                    label=f"Hypothesis {i + 1}: {dimension.label}",
                    kind=NodeKind.HYPOTHESIS,
                    confidence=ConfidenceVector.of(*HYPOTHESIS_CONFIDENCE),
                    metadata=HypothesisMetadata(
                        source_description="Generated research hypothesis",
                        value=statement,
                        falsification_criteria=extract_falsification_criteria(response, i + 1, field),
                        notes=f"Generated for {dimension.label} dimension",
                        disciplinary_tags=[field],
                        impact_score=round(0.6 + 0.1 * i, 2),
                        attribution="Hypothesis generation",
                    ),
                )
                self._store.add_node(node)
                self._store.add_edge(
                    Edge(
                        id=f"edge_{dimension.id}_{node.id}",
                        source=dimension.id,
                        target=node.id,
                        kind=EdgeKind.SUPPORTIVE,
                        confidence=0.7,
                        metadata=EdgeMetadata(
                            type="hypothesis_derivation",
                            source_description="Dimension to hypothesis derivation edge",
                        ),
                    )
                )
                statements.append(statement)

        self._context.hypotheses = statements
        context.output_data = {"hypotheses": len(statements)}
        return (
            "# Stage 3: Hypothesis/Planning\n\n"
            f"{len(statements)} hypotheses across {len(dimensions)} dimensions, "
            "each with falsification criteria"
        )

    async def _collect_evidence(
        self,
        context: StageExecutionContext,
        hypothesis: Node,
        limiter: asyncio.Semaphore,
    ) -> EvidenceRecord:
        """Gather evidence, its analysis and the causal reading for one hypothesis."""
        field = self._context.field
        statement = hypothesis.metadata.value
        timeout_ms = self._settings.evidence_timeout_ms

        async with limiter:
            evidence_text: str | None = None
            source = "search"

            if self._search is not None:
                try:
                    evidence_text = await asyncio.wait_for(
                        self._search.search(
                            prompts.EVIDENCE_QUERY.format(field=field, hypothesis=statement),
                            {"recency": True, "focus": field},
                        ),
                        timeout=timeout_ms / 1000,
                    )
                    context.api_calls_made += 1
                except Exception as e:
                    logger.warning(
                        "Evidence search failed for %s, falling back to inference: %s",
                        hypothesis.id,
                        e,
                    )

            if evidence_text is None:
                source = "inference"
                evidence_text = await self._infer(
                    context,
                    prompts.EVIDENCE_SEARCH_PROMPT.format(field=field, hypothesis=statement),
                    timeout_ms,
                )

            analysis_text = await self._infer(
                context,
                prompts.EVIDENCE_ANALYSIS_PROMPT.format(
                    hypothesis=statement, field=field, evidence=evidence_text
                ),
                timeout_ms,
            )

            causal_text: str | None = None
            causal_error: str | None = None
            try:
                causal_text = await self._infer(
                    context,
                    prompts.CAUSAL_ANALYSIS_PROMPT.format(hypothesis=statement, evidence=evidence_text),
                    timeout_ms,
                )
            except Exception as e:
                causal_error = str(e) or type(e).__name__

        return EvidenceRecord(
            hypothesis_id=hypothesis.id,
            evidence_text=evidence_text,
            analysis_text=analysis_text,
            source=source,
            causal_text=causal_text,
            causal_error=causal_error,
        )

    async def _integrate_evidence(self, context: StageExecutionContext, _: str | None) -> str:
        hypotheses = self._store.nodes(NodeKind.HYPOTHESIS)
        limiter = asyncio.Semaphore(max(1, self._settings.evidence_max_in_flight))

        tasks = [
            asyncio.ensure_future(self._collect_evidence(context, h, limiter)) for h in hypotheses
        ]
        try:
            records = await asyncio.gather(*tasks)
        except BaseException:
            # no provider calls once the stage has failed
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        field = self._context.field
        lines = []
        for hypothesis, record in zip(hypotheses, records):
            score = self._scorer.score(record.analysis_text)
            evidence = Node(
                id=f"e_{hypothesis.id}",
                label=f"Evidence: {hypothesis.label}",
                kind=NodeKind.EVIDENCE,
                confidence=score.confidence,
                metadata=EvidenceMetadata(
                    source_description=f"Evidence gathered via {record.source} provider",
                    value=record.evidence_text,
                    notes=record.analysis_text,
                    disciplinary_tags=[field] if field else [],
                    impact_score=EVIDENCE_IMPACT,
                    attribution=record.source,
                    statistical_power=score.statistical_power,
                    evidence_quality=score.quality,
                    info_metrics=score.info_metrics.model_dump(),
                    fired_rules=score.fired_rules,
                ),
            )
            relationship = analyze_relationship(
                hypothesis,
                evidence,
                causal_text=record.causal_text,
                error=RuntimeError(record.causal_error) if record.causal_error else None,
            )
            self._store.add_node(evidence)
            self._store.add_edge(
                Edge(
                    id=f"edge_{hypothesis.id}_{evidence.id}",
                    source=hypothesis.id,
                    target=evidence.id,
                    kind=relationship.kind,
                    confidence=score.confidence.empirical_support,
                    metadata=EdgeMetadata(
                        type="evidence_support",
                        source_description="Hypothesis-evidence relationship",
                        causal_metadata=relationship.causal.metadata,
                        temporal_metadata=relationship.temporal.metadata,
                    ),
                )
            )
            lines.append(
                f"- {evidence.id}: quality={score.quality.value} "
                f"power={score.statistical_power:.2f} edge={relationship.kind.value}"
            )

        hyperedges = self._synthesizer.synthesize(self._store.nodes(), self._store.valid_edges())
        for hyperedge in hyperedges:
            self._store.add_hyperedge(hyperedge)

        fallbacks = sum(1 for r in records if r.source == "inference")
        context.output_data = {
            "evidence_nodes": len(records),
            "hyperedges": len(hyperedges),
            "search_fallbacks": fallbacks,
        }
        return (
            "# Stage 4: Evidence Integration\n\n"
            f"Evidence integrated for {len(hypotheses)} hypotheses "
            f"({fallbacks} via inference fallback), {len(hyperedges)} hyperedges\n"
            + "\n".join(lines)
        )

    async def _prune(self, context: StageExecutionContext, _: str | None) -> str:
        nodes_before = len(self._store.nodes())
        report = prune_graph(
            self._store,
            confidence_threshold=self._settings.prune_confidence_threshold,
            similarity_threshold=self._settings.merge_similarity_threshold,
            overlap_threshold=self._settings.merge_text_overlap_threshold,
        )
        context.output_data = report.model_dump()
        return (
            "# Stage 5: Pruning/Merging\n\n"
            f"Nodes: {nodes_before} -> {len(self._store.nodes())}\n"
            f"Edges pruned (< {self._settings.prune_confidence_threshold}): {len(report.pruned_edges)}\n"
            f"Hypothesis groups merged: {len(report.merged)}\n"
            f"Orphan nodes removed: {len(report.removed_nodes)}"
        )

    async def _extract_subgraph(self, context: StageExecutionContext, _: str | None) -> str:
        self._subgraph = critical_subgraph(self._store, self._settings.subgraph_impact_threshold)
        context.output_data = self._subgraph.model_dump()
        return (
            "# Stage 6: Subgraph Extraction\n\n"
            f"High-impact nodes: {len(self._subgraph.node_ids)}\n"
            f"Connected components: {self._subgraph.components}\n"
            f"Connected pairs: {self._subgraph.paths}\n"
            f"Complexity score: {self._subgraph.complexity_score:.2f}"
        )

    def _average_node_confidence(self) -> float:
        return mean([n.confidence.mean() for n in self._store.nodes()])

    def _previous_result(self, stage: int) -> str:
        return self._results.get(stage, "")

    async def _compose(self, context: StageExecutionContext, _: str | None) -> str:
        stats = self._store.get_stats()
        subgraph = self._subgraph or SubgraphReport()
        composition = await self._infer(
            context,
            prompts.COMPOSITION_PROMPT.format(
                topic=self._context.topic,
                field=self._context.field,
                nodes=stats.total_nodes,
                edges=stats.total_edges,
                hyperedges=stats.total_hyperedges,
                nodes_by_kind=stats.nodes_by_kind,
                edges_by_kind=stats.edges_by_kind,
                components=subgraph.components,
                paths=subgraph.paths,
            ),
            self._settings.composition_timeout_ms,
        )
        context.output_data = {"length": len(composition)}
        return composition

    async def _reflect(self, context: StageExecutionContext, _: str | None) -> str:
        stats = self._store.get_stats()
        reflection = await self._infer(
            context,
            prompts.REFLECTION_PROMPT.format(
                field=self._context.field,
                topic=self._context.topic,
                composition=self._previous_result(7),
                nodes=stats.total_nodes,
                edges=stats.total_edges,
                average_confidence=stats.average_confidence,
            ),
            self._settings.audit_timeout_ms,
        )
        context.output_data = {"length": len(reflection)}
        return reflection

    async def _finalize(self, context: StageExecutionContext, _: str | None) -> str:
        stats = self._store.get_stats()
        report = await self._infer(
            context,
            prompts.FINAL_REPORT_PROMPT.format(
                topic=self._context.topic,
                field=self._context.field,
                composition=self._previous_result(7),
                reflection=self._previous_result(8),
                nodes=stats.total_nodes,
                edges=stats.total_edges,
                average_confidence=stats.average_confidence,
            ),
            self._settings.final_report_timeout_ms,
        )

        average = self._average_node_confidence()
        completed = [
            c.confidence_achieved for c in self._contexts if c.status == StageStatus.COMPLETED
        ]
        overall = weighted_average([*completed, STAGE_CONFIDENCE[9]])
        self._store.metadata = self._store.metadata.model_copy(
            update={
                "completed": True,
                "graph_metrics": {
                    **self._store.metadata.graph_metrics,
                    "average_node_confidence": average,
                    "overall_confidence": overall,
                },
            }
        )
        context.output_data = {"length": len(report), "average_node_confidence": average}
        return report
