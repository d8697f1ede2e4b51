"""
Stage Prompts - Templates sent to the inference provider.
"""

from __future__ import annotations

FIELD_DETECTION_PROMPT = """Analyze this research question and identify:
1) The primary scientific field(s)
2) Key research objectives (3-5 specific objectives)
3) Potential interdisciplinary connections
4) Initial constraints and considerations

Research Question: "{question}"

Format your response as JSON:
{{
  "primary_field": "string",
  "secondary_fields": ["string"],
  "objectives": ["string"],
  "interdisciplinary_connections": ["string"],
  "constraints": ["string"],
  "initial_scope": "string"
}}"""

DECOMPOSITION_PROMPT = """Decompose this research task into analysis dimensions.

Research Field: {field}
Research Topic: {topic}
Current Objectives: {objectives}

For each dimension below write one line "Dimension: description" covering its
boundaries, field-specific considerations and priority (High/Medium/Low):

{dimensions}"""

HYPOTHESIS_PROMPT = """Generate {count} testable hypotheses for the {dimension} dimension in {field} research.

Research Context: {topic}
Dimension Content: {content}

Write each hypothesis as "hypothesis_N: statement" and its falsification criteria
as "falsification_N: how it could be proven wrong", for N = 1..{count}."""

EVIDENCE_QUERY = '{field} "{hypothesis}" peer-reviewed recent research statistical data'

EVIDENCE_SEARCH_PROMPT = """Research evidence for this hypothesis in {field}:

"{hypothesis}"

Focus on peer-reviewed publications, statistical data, expert consensus,
contradictory evidence and recent developments. Provide citations and a quality
assessment for each source."""

EVIDENCE_ANALYSIS_PROMPT = """Analyze this evidence collection for scientific rigor and relevance.

Hypothesis: {hypothesis}
Field: {field}
Evidence Data: {evidence}

Report study designs, sample sizes, effect sizes, p-values, statistical power,
methodological limitations, bias and the level of scientific consensus."""

CAUSAL_ANALYSIS_PROMPT = """Analyze the causal relationship between this hypothesis and evidence.

Hypothesis: {hypothesis}
Evidence: {evidence}

Cover causal direction, confounding variables (as a bulleted list), temporal
order, counterfactual analysis and mechanism. Classify the relationship as one
of: causal_direct, causal_counterfactual, causal_confounded, supportive,
correlative, contradictory. End with "Confidence: <0-1>"."""

COMPOSITION_PROMPT = """Plan the composition of a scientific analysis report.

Research Topic: {topic}
Field: {field}
Graph: {nodes} nodes, {edges} edges, {hyperedges} hyperedges
Nodes by kind: {nodes_by_kind}
Edges by kind: {edges_by_kind}
High-impact subgraph: {components} components, {paths} connected pairs

Outline the sections, the key findings each should cover and the evidence to cite."""

REFLECTION_PROMPT = """Audit this composition plan for a {field} analysis of "{topic}".

Composition Plan:
{composition}

Graph: {nodes} nodes, {edges} edges, average node confidence {average_confidence:.2f}

Check for bias, gaps in evidence coverage, falsifiability of hypotheses,
statistical rigor and overclaiming. List concrete issues and fixes."""

FINAL_REPORT_PROMPT = """Write the final analysis for the research question "{topic}" in {field}.

Composition Plan:
{composition}

Audit Findings:
{reflection}

Graph: {nodes} nodes, {edges} edges, average node confidence {average_confidence:.2f}

Summarize the supported and unsupported hypotheses, the strength of evidence,
open questions and recommended next studies."""
