"""
Tests for the command-line interface.
"""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

import thoughtgraph.config
from thoughtgraph.config.settings import Settings
from thoughtgraph.domains.knowledge import ReasoningGraphStore
from thoughtgraph.domains.knowledge.models import (
    Edge,
    EdgeKind,
    EvidenceMetadata,
    GraphData,
    HypothesisMetadata,
    Node,
    NodeKind,
)

from .main import app

runner = CliRunner()


@pytest.fixture
def graph_file(tmp_path):
    graph = GraphData(
        nodes=[
            Node(
                id="h1",
                label="Aneuploidy drives progression",
                kind=NodeKind.HYPOTHESIS,
                metadata=HypothesisMetadata(
                    disciplinary_tags=["oncology"], falsification_criteria="No stage effect"
                ),
            ),
            Node(
                id="e1",
                label="Cohort study",
                kind=NodeKind.EVIDENCE,
                metadata=EvidenceMetadata(disciplinary_tags=["oncology"]),
            ),
        ],
        edges=[Edge(id="h1_e1", source="h1", target="e1", kind=EdgeKind.SUPPORTIVE, confidence=0.8)],
    )
    return ReasoningGraphStore(graph).save_json(tmp_path / "graph.json")


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "ThoughtGraph v" in result.output


def test_score_prints_dimensions():
    result = runner.invoke(app, ["score", "A randomized controlled trial with n = 400 participants"])

    assert result.exit_code == 0
    assert "empirical_support" in result.output
    assert "statistical_power" in result.output


def test_layers_reports_each_layer(graph_file):
    result = runner.invoke(app, ["layers", str(graph_file)])

    assert result.exit_code == 0
    assert "Layers" in result.output
    assert "2 nodes" in result.output


def test_layers_missing_file(tmp_path):
    result = runner.invoke(app, ["layers", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_layers_invalid_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["layers", str(path)])

    assert result.exit_code == 1
    assert "Invalid graph file" in result.output


def test_run_without_credentials_fails(monkeypatch):
    monkeypatch.setattr(
        thoughtgraph.config,
        "get_settings",
        lambda: Settings(gemini_api_key="", ollama_enabled=False, perplexity_api_key=""),
    )

    result = runner.invoke(app, ["run", "Does aneuploidy drive CTCL progression?"])

    assert result.exit_code == 1
    assert "Error:" in result.output
