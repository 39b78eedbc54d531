import json

import pandas as pd
import pytest

from portfolio_pipeline.app.build import (
    PROJECT_INDEX_COLUMNS,
    build_payload,
    collect_deep_dives,
    project_index_frame,
    run_build,
)
from portfolio_pipeline.content.deep_dives import DeepDiveStore
from portfolio_pipeline.framework.config import PipelineConfig
from portfolio_pipeline.loader.aggregate import load_all_portfolios


@pytest.fixture()
def site(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    content_dir = tmp_path / "deep-dives"
    content_dir.mkdir()

    (data_dir / "catalog.yaml").write_text(
        "themes:\n"
        "  - {id: reliability, label: Reliability}\n"
        "tools:\n"
        "  - {id: aws, label: AWS, category: cloud}\n"
        "  - {id: terraform, label: Terraform, category: iac}\n",
        encoding="utf-8",
    )
    (data_dir / "acme.yaml").write_text(
        "company: {id: acme, label: Acme, role: SRE, period: '2022'}\n"
        "impacts:\n"
        "  - {id: imp-a, label: Uptime up, type: reliability, metrics: ['99.95%']}\n"
        "  - {id: imp-b, label: Pages down, type: reliability}\n"
        "projects:\n"
        "  - id: acme-a\n"
        "    title: Hardened infra\n"
        "    problem: {id: p-a, statement: Drift caused outages weekly.}\n"
        "    solution: {id: s-a, statement: Moved everything to code, tools: [Terraform, aws, AWS]}\n"
        "    themes: [reliability]\n"
        "    impact_ids: [imp-a, imp-b]\n"
        "    deepDive: {enabled: true, slug: acme-infra}\n"
        "  - id: acme-b\n"
        "    title: Second lane\n"
        "    problem: {id: p-b, statement: Another real problem here.}\n"
        "    solution: {id: s-b, statement: Another real solution here.}\n"
        "edges:\n"
        "  - {from: acme, to: acme-a, rel: owns}\n"
        "  - {from: acme, to: acme-b, rel: owns}\n",
        encoding="utf-8",
    )
    (content_dir / "acme-infra.mdx").write_text(
        "---\nthemes: [reliability]\nimpactSnapshot: ['99.95% uptime']\n---\nThe long story.\n",
        encoding="utf-8",
    )

    settings = PipelineConfig(
        data_dir=str(data_dir),
        content_dir=str(content_dir),
        order_config_path=str(tmp_path / "portfolio.order.yaml"),
        output_dir=str(tmp_path / "out"),
    )
    return settings


def test_collect_deep_dives_falls_back_to_project_title(site):
    store = DeepDiveStore(site.content_dir)
    corpus = load_all_portfolios(site, store=store)

    deep_dives = collect_deep_dives(corpus, store)

    assert list(deep_dives) == ["acme-infra"]
    entry = deep_dives["acme-infra"]
    assert entry["title"] == "Hardened infra"
    assert entry["companyId"] == "acme"
    assert entry["projectId"] == "acme-a"
    assert entry["impactSnapshot"] == ["99.95% uptime"]
    assert entry["content"] == "The long story.\n"


def test_project_index_frame_has_one_row_per_lane(site):
    corpus = load_all_portfolios(site)

    frame = project_index_frame(corpus)

    assert list(frame.columns) == list(PROJECT_INDEX_COLUMNS)
    assert frame["project_id"].tolist() == ["acme-a", "acme-b"]
    assert frame["lane_index"].tolist() == [0, 1]
    assert frame.loc[0, "tools"] == "terraform;aws"
    assert frame.loc[0, "deep_dive_slug"] == "acme-infra"
    assert frame.loc[1, "deep_dive_slug"] == ""


def test_build_payload_contains_layouts_and_catalog(site):
    store = DeepDiveStore(site.content_dir)
    corpus = load_all_portfolios(site, store=store)

    payload = build_payload(corpus, store)

    layout = payload["layouts"][0]
    assert layout["companyId"] == "acme"
    assert [lane["projectId"] for lane in layout["lanes"]] == ["acme-a", "acme-b"]
    assert layout["lanes"][0]["impacts"] == [
        {"id": "imp-a+imp-b", "label": "Uptime up; Pages down", "type": "reliability", "metrics": ["99.95%"]}
    ]
    assert layout["lanes"][0]["projectSummary"] == "Moved everything to code"
    assert [tool["id"] for tool in payload["catalog"]["tools"]] == ["aws", "terraform"]


def test_run_build_writes_json_and_csv(site):
    artifacts = run_build(site)

    with open(artifacts["layouts"], "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    assert payload["layouts"][0]["lanes"][0]["deepDiveSlug"] == "acme-infra"

    frame = pd.read_csv(artifacts["project_index"], keep_default_na=False)
    assert frame["company_id"].tolist() == ["acme", "acme"]
    assert frame["impact_ids"].tolist() == ["imp-a;imp-b", ""]
