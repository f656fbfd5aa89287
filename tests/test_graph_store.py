"""
Tests for the Neo4j skill graph store, over a fake driver.
"""

import pytest

from coachroom.core import graph_store as cypher
from coachroom.core.graph_store import GraphConfigError, SkillGraphStore
from coachroom.models.debrief import SkillUpdate
from coachroom.models.graph import ExtractedSkill, ProficiencyLevel


class FakeRecord:
    def __init__(self, data):
        self._data = data

    def data(self):
        return dict(self._data)


class FakeResult:
    def __init__(self, rows):
        self._rows = list(rows)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for row in self._rows:
            yield FakeRecord(row)


class FakeSession:
    def __init__(self, driver):
        self.driver = driver

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def run(self, query, params):
        if self.driver.error:
            raise self.driver.error
        self.driver.queries.append((query, params))
        return FakeResult(self.driver.responses.get(query, []))


class FakeDriver:
    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.queries = []
        self.databases = []
        self.closed = False

    def session(self, database=None):
        self.databases.append(database)
        return FakeSession(self)

    async def close(self):
        self.closed = True


def store_with(**kwargs):
    driver = FakeDriver(**kwargs)
    return SkillGraphStore(driver=driver), driver


# ============================================================================
# WRITES
# ============================================================================

async def test_upsert_merges_user_then_skills():
    store, driver = store_with()
    await store.upsert_skills("user-1", [
        ExtractedSkill(name="Python", category="Language", level="Expert", description="A language"),
        ExtractedSkill(name="Docker"),
    ])

    assert [q for q, _ in driver.queries] == [cypher.MERGE_USER, cypher.UPSERT_SKILLS]
    params = driver.queries[1][1]
    assert params["userId"] == "user-1"
    assert params["skills"] == [
        {"name": "Python", "category": "Language", "level": "Expert", "description": "A language"},
        {"name": "Docker", "category": "Other", "level": "Intermediate", "description": ""},
    ]
    assert driver.databases == ["neo4j", "neo4j"]


async def test_upsert_nothing_runs_no_queries():
    store, driver = store_with()
    await store.upsert_skills("user-1", [])
    assert driver.queries == []


async def test_link_related_skips_self_and_empty_pairs():
    store, driver = store_with()
    await store.link_related([("React", "Redux"), ("React", "React"), ("", "Vue")])

    query, params = driver.queries[0]
    assert query == cypher.LINK_RELATED
    assert params["pairs"] == [{"source": "React", "target": "Redux"}]


async def test_link_related_with_nothing_left_runs_no_query():
    store, driver = store_with()
    await store.link_related([("React", "React")])
    assert driver.queries == []


async def test_update_mastery_derives_levels_from_scores():
    store, driver = store_with()
    await store.update_mastery("user-1", [
        SkillUpdate(name="Python", score=85),
        SkillUpdate(name="SQL", score=40),
        SkillUpdate(name="Go", score=39),
    ])

    query, params = driver.queries[0]
    assert query == cypher.UPDATE_MASTERY
    assert [(u["name"], u["level"]) for u in params["updates"]] == [
        ("Python", "Expert"),
        ("SQL", "Intermediate"),
        ("Go", "Beginner"),
    ]


@pytest.mark.parametrize("score, level", [
    (100, ProficiencyLevel.EXPERT),
    (80, ProficiencyLevel.EXPERT),
    (79, ProficiencyLevel.INTERMEDIATE),
    (40, ProficiencyLevel.INTERMEDIATE),
    (0, ProficiencyLevel.BEGINNER),
])
def test_score_to_level(score, level):
    assert ProficiencyLevel.from_score(score) == level


# ============================================================================
# READS
# ============================================================================

USER_SKILLS = [
    {"name": "Python", "category": "Language", "level": "Expert"},
    {"name": "Kubernetes", "category": "DevOps", "level": "Intermediate"},
    {"name": "Rust", "category": "Language", "level": "Beginner"},
    {"name": "COBOL", "category": "Language", "level": None},
]

HALO = [
    {"source": "Python", "name": "FastAPI"},
    {"source": "Kubernetes", "name": "Helm"},
]


async def test_graph_context_groups_by_level():
    store, _ = store_with(responses={cypher.USER_SKILLS: USER_SKILLS, cypher.HALO_SKILLS: HALO})

    context = await store.get_graph_context("user-1")

    assert context.expert_skills == ["Python"]
    assert context.intermediate_skills == ["Kubernetes"]
    assert context.weak_skills == ["Rust"]
    assert context.halo_skills == ["FastAPI", "Helm"]
    assert context.summary.startswith("Candidate Profile based on Knowledge Graph:")
    assert "[Strengths]: Python." in context.summary
    assert "[Adjacent Topics]: FastAPI, Helm." in context.summary


async def test_graph_context_is_none_without_skills():
    store, _ = store_with()
    assert await store.get_graph_context("user-1") is None


async def test_graph_context_is_none_when_graph_unavailable():
    store, _ = store_with(error=RuntimeError("ServiceUnavailable"))
    assert await store.get_graph_context("user-1") is None


async def test_graph_data_for_visualization():
    store, _ = store_with(responses={cypher.USER_SKILLS: USER_SKILLS, cypher.HALO_SKILLS: HALO})

    data = await store.get_user_graph_data("user-1")
    nodes = {node.id: node for node in data.nodes}

    assert nodes["user-1"].name == "Me"
    assert (nodes["user-1"].group, nodes["user-1"].val, nodes["user-1"].color) == (0, 20, "#ffffff")
    assert (nodes["Python"].color, nodes["Python"].val) == ("#4ade80", 10)
    assert (nodes["Kubernetes"].color, nodes["Kubernetes"].val) == ("#facc15", 7)
    assert (nodes["Rust"].color, nodes["Rust"].val) == ("#f87171", 5)
    assert (nodes["COBOL"].color, nodes["COBOL"].label) == ("#808080", "Unknown")
    assert nodes["FastAPI"].group == 2

    user_links = [link for link in data.links if link.source == "user-1"]
    assert len(user_links) == 4
    halo_link = next(link for link in data.links if link.target == "Helm")
    assert halo_link.source == "Kubernetes"


async def test_graph_data_is_empty_on_failure():
    store, _ = store_with(error=RuntimeError("ServiceUnavailable"))
    data = await store.get_user_graph_data("user-1")
    assert data.nodes == [] and data.links == []


async def test_skill_names():
    store, _ = store_with(responses={cypher.USER_SKILL_NAMES: [{"name": "Python"}, {"name": "Go"}]})
    assert await store.get_user_skill_names("user-1") == ["Python", "Go"]


async def test_missing_configuration():
    store = SkillGraphStore()

    with pytest.raises(GraphConfigError):
        store.driver
    assert await store.get_user_skill_names("user-1") == []


async def test_close_releases_driver():
    store, driver = store_with()
    await store.close()
    assert driver.closed
