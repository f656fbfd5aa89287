"""
Skill Graph Store for CoachRoom

Persists a user-scoped skill graph in Neo4j:

    (:User {uid})-[:HAS_SKILL {level, last_verified, last_tested, latest_score}]->(:Skill {name})
    (:Skill)-[:RELATED_TO]-(:Skill)

Skill nodes are shared across users and unique by name. All writes use
MERGE so repeated extraction passes are idempotent.
"""

import logging
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase

from coachroom.config.settings import get_settings
from coachroom.models.debrief import SkillUpdate
from coachroom.models.graph import (
    ExtractedSkill,
    GraphContext,
    GraphData,
    GraphLink,
    GraphNode,
    ProficiencyLevel,
)

logger = logging.getLogger(__name__)


class GraphConfigError(Exception):
    """Raised when Neo4j connection settings are missing."""
    pass


# ============================================================================
# CYPHER
# ============================================================================

MERGE_USER = "MERGE (u:User {uid: $userId}) RETURN u"

UPSERT_SKILLS = """
MATCH (u:User {uid: $userId})
UNWIND $skills AS skill
MERGE (s:Skill {name: skill.name})
ON CREATE SET s.category = skill.category,
              s.created_at = datetime()
SET s.description = CASE
        WHEN skill.description <> '' THEN skill.description
        ELSE s.description
    END
MERGE (u)-[r:HAS_SKILL]->(s)
SET r.level = skill.level,
    r.last_verified = datetime()
"""

LINK_RELATED = """
UNWIND $pairs AS pair
MERGE (a:Skill {name: pair.source})
ON CREATE SET a.created_at = datetime()
MERGE (b:Skill {name: pair.target})
ON CREATE SET b.created_at = datetime()
MERGE (a)-[:RELATED_TO]-(b)
"""

UPDATE_MASTERY = """
UNWIND $updates AS update
MATCH (u:User {uid: $userId})-[r:HAS_SKILL]->(s:Skill {name: update.name})
SET r.last_tested = datetime(),
    r.latest_score = update.score,
    r.level = update.level
"""

USER_SKILL_NAMES = """
MATCH (u:User {uid: $userId})-[:HAS_SKILL]->(s:Skill)
RETURN s.name AS name
"""

USER_SKILLS = """
MATCH (u:User {uid: $userId})-[r:HAS_SKILL]->(s:Skill)
RETURN s.name AS name, s.category AS category, r.level AS level
"""

HALO_SKILLS = """
MATCH (u:User {uid: $userId})-[:HAS_SKILL]->(s:Skill)-[:RELATED_TO]-(h:Skill)
WHERE NOT (u)-[:HAS_SKILL]->(h)
RETURN DISTINCT s.name AS source, h.name AS name
"""


class SkillGraphStore:
    """
    Neo4j-backed skill graph.

    The driver is created lazily so the application can start
    without graph credentials; graph features then fail individually.
    """

    def __init__(self, driver: AsyncDriver | None = None):
        self.settings = get_settings()
        self._driver = driver

    @property
    def driver(self) -> AsyncDriver:
        if self._driver is None:
            uri = self.settings.neo4j_uri
            username = self.settings.neo4j_username
            password = self.settings.neo4j_password
            if not uri or not username or not password:
                raise GraphConfigError(
                    "Missing Neo4j environment variables (NEO4J_URI, NEO4J_USERNAME, NEO4J_PASSWORD)"
                )
            self._driver = AsyncGraphDatabase.driver(uri, auth=(username, password))
            logger.info("Neo4j driver initialized")
        return self._driver

    async def close(self):
        """Close the driver."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("Neo4j driver closed")

    async def _run(self, query: str, **params: Any) -> list[dict[str, Any]]:
        """Run a query in its own session and return records as dicts."""
        async with self.driver.session(database=self.settings.neo4j_database) as session:
            result = await session.run(query, params)
            return [record.data() async for record in result]

    # =========================================================================
    # WRITES
    # =========================================================================

    async def ensure_user(self, user_id: str) -> None:
        await self._run(MERGE_USER, userId=user_id)

    async def upsert_skills(self, user_id: str, skills: list[ExtractedSkill]) -> None:
        """Merge skills and the user's HAS_SKILL edges."""
        if not skills:
            return

        await self.ensure_user(user_id)
        await self._run(
            UPSERT_SKILLS,
            userId=user_id,
            skills=[
                {
                    "name": skill.name,
                    "category": skill.category,
                    "level": skill.level.value,
                    "description": skill.description,
                }
                for skill in skills
            ],
        )
        logger.info(f"Graph synced: {len(skills)} skills for user {user_id}")

    async def link_related(self, pairs: list[tuple[str, str]]) -> None:
        """Merge undirected RELATED_TO edges, creating halo skills as needed."""
        pairs = [(a, b) for a, b in pairs if a and b and a != b]
        if not pairs:
            return

        await self._run(
            LINK_RELATED,
            pairs=[{"source": a, "target": b} for a, b in pairs],
        )
        logger.info(f"Linked {len(pairs)} related skill pairs")

    async def update_mastery(self, user_id: str, updates: list[SkillUpdate]) -> None:
        """Apply debrief scores to existing HAS_SKILL edges."""
        if not updates:
            return

        logger.info(f"Updating graph mastery for user {user_id}: {len(updates)} skills")
        await self._run(
            UPDATE_MASTERY,
            userId=user_id,
            updates=[
                {
                    "name": update.name,
                    "score": update.score,
                    "level": ProficiencyLevel.from_score(update.score).value,
                }
                for update in updates
            ],
        )

    # =========================================================================
    # READS
    # =========================================================================

    async def get_user_skill_names(self, user_id: str) -> list[str]:
        """All skill names the user holds."""
        try:
            records = await self._run(USER_SKILL_NAMES, userId=user_id)
        except Exception as e:
            logger.error(f"Failed to get user skill names: {e}")
            return []
        return [record["name"] for record in records]

    async def get_graph_context(self, user_id: str) -> GraphContext | None:
        """
        Build the personalization context for the interviewer prompt.

        Returns:
            GraphContext, or None when the user has no skills or the
            graph is unavailable
        """
        try:
            records = await self._run(USER_SKILLS, userId=user_id)
            if not records:
                return None
            halo_records = await self._run(HALO_SKILLS, userId=user_id)
        except Exception as e:
            logger.error(f"Failed to retrieve graph context: {e}")
            return None

        def names_at(level: ProficiencyLevel) -> list[str]:
            return [r["name"] for r in records if r.get("level") == level.value]

        weak = names_at(ProficiencyLevel.BEGINNER)
        mid = names_at(ProficiencyLevel.INTERMEDIATE)
        strong = names_at(ProficiencyLevel.EXPERT)
        halo = sorted({r["name"] for r in halo_records})

        summary = "Candidate Profile based on Knowledge Graph:\n"
        if strong:
            summary += f"[Strengths]: {', '.join(strong)}. (Expect deep mastery here).\n"
        if mid:
            summary += f"[Growth Areas]: {', '.join(mid)}. (Good targets for challenging questions).\n"
        if weak:
            summary += f"[Weak/New]: {', '.join(weak)}. (Start with basics, verify understanding).\n"
        if halo:
            summary += f"[Adjacent Topics]: {', '.join(halo)}. (Probe lightly to discover breadth).\n"

        return GraphContext(
            weak_skills=weak,
            intermediate_skills=mid,
            expert_skills=strong,
            halo_skills=halo,
            summary=summary,
        )

    async def get_user_graph_data(self, user_id: str) -> GraphData:
        """
        Fetch the user's knowledge graph for 3D visualization.

        Returns:
            Nodes and links; an empty graph when the query fails
        """
        try:
            records = await self._run(USER_SKILLS, userId=user_id)
            halo_records = await self._run(HALO_SKILLS, userId=user_id)
        except Exception as e:
            logger.error(f"Failed to get graph data: {e}")
            return GraphData()

        nodes: dict[str, GraphNode] = {
            user_id: GraphNode(
                id=user_id,
                name="Me",
                group=0,  # Center
                val=20,
                color="#ffffff",
            )
        }
        links: list[GraphLink] = []

        for record in records:
            name = record["name"]
            try:
                level = ProficiencyLevel(record.get("level"))
                color, val, label = level.color, level.node_size, level.value
            except ValueError:
                color, val, label = "#808080", 5, "Unknown"

            if name not in nodes:
                nodes[name] = GraphNode(id=name, name=name, label=label, group=1, val=val, color=color)
            links.append(GraphLink(source=user_id, target=name))

        for record in halo_records:
            name = record["name"]
            if name not in nodes:
                nodes[name] = GraphNode(
                    id=name,
                    name=name,
                    label="Related",
                    group=2,
                    val=3,
                    color="#64748b",
                )
            links.append(GraphLink(
                source=record["source"],
                target=name,
                color="rgba(255,255,255,0.08)",
                width=0.5,
            ))

        return GraphData(nodes=list(nodes.values()), links=links)
