"""
Hierarchy closure: which nodes sit at or below a given node.
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowboard.core.errors import DataIntegrityError, InternalError
from flowboard.models.device import HierarchyNode

logger = logging.getLogger(__name__)


def resolve_descendants(edges: Iterable[Tuple[str, Optional[str]]], root_id: str) -> Set[str]:
    """
    Compute ``root_id`` plus every node beneath it.

    Args:
        edges: (node_id, parent_id) pairs; parent_id is None for roots
        root_id: Node to expand from; it is always part of the result

    Returns:
        Set of node ids in the subtree

    Raises:
        DataIntegrityError: the parent pointers reachable from root_id form a cycle
    """
    children: Dict[str, List[str]] = defaultdict(list)
    for node_id, parent_id in edges:
        if parent_id is not None:
            children[parent_id].append(node_id)

    closure = {root_id}
    frontier = [root_id]
    while frontier:
        next_frontier = []
        for node_id in frontier:
            for child_id in children.get(node_id, ()):
                # Each node has one parent, so meeting a node twice means a loop
                if child_id in closure:
                    raise DataIntegrityError(
                        f"Hierarchy cycle detected at node '{child_id}' below '{root_id}'"
                    )
                closure.add(child_id)
                next_frontier.append(child_id)
        frontier = next_frontier

    return closure


class HierarchyService:
    @staticmethod
    async def get_descendant_ids(db: AsyncSession, root_id: str) -> Set[str]:
        """
        Same closure as ``resolve_descendants``, read one level per query so
        only the subtree below ``root_id`` is loaded.

        Raises:
            DataIntegrityError: the subtree loops back on itself
            InternalError: store failure
        """
        closure = {root_id}
        frontier = [root_id]
        try:
            while frontier:
                result = await db.execute(
                    select(HierarchyNode.id)
                    .where(HierarchyNode.parent_id.in_(frontier))
                )
                next_frontier = []
                for child_id in result.scalars().all():
                    if child_id in closure:
                        raise DataIntegrityError(
                            f"Hierarchy cycle detected at node '{child_id}' below '{root_id}'"
                        )
                    closure.add(child_id)
                    next_frontier.append(child_id)
                frontier = next_frontier
        except SQLAlchemyError as e:
            raise InternalError("Failed to load hierarchy") from e

        logger.debug("Hierarchy %s expands to %d node(s)", root_id, len(closure))
        return closure
