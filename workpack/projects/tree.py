"""Pre-order traversal of a set of projects."""

from typing import Dict, Iterator, List, Sequence, Tuple

from workpack.projects.models import Project


def project_tree(projects: Sequence[Project]) -> Iterator[Tuple[Project, int]]:
    """
    Yield (project, depth) pairs in pre-order, siblings ordered by name.

    Depth counts only ancestors that are part of the given set, so a project
    whose parent is missing from it is yielded as a root.
    """
    ids = {p.id for p in projects}
    children: Dict[int, List[Project]] = {}
    roots: List[Project] = []
    for project in projects:
        if project.parent_id in ids:
            children.setdefault(project.parent_id, []).append(project)
        else:
            roots.append(project)

    def walk(nodes: List[Project], depth: int) -> Iterator[Tuple[Project, int]]:
        for node in sorted(nodes, key=lambda p: (p.name.lower(), p.id)):
            yield node, depth
            yield from walk(children.get(node.id, []), depth + 1)

    yield from walk(roots, 0)
