"""
Rebuild the CPV hierarchy from the flat stream of rendered tree nodes.

The tree widget renders every node as its own table, so parent/child links
are not carried by the node itself and have to be inferred. Two strategies
are available:

- ``depth``: indentation width gives each node a depth; a node hangs under
  the most recent node one level up.
- ``path``: the node's position among the enclosing tree-item wrappers gives
  a path such as (0, 2, 1); its parent is the node registered at (0, 2).
  This relies on the widget nesting each node's children inside its wrapper.

They agree on well-formed markup but can differ on irregular indentation.
In both, a node whose parent cannot be found becomes a root instead of being
dropped. A node that cannot be read is left out, and so is its place in the
hierarchy: its descendants are promoted rather than adopted by a sibling.
"""

from typing import AsyncIterator, Dict, Iterable, List, Tuple
import logging

from .config import INDENT_WIDTH_PX, SELECTORS
from .document import DocumentAccess, Element
from .errors import NodeExtractionError
from .model import FlatNode, TaxonomyNode
from .normalizer import parse_indent_depth, parse_label

logger = logging.getLogger(__name__)

CPV = SELECTORS['cpv']
STRATEGIES = ("depth", "path")


async def read_flat_node(node: Element, index: int, indent_width: int = INDENT_WIDTH_PX,
                         with_path: bool = False) -> FlatNode:
    """Read one rendered node. ``path`` is only looked up when ``with_path``."""
    depth = None
    try:
        indent_cell = await node.query(CPV['indent_cell'])
        if indent_cell is None:
            raise NodeExtractionError(index, "indentation cell missing")
        depth = parse_indent_depth(await indent_cell.get_attribute('style'), indent_width)

        label = await node.query(CPV['label'])
        label_text = (await label.text()).strip() if label else ""
        if not label_text:
            raise NodeExtractionError(index, "label missing or empty", depth)

        path = await node.position_path(CPV['item']) if with_path else ()
    except NodeExtractionError:
        raise
    except Exception as e:
        raise NodeExtractionError(index, str(e), depth) from e

    code, description = parse_label(label_text)
    return FlatNode(code=code, description=description, depth=depth, path=path)


async def read_flat_nodes(document: DocumentAccess, indent_width: int = INDENT_WIDTH_PX,
                          with_path: bool = False) -> AsyncIterator[FlatNode]:
    """
    Yield tree nodes in document order.

    Unreadable nodes are logged. When their depth is still known they are
    yielded as ``skipped`` markers so the builders can close their branch;
    otherwise they are dropped.
    """
    nodes = await document.query_all(CPV['node'])
    logger.info(f"Found {len(nodes)} tree nodes")
    for i, node in enumerate(nodes):
        try:
            yield await read_flat_node(node, i, indent_width, with_path)
        except NodeExtractionError as e:
            logger.error(f"Error processing node: {e}")
            if e.depth is not None:
                yield FlatNode(code="", description="", depth=e.depth, skipped=True)


def build_by_depth(nodes: Iterable[FlatNode]) -> List[TaxonomyNode]:
    roots: List[TaxonomyNode] = []
    ancestors: Dict[int, TaxonomyNode] = {}  # most recent node at each depth

    for flat in nodes:
        ancestors = {d: n for d, n in ancestors.items() if d < flat.depth}
        if flat.skipped:
            continue

        node = flat.to_node()
        parent = ancestors.get(flat.depth - 1)
        if parent is not None:
            parent.children.append(node)
        else:
            if flat.depth > 0:
                logger.warning(f"No parent at depth {flat.depth - 1} for '{flat.code or flat.description}', promoting to root")
            roots.append(node)
        ancestors[flat.depth] = node
    return roots


def build_by_path(nodes: Iterable[FlatNode]) -> List[TaxonomyNode]:
    roots: List[TaxonomyNode] = []
    by_path: Dict[Tuple[int, ...], TaxonomyNode] = {}

    for flat in nodes:
        if flat.skipped:
            continue

        node = flat.to_node()
        parent = by_path.get(flat.path[:-1]) if len(flat.path) > 1 else None
        if parent is not None:
            parent.children.append(node)
        else:
            if len(flat.path) > 1:
                logger.warning(f"No parent at {flat.path[:-1]} for '{flat.code or flat.description}', promoting to root")
            roots.append(node)

        if flat.path:
            by_path[flat.path] = node
    return roots


class TreeReconstructor:
    def __init__(self, strategy: str = "depth", indent_width: int = INDENT_WIDTH_PX):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy '{strategy}', expected one of {STRATEGIES}")
        self.strategy = strategy
        self.indent_width = indent_width

    def build(self, nodes: Iterable[FlatNode]) -> List[TaxonomyNode]:
        if self.strategy == "path":
            return build_by_path(nodes)
        return build_by_depth(nodes)

    async def reconstruct(self, document: DocumentAccess) -> List[TaxonomyNode]:
        with_path = self.strategy == "path"
        flat_nodes = [n async for n in read_flat_nodes(document, self.indent_width, with_path)]
        readable = [n for n in flat_nodes if not n.skipped]

        if with_path and readable and not any(n.path for n in readable):
            logger.warning(f"No node sits inside a '{CPV['item']}' wrapper; every node will be a root. Try the depth strategy.")

        roots = self.build(flat_nodes)
        logger.info(f"✓ Rebuilt {len(readable)} nodes into {len(roots)} roots ({self.strategy} strategy)")
        return roots
