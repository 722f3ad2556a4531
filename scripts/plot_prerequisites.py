#!/usr/bin/env python3
"""
plot_prerequisites.py - Draw the curriculum prerequisite graph.

Nodes are subjects laid out by period (left to right) and colored by the
derived status of the stored snapshot; edges point from a prerequisite to
the subject it unlocks.

Usage:
  python scripts/plot_prerequisites.py
  python scripts/plot_prerequisites.py --output prerequisites.png --student alice
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx

from graduplanner.config import get_settings, setup_logging
from graduplanner.tracker import CurriculumLoader, ProgressEngine, SnapshotStore
from graduplanner.viewer import STATUS_COLORS, STATUS_LABELS

logger = logging.getLogger(__name__)


def period_layout(G: nx.DiGraph) -> dict:
    """Column per period, subjects stacked top to bottom in curriculum order."""
    pos = {}
    rows: dict[int, int] = {}
    for node, data in G.nodes(data=True):
        period = data["period"]
        row = rows.get(period, 0)
        rows[period] = row + 1
        pos[node] = (period, -row)
    return pos


def plot_graph(loader: CurriculumLoader, engine: ProgressEngine, output: Path):
    G = loader.graph
    statuses = engine.statuses()
    pos = period_layout(G)

    plt.figure(figsize=(22, 12))
    node_colors = [STATUS_COLORS[statuses[n]][0] for n in G.nodes]
    edge_colors = [STATUS_COLORS[statuses[n]][1] for n in G.nodes]

    nx.draw_networkx_nodes(G, pos, node_size=900, node_color=node_colors,
                           edgecolors=edge_colors, linewidths=2)
    nx.draw_networkx_edges(G, pos, alpha=0.5, edge_color='gray', arrows=True,
                           connectionstyle="arc3,rad=0.1")
    nx.draw_networkx_labels(G, pos, font_size=7)

    for status, label in STATUS_LABELS.items():
        background, border, _ = STATUS_COLORS[status]
        plt.scatter([], [], c=background, edgecolors=border, s=120, label=label)
    plt.legend(loc="lower right")

    summary = engine.aggregate()
    plt.title(
        f"{loader.curriculum.course.name} - prerequisites "
        f"({summary.percentage}% completed)"
    )
    plt.axis('off')
    plt.tight_layout()
    output.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output, dpi=150)
    plt.close()
    logger.info(f"Saved prerequisite graph to {output}")


def main():
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Draw the prerequisite graph colored by status.")
    parser.add_argument("--curriculum", type=Path, default=settings.curriculum_path,
                        help="Curriculum YAML (default: bundled curriculum)")
    parser.add_argument("--db", type=Path, default=settings.db_path,
                        help=f"Progress database (default: {settings.db_path})")
    parser.add_argument("--student", default=settings.student_id,
                        help="Student id of the stored snapshot (default: %(default)s)")
    parser.add_argument("--output", type=Path, default=PROJECT_ROOT / "prerequisites.png",
                        help="Output image (default: prerequisites.png)")
    args = parser.parse_args()
    setup_logging(settings.log_level)

    loader = CurriculumLoader(args.curriculum)
    store = SnapshotStore(args.db, student_id=args.student)
    engine, source = ProgressEngine.restore(loader.curriculum, store=store)
    logger.info(f"Snapshot source: {source.value}")
    plot_graph(loader, engine, args.output)


if __name__ == "__main__":
    main()
