"""Visualization utilities."""

import matplotlib.pyplot as plt
import networkx as nx
import plotly.graph_objects as go
from typing import List, Optional
from pathlib import Path
from loguru import logger

from classroom_infection.graph import ClassGraph


def plot_infection_progress(
    cumulative: List[int],
    target: Optional[int] = None,
    infected_before: int = 0,
    title: str = "Limited Infection Progress",
    output_path: Optional[Path] = None,
) -> None:
    """
    Plot cumulative infected count after each infected teacher.

    Args:
        cumulative: Infected count after each step
        target: If provided, draw the target level as a horizontal line
        infected_before: Infected count before the run (target is relative to it)
        title: Plot title
        output_path: Path to save figure
    """
    fig, axes = plt.subplots(1, 2, figsize=(12, 4))
    steps = list(range(1, len(cumulative) + 1))

    ax = axes[0]
    ax.step(steps, cumulative, "g-", where="post", linewidth=2, label="Cumulative")
    ax.plot(steps, cumulative, "go", markersize=4)
    if target is not None:
        ax.axhline(y=infected_before + target, color="k", linestyle=":", alpha=0.7, label="Target")
    ax.set_xlabel("Teachers infected")
    ax.set_ylabel("Infected people")
    ax.set_title("Cumulative Infections")
    ax.grid(True, alpha=0.3)
    ax.legend()

    new_per_step = [c - p for c, p in zip(cumulative, [infected_before] + cumulative[:-1])]
    ax = axes[1]
    ax.bar(steps, new_per_step, color="r", alpha=0.7)
    ax.set_xlabel("Teachers infected")
    ax.set_ylabel("Newly infected")
    ax.set_title("New Infections per Teacher")
    ax.grid(True, alpha=0.3)

    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        logger.info(f"Saved plot to {output_path}")
    else:
        plt.show()

    plt.close()


def plot_component_sizes(
    sizes: List[int],
    title: str = "Connected Component Sizes",
    output_path: Optional[Path] = None,
) -> None:
    """
    Plot distribution of component sizes (the reach of a total infection).

    Args:
        sizes: Component sizes
        title: Plot title
        output_path: Path to save figure (HTML)
    """
    fig = go.Figure(
        data=[
            go.Histogram(
                x=sizes,
                nbinsx=max(10, len(set(sizes))),
                name="Component size",
            )
        ]
    )

    fig.update_layout(
        title=title,
        xaxis_title="People in component",
        yaxis_title="Components",
        height=500,
        width=800,
    )

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(output_path))
        logger.info(f"Saved component size plot to {output_path}")
    else:
        fig.show()


def plot_network(
    graph: ClassGraph,
    title: str = "Class Network",
    output_path: Optional[Path] = None,
    seed: int = 42,
) -> None:
    """
    Plot the connection network, coloring people by version.

    Args:
        graph: Class graph to draw
        title: Plot title
        output_path: Path to save figure (HTML)
        seed: Layout seed
    """
    G = graph.to_networkx()
    pos = nx.spring_layout(G, seed=seed)

    edge_x, edge_y = [], []
    for a, b in G.edges():
        edge_x += [pos[a][0], pos[b][0], None]
        edge_y += [pos[a][1], pos[b][1], None]

    nodes = list(G.nodes())
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=edge_x,
            y=edge_y,
            mode="lines",
            line=dict(width=0.5, color="#888"),
            hoverinfo="none",
            showlegend=False,
        )
    )
    fig.add_trace(
        go.Scatter(
            x=[pos[p][0] for p in nodes],
            y=[pos[p][1] for p in nodes],
            mode="markers",
            marker=dict(
                size=[12 if graph.is_teacher(p) else 7 for p in nodes],
                color=["#d62728" if p.infected else "#1f77b4" for p in nodes],
            ),
            text=[f"{p.name} ({p.id})" for p in nodes],
            hovertemplate="%{text}<extra></extra>",
            showlegend=False,
        )
    )

    fig.update_layout(
        title=title,
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        height=700,
        width=900,
    )

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(output_path))
        logger.info(f"Saved network plot to {output_path}")
    else:
        fig.show()
