"""
Visualization module for generated meander layouts.

Generates a top (X-Y) view of the patch outline and every segment
using matplotlib. Capped segments are hatched; chamfered corners are
marked.
"""

from pathlib import Path
from typing import Iterable, List, Mapping
import matplotlib.pyplot as plt
import matplotlib.patches as patches

from .expressions import evaluate
from .geometry import Segment, patch_upper_expr, ymin_expr


def plot_meander(
    segments: List[Segment],
    params: Mapping[str, float],
    output_path: Path,
    chamfered: Iterable[str] = (),
) -> None:
    """
    Generate and save a top view image of the meander.

    Args:
        segments: Segments as produced by generate_segments
        params: Parameter values used to resolve the bounds
        output_path: Path to save the image
        chamfered: Shape names (qualified or plain) that were chamfered
    """
    output_path = Path(output_path)
    chamfered_names = {name.split(':')[-1] for name in chamfered}

    fig, ax = plt.subplots(figsize=(8, 8))

    # Patch envelope
    half = params['l_patch'] / 2
    ax.add_patch(patches.Rectangle(
        (params['x_patch1'] - half, evaluate(ymin_expr(), params)),
        params['l_patch'],
        params['l_patch'],
        fill=False, linestyle='--', linewidth=1.0, edgecolor='gray', label='Patch',
    ))
    upper = evaluate(patch_upper_expr(), params)
    ax.axhline(upper, color='red', linewidth=0.5, linestyle=':')

    for seg in segments:
        b = seg.bounds
        x0, x1 = evaluate(b.xmin, params), evaluate(b.xmax, params)
        y0, y1 = evaluate(b.ymin, params), evaluate(b.ymax, params)

        ax.add_patch(patches.Rectangle(
            (x0, y0), x1 - x0, y1 - y0,
            facecolor='orange' if seg.is_capped else 'goldenrod',
            edgecolor='black',
            hatch='//' if seg.is_capped else None,
            linewidth=1.0,
        ))
        ax.text((x0 + x1) / 2, y0, str(seg.index), ha='center', va='bottom', fontsize=8)

        if seg.name in chamfered_names:
            ax.scatter([x1], [y1], color='green', s=25, zorder=5)

    ax.set_aspect('equal')
    ax.autoscale_view()
    ax.set_title(f"Meander layout: {output_path.stem}")
    ax.set_xlabel('X')
    ax.set_ylabel('Y')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close(fig)
