# experiments/visualize.py
"""
Isoline plots of heat-method distance and error-vs-timestep sweeps.

Usage (from the repository root, needs the `viz` extra):
    python -m experiments.visualize
"""
import os

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.tri import Triangulation
from scipy.sparse.csgraph import dijkstra

from heatgeo import Mesh, heat_geodesic_from_sources
from experiments.compare_dijkstra import edge_graph, relative_errors

base_dir = "data"
mesh_paths = {
    "armadillo": os.path.join(base_dir, "Armadillo.ply"),
    "bunny": os.path.join(base_dir, "bunny/reconstruction/bun_zipper.ply"),
    "torus": os.path.join(base_dir, "torus.obj"),
}


def _pca_project(V: np.ndarray) -> np.ndarray:
    """Project 3D vertices to 2D via PCA (good for elongated meshes)."""
    X = V - V.mean(0, keepdims=True)
    _, _, VT = np.linalg.svd(X, full_matrices=False)
    return X @ VT[:2].T


def plot_isolines(
    M: Mesh,
    phi: np.ndarray,
    src: int,
    title: str,
    save_path: str,
    *,
    projection: str = "pca",
    vmax_percentile: float = 90.0,
):
    V, F = M.V, M.F
    XY = V[:, :2] if projection == "xy" else _pca_project(V)

    vmin = float(phi.min())
    vmax = float(np.percentile(phi, vmax_percentile))
    tri = Triangulation(XY[:, 0], XY[:, 1], triangles=F)
    tri.set_mask(phi[F].max(axis=1) > vmax)

    levels = np.linspace(vmin, vmax, 40)
    fig, ax = plt.subplots(figsize=(7, 6))
    tpc = ax.tricontourf(tri, phi, levels=levels, cmap="viridis")
    ax.tricontour(tri, phi, levels=15, colors="k", linewidths=0.45, alpha=0.8)
    ax.plot([XY[src, 0]], [XY[src, 1]], "ro", markersize=4)
    ax.set_aspect("equal", adjustable="box")
    ax.set_title(title)
    fig.colorbar(tpc, ax=ax, shrink=0.8, label="distance")
    plt.tight_layout()
    os.makedirs(os.path.dirname(save_path), exist_ok=True)
    plt.savefig(save_path, dpi=200, bbox_inches="tight")
    plt.close(fig)


def sweep_t_and_plot(mesh_name: str, M: Mesh, src: int, out_dir: str):
    d = dijkstra(edge_graph(M), directed=False, indices=src)
    t_mults = (0.25, 1, 4, 16, 64)
    rel_means, rel_maxes = [], []

    for tm in t_mults:
        phi, _ = heat_geodesic_from_sources(M, src, t_mult=tm)
        rel_mean, rel_max = relative_errors(np.maximum(phi - phi[src], 0.0), d)
        rel_means.append(rel_mean)
        rel_maxes.append(rel_max)

    fig, ax = plt.subplots(figsize=(5.5, 4))
    ax.plot(t_mults, rel_means, "o-", label="mean error")
    ax.plot(t_mults, rel_maxes, "s--", label="max error", alpha=0.8)
    ax.set_xscale("log")
    ax.set_xlabel("t / h²")
    ax.set_ylabel("relative error")
    ax.set_title(f"{mesh_name}: Error vs t/h²")
    ax.grid(True, ls=":")
    ax.legend()
    save_path = os.path.join(out_dir, f"{mesh_name}_t_sweep.png")
    plt.savefig(save_path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    print(f"  → Saved error plot: {save_path}")


if __name__ == "__main__":
    out_dir = os.path.join("results", "plots")
    os.makedirs(out_dir, exist_ok=True)
    rng = np.random.default_rng(42)

    for name, path in mesh_paths.items():
        if not os.path.exists(path):
            print(f"[skip] {name}: {path} not found")
            continue
        print(f"\n=== Processing {name} ===")
        M = Mesh.load(path)
        src = int(rng.integers(0, M.n_vertices))

        phi, _ = heat_geodesic_from_sources(M, src)
        phi = np.maximum(phi - phi[src], 0.0)

        isolines_png = os.path.join(out_dir, f"{name}_isolines.png")
        plot_isolines(M, phi, src, f"{name}: isolines (t=h², random src)", isolines_png)
        print(f"  → Saved isolines: {isolines_png}")

        sweep_t_and_plot(name, M, src, out_dir)
