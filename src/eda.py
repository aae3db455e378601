"""
eda.py
Exploratory charts for the NYPD shooting trend report

Design principles:
- Every plot answers one question about the aggregated tables
- Visuals are publication-ready (labeled, titled, sourced)
- Charts only read the tables they are given; nothing is recomputed here
"""

import warnings
from pathlib import Path

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import pandas as pd
import seaborn as sns

from aggregation import AGE_GROUP_ORDER, pivot_year_region

warnings.filterwarnings("ignore")

# ── Style ─────────────────────────────────────────────────────────────────────
PALETTE  = "YlOrRd"
ACCENT   = "#D62728"   # red: fitted line and predictions
NEUTRAL  = "#4C72B0"   # blue: standard bars
BG_GRAY  = "#F7F7F7"
FIG_DIR  = Path("data/processed/plots")

plt.rcParams.update({
    "figure.facecolor": BG_GRAY,
    "axes.facecolor":   BG_GRAY,
    "axes.spines.top":  False,
    "axes.spines.right": False,
    "axes.labelsize":   11,
    "axes.titlesize":   13,
    "axes.titleweight": "bold",
    "xtick.labelsize":  9,
    "ytick.labelsize":  9,
    "font.family":      "sans-serif",
})


# ── Helpers ───────────────────────────────────────────────────────────────────

def _save(fig: plt.Figure, name: str, fig_dir=FIG_DIR) -> Path:
    fig_dir = Path(fig_dir)
    fig_dir.mkdir(parents=True, exist_ok=True)
    path = fig_dir / f"{name}.png"
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print(f"  ✓ Saved → {path}")
    return path


def _source_note(ax, note="Source: NYPD Shooting Incident Data (Historic) / NYC Open Data"):
    ax.annotate(note, xy=(0, -0.12), xycoords="axes fraction",
                fontsize=7, color="gray")


def fmt_thousands(ax, axis="y"):
    fmt = mticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    if axis == "y":
        ax.yaxis.set_major_formatter(fmt)
    else:
        ax.xaxis.set_major_formatter(fmt)


# ── Chart 1: Yearly Volume & Trend ────────────────────────────────────────────

def plot_yearly_trend(by_year: pd.DataFrame, model=None, predictions=None, fig_dir=FIG_DIR) -> Path:
    """
    Q: Are shootings rising or falling, and where does a straight line put them?
    """
    fig, ax = plt.subplots(figsize=(12, 5))
    ax.bar(by_year["year"], by_year["count"], color=NEUTRAL, alpha=0.75, label="Incidents")

    if model is not None:
        span = by_year["year"].tolist()
        if predictions is not None and len(predictions):
            span += predictions["year"].tolist()
        xs = pd.Series(range(min(span), max(span) + 1))
        ax.plot(xs, model.intercept + model.slope * xs, "--", color=ACCENT, linewidth=2,
                label=f"Linear trend ({model.slope:+,.1f}/yr)")

    if predictions is not None and len(predictions):
        ax.scatter(predictions["year"], predictions["predicted_count"], color=ACCENT, zorder=3,
                   label="Predicted")
        for year, value in zip(predictions["year"], predictions["predicted_count"]):
            ax.annotate(f"{value:,.0f}", (year, value), textcoords="offset points",
                        xytext=(0, 8), ha="center", fontsize=8, color=ACCENT)

    ax.set_title("Shooting Incidents per Year")
    ax.set_xlabel("Year")
    ax.set_ylabel("Number of Incidents")
    fmt_thousands(ax)
    ax.legend(fontsize=8)
    _source_note(ax)

    plt.tight_layout()
    path = _save(fig, "01_yearly_trend", fig_dir)

    peak = by_year.loc[by_year["count"].idxmax()]
    print(f"  Peak year: {int(peak['year'])} ({int(peak['count']):,} incidents)")
    return path


# ── Chart 2: Year × Borough Heatmap ───────────────────────────────────────────

def plot_region_heatmap(by_year_region: pd.DataFrame, fig_dir=FIG_DIR) -> Path:
    """
    Q: Which boroughs carry the volume, and did that change over time?
    """
    wide = pivot_year_region(by_year_region)

    fig, ax = plt.subplots(figsize=(10, max(4, 0.4 * len(wide))))
    sns.heatmap(wide, ax=ax, cmap=PALETTE, annot=True, fmt=",d", linewidths=0.3,
                cbar_kws={"label": "Incidents"})
    ax.set_title("Shooting Incidents by Year and Borough")
    ax.set_xlabel("")
    ax.set_ylabel("Year")

    plt.tight_layout()
    return _save(fig, "02_year_region_heatmap", fig_dir)


# ── Chart 3: Borough Trend Lines ──────────────────────────────────────────────

def plot_region_trends(by_year_region: pd.DataFrame, fig_dir=FIG_DIR) -> Path:
    wide = pivot_year_region(by_year_region)

    fig, ax = plt.subplots(figsize=(12, 6))
    for region in wide.columns:
        ax.plot(wide.index, wide[region], marker="o", linewidth=2, label=region)
    ax.set_title("Shooting Incidents per Year by Borough")
    ax.set_xlabel("Year")
    ax.set_ylabel("Number of Incidents")
    ax.legend(title="Borough", fontsize=8)
    fmt_thousands(ax)
    _source_note(ax)

    plt.tight_layout()
    return _save(fig, "03_region_trends", fig_dir)


# ── Chart 4: Shooter Age Group by Borough ─────────────────────────────────────

def plot_age_share_by_region(age_share: pd.DataFrame, fig_dir=FIG_DIR) -> Path:
    """
    Q: Within each borough, how are known shooter ages distributed?
    Shown as percentages so boroughs of different size compare directly.
    """
    wide = age_share.pivot(index="region", columns="shooter_age_group", values="percent").fillna(0)
    ordered = [g for g in AGE_GROUP_ORDER if g in wide.columns]
    wide = wide[ordered + [g for g in wide.columns if g not in ordered]]

    fig, ax = plt.subplots(figsize=(12, 6))
    wide.plot(kind="bar", ax=ax, colormap="tab10", edgecolor="white")
    ax.set_title("Shooter Age Group by Borough\n(% of incidents with a known age group)")
    ax.set_xlabel("")
    ax.set_ylabel("% of Borough Incidents")
    ax.tick_params(axis="x", rotation=0)
    ax.legend(title="Age Group", fontsize=8)
    _source_note(ax)

    plt.tight_layout()
    path = _save(fig, "04_age_share_by_region", fig_dir)

    top = age_share.loc[age_share.groupby("region")["percent"].idxmax()]
    for _, row in top.iterrows():
        print(f"  {row['region']}: most common shooter age group {row['shooter_age_group']} "
              f"({row['percent']:.1f}%)")
    return path


# ── Chart 5: Murder Share ─────────────────────────────────────────────────────

def plot_murder_share(murder_share: pd.DataFrame, fig_dir=FIG_DIR) -> Path:
    fig, ax = plt.subplots(figsize=(12, 5))
    ax.plot(murder_share["year"], murder_share["percent"], marker="o", color=ACCENT, linewidth=2)
    ax.axhline(murder_share["percent"].mean(), color="green", linestyle="--",
               label=f"Avg: {murder_share['percent'].mean():.1f}%")
    ax.set_title("Share of Incidents Flagged as Statistical Murder")
    ax.set_xlabel("Year")
    ax.set_ylabel("% of Incidents")
    ax.legend(fontsize=8)
    _source_note(ax)

    plt.tight_layout()
    return _save(fig, "05_murder_share", fig_dir)


# ── Chart 6: Victim Profile ───────────────────────────────────────────────────

def plot_victim_profile(victim_sex: pd.DataFrame, victim_race: pd.DataFrame, fig_dir=FIG_DIR) -> Path:
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle("Victim Demographics", fontsize=14, fontweight="bold")

    colors = [ACCENT if s == "U" else NEUTRAL for s in victim_sex["victim_sex"]]
    axes[0].bar(victim_sex["victim_sex"], victim_sex["count"], color=colors, edgecolor="white")
    axes[0].set_title("Victims by Sex")
    axes[0].set_ylabel("Number of Incidents")
    fmt_thousands(axes[0])

    colors = [ACCENT if r == "UNKNOWN" else NEUTRAL for r in victim_race["victim_race"]]
    axes[1].barh(victim_race["victim_race"][::-1], victim_race["count"][::-1], color=colors[::-1])
    axes[1].set_title("Victims by Race")
    axes[1].set_xlabel("Number of Incidents")
    fmt_thousands(axes[1], axis="x")
    _source_note(axes[1])

    plt.tight_layout()
    return _save(fig, "06_victim_profile", fig_dir)


# ── Orchestrator ──────────────────────────────────────────────────────────────

def render_figures(result, fig_dir=FIG_DIR) -> list[Path]:
    """
    Draw every chart the report result supports and return the saved paths.
    Empty tables are skipped.
    """
    print("\n" + "=" * 60)
    print("REPORT FIGURES")
    print("=" * 60)

    paths = []
    if len(result.by_year):
        paths.append(plot_yearly_trend(result.by_year, result.model, result.predictions, fig_dir))
    if len(result.by_year_region):
        paths.append(plot_region_heatmap(result.by_year_region, fig_dir))
        paths.append(plot_region_trends(result.by_year_region, fig_dir))
    if len(result.age_share):
        paths.append(plot_age_share_by_region(result.age_share, fig_dir))
    if len(result.murder_share):
        paths.append(plot_murder_share(result.murder_share, fig_dir))
    if len(result.victim_sex) and len(result.victim_race):
        paths.append(plot_victim_profile(result.victim_sex, result.victim_race, fig_dir))

    print(f"✓ {len(paths)} figures saved to {fig_dir}/")
    return paths
