from __future__ import annotations

import pandas as pd
import streamlit as st
import altair as alt

from investor_pipeline.config import get_settings
from investor_pipeline.review import (
    confidence_counts,
    directory_frame,
    flagged_frame,
    load_review_data,
    origin_counts,
)
from investor_pipeline.storage import InvalidInputError

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Form D Investor Pipeline", layout="wide")
st.title("🧭 Form D Investor Pipeline Review")

# =====================================================
# Data (read-only: the dashboard never writes pipeline files)
# =====================================================
settings = get_settings()

try:
    data = load_review_data(settings)
except InvalidInputError as exc:
    st.error(f"Unable to read pipeline files: {exc}")
    st.stop()

df_dir = directory_frame(data.directory)


# =====================================================
# Helpers
# =====================================================
def kpi(label: str, value) -> None:
    """Display a simple KPI metric in the dashboard.

    Args:
        label: Metric label.
        value: Metric value (displayed as-is).
    """
    st.metric(label, value)


def center_dataframe(df: pd.DataFrame):
    """Center-align column headers and values for display."""
    return (
        df.style
        .set_properties(**{"text-align": "center"})
        .set_table_styles(
            [{"selector": "th", "props": [("text-align", "center")]}]
        )
    )


# =====================================================
# SECTION 0: DIRECTORY OVERVIEW
# =====================================================
st.header("📌 Directory Overview")

pipeline_rows = df_dir[df_dir["origin"] != "original"] if not df_dir.empty else df_dir
skeleton_count = int(df_dir["skeleton"].sum()) if not df_dir.empty else 0

c1, c2, c3 = st.columns(3)
with c1:
    kpi("Directory Entries", len(df_dir))
with c2:
    kpi("From Form D Filings", len(pipeline_rows))
with c3:
    kpi("Awaiting Enrichment", skeleton_count)

st.caption(f"Directory file: `{settings.directory_path}`")

df_origin = origin_counts(df_dir)
if not df_origin.empty:
    chart_origin = (
        alt.Chart(df_origin)
        .mark_bar()
        .encode(
            x=alt.X("origin:N", sort=alt.SortField("entries", order="descending"), title=None),
            y=alt.Y("entries:Q", title="Entries"),
            tooltip=["origin:N", "entries:Q"],
        )
        .properties(height=260)
    )
    st.altair_chart(chart_origin, width="stretch")

st.divider()

# =====================================================
# SECTION 1: VERIFICATION
# =====================================================
st.header("🔎 Verification")

if data.verification is None:
    st.warning("No verification output. Run `investor-pipeline verify`.")
else:
    df_conf = confidence_counts(data.verification)
    chart_conf = (
        alt.Chart(df_conf)
        .mark_bar()
        .encode(
            x=alt.X("tier:N", sort=list(df_conf["tier"]), title="Confidence"),
            y=alt.Y("candidates:Q", title="Candidates"),
            color=alt.Color("tier:N", legend=None),
            tooltip=["tier:N", "candidates:Q"],
        )
        .properties(height=280)
    )
    st.altair_chart(chart_conf, width="stretch")

    st.subheader("Flagged for manual review")
    df_flagged = flagged_frame(data.verification)
    if df_flagged.empty:
        st.info("Nothing flagged.")
    else:
        st.dataframe(center_dataframe(df_flagged), width="stretch")

st.divider()

# =====================================================
# SECTION 2: LAST MERGE
# =====================================================
st.header("🧩 Last Merge")

report = data.merge_report
if report is None:
    st.info("No merge report yet.")
else:
    c1, c2, c3 = st.columns(3)
    with c1:
        kpi("Added", len(report.added))
    with c2:
        kpi("Skipped (duplicate)", len(report.skipped_duplicate))
    with c3:
        kpi("Skipped (low confidence)", len(report.skipped_low_confidence))
    st.caption(f"Run at {report.timestamp:%Y-%m-%d %H:%M} UTC; backup: {report.backup_path or 'none'}")
    if report.added:
        st.dataframe(
            center_dataframe(pd.DataFrame([a.model_dump() for a in report.added])),
            width="stretch",
        )

st.divider()

# =====================================================
# SECTION 3: ENRICHMENT
# =====================================================
st.header("✨ Enrichment")

enrichment = data.enrichment_report
if enrichment is None:
    st.info("No enrichment report yet.")
else:
    c1, c2, c3 = st.columns(3)
    with c1:
        kpi("Kept", enrichment.enriched_kept)
    with c2:
        kpi("Filtered (non-VC)", enrichment.filtered)
    with c3:
        kpi("Dropped", enrichment.dropped)

    selection = st.selectbox("Funds", ["Kept", "Filtered", "Dropped"], index=0)
    rows = {
        "Kept": enrichment.kept_funds,
        "Filtered": enrichment.filtered_funds,
        "Dropped": enrichment.dropped_funds,
    }[selection]
    if rows:
        st.dataframe(
            center_dataframe(pd.DataFrame([r.model_dump() for r in rows])),
            width="stretch",
        )
    else:
        st.info(f"No {selection.lower()} funds.")

st.divider()

# =====================================================
# SECTION 4: DIRECTORY BROWSER
# =====================================================
st.header("📇 Directory")

if df_dir.empty:
    st.warning("Directory is empty. Run the pipeline.")
else:
    origins = sorted(df_dir["origin"].unique())
    selected = st.multiselect("Origin", origins, default=origins)
    only_skeletons = st.checkbox("Only records awaiting enrichment")

    df_view = df_dir[df_dir["origin"].isin(selected)]
    if only_skeletons:
        df_view = df_view[df_view["skeleton"]]
    st.dataframe(df_view.sort_values("completeness"), width="stretch")

# =====================================================
# Footer
# =====================================================
st.caption("SEC EDGAR Form D • pydantic • pandas • Streamlit | Investor directory pipeline")
