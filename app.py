"""
Seed Catalog Data Quality

A Streamlit page that cross-checks seeds, inventory, pricing and pictures
and lists what needs fixing, with inline fixes where one is possible.
Run with: streamlit run app.py
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import plotly.graph_objects as go
import structlog

from clients import NotionTaskClient, SeedCatalogLoader, SeedStoreClient
from core import (
    DataQualityChecker,
    FetchError,
    IssueCategory,
    OverrideStore,
    RemediationDispatcher,
    RemediationError,
    RemediationKind,
)
from core.config import get_settings
from core.logging_config import configure_logging

settings = get_settings()
configure_logging(settings)
logger = structlog.get_logger()

# Page config
st.set_page_config(
    page_title="Seed Data Quality",
    page_icon="🌱",
    layout="wide",
)

st.title("🌱 Data Quality")
st.caption("Seeds, inventory, pricing and pictures, cross-checked")

SECTION_TITLES = {
    IssueCategory.MEDIA: "Media",
    IssueCategory.DATA_HYGIENE: "Data Hygiene",
    IssueCategory.INVENTORY: "Inventory Attention",
    IssueCategory.PRICING: "Pricing & Profit",
}

SECTION_COLORS = ["#3498db", "#9b59b6", "#e67e22", "#2ecc71"]


@st.cache_resource
def get_store() -> SeedStoreClient:
    return SeedStoreClient.from_settings(settings)


@st.cache_resource
def get_task_client() -> NotionTaskClient | None:
    if not settings.notion_enabled:
        return None
    return NotionTaskClient.from_settings(settings)


def load_snapshot():
    """Fetch everything fresh into session state."""
    loader = SeedCatalogLoader(get_store())
    st.session_state.snapshot = loader.load_all()


store = get_store()

if st.button("🔄 Reload", help="Fetch the catalog again") or "snapshot" not in st.session_state:
    with st.spinner("Loading checks..."):
        try:
            load_snapshot()
        except FetchError as exc:
            st.session_state.pop("snapshot", None)
            st.error(f"Error: {exc}")
            st.stop()

snapshot = st.session_state.snapshot
checker = DataQualityChecker.from_settings(settings)
report = snapshot.compute(checker)
dispatcher = RemediationDispatcher(
    store, snapshot, OverrideStore(store), task_client=get_task_client()
)


# --- Inline fixes ---


def run_fix(fn, *args, success: str = "Saved"):
    """Run a remediation; rerun on success so the issue list is re-derived."""
    try:
        fn(*args)
    except (RemediationError, ValueError) as exc:
        st.error(str(exc))
        return
    st.toast(success)
    st.rerun()


def render_action(issue):
    remediation = issue.remediation
    if remediation is None:
        return

    if remediation.kind == RemediationKind.EDIT_FIELDS:
        with st.form(key=f"form-{issue.key}", border=False):
            cols = st.columns(len(remediation.fields))
            values = {}
            for col, field_name in zip(cols, remediation.fields):
                initial = remediation.initial.get(field_name)
                values[field_name] = col.text_input(
                    field_name.replace("_", " "),
                    value="" if initial is None else str(initial),
                    key=f"{issue.key}-{field_name}",
                )
            if st.form_submit_button(remediation.action_label or "Save"):
                run_fix(dispatcher.apply_fields, issue, values)

    elif remediation.kind == RemediationKind.SET_FIELDS:
        if st.button(remediation.action_label, key=f"btn-{issue.key}"):
            run_fix(dispatcher.apply_fields, issue)

    elif remediation.kind == RemediationKind.TOGGLE_OVERRIDE:
        if st.button(remediation.action_label, key=f"btn-{issue.key}"):
            run_fix(dispatcher.toggle_override, issue, success="Override saved")

    elif remediation.kind == RemediationKind.ATTACH_MEDIA:
        with st.form(key=f"form-{issue.key}", border=False):
            paths = st.text_area(
                "Image paths (one per line)", key=f"{issue.key}-paths", height=68
            )
            if st.form_submit_button(remediation.action_label):
                run_fix(
                    dispatcher.attach_media,
                    issue,
                    [p.strip() for p in paths.splitlines()],
                    success="Pictures added",
                )

    elif remediation.kind == RemediationKind.NOTIFY:
        if st.button(remediation.action_label, key=f"btn-{issue.key}"):
            # Best effort: the issue stays listed either way
            if dispatcher.notify(issue):
                st.toast("Task created")
            else:
                st.warning("Could not create a task; check the logs")


def render_section(category: IssueCategory):
    expanded_key = f"expanded-{category.value}"
    page = report.page(
        category,
        limit=settings.issue_page_size,
        expanded=st.session_state.get(expanded_key, False),
    )

    header, count = st.columns([4, 1])
    header.subheader(SECTION_TITLES[category])
    count.caption(f"{page.total} item{'' if page.total == 1 else 's'}")

    if page.total == 0:
        st.info("No issues 🎉")
        return

    for issue in page.items:
        left, right = st.columns([3, 2])
        with left:
            st.markdown(issue.label)
            if issue.hint:
                st.caption(issue.hint)
        with right:
            render_action(issue)

    if page.can_toggle:
        label = "Show less" if page.expanded else f"Show more ({page.hidden_count})"
        if st.button(label, key=f"toggle-{category.value}"):
            st.session_state[expanded_key] = not page.expanded
            st.rerun()


# --- Summary Row ---
summary = report.summary()
metric_cols = st.columns(4)
for col, category in zip(metric_cols, SECTION_TITLES):
    col.metric(SECTION_TITLES[category], summary[category.value])

fig_counts = go.Figure(
    data=[
        go.Bar(
            x=[SECTION_TITLES[c] for c in SECTION_TITLES],
            y=[summary[c.value] for c in SECTION_TITLES],
            marker_color=SECTION_COLORS,
            text=[summary[c.value] for c in SECTION_TITLES],
            textposition="outside",
        )
    ]
)
fig_counts.update_layout(
    title="Open Issues by Section",
    height=250,
    margin=dict(t=40, b=20, l=20, r=20),
    yaxis_title="Issues",
)
st.plotly_chart(fig_counts, use_container_width=True)

st.divider()

for category in SECTION_TITLES:
    render_section(category)
    st.divider()

# --- Footer ---
st.caption(
    f"Seeds: {len(snapshot.seeds):,} | "
    f"Inventory rows: {len(snapshot.inventory):,} | "
    f"Pricing rows: {len(snapshot.pricing):,} | "
    f"Pictures: {len(snapshot.images):,} | "
    f"Acknowledged duplicates: {sum(r.acknowledged for r in snapshot.overrides.values())}"
)
