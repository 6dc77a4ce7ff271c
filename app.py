"""JadeScope Streamlit entrypoint with modular page navigation."""

from __future__ import annotations

import json
import logging
import threading

import streamlit as st

from config import COLUMN_PRESETS, ENGLISH_COLUMNS, ColumnMap, column_map_from_dict
from dashboard_views import (
    render_metric_guide,
    render_products,
    render_skills,
    render_summary,
    render_trends,
    render_users,
)
from local_sources import LocalExport, scan_local_exports
from models import AnalysisReport
from parsing import SUPPORTED_EXTENSIONS, ParseError, read_upload
from report import generate_report_narrative, run_analysis
from session import AnalysisSession

logger = logging.getLogger(__name__)

st.set_page_config(page_title="JadeScope", page_icon="\U0001f48e", layout="wide")


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
        .stApp {
            background:
              radial-gradient(1200px 420px at 12% 0%, rgba(16, 185, 129, 0.14), transparent 58%),
              radial-gradient(1000px 520px at 90% 0%, rgba(59, 130, 246, 0.14), transparent 62%),
              linear-gradient(180deg, #f6fbff 0%, #eef6ff 100%);
        }
        .hero {
            margin-bottom: 0.6rem;
            padding: 1rem 1.2rem;
            border: 1px solid rgba(30, 80, 145, 0.23);
            border-radius: 14px;
            background: rgba(255,255,255,0.82);
        }
        .hero h1 { margin: 0; }
        .hero p { margin: 0.35rem 0 0 0; color: #244674; }
        [data-testid="stMetric"] {
            background: rgba(255,255,255,0.90);
            border: 1px solid rgba(45, 88, 162, 0.25);
            border-radius: 12px;
            padding: 0.45rem 0.6rem;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _render_header() -> None:
    st.markdown(
        """
        <div class="hero">
          <h1>JadeScope</h1>
          <p>Jade consumption analytics by payment tier, channel and item. Navigate by sections from the sidebar.</p>
        </div>
        """,
        unsafe_allow_html=True,
    )


def _parse_json_dict(json_text: str, fallback: dict) -> dict:
    try:
        parsed = json.loads(json_text)
        if not isinstance(parsed, dict):
            return fallback
        return parsed
    except ValueError:
        return fallback


def _column_settings() -> ColumnMap | None:
    """None means auto-detect from the header row."""
    with st.sidebar.expander("Column names (JSON)", expanded=False):
        preset = st.selectbox("Preset", ["auto", *COLUMN_PRESETS.keys(), "custom"], index=0)
        if preset == "auto":
            return None
        if preset in COLUMN_PRESETS:
            return COLUMN_PRESETS[preset]
        default = {
            field: getattr(ENGLISH_COLUMNS, field)
            for field in ("date", "tier", "channel", "item", "amount", "role_count", "dau")
        }
        col_json = st.text_area("Column map", value=json.dumps(default, indent=2), key="col_json", height=220)
        return column_map_from_dict(_parse_json_dict(col_json, default))


def _select_upload(columns: ColumnMap | None):
    st.sidebar.header("Data Setup")
    uploaded = st.sidebar.file_uploader(
        "Upload consumption export",
        type=[ext.replace(".", "") for ext in SUPPORTED_EXTENSIONS],
        help="Comma-separated export with a header row.",
    )
    if uploaded is not None:
        return uploaded

    with st.sidebar.expander("Load from local folder", expanded=False):
        folder = st.text_input("Folder path", value="", key="local_folder").strip()
        recursive = st.checkbox("Include subfolders", value=False)
        if not folder:
            return None
        try:
            exports, rejected = scan_local_exports(folder, recursive=recursive, columns=columns)
        except OSError as exc:
            st.error(str(exc))
            return None
        for item in rejected:
            st.warning(f"Skipped {item.path.name}: {item.reason}")
        if not exports:
            st.info("No usable CSV exports found in this folder.")
            return None
        names = [str(export.path) for export in exports]
        chosen = st.selectbox("Export", names, index=0)
        return exports[names.index(chosen)]


def _cancel_pending_narrative() -> None:
    event = st.session_state.get("narrative_cancel")
    if event is not None:
        event.set()
    st.session_state.pop("narrative", None)


def _analyse(uploaded, columns: ColumnMap | None) -> AnalysisReport | None:
    if isinstance(uploaded, LocalExport):
        upload_key = (str(uploaded.path), uploaded.modified, repr(columns))
    else:
        upload_key = (str(getattr(uploaded, "name", "")), getattr(uploaded, "size", None), repr(columns))
    if st.session_state.get("upload_key") == upload_key and "report" in st.session_state:
        return st.session_state["report"]

    _cancel_pending_narrative()
    session = AnalysisSession.create()
    st.session_state["analysis_session"] = session
    st.session_state.pop("report", None)

    progress = st.sidebar.progress(0, text="Analysing export...")
    try:
        text = uploaded.text if isinstance(uploaded, LocalExport) else read_upload(uploaded)
        report = run_analysis(
            text,
            session,
            on_progress=lambda percent: progress.progress(percent, text=f"Analysing export... {percent}%"),
            columns=columns,
        )
    except ParseError as exc:
        progress.empty()
        st.error(f"Could not read file: {exc}")
        return None
    progress.empty()

    st.session_state["upload_key"] = upload_key
    st.session_state["report"] = report
    if report.ok and report.stats is not None:
        st.sidebar.success(f"Analysed {len(session.records or []):,} rows over {report.stats.days} day(s).")
    return report


def _narrative(report: AnalysisReport) -> tuple[str, str]:
    if "narrative" in st.session_state:
        return st.session_state["narrative"]
    if not st.button("Generate narrative"):
        return "offline", report.summary.content

    cancel_event = threading.Event()
    st.session_state["narrative_cancel"] = cancel_event
    placeholder = st.empty()
    pieces: list[str] = []

    def on_token(text: str) -> None:
        pieces.append(text)
        placeholder.markdown("".join(pieces))

    with st.spinner("Generating narrative..."):
        result = generate_report_narrative(
            st.session_state["analysis_session"],
            timeout=5.0,
            cancel_event=cancel_event,
            on_token=on_token,
        )
    placeholder.empty()
    st.session_state["narrative"] = result
    return result


def main() -> None:
    _inject_styles()
    _render_header()

    view = st.sidebar.radio(
        "Navigate",
        ["Trends", "Users", "Products", "Skills", "Summary", "Metric Guide"],
    )
    if view == "Metric Guide":
        render_metric_guide()
        return

    columns = _column_settings()
    uploaded = _select_upload(columns)
    if uploaded is None:
        st.info("Upload a jade consumption export from the sidebar to start.")
        return

    report = _analyse(uploaded, columns)
    if report is None:
        return
    if not report.ok:
        st.error(report.error)
        return

    if view == "Trends":
        render_trends(report)
    elif view == "Users":
        render_users(report)
    elif view == "Products":
        render_products(report)
    elif view == "Skills":
        render_skills(report)
    elif view == "Summary":
        mode, text = _narrative(report)
        render_summary(report, text, mode)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    main()
