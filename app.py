import logging
from contextlib import contextmanager
from typing import Optional

import altair as alt
import streamlit as st

from core import config
from core.charts import line_chart
from core.errors import DashboardError
from core.recommendations import get_recommendations
from core.registry import RemoteRegistry, make_registry
from core.state import ViewStateController
from core.views import DerivedView, view_table

alt.data_transformers.disable_max_rows()
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Environmental Impact Dashboard", layout="wide")


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 16px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.1rem;color: #374151;margin-bottom: 8px;}
        .page-title {font-size: 2rem;font-weight: 700;color: #047857;text-align: center;margin-bottom: 16px;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


# ---------- state ----------
def get_controller() -> ViewStateController:
    ctrl: Optional[ViewStateController] = st.session_state.get("controller")
    if ctrl is None:
        ctrl = ViewStateController(make_registry())
        st.session_state["controller"] = ctrl
    return ctrl


def on_category_change():
    ctrl = get_controller()
    try:
        ctrl.select_category(st.session_state["category_select"])
    except DashboardError as exc:
        logger.exception("select_category failed")
        st.session_state["last_error"] = str(exc)
        st.session_state["category_select"] = ctrl.get_selection().selected_category


def on_metric_change(name: str):
    ctrl = get_controller()
    try:
        ctrl.set_metric(name, bool(st.session_state[f"metric_{name}"]))
    except DashboardError as exc:
        logger.exception("set_metric failed")
        st.session_state["last_error"] = str(exc)
        st.session_state[f"metric_{name}"] = bool(ctrl.get_selection().active_metrics.get(name, False))


# ---------- renderers ----------
def render_controls(ctrl: ViewStateController):
    selection = ctrl.get_selection()
    categories = ctrl.registry.categories()
    # widgets always mirror the controller, including after a rejected change
    st.session_state["category_select"] = selection.selected_category
    for metric in config.METRICS:
        st.session_state[f"metric_{metric.key}"] = bool(selection.active_metrics.get(metric.key, False))
    cols = st.columns([3] + [2] * len(config.METRICS))
    with cols[0]:
        st.selectbox(
            "Category",
            categories,
            format_func=config.category_label,
            key="category_select",
            on_change=on_category_change,
            label_visibility="collapsed",
        )
    for col, metric in zip(cols[1:], config.METRICS):
        with col:
            st.checkbox(
                f"Show {metric.key.title()}",
                key=f"metric_{metric.key}",
                on_change=on_metric_change,
                args=(metric.key,),
            )


def render_chart(view: DerivedView):
    with card(config.chart_title(view.category)):
        st.altair_chart(line_chart(view), use_container_width=True)


def render_table(view: DerivedView):
    with card("Data Summary"):
        st.dataframe(view_table(view), hide_index=True, use_container_width=True)


def render_recommendations():
    with card("Mitigation Recommendations"):
        st.markdown("\n".join(f"- {rec}" for rec in get_recommendations()))


def render_errors(ctrl: ViewStateController):
    message = st.session_state.pop("last_error", None)
    if message:
        st.error(message)
    registry = ctrl.registry
    if isinstance(registry, RemoteRegistry) and registry.last_error is not None:
        st.warning(f"Showing cached data: {registry.last_error}")


inject_base_styles()
st.markdown("<div class='page-title'>Environmental Impact Dashboard</div>", unsafe_allow_html=True)

try:
    controller = get_controller()
except DashboardError as exc:
    logger.exception("dashboard start-up failed")
    st.error(f"Could not load report data: {exc}")
    st.stop()

render_controls(controller)
render_errors(controller)
current_view = controller.current_view()
render_chart(current_view)
render_table(current_view)
render_recommendations()
